"""Dashboard API: income/expense/balance totals for the caller."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pondobro.auth.dependencies import get_current_user_id
from pondobro.db.engine import get_db
from pondobro.schemas.transaction import DashboardSummaryRead
from pondobro.services.ledger_service import LedgerService

router = APIRouter(prefix="/dashboard")


@router.get("/summary", response_model=DashboardSummaryRead)
async def dashboard_summary(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    summary = await LedgerService(db).summary(user_id)
    return DashboardSummaryRead(
        total_income=summary.total_income,
        total_expenses=summary.total_expenses,
        balance=summary.balance,
    )
