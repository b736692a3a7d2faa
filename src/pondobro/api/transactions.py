"""Transaction API routes.

Learn: Both routes act for whoever get_current_user_id resolves: the
refresh cookie's session first, the bearer token second. There is no
way to name another user's id in the request.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from pondobro.auth.dependencies import get_current_user_id
from pondobro.db.engine import get_db
from pondobro.schemas.transaction import TransactionCreate, TransactionRead
from pondobro.services.ledger_service import LedgerService, TransactionCreateError

logger = structlog.get_logger()

router = APIRouter(prefix="/transactions")


def _ledger_svc(db: AsyncSession = Depends(get_db)) -> LedgerService:
    return LedgerService(db)


@router.get("", response_model=list[TransactionRead])
async def list_transactions(
    user_id: int = Depends(get_current_user_id),
    svc: LedgerService = Depends(_ledger_svc),
):
    """All of the caller's transactions, newest first."""
    return await svc.list_transactions(user_id)


@router.post("", response_model=TransactionRead, status_code=201)
async def create_transaction(
    body: TransactionCreate,
    user_id: int = Depends(get_current_user_id),
    svc: LedgerService = Depends(_ledger_svc),
):
    """Record a transaction. A missing or blank date means now."""
    try:
        return await svc.create_transaction(
            user_id=user_id,
            date=body.date,
            description=body.description,
            category=body.category,
            amount=body.amount,
        )
    except TransactionCreateError as e:
        raise HTTPException(status_code=500, detail=str(e))
