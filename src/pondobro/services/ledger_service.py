"""Ledger service: per-user transactions and the dashboard summary.

Learn: The ledger is append-only from the API's point of view: entries
are created and listed, never edited. Amount sign carries the meaning
(positive = income, negative = expense), so the summary is two filtered
SUMs rather than anything stored.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pondobro.db.models import Transaction, as_utc, utcnow

logger = structlog.get_logger()


class TransactionCreateError(Exception):
    """A transaction could not be created (bad date or storage failure)."""


@dataclass
class DashboardSummary:
    total_income: int = 0
    total_expenses: int = 0

    @property
    def balance(self) -> int:
        return self.total_income - self.total_expenses


def parse_transaction_date(raw: Optional[str]) -> datetime:
    """Blank → now; otherwise ISO-8601 (date-only allowed), normalized to UTC.

    Raises ValueError when the string can't be parsed.
    """
    if raw is None or not raw.strip():
        return utcnow()
    return as_utc(datetime.fromisoformat(raw.strip()))


class LedgerService:
    """Business logic for a user's transactions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_transactions(self, user_id: int) -> list[Transaction]:
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
        )
        return list(result.scalars().all())

    async def create_transaction(
        self,
        user_id: int,
        description: str,
        category: str,
        amount: int,
        date: Optional[str] = None,
    ) -> Transaction:
        """Record a transaction. All-or-nothing: any failure leaves no row."""
        try:
            when = parse_transaction_date(date)
        except ValueError:
            logger.info("ledger.invalid_date", user_id=user_id, date=date)
            raise TransactionCreateError("Could not create transaction.")

        tx = Transaction(
            date=when,
            description=description or "",
            category=category or "",
            amount=amount,
            user_id=user_id,
        )
        self.db.add(tx)
        try:
            await self.db.commit()
        except (SQLAlchemyError, OverflowError):
            # sqlite3 raises a bare OverflowError for ints past 64 bits
            await self.db.rollback()
            logger.exception("ledger.create_failed", user_id=user_id)
            raise TransactionCreateError("Could not create transaction.")

        logger.info("ledger.transaction_created", user_id=user_id, transaction_id=tx.id)
        return tx

    async def summary(self, user_id: int) -> DashboardSummary:
        income = await self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.user_id == user_id, Transaction.amount > 0
            )
        )
        expenses = await self.db.execute(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.user_id == user_id, Transaction.amount < 0
            )
        )
        return DashboardSummary(
            total_income=int(income.scalar_one()),
            total_expenses=abs(int(expenses.scalar_one())),
        )
