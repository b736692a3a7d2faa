"""Pydantic schemas for transactions and the dashboard."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from pondobro.db.models import as_utc

# Amounts are stored as a signed 64-bit integer (BigInteger).
AMOUNT_MIN = -(2**63)
AMOUNT_MAX = 2**63 - 1


class TransactionCreate(BaseModel):
    # Kept as a string: an unparsable date is a creation failure, not a 400.
    date: Optional[str] = None
    description: str = ""
    category: str = ""
    amount: int = Field(0, ge=AMOUNT_MIN, le=AMOUNT_MAX)


class TransactionRead(BaseModel):
    id: int
    date: datetime
    description: str
    category: str
    amount: int
    user_id: Optional[int]

    model_config = {"from_attributes": True}

    @field_validator("date")
    @classmethod
    def date_in_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class DashboardSummaryRead(BaseModel):
    total_income: int
    total_expenses: int
    balance: int
