"""Pydantic schemas for release recoupment API."""
from datetime import date
from decimal import Decimal
from uuid import UUID
from typing import Optional

from pydantic import BaseModel, Field


class RecuperableExpenseCreate(BaseModel):
    """Request schema for recording a recoupable expense."""
    expense_description: str = Field(min_length=1, max_length=255)
    expense_amount: Decimal | str = Field(description="Positive amount, at most two decimals")
    date_recorded: Optional[date] = Field(default=None, description="Defaults to today")


class RecuperableExpenseResponse(BaseModel):
    id: UUID
    release_id: UUID
    brand_id: UUID
    earning_id: Optional[UUID] = None
    expense_description: str
    expense_amount: Decimal
    date_recorded: date

    class Config:
        from_attributes = True


class RecuperableBalanceResponse(BaseModel):
    release_id: UUID
    recuperable_balance: Decimal
