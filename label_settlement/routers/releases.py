"""
Releases Router

Recoupable expenses recorded against a release and its current balance.
"""

import logging
from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from label_settlement.core.config import settings
from label_settlement.core.database import get_db
from label_settlement.core.errors import SettlementError
from label_settlement.core.money import parse_money
from label_settlement.repositories import SqlUnitOfWork
from label_settlement.schemas.releases import (
    RecuperableBalanceResponse,
    RecuperableExpenseCreate,
    RecuperableExpenseResponse,
)
from label_settlement.services.balances import BalanceAggregator
from label_settlement.services.waterfall import RecuperationWaterfall

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/releases", tags=["releases"])


async def verify_admin_token(x_admin_token: Annotated[str, Header()]) -> str:
    """Verify the admin token from header."""
    if x_admin_token != settings.ADMIN_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
        )
    return x_admin_token


@router.post(
    "/{release_id}/recuperable-expenses",
    response_model=RecuperableExpenseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_recuperable_expense(
    release_id: UUID,
    data: RecuperableExpenseCreate,
    x_brand_id: Annotated[UUID, Header()],
    db: Annotated[AsyncSession, Depends(get_db)],
    _token: Annotated[str, Depends(verify_admin_token)],
) -> RecuperableExpenseResponse:
    """
    Record an expense the release must earn back before royalties are paid.
    """
    uow = SqlUnitOfWork(db)
    release = await uow.releases.get_for_brand(x_brand_id, release_id)
    if release is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Release {release_id} not found",
        )

    try:
        amount = parse_money(data.expense_amount, "Expense amount")
        entry = await RecuperationWaterfall(uow.expenses).add_expense(
            release_id=release.id,
            brand_id=release.brand_id,
            description=data.expense_description,
            amount=amount,
            recorded_date=data.date_recorded or date.today(),
        )
        await uow.commit()
    except ValueError as e:
        await uow.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return RecuperableExpenseResponse.model_validate(entry)


@router.get("/{release_id}/recuperable-balance", response_model=RecuperableBalanceResponse)
async def get_recuperable_balance(
    release_id: UUID,
    x_brand_id: Annotated[UUID, Header()],
    db: Annotated[AsyncSession, Depends(get_db)],
    _token: Annotated[str, Depends(verify_admin_token)],
) -> RecuperableBalanceResponse:
    """Expenses still to be recouped on a release."""
    try:
        balance = await BalanceAggregator(SqlUnitOfWork(db)).recoupable_balance(x_brand_id, release_id)
    except SettlementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return RecuperableBalanceResponse(release_id=release_id, recuperable_balance=balance)
