"""
Balances Router

Artist balances and sub-label finance summaries for the caller's brand.
"""

import logging
from datetime import date
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from label_settlement.core.config import settings
from label_settlement.core.database import get_db
from label_settlement.core.errors import SettlementError
from label_settlement.repositories import SqlUnitOfWork
from label_settlement.schemas.balances import (
    ArtistBalanceResponse,
    ReleaseBreakdownResponse,
    SublabelBalanceResponse,
)
from label_settlement.services.balances import BalanceAggregator

logger = logging.getLogger(__name__)

artists_router = APIRouter(prefix="/artists", tags=["balances"])
labels_router = APIRouter(prefix="/labels", tags=["balances"])


async def verify_admin_token(x_admin_token: Annotated[str, Header()]) -> str:
    """Verify the admin token from header."""
    if x_admin_token != settings.ADMIN_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
        )
    return x_admin_token


def _check_period(start: Optional[date], end: Optional[date]) -> None:
    if start is not None and end is not None and end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must be >= start_date",
        )


async def _check_label_access(uow: SqlUnitOfWork, caller_brand_id: UUID, brand_id: UUID) -> None:
    """A brand may read its own figures and those of its direct sub-labels."""
    if brand_id == caller_brand_id:
        return
    brand = await uow.brands.get(brand_id)
    if brand is None or brand.parent_brand_id != caller_brand_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Brand {brand_id} not found",
        )


@artists_router.get("/{artist_id}/balance", response_model=ArtistBalanceResponse)
async def get_artist_balance(
    artist_id: UUID,
    x_brand_id: Annotated[UUID, Header()],
    db: Annotated[AsyncSession, Depends(get_db)],
    _token: Annotated[str, Depends(verify_admin_token)],
) -> ArtistBalanceResponse:
    """Royalties minus payments, and whether the artist is due a payout."""
    try:
        balance = await BalanceAggregator(SqlUnitOfWork(db)).artist_balance(x_brand_id, artist_id)
    except SettlementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return ArtistBalanceResponse.model_validate(balance)


@labels_router.get("/{brand_id}/balance", response_model=SublabelBalanceResponse)
async def get_label_balance(
    brand_id: UUID,
    x_brand_id: Annotated[UUID, Header()],
    db: Annotated[AsyncSession, Depends(get_db)],
    _token: Annotated[str, Depends(verify_admin_token)],
    start_date: Optional[date] = Query(None, description="Inclusive start of the period"),
    end_date: Optional[date] = Query(None, description="Inclusive end of the period"),
) -> SublabelBalanceResponse:
    """
    Music and event totals of a label, less payments already made to it.
    """
    _check_period(start_date, end_date)
    uow = SqlUnitOfWork(db)
    await _check_label_access(uow, x_brand_id, brand_id)

    try:
        balance = await BalanceAggregator(uow).sublabel_balance(brand_id, start_date, end_date)
    except SettlementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return SublabelBalanceResponse.model_validate(balance)


@labels_router.get("/{brand_id}/breakdown", response_model=List[ReleaseBreakdownResponse])
async def get_label_breakdown(
    brand_id: UUID,
    x_brand_id: Annotated[UUID, Header()],
    db: Annotated[AsyncSession, Depends(get_db)],
    _token: Annotated[str, Depends(verify_admin_token)],
    start_date: Optional[date] = Query(None, description="Inclusive start of the period"),
    end_date: Optional[date] = Query(None, description="Inclusive end of the period"),
) -> List[ReleaseBreakdownResponse]:
    """Per-release earnings, royalties and fees of a label."""
    _check_period(start_date, end_date)
    uow = SqlUnitOfWork(db)
    await _check_label_access(uow, x_brand_id, brand_id)

    rows = await BalanceAggregator(uow).release_breakdown(brand_id, start_date, end_date)
    return [ReleaseBreakdownResponse.model_validate(row) for row in rows]
