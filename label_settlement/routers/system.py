"""
System Router

Cross-brand payout queries used by the automated payout job.
"""

import logging
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from label_settlement.core.config import settings
from label_settlement.core.database import get_db
from label_settlement.repositories import SqlUnitOfWork
from label_settlement.schemas.balances import ArtistPayoutPageResponse, SublabelPayoutPageResponse
from label_settlement.services.balances import BalanceAggregator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/system", tags=["system"])


async def verify_system_token(x_system_token: Annotated[str, Header()]) -> str:
    """Verify the system token from header."""
    if x_system_token != settings.SYSTEM_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid system token",
        )
    return x_system_token


@router.get("/artists-due-payment", response_model=ArtistPayoutPageResponse)
async def artists_due_payment(
    db: Annotated[AsyncSession, Depends(get_db)],
    _token: Annotated[str, Depends(verify_system_token)],
    page: int = Query(1, description="Page number, starting at 1"),
    limit: int = Query(20, description="Artists considered per page"),
    min_balance: Optional[Decimal] = Query(None, description="Only artists owed at least this much"),
    brand_id: Optional[UUID] = Query(None, description="Restrict to one brand"),
) -> ArtistPayoutPageResponse:
    """
    Artists ready for payout across all brands.

    A page covers limit artists before filtering, so it may hold fewer
    results; total counts every artist considered.
    """
    result = await BalanceAggregator(SqlUnitOfWork(db)).artists_due_payment(
        page=page,
        limit=limit,
        min_balance=min_balance,
        brand_id=brand_id,
    )
    return ArtistPayoutPageResponse.model_validate(result)


@router.get("/sublabels-due-payment", response_model=SublabelPayoutPageResponse)
async def sublabels_due_payment(
    db: Annotated[AsyncSession, Depends(get_db)],
    _token: Annotated[str, Depends(verify_system_token)],
    page: int = Query(1, description="Page number, starting at 1"),
    limit: int = Query(20, description="Sub-labels considered per page"),
    min_balance: Optional[Decimal] = Query(None, description="Only sub-labels owed at least this much"),
    parent_brand_id: Optional[UUID] = Query(None, description="Restrict to one parent label"),
) -> SublabelPayoutPageResponse:
    """Sub-labels with a positive balance and a payout destination."""
    result = await BalanceAggregator(SqlUnitOfWork(db)).sublabels_due_payment(
        parent_brand_id=parent_brand_id,
        page=page,
        limit=limit,
        min_balance=min_balance,
    )
    return SublabelPayoutPageResponse.model_validate(result)
