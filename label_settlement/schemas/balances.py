"""Pydantic schemas for balances and payout queries."""
from decimal import Decimal
from uuid import UUID
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ArtistBalanceResponse(BaseModel):
    """Balance and payout readiness of an artist."""
    artist_id: UUID
    artist_name: str
    brand_id: UUID
    total_royalties: Decimal
    total_payments: Decimal
    balance: Decimal
    payout_point: Decimal
    hold_payouts: bool
    has_payment_method: bool
    ready_for_payout: bool

    class Config:
        from_attributes = True


class SublabelBalanceResponse(BaseModel):
    """Finance summary of a sub-label."""
    brand_id: UUID
    brand_name: str
    parent_brand_id: Optional[UUID] = None
    music_earnings: Decimal
    music_royalties: Decimal
    music_platform_fees: Decimal
    net_music: Decimal
    event_sales: Decimal
    event_platform_fees: Decimal
    event_processing_fees: Decimal
    net_event: Decimal
    payments_received: Decimal
    balance: Decimal
    has_payment_method: bool
    ready_for_payout: bool

    class Config:
        from_attributes = True


class ReleaseBreakdownResponse(BaseModel):
    release_id: UUID
    release_title: str
    gross_earnings: Decimal
    royalties: Decimal
    platform_fees: Decimal
    net_earnings: Decimal

    class Config:
        from_attributes = True


class ArtistPayoutPageResponse(BaseModel):
    total: int = Field(description="Artists considered, before readiness filtering")
    page: int
    limit: int
    total_pages: int
    results: List[ArtistBalanceResponse]
    filters: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        from_attributes = True


class SublabelPayoutPageResponse(BaseModel):
    total: int = Field(description="Sub-labels considered, before readiness filtering")
    page: int
    limit: int
    total_pages: int
    results: List[SublabelBalanceResponse]
    filters: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        from_attributes = True
