"""Pydantic schemas for earnings API."""
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# Request schemas

class EarningCreate(BaseModel):
    """
    Request schema for recording an earning.

    amount and date_recorded are checked by the ingestion service so that
    malformed values are reported as 400 with a readable message.
    """
    release_id: UUID
    type: Optional[str] = Field(default=None, description="Streaming, Sync, Downloads or Physical. Defaults to Streaming.")
    amount: Optional[Decimal | str] = Field(default=None, description="Non-negative amount, at most two decimals")
    description: Optional[str] = None
    date_recorded: Optional[date | str] = None
    calculate_royalties: bool = Field(default=False, description="Run recoupment and royalty distribution now")


class EarningBulkCreate(BaseModel):
    """Request schema for recording many earnings."""
    earnings: List[EarningCreate] = Field(min_length=1)


# Response schemas

class EarningResponse(BaseModel):
    id: UUID
    release_id: UUID
    type: str
    amount: Decimal
    description: Optional[str] = None
    date_recorded: date
    platform_fee: Decimal
    allocated_at: Optional[datetime] = None
    fee_finalized_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoyaltyResponse(BaseModel):
    id: UUID
    artist_id: UUID
    release_id: Optional[UUID] = None
    earning_id: Optional[UUID] = None
    percentage_of_earning: Decimal
    amount: Decimal
    description: Optional[str] = None
    date_recorded: date

    class Config:
        from_attributes = True


class AllocationSummaryResponse(BaseModel):
    """What recoupment and distribution did with the earning."""
    recouped_amount: Decimal
    remaining_recuperable_balance: Decimal
    total_royalties: Decimal
    royalties: List[RoyaltyResponse] = Field(default_factory=list)


class EarningIngestResponse(BaseModel):
    """Response for a recorded or allocated earning."""
    earning: EarningResponse
    allocation: Optional[AllocationSummaryResponse] = None
    fee_pending: bool = Field(default=False, description="Platform fee could not be set yet; retry finalize-fee")
    fee_error: Optional[str] = None
    notifications_sent: int = 0


class EarningBulkResponse(BaseModel):
    processed: int
    created: int
    earnings: List[EarningIngestResponse] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class MatchedReleaseResponse(BaseModel):
    id: UUID
    catalog_no: Optional[str] = None
    title: str

    class Config:
        from_attributes = True


class CsvPreviewRowResponse(BaseModel):
    original_data: Dict[str, Any]
    catalog_no: Optional[str] = None
    release_title: Optional[str] = None
    earning_amount: Decimal
    matched_release: Optional[MatchedReleaseResponse] = None
    match_score: Optional[int] = None
    match_method: Optional[str] = None

    class Config:
        from_attributes = True


class CsvPreviewSummaryResponse(BaseModel):
    total_rows: int
    total_matched: int
    total_unmatched: int
    total_earning_amount: Decimal
    column_mapping: Dict[str, Optional[str]]

    class Config:
        from_attributes = True


class CsvPreviewResponse(BaseModel):
    """Preview of a bulk earnings CSV. Nothing is written."""
    rows: List[CsvPreviewRowResponse]
    summary: CsvPreviewSummaryResponse

    class Config:
        from_attributes = True
