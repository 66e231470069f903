"""
Earnings Router

Records earnings, settles them into recoupment and royalties, retries
platform fees and previews bulk CSV uploads.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from label_settlement.core.config import settings
from label_settlement.core.database import get_db
from label_settlement.core.errors import SettlementError
from label_settlement.repositories import SqlUnitOfWork
from label_settlement.schemas.earnings import (
    AllocationSummaryResponse,
    CsvPreviewResponse,
    EarningBulkCreate,
    EarningBulkResponse,
    EarningCreate,
    EarningIngestResponse,
    EarningResponse,
    RoyaltyResponse,
)
from label_settlement.services.csv_matcher import CsvEarningsMatcher
from label_settlement.services.ingestion import EarningIngestor, EarningInput, IngestionResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/earnings", tags=["earnings"])


async def verify_admin_token(x_admin_token: Annotated[str, Header()]) -> str:
    """Verify the admin token from header."""
    if x_admin_token != settings.ADMIN_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
        )
    return x_admin_token


async def get_brand_id(x_brand_id: Annotated[UUID, Header()]) -> UUID:
    """Brand (tenant) the caller acts for."""
    return x_brand_id


async def get_ingestor(db: Annotated[AsyncSession, Depends(get_db)]) -> EarningIngestor:
    return EarningIngestor(SqlUnitOfWork(db))


def _to_response(result: IngestionResult) -> EarningIngestResponse:
    allocation = None
    if result.allocation is not None:
        allocation = AllocationSummaryResponse(
            recouped_amount=result.allocation.recouped_amount,
            remaining_recuperable_balance=result.allocation.remaining_recuperable_balance,
            total_royalties=result.allocation.total_royalties,
            royalties=[RoyaltyResponse.model_validate(r) for r in result.allocation.royalties],
        )
    return EarningIngestResponse(
        earning=EarningResponse.model_validate(result.earning),
        allocation=allocation,
        fee_pending=result.fee_pending,
        fee_error=result.fee_error,
        notifications_sent=result.notifications_sent,
    )


@router.post("", response_model=EarningIngestResponse, status_code=status.HTTP_201_CREATED)
async def create_earning(
    data: EarningCreate,
    brand_id: Annotated[UUID, Depends(get_brand_id)],
    ingestor: Annotated[EarningIngestor, Depends(get_ingestor)],
    _token: Annotated[str, Depends(verify_admin_token)],
) -> EarningIngestResponse:
    """
    Record an earning for a release.

    With calculate_royalties, outstanding recoupable expenses are recouped
    first and the remainder is split across the release's artists. If the
    platform fee could not be computed the earning is still recorded and
    fee_pending is set.
    """
    try:
        result = await ingestor.ingest(
            tenant_id=brand_id,
            release_id=data.release_id,
            category=data.type,
            gross_amount=data.amount,
            recorded_date=data.date_recorded,
            description=data.description,
            run_allocation=data.calculate_royalties,
        )
    except SettlementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return _to_response(result)


@router.post("/bulk", response_model=EarningBulkResponse)
async def create_earnings_bulk(
    data: EarningBulkCreate,
    brand_id: Annotated[UUID, Depends(get_brand_id)],
    ingestor: Annotated[EarningIngestor, Depends(get_ingestor)],
    _token: Annotated[str, Depends(verify_admin_token)],
) -> EarningBulkResponse:
    """
    Record many earnings. Each row is committed on its own; rows that fail
    are listed in errors and do not stop the others.
    """
    items = [
        EarningInput(
            release_id=row.release_id,
            amount=row.amount,
            date_recorded=row.date_recorded,
            type=row.type,
            description=row.description,
            calculate_royalties=row.calculate_royalties,
        )
        for row in data.earnings
    ]
    result = await ingestor.ingest_many(brand_id, items)

    return EarningBulkResponse(
        processed=result.processed,
        created=len(result.created),
        earnings=[_to_response(r) for r in result.created],
        errors=result.errors,
    )


@router.post("/preview-csv", response_model=CsvPreviewResponse)
async def preview_csv(
    csv_file: Annotated[UploadFile, File()],
    brand_id: Annotated[UUID, Depends(get_brand_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    _token: Annotated[str, Depends(verify_admin_token)],
) -> CsvPreviewResponse:
    """
    Preview a bulk earnings CSV against the brand's releases.

    Headers are mapped by fuzzy matching; rows are matched to releases by
    exact catalog number or title. Nothing is written.
    """
    content = await csv_file.read()
    releases = await SqlUnitOfWork(db).releases.list_for_brand(brand_id)

    try:
        preview = CsvEarningsMatcher().preview(content, releases)
    except SettlementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return CsvPreviewResponse.model_validate(preview)


@router.post("/{earning_id}/allocate", response_model=EarningIngestResponse)
async def allocate_earning(
    earning_id: UUID,
    brand_id: Annotated[UUID, Depends(get_brand_id)],
    ingestor: Annotated[EarningIngestor, Depends(get_ingestor)],
    _token: Annotated[str, Depends(verify_admin_token)],
) -> EarningIngestResponse:
    """Run recoupment and royalty distribution for an earning recorded earlier."""
    try:
        result = await ingestor.allocate(brand_id, earning_id)
    except SettlementError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return _to_response(result)


@router.post("/{earning_id}/finalize-fee", response_model=EarningResponse)
async def finalize_earning_fee(
    earning_id: UUID,
    brand_id: Annotated[UUID, Depends(get_brand_id)],
    ingestor: Annotated[EarningIngestor, Depends(get_ingestor)],
    _token: Annotated[str, Depends(verify_admin_token)],
) -> EarningResponse:
    """Set the platform fee of an allocated earning whose fee is still pending."""
    try:
        earning = await ingestor.finalize_fee(brand_id, earning_id)
    except SettlementError as e:
        logger.warning(f"Fee finalization for earning {earning_id} failed: {e.detail}")
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return EarningResponse.model_validate(earning)
