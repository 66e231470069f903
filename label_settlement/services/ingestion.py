"""
Earning ingestion.

Flow for one earning with allocation:
1. Validate amount and date, check the release belongs to the brand
2. Under the release lock, in one transaction:
   - persist the Earning (platform_fee = 0)
   - recuperation waterfall
   - royalty distribution on the remainder
   - mark the earning allocated, commit
3. Compute the platform fee and set it in a second transaction. A fee hook
   failure leaves the fee at 0 and the earning flagged fee_pending; the
   settlement rows stay committed and finalize_fee() can be retried.
4. After commit, send earning notifications (best effort).
"""
from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from label_settlement.core.database import utcnow
from label_settlement.core.errors import (
    ConflictError,
    DependencyFailure,
    NotFoundError,
    SettlementError,
    ValidationError,
)
from label_settlement.core.money import ZERO, parse_money, to_money
from label_settlement.models.earning import Earning, EarningType
from label_settlement.models.release import Release
from label_settlement.models.royalty import Royalty
from label_settlement.repositories.base import SettlementUnitOfWork
from label_settlement.services.allocator import RoyaltyAllocator
from label_settlement.services.notifications import (
    EarningAmounts,
    EarningNotice,
    NotificationSender,
    ResendNotificationSender,
    dispatch_notices,
)
from label_settlement.services.platform_fee import BrandPlatformFeeCalculator, PlatformFeeHook
from label_settlement.services.waterfall import RecuperationWaterfall

logger = logging.getLogger(__name__)

MAX_CATEGORY_LENGTH = 45
MAX_DESCRIPTION_LENGTH = 255


class ReleaseLockRegistry:
    """
    One asyncio.Lock per release id.

    Earnings for the same release settle one at a time within a process;
    the database row lock covers concurrent processes.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, release_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(release_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[release_id] = lock
        return lock


@dataclass
class EarningInput:
    """One earning as submitted by a caller."""
    release_id: UUID
    amount: Decimal | str | None
    date_recorded: date | str | None
    type: Optional[str] = None
    description: Optional[str] = None
    calculate_royalties: bool = False


@dataclass
class AllocationSummary:
    """What the waterfall and distribution did with an earning."""
    recouped_amount: Decimal
    remaining_recuperable_balance: Decimal
    total_royalties: Decimal
    royalties: List[Royalty] = field(default_factory=list)


@dataclass
class IngestionResult:
    """Result of ingesting one earning."""
    earning: Earning
    allocation: Optional[AllocationSummary] = None
    fee_pending: bool = False
    fee_error: Optional[str] = None
    notifications_sent: int = 0


@dataclass
class BulkIngestionResult:
    """Result of ingesting a batch of earnings."""
    processed: int = 0
    created: List[IngestionResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _parse_date(value: date | str | None) -> date:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Date recorded is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ValidationError(f"Invalid date recorded: {value!r}")


def _parse_category(value: Optional[str]) -> str:
    category = (value or "").strip() or EarningType.STREAMING.value
    if len(category) > MAX_CATEGORY_LENGTH:
        raise ValidationError(f"Earning type must be at most {MAX_CATEGORY_LENGTH} characters")
    return category


def _parse_description(value: Optional[str]) -> Optional[str]:
    description = (value or "").strip() or None
    if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters")
    return description


class EarningIngestor:
    """Records earnings and settles them into recoupment and royalties."""

    def __init__(
        self,
        uow: SettlementUnitOfWork,
        fee_hook: Optional[PlatformFeeHook] = None,
        notifier: Optional[NotificationSender] = None,
        locks: Optional[ReleaseLockRegistry] = None,
    ):
        self.uow = uow
        self.fee_hook = fee_hook or BrandPlatformFeeCalculator(uow.brands)
        self.notifier = notifier or ResendNotificationSender()
        self.locks = locks or release_locks
        self.waterfall = RecuperationWaterfall(uow.expenses)
        self.allocator = RoyaltyAllocator(uow.release_artists, uow.royalties)

    async def ingest(
        self,
        tenant_id: UUID,
        release_id: UUID,
        category: Optional[str],
        gross_amount: Decimal | str | None,
        recorded_date: date | str | None,
        description: Optional[str] = None,
        run_allocation: bool = False,
    ) -> IngestionResult:
        """
        Record an earning and optionally settle it.

        Args:
            tenant_id: Brand of the caller
            release_id: Release the earning belongs to
            category: Streaming, Sync, Downloads, Physical or free text
            gross_amount: Non-negative amount with at most two decimals
            recorded_date: Date the earning is recorded on
            description: Free text description
            run_allocation: Run recoupment and royalty distribution now

        Returns:
            IngestionResult with the earning and, if allocated, its summary

        Raises:
            ValidationError: Malformed amount, missing date, or category or
                description too long
            NotFoundError: Release missing or owned by another brand
        """
        try:
            amount = parse_money(gross_amount, "Amount")
        except ValueError as e:
            raise ValidationError(str(e))
        date_recorded = _parse_date(recorded_date)
        earning_type = _parse_category(category)
        description = _parse_description(description)

        release = await self.uow.releases.get_for_brand(tenant_id, release_id)
        if release is None:
            raise NotFoundError(f"Release {release_id} not found")

        earning = Earning(
            release_id=release.id,
            type=earning_type,
            amount=amount,
            description=description,
            date_recorded=date_recorded,
            platform_fee=ZERO,
        )

        if not run_allocation:
            try:
                await self.uow.earnings.add(earning)
                await self.uow.commit()
            except Exception:
                await self.uow.rollback()
                raise
            logger.info(f"Recorded earning {earning.id} ({earning.type} {earning.amount}) without allocation")
            return IngestionResult(earning=earning)

        async with self.locks.lock_for(release.id):
            try:
                await self.uow.releases.lock(release.id)
                await self.uow.earnings.add(earning)
                summary, notices = await self._settle(release, earning)
                await self.uow.commit()
            except Exception:
                await self.uow.rollback()
                raise

        logger.info(
            f"Recorded earning {earning.id} ({earning.type} {earning.amount}): "
            f"recouped {summary.recouped_amount}, royalties {summary.total_royalties}"
        )
        return await self._after_settlement(release, earning, summary, notices)

    async def allocate(self, tenant_id: UUID, earning_id: UUID) -> IngestionResult:
        """
        Settle an earning that was recorded without allocation.

        Raises:
            NotFoundError: Earning missing or owned by another brand
            ConflictError: Earning already allocated
        """
        earning = await self.uow.earnings.get_for_brand(tenant_id, earning_id)
        if earning is None:
            raise NotFoundError(f"Earning {earning_id} not found")

        release = await self.uow.releases.get(earning.release_id)
        if release is None:
            raise NotFoundError(f"Release {earning.release_id} not found")

        async with self.locks.lock_for(release.id):
            try:
                await self.uow.releases.lock(release.id)
                earning = await self.uow.earnings.get_for_update(earning_id)
                if earning.is_allocated:
                    raise ConflictError(f"Earning {earning_id} has already been allocated")
                summary, notices = await self._settle(release, earning)
                await self.uow.commit()
            except Exception:
                await self.uow.rollback()
                raise

        return await self._after_settlement(release, earning, summary, notices)

    async def finalize_fee(self, tenant_id: UUID, earning_id: UUID) -> Earning:
        """
        Compute and set the platform fee of an allocated earning.

        Recoupment and royalties are read back from the ledger, not re-run.

        Raises:
            NotFoundError: Earning missing or owned by another brand
            ConflictError: Earning not allocated yet, or fee already set
            DependencyFailure: The fee hook failed
        """
        earning = await self.uow.earnings.get_for_brand(tenant_id, earning_id)
        if earning is None:
            raise NotFoundError(f"Earning {earning_id} not found")
        if not earning.is_allocated:
            raise ConflictError(f"Earning {earning_id} has not been allocated yet")
        if earning.is_fee_finalized:
            raise ConflictError(f"Platform fee for earning {earning_id} is already set")

        recouped = await self.uow.expenses.recouped_for_earning(earning.id)
        total_royalties = await self.uow.royalties.sum_for_earning(earning.id)

        error = await self._apply_fee(tenant_id, earning, recouped, total_royalties)
        if error is not None:
            raise DependencyFailure(f"Platform fee could not be computed: {error}")
        return earning

    async def ingest_many(
        self,
        tenant_id: UUID,
        items: Sequence[EarningInput],
    ) -> BulkIngestionResult:
        """
        Ingest a batch of earnings, one unit of work per row.

        A row that fails validation or lookup is reported as
        "Row N: <reason>" and does not stop the batch.
        """
        result = BulkIngestionResult()
        for index, item in enumerate(items, start=1):
            result.processed += 1
            try:
                ingested = await self.ingest(
                    tenant_id=tenant_id,
                    release_id=item.release_id,
                    category=item.type,
                    gross_amount=item.amount,
                    recorded_date=item.date_recorded,
                    description=item.description,
                    run_allocation=item.calculate_royalties,
                )
            except SettlementError as e:
                result.errors.append(f"Row {index}: {e.detail}")
                continue
            result.created.append(ingested)

        logger.info(
            f"Bulk ingestion: {len(result.created)} of {result.processed} earnings created, "
            f"{len(result.errors)} errors"
        )
        return result

    async def _settle(
        self,
        release: Release,
        earning: Earning,
    ) -> Tuple[AllocationSummary, List[EarningNotice]]:
        """Waterfall then distribution. Caller holds the release lock and the transaction."""
        waterfall = await self.waterfall.apply(
            release_id=release.id,
            brand_id=release.brand_id,
            earning_amount=earning.amount,
            recorded_date=earning.date_recorded,
            category=earning.type,
            earning_id=earning.id,
        )
        royalties = await self.allocator.distribute(
            earning_id=earning.id,
            release_id=release.id,
            category=earning.type,
            remaining_amount=waterfall.remaining_amount,
            recorded_date=earning.date_recorded,
            description=earning.description,
        )
        earning.allocated_at = utcnow()

        summary = AllocationSummary(
            recouped_amount=waterfall.recouped_amount,
            remaining_recuperable_balance=waterfall.new_balance,
            total_royalties=sum((r.amount for r in royalties), ZERO),
            royalties=royalties,
        )
        notices = await self._build_notices(release, earning, summary)
        return summary, notices

    async def _after_settlement(
        self,
        release: Release,
        earning: Earning,
        summary: AllocationSummary,
        notices: List[EarningNotice],
    ) -> IngestionResult:
        result = IngestionResult(earning=earning, allocation=summary)

        error = await self._apply_fee(
            release.brand_id,
            earning,
            summary.recouped_amount,
            summary.total_royalties,
        )
        if error is not None:
            result.fee_pending = True
            result.fee_error = error

        if notices:
            report = await dispatch_notices(self.notifier, notices)
            result.notifications_sent = report.sent
        return result

    async def _apply_fee(
        self,
        tenant_id: UUID,
        earning: Earning,
        recouped: Decimal,
        total_royalties: Decimal,
    ) -> Optional[str]:
        """Set the earning's platform fee. Returns an error message if the hook failed."""
        net = max(ZERO, to_money(earning.amount) - recouped - total_royalties)
        try:
            fee = await self.fee_hook.compute_fee(tenant_id, to_money(earning.amount), net)
        except Exception as e:
            logger.warning(f"Platform fee for earning {earning.id} not computed: {e}")
            return str(e)

        try:
            earning.platform_fee = to_money(fee)
            earning.fee_finalized_at = utcnow()
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            raise
        logger.info(f"Platform fee {earning.platform_fee} set on earning {earning.id}")
        return None

    async def _build_notices(
        self,
        release: Release,
        earning: Earning,
        summary: AllocationSummary,
    ) -> List[EarningNotice]:
        """One notice per artist on the release whose team has an email."""
        splits = await self.uow.release_artists.list_for_release(release.id)
        artist_ids = [split.artist_id for split in splits]
        artists = await self.uow.artists.get_many(artist_ids)
        royalty_by_artist = {r.artist_id: r.amount for r in summary.royalties}

        notices = []
        for artist_id in artist_ids:
            artist = artists.get(artist_id)
            if artist is None:
                continue
            recipients = await self.uow.artists.team_emails(artist_id)
            if not recipients:
                continue
            notices.append(
                EarningNotice(
                    recipients=recipients,
                    artist_name=artist.name,
                    release_title=release.title,
                    amounts=EarningAmounts(
                        earning_description=earning.description or earning.type,
                        earning_amount=to_money(earning.amount),
                        recouped_amount=summary.recouped_amount,
                        recuperable_balance=summary.remaining_recuperable_balance,
                        royalty_amount=royalty_by_artist.get(artist_id),
                    ),
                )
            )
        return notices


# Default lock registry shared by every ingestor in the process
release_locks = ReleaseLockRegistry()
