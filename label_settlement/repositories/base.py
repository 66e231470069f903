"""
Repository interfaces for the settlement services.

Services depend on these protocols rather than on a session, so the
waterfall, allocator and aggregator can run against in-memory fakes. Sorting
of the artist listing is restricted to the columns in ArtistSortField.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence, Tuple
from uuid import UUID

from label_settlement.models import (
    Artist,
    Brand,
    Earning,
    RecuperableExpense,
    Release,
    ReleaseArtist,
    Royalty,
)


class ArtistSortField(str, Enum):
    """Sortable artist columns."""
    BRAND = "brand_id"
    NAME = "name"
    CREATED_AT = "created_at"


@dataclass
class DateRange:
    """Inclusive date filter. Either bound may be open."""
    start: Optional[date] = None
    end: Optional[date] = None

    def contains(self, value: Optional[date]) -> bool:
        if value is None:
            return self.start is None and self.end is None
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


@dataclass
class EventSalesTotals:
    """Paid ticket totals for a brand."""
    sales: Decimal = Decimal("0")
    platform_fees: Decimal = Decimal("0")
    processing_fees: Decimal = Decimal("0")


@dataclass
class ReleaseEarningTotals:
    """Music totals for one release."""
    release_id: UUID
    release_title: str
    gross_earnings: Decimal = Decimal("0")
    royalties: Decimal = Decimal("0")
    platform_fees: Decimal = Decimal("0")


class ReleaseRepository(Protocol):
    async def get(self, release_id: UUID) -> Optional[Release]: ...

    async def get_for_brand(self, brand_id: UUID, release_id: UUID) -> Optional[Release]: ...

    async def list_for_brand(self, brand_id: UUID) -> List[Release]: ...

    async def lock(self, release_id: UUID) -> None:
        """Take a write lock on the release for the rest of the transaction."""
        ...


class ReleaseArtistRepository(Protocol):
    async def list_for_release(self, release_id: UUID) -> List[ReleaseArtist]: ...


class EarningRepository(Protocol):
    async def add(self, earning: Earning) -> Earning: ...

    async def get(self, earning_id: UUID) -> Optional[Earning]: ...

    async def get_for_brand(self, brand_id: UUID, earning_id: UUID) -> Optional[Earning]: ...

    async def get_for_update(self, earning_id: UUID) -> Earning:
        """Reload the earning under a row lock, refreshing any cached state."""
        ...

    async def totals_for_brand(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> Tuple[Decimal, Decimal]:
        """Return (gross amount, platform fees) over the brand's releases."""
        ...

    async def totals_by_release(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> List[ReleaseEarningTotals]: ...


class RecuperableExpenseRepository(Protocol):
    async def add(self, entry: RecuperableExpense) -> RecuperableExpense: ...

    async def balance(self, release_id: UUID) -> Decimal:
        """Sum of every entry for the release."""
        ...

    async def recouped_for_earning(self, earning_id: UUID) -> Decimal:
        """Total recouped by an earning, as a positive amount."""
        ...


class RoyaltyRepository(Protocol):
    async def add_all(self, royalties: Sequence[Royalty]) -> List[Royalty]: ...

    async def sum_for_artist(self, artist_id: UUID) -> Decimal: ...

    async def sum_for_earning(self, earning_id: UUID) -> Decimal: ...

    async def totals_for_brand(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> Decimal: ...


class ArtistRepository(Protocol):
    async def get(self, artist_id: UUID) -> Optional[Artist]: ...

    async def get_for_brand(self, brand_id: UUID, artist_id: UUID) -> Optional[Artist]: ...

    async def get_many(self, artist_ids: Sequence[UUID]) -> Dict[UUID, Artist]: ...

    async def page(
        self,
        offset: int,
        limit: int,
        brand_id: Optional[UUID] = None,
        sort_by: Sequence[ArtistSortField] = (ArtistSortField.BRAND, ArtistSortField.NAME),
    ) -> Tuple[int, List[Artist]]:
        """Return (total count, artists in the requested window)."""
        ...

    async def team_emails(self, artist_id: UUID) -> List[str]: ...


class PaymentRepository(Protocol):
    async def sum_for_artist(self, artist_id: UUID) -> Decimal: ...

    async def count_methods(self, artist_id: UUID) -> int: ...

    async def sum_label_payments(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> Decimal: ...

    async def count_label_methods(self, brand_id: UUID) -> int: ...


class BrandRepository(Protocol):
    async def get(self, brand_id: UUID) -> Optional[Brand]: ...

    async def page_sublabels(
        self,
        offset: int,
        limit: int,
        parent_brand_id: Optional[UUID] = None,
    ) -> Tuple[int, List[Brand]]: ...


class EventSalesRepository(Protocol):
    async def totals_for_brand(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> EventSalesTotals: ...


class SettlementUnitOfWork(Protocol):
    """Repositories sharing one transaction."""

    releases: ReleaseRepository
    release_artists: ReleaseArtistRepository
    earnings: EarningRepository
    expenses: RecuperableExpenseRepository
    royalties: RoyaltyRepository
    artists: ArtistRepository
    payments: PaymentRepository
    brands: BrandRepository
    event_sales: EventSalesRepository

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
