"""
Balances and payout readiness.

Artist:
    balance = sum(royalties) - sum(payments)
    ready   = balance > payout_point and a payment method exists and not hold_payouts

Sub-label:
    net music = gross earnings - royalties - platform fees
    net event = paid ticket sales - event platform fees
    (processing fees are reported but not deducted)
    balance   = net music + net event - label payments received
    ready     = balance > 0 and a label payment method exists

Batch queries page over the underlying rows first, then keep the rows that
are ready, then apply min_balance to the computed balance. total counts the
underlying rows, not the rows returned. Nothing here writes or caches.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from label_settlement.core.config import settings
from label_settlement.core.errors import NotFoundError
from label_settlement.core.money import ZERO, to_money
from label_settlement.models.artist import Artist
from label_settlement.models.brand import Brand
from label_settlement.repositories.base import (
    ArtistSortField,
    DateRange,
    ReleaseEarningTotals,
    SettlementUnitOfWork,
)
from label_settlement.services.waterfall import RecuperationWaterfall

logger = logging.getLogger(__name__)


@dataclass
class ArtistBalance:
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


@dataclass
class SublabelBalance:
    brand_id: UUID
    brand_name: str
    parent_brand_id: Optional[UUID]
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


@dataclass
class ReleaseBreakdown:
    release_id: UUID
    release_title: str
    gross_earnings: Decimal
    royalties: Decimal
    platform_fees: Decimal
    net_earnings: Decimal


@dataclass
class PayoutPage:
    """One page of a cross-tenant payout query."""
    total: int
    page: int
    limit: int
    total_pages: int
    results: List[Any] = field(default_factory=list)
    filters: Dict[str, Any] = field(default_factory=dict)


def clamp_paging(page: int, limit: int) -> tuple[int, int]:
    """Clamp page to >= 1 and limit to [1, PAYOUT_PAGE_SIZE_MAX]."""
    page = max(1, int(page or 1))
    limit = max(1, min(int(limit or 1), settings.PAYOUT_PAGE_SIZE_MAX))
    return page, limit


def _total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total else 0


class BalanceAggregator:
    """Read-only balance and payout queries."""

    def __init__(self, uow: SettlementUnitOfWork):
        self.uow = uow

    async def artist_balance(self, tenant_id: UUID, artist_id: UUID) -> ArtistBalance:
        """
        Balance and payout readiness of one artist.

        Raises:
            NotFoundError: Artist missing or owned by another brand
        """
        artist = await self.uow.artists.get_for_brand(tenant_id, artist_id)
        if artist is None:
            raise NotFoundError(f"Artist {artist_id} not found")
        return await self._artist_balance(artist)

    async def artists_due_payment(
        self,
        page: int = 1,
        limit: int = 20,
        min_balance: Optional[Decimal] = None,
        brand_id: Optional[UUID] = None,
    ) -> PayoutPage:
        """
        Artists ready for payout, across every brand.

        Artists are paged in (brand, name) order before filtering, so a page
        may hold fewer than limit results.
        """
        page, limit = clamp_paging(page, limit)
        total, artists = await self.uow.artists.page(
            offset=(page - 1) * limit,
            limit=limit,
            brand_id=brand_id,
            sort_by=(ArtistSortField.BRAND, ArtistSortField.NAME),
        )

        results = []
        for artist in artists:
            balance = await self._artist_balance(artist)
            if not balance.ready_for_payout:
                continue
            if min_balance is not None and balance.balance < min_balance:
                continue
            results.append(balance)

        logger.info(f"Artists due payment page {page}: {len(results)} of {len(artists)} ready")
        return PayoutPage(
            total=total,
            page=page,
            limit=limit,
            total_pages=_total_pages(total, limit),
            results=results,
            filters={"brand_id": brand_id, "min_balance": min_balance},
        )

    async def sublabel_balance(
        self,
        brand_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> SublabelBalance:
        """
        Finance summary of one brand.

        Raises:
            NotFoundError: Brand missing
        """
        brand = await self.uow.brands.get(brand_id)
        if brand is None:
            raise NotFoundError(f"Brand {brand_id} not found")
        return await self._sublabel_balance(brand, DateRange(start, end))

    async def sublabels_due_payment(
        self,
        parent_brand_id: Optional[UUID] = None,
        page: int = 1,
        limit: int = 20,
        min_balance: Optional[Decimal] = None,
    ) -> PayoutPage:
        """Sub-labels whose parent owes them a positive balance."""
        page, limit = clamp_paging(page, limit)
        total, brands = await self.uow.brands.page_sublabels(
            offset=(page - 1) * limit,
            limit=limit,
            parent_brand_id=parent_brand_id,
        )

        results = []
        for brand in brands:
            balance = await self._sublabel_balance(brand, DateRange())
            if not balance.ready_for_payout:
                continue
            if min_balance is not None and balance.balance < min_balance:
                continue
            results.append(balance)

        return PayoutPage(
            total=total,
            page=page,
            limit=limit,
            total_pages=_total_pages(total, limit),
            results=results,
            filters={"parent_brand_id": parent_brand_id, "min_balance": min_balance},
        )

    async def release_breakdown(
        self,
        brand_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[ReleaseBreakdown]:
        """Per-release music totals, skipping releases with nothing recorded."""
        rows: List[ReleaseEarningTotals] = await self.uow.earnings.totals_by_release(
            brand_id, DateRange(start, end)
        )
        breakdown = []
        for row in rows:
            if not (row.gross_earnings or row.royalties or row.platform_fees):
                continue
            breakdown.append(
                ReleaseBreakdown(
                    release_id=row.release_id,
                    release_title=row.release_title,
                    gross_earnings=row.gross_earnings,
                    royalties=row.royalties,
                    platform_fees=row.platform_fees,
                    net_earnings=row.gross_earnings - row.royalties - row.platform_fees,
                )
            )
        return breakdown

    async def recoupable_balance(self, tenant_id: UUID, release_id: UUID) -> Decimal:
        """
        Current recoupable balance of a release.

        Raises:
            NotFoundError: Release missing or owned by another brand
        """
        release = await self.uow.releases.get_for_brand(tenant_id, release_id)
        if release is None:
            raise NotFoundError(f"Release {release_id} not found")
        return await RecuperationWaterfall(self.uow.expenses).balance(release.id)

    async def _artist_balance(self, artist: Artist) -> ArtistBalance:
        total_royalties = await self.uow.royalties.sum_for_artist(artist.id)
        total_payments = await self.uow.payments.sum_for_artist(artist.id)
        balance = total_royalties - total_payments
        payout_point = to_money(
            artist.payout_point if artist.payout_point is not None else settings.DEFAULT_PAYOUT_POINT
        )
        has_payment_method = await self.uow.payments.count_methods(artist.id) > 0
        hold_payouts = bool(artist.hold_payouts)

        return ArtistBalance(
            artist_id=artist.id,
            artist_name=artist.name,
            brand_id=artist.brand_id,
            total_royalties=total_royalties,
            total_payments=total_payments,
            balance=balance,
            payout_point=payout_point,
            hold_payouts=hold_payouts,
            has_payment_method=has_payment_method,
            ready_for_payout=balance > payout_point and has_payment_method and not hold_payouts,
        )

    async def _sublabel_balance(self, brand: Brand, period: DateRange) -> SublabelBalance:
        gross, platform_fees = await self.uow.earnings.totals_for_brand(brand.id, period)
        royalties = await self.uow.royalties.totals_for_brand(brand.id, period)
        net_music = gross - royalties - platform_fees

        events = await self.uow.event_sales.totals_for_brand(brand.id, period)
        net_event = events.sales - events.platform_fees

        payments = await self.uow.payments.sum_label_payments(brand.id, period)
        balance = net_music + net_event - payments
        has_payment_method = await self.uow.payments.count_label_methods(brand.id) > 0

        return SublabelBalance(
            brand_id=brand.id,
            brand_name=brand.brand_name,
            parent_brand_id=brand.parent_brand_id,
            music_earnings=gross,
            music_royalties=royalties,
            music_platform_fees=platform_fees,
            net_music=net_music,
            event_sales=events.sales,
            event_platform_fees=events.platform_fees,
            event_processing_fees=events.processing_fees,
            net_event=net_event,
            payments_received=payments,
            balance=balance,
            has_payment_method=has_payment_method,
            ready_for_payout=balance > ZERO and has_payment_method,
        )
