"""SQLAlchemy implementations of the settlement repositories."""
from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from label_settlement.core.money import to_money
from label_settlement.models import (
    PAID_TICKET_STATUSES,
    Artist,
    ArtistTeamMember,
    Brand,
    Earning,
    Event,
    LabelPayment,
    LabelPaymentMethod,
    Payment,
    PaymentMethod,
    RecuperableExpense,
    Release,
    ReleaseArtist,
    Royalty,
    Ticket,
)
from label_settlement.repositories.base import (
    ArtistSortField,
    DateRange,
    EventSalesTotals,
    ReleaseEarningTotals,
)


def _decimal(value) -> Decimal:
    return to_money(value or 0)


def _within(query: Select, column, period: Optional[DateRange]) -> Select:
    """Apply an inclusive date range to a query."""
    if period is None:
        return query
    if period.start is not None:
        query = query.where(column >= period.start)
    if period.end is not None:
        query = query.where(column <= period.end)
    return query


class SqlReleaseRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, release_id: UUID) -> Optional[Release]:
        return await self.db.get(Release, release_id)

    async def get_for_brand(self, brand_id: UUID, release_id: UUID) -> Optional[Release]:
        result = await self.db.execute(
            select(Release).where(
                Release.id == release_id,
                Release.brand_id == brand_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_brand(self, brand_id: UUID) -> List[Release]:
        result = await self.db.execute(
            select(Release)
            .where(Release.brand_id == brand_id)
            .order_by(Release.created_at, Release.id)
        )
        return list(result.scalars().all())

    async def lock(self, release_id: UUID) -> None:
        # Row lock on PostgreSQL; SQLite serializes writers on its own
        await self.db.execute(
            select(Release.id).where(Release.id == release_id).with_for_update()
        )


class SqlReleaseArtistRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_release(self, release_id: UUID) -> List[ReleaseArtist]:
        result = await self.db.execute(
            select(ReleaseArtist)
            .where(ReleaseArtist.release_id == release_id)
            .order_by(ReleaseArtist.artist_id)
        )
        return list(result.scalars().all())


class SqlEarningRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, earning: Earning) -> Earning:
        self.db.add(earning)
        await self.db.flush()
        return earning

    async def get(self, earning_id: UUID) -> Optional[Earning]:
        return await self.db.get(Earning, earning_id)

    async def get_for_brand(self, brand_id: UUID, earning_id: UUID) -> Optional[Earning]:
        result = await self.db.execute(
            select(Earning)
            .join(Release, Earning.release_id == Release.id)
            .where(
                Earning.id == earning_id,
                Release.brand_id == brand_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, earning_id: UUID) -> Earning:
        result = await self.db.execute(
            select(Earning)
            .where(Earning.id == earning_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def totals_for_brand(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> Tuple[Decimal, Decimal]:
        query = (
            select(
                func.coalesce(func.sum(Earning.amount), 0),
                func.coalesce(func.sum(Earning.platform_fee), 0),
            )
            .join(Release, Earning.release_id == Release.id)
            .where(Release.brand_id == brand_id)
        )
        result = await self.db.execute(_within(query, Earning.date_recorded, period))
        gross, fees = result.one()
        return _decimal(gross), _decimal(fees)

    async def totals_by_release(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> List[ReleaseEarningTotals]:
        releases = await self.db.execute(
            select(Release.id, Release.title)
            .where(Release.brand_id == brand_id)
            .order_by(Release.title)
        )
        totals = {
            release_id: ReleaseEarningTotals(release_id=release_id, release_title=title)
            for release_id, title in releases.all()
        }
        if not totals:
            return []

        earning_query = (
            select(
                Earning.release_id,
                func.coalesce(func.sum(Earning.amount), 0),
                func.coalesce(func.sum(Earning.platform_fee), 0),
            )
            .where(Earning.release_id.in_(list(totals)))
            .group_by(Earning.release_id)
        )
        earning_rows = await self.db.execute(_within(earning_query, Earning.date_recorded, period))
        for release_id, gross, fees in earning_rows.all():
            totals[release_id].gross_earnings = _decimal(gross)
            totals[release_id].platform_fees = _decimal(fees)

        royalty_query = (
            select(Royalty.release_id, func.coalesce(func.sum(Royalty.amount), 0))
            .where(Royalty.release_id.in_(list(totals)))
            .group_by(Royalty.release_id)
        )
        royalty_rows = await self.db.execute(_within(royalty_query, Royalty.date_recorded, period))
        for release_id, amount in royalty_rows.all():
            totals[release_id].royalties = _decimal(amount)

        return list(totals.values())


class SqlRecuperableExpenseRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, entry: RecuperableExpense) -> RecuperableExpense:
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def balance(self, release_id: UUID) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(RecuperableExpense.expense_amount), 0)).where(
                RecuperableExpense.release_id == release_id,
            )
        )
        return _decimal(result.scalar())

    async def recouped_for_earning(self, earning_id: UUID) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(RecuperableExpense.expense_amount), 0)).where(
                RecuperableExpense.earning_id == earning_id,
                RecuperableExpense.expense_amount < 0,
            )
        )
        return -_decimal(result.scalar())


class SqlRoyaltyRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_all(self, royalties: Sequence[Royalty]) -> List[Royalty]:
        self.db.add_all(royalties)
        await self.db.flush()
        return list(royalties)

    async def sum_for_artist(self, artist_id: UUID) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Royalty.amount), 0)).where(
                Royalty.artist_id == artist_id,
            )
        )
        return _decimal(result.scalar())

    async def sum_for_earning(self, earning_id: UUID) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Royalty.amount), 0)).where(
                Royalty.earning_id == earning_id,
            )
        )
        return _decimal(result.scalar())

    async def totals_for_brand(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> Decimal:
        query = (
            select(func.coalesce(func.sum(Royalty.amount), 0))
            .join(Release, Royalty.release_id == Release.id)
            .where(Release.brand_id == brand_id)
        )
        result = await self.db.execute(_within(query, Royalty.date_recorded, period))
        return _decimal(result.scalar())


class SqlArtistRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, artist_id: UUID) -> Optional[Artist]:
        return await self.db.get(Artist, artist_id)

    async def get_for_brand(self, brand_id: UUID, artist_id: UUID) -> Optional[Artist]:
        result = await self.db.execute(
            select(Artist).where(
                Artist.id == artist_id,
                Artist.brand_id == brand_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_many(self, artist_ids: Sequence[UUID]) -> Dict[UUID, Artist]:
        if not artist_ids:
            return {}
        result = await self.db.execute(select(Artist).where(Artist.id.in_(artist_ids)))
        return {artist.id: artist for artist in result.scalars().all()}

    async def page(
        self,
        offset: int,
        limit: int,
        brand_id: Optional[UUID] = None,
        sort_by: Sequence[ArtistSortField] = (ArtistSortField.BRAND, ArtistSortField.NAME),
    ) -> Tuple[int, List[Artist]]:
        count_query = select(func.count(Artist.id))
        query = select(Artist)
        if brand_id is not None:
            count_query = count_query.where(Artist.brand_id == brand_id)
            query = query.where(Artist.brand_id == brand_id)

        total = (await self.db.execute(count_query)).scalar() or 0

        order = [getattr(Artist, ArtistSortField(field).value) for field in sort_by]
        result = await self.db.execute(
            query.order_by(*order, Artist.id).offset(offset).limit(limit)
        )
        return total, list(result.scalars().all())

    async def team_emails(self, artist_id: UUID) -> List[str]:
        result = await self.db.execute(
            select(ArtistTeamMember.email_address).where(
                ArtistTeamMember.artist_id == artist_id,
                ArtistTeamMember.is_active.is_(True),
            )
        )
        return [email for email in result.scalars().all() if email]


class SqlPaymentRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def sum_for_artist(self, artist_id: UUID) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.artist_id == artist_id,
            )
        )
        return _decimal(result.scalar())

    async def count_methods(self, artist_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(PaymentMethod.id)).where(PaymentMethod.artist_id == artist_id)
        )
        return result.scalar() or 0

    async def sum_label_payments(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> Decimal:
        query = select(func.coalesce(func.sum(LabelPayment.amount), 0)).where(
            LabelPayment.brand_id == brand_id,
        )
        result = await self.db.execute(_within(query, LabelPayment.date_paid, period))
        return _decimal(result.scalar())

    async def count_label_methods(self, brand_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(LabelPaymentMethod.id)).where(LabelPaymentMethod.brand_id == brand_id)
        )
        return result.scalar() or 0


class SqlBrandRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, brand_id: UUID) -> Optional[Brand]:
        return await self.db.get(Brand, brand_id)

    async def page_sublabels(
        self,
        offset: int,
        limit: int,
        parent_brand_id: Optional[UUID] = None,
    ) -> Tuple[int, List[Brand]]:
        condition = (
            Brand.parent_brand_id == parent_brand_id
            if parent_brand_id is not None
            else Brand.parent_brand_id.isnot(None)
        )
        total = (await self.db.execute(select(func.count(Brand.id)).where(condition))).scalar() or 0
        result = await self.db.execute(
            select(Brand)
            .where(condition)
            .order_by(Brand.brand_name, Brand.id)
            .offset(offset)
            .limit(limit)
        )
        return total, list(result.scalars().all())


class SqlEventSalesRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def totals_for_brand(
        self,
        brand_id: UUID,
        period: Optional[DateRange] = None,
    ) -> EventSalesTotals:
        query = (
            select(
                func.coalesce(func.sum(Ticket.price_per_ticket * Ticket.number_of_entries), 0),
                func.coalesce(func.sum(Ticket.platform_fee), 0),
                func.coalesce(func.sum(Ticket.payment_processing_fee), 0),
            )
            .join(Event, Ticket.event_id == Event.id)
            .where(
                Event.brand_id == brand_id,
                Ticket.status.in_(PAID_TICKET_STATUSES),
                Ticket.platform_fee.isnot(None),
            )
        )
        result = await self.db.execute(_within(query, Ticket.date_paid, period))
        sales, platform_fees, processing_fees = result.one()
        return EventSalesTotals(
            sales=_decimal(sales),
            platform_fees=_decimal(platform_fees),
            processing_fees=_decimal(processing_fees),
        )


class SqlUnitOfWork:
    """All settlement repositories bound to one session."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.releases = SqlReleaseRepository(db)
        self.release_artists = SqlReleaseArtistRepository(db)
        self.earnings = SqlEarningRepository(db)
        self.expenses = SqlRecuperableExpenseRepository(db)
        self.royalties = SqlRoyaltyRepository(db)
        self.artists = SqlArtistRepository(db)
        self.payments = SqlPaymentRepository(db)
        self.brands = SqlBrandRepository(db)
        self.event_sales = SqlEventSalesRepository(db)

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
