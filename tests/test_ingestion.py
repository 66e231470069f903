"""Tests for earning ingestion."""
import asyncio
import uuid
from datetime import date
from decimal import Decimal

import pytest

from label_settlement.core.errors import (
    ConflictError,
    DependencyFailure,
    NotFoundError,
    ValidationError,
)
from label_settlement.services.ingestion import EarningIngestor, EarningInput, ReleaseLockRegistry
from tests.fakes import FixedFeeHook, RecordingNotifier

D = Decimal


@pytest.fixture
def catalog(store):
    """Release R: artist A 50% streaming, artist Z 30% streaming, 200.00 to recoup."""
    brand = store.add_brand()
    release = store.add_release(brand, "First Light", catalog_no="FL-001")
    artist_a = store.add_artist(brand, "Artist A", emails=["a@example.com", "manager@example.com"])
    artist_z = store.add_artist(brand, "Artist Z")
    store.add_split(release, artist_a, streaming="0.5")
    store.add_split(release, artist_z, streaming="0.3")
    store.add_expense(release, D("200.00"))
    return {"brand": brand, "release": release, "artist_a": artist_a, "artist_z": artist_z}


def _ingestor(uow, fee_hook=None, notifier=None):
    return EarningIngestor(
        uow,
        fee_hook=fee_hook or FixedFeeHook(),
        notifier=notifier or RecordingNotifier(),
        locks=ReleaseLockRegistry(),
    )


async def test_streaming_earning_recoups_then_pays_royalties(store, make_uow, catalog):
    uow = make_uow()

    result = await _ingestor(uow).ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", "1000.00", date(2024, 2, 1),
        description="Spotify Q1", run_allocation=True,
    )

    recoupments = [e for e in store.expenses if e.expense_amount < 0]
    assert [e.expense_amount for e in recoupments] == [D("-200.00")]
    assert recoupments[0].earning_id == result.earning.id
    assert result.allocation.recouped_amount == D("200.00")
    assert result.allocation.remaining_recuperable_balance == D("0.00")
    amounts = {r.artist_id: r.amount for r in store.royalties}
    assert amounts == {catalog["artist_a"].id: D("400.00"), catalog["artist_z"].id: D("240.00")}
    assert result.allocation.total_royalties == D("640.00")
    assert result.earning.is_allocated
    assert catalog["release"].id in store.locked_releases


async def test_earning_below_balance_creates_no_royalties(store, make_uow, catalog):
    uow = make_uow()

    result = await _ingestor(uow).ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("150.00"), date(2024, 2, 1),
        run_allocation=True,
    )

    assert [e.expense_amount for e in store.expenses if e.expense_amount < 0] == [D("-150.00")]
    assert result.allocation.remaining_recuperable_balance == D("50.00")
    assert result.allocation.total_royalties == D("0.00")
    assert store.royalties == []


async def test_ingest_without_allocation_only_records_earning(store, make_uow, catalog):
    uow = make_uow()

    result = await _ingestor(uow).ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("500.00"), date(2024, 2, 1),
    )

    assert result.allocation is None
    assert result.earning.platform_fee == D("0.00")
    assert not result.earning.is_allocated
    assert len(store.expenses) == 1
    assert store.royalties == []
    assert uow.commits == 1


async def test_blank_category_defaults_to_streaming(store, make_uow, catalog):
    result = await _ingestor(make_uow()).ingest(
        catalog["brand"].id, catalog["release"].id, "  ", D("10.00"), "2024-02-01",
    )

    assert result.earning.type == "Streaming"
    assert result.earning.date_recorded == date(2024, 2, 1)


@pytest.mark.parametrize("amount", [None, "", "abc", "-5.00", "10.001", True, "1e40", "10000000000.00"])
async def test_malformed_amount_is_rejected(store, make_uow, catalog, amount):
    uow = make_uow()

    with pytest.raises(ValidationError):
        await _ingestor(uow).ingest(
            catalog["brand"].id, catalog["release"].id, "Streaming", amount, date(2024, 2, 1),
            run_allocation=True,
        )

    assert store.earnings == {}
    assert uow.commits == 0


async def test_description_longer_than_column_is_rejected(store, make_uow, catalog):
    uow = make_uow()

    with pytest.raises(ValidationError, match="Description"):
        await _ingestor(uow).ingest(
            catalog["brand"].id, catalog["release"].id, "Streaming", D("10.00"), date(2024, 2, 1),
            description="x" * 256,
        )

    assert store.earnings == {}
    assert uow.commits == 0


async def test_concurrent_allocations_on_one_release_recoup_once(store, make_uow, catalog):
    ingestor = _ingestor(make_uow())

    await asyncio.gather(*(
        ingestor.ingest(
            catalog["brand"].id, catalog["release"].id, "Streaming", D("150.00"), date(2024, 2, 1),
            run_allocation=True,
        )
        for _ in range(2)
    ))

    recoupments = sorted(e.expense_amount for e in store.expenses if e.expense_amount < 0)
    assert recoupments == [D("-150.00"), D("-50.00")]
    assert sum(e.expense_amount for e in store.expenses) == D("0.00")
    assert {r.amount for r in store.royalties} == {D("50.00"), D("30.00")}


@pytest.mark.parametrize("recorded", [None, "", "not-a-date"])
async def test_missing_date_is_rejected(store, make_uow, catalog, recorded):
    with pytest.raises(ValidationError):
        await _ingestor(make_uow()).ingest(
            catalog["brand"].id, catalog["release"].id, "Streaming", D("10.00"), recorded,
        )
    assert store.earnings == {}


async def test_release_of_other_brand_is_not_found(store, make_uow, catalog):
    other = store.add_brand("Other Label")

    with pytest.raises(NotFoundError):
        await _ingestor(make_uow()).ingest(
            other.id, catalog["release"].id, "Streaming", D("10.00"), date(2024, 2, 1),
        )
    assert store.earnings == {}


async def test_unknown_category_is_recorded_without_royalties(store, make_uow, catalog):
    result = await _ingestor(make_uow()).ingest(
        catalog["brand"].id, catalog["release"].id, "Merchandise", D("500.00"), date(2024, 2, 1),
        run_allocation=True,
    )

    assert result.earning.type == "Merchandise"
    assert result.allocation.recouped_amount == D("200.00")
    assert store.royalties == []


async def test_fee_is_computed_on_net_after_recoupment_and_royalties(store, make_uow, catalog):
    hook = FixedFeeHook(fee=D("12.34"))

    result = await _ingestor(make_uow(), fee_hook=hook).ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("1000.00"), date(2024, 2, 1),
        run_allocation=True,
    )

    assert hook.calls == [(catalog["brand"].id, D("1000.00"), D("160.00"))]
    assert result.earning.platform_fee == D("12.34")
    assert result.earning.is_fee_finalized
    assert not result.fee_pending


async def test_fee_failure_keeps_settlement_and_retry_sets_fee(store, make_uow, catalog):
    uow = make_uow()
    failing = FixedFeeHook(error=DependencyFailure("fee service unavailable"))

    result = await _ingestor(uow, fee_hook=failing).ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("1000.00"), date(2024, 2, 1),
        run_allocation=True,
    )

    assert result.fee_pending
    assert "fee service unavailable" in result.fee_error
    assert result.earning.platform_fee == D("0.00")
    assert result.earning.id in store.earnings
    assert len(store.royalties) == 2
    expenses_before = len(store.expenses)

    working = FixedFeeHook(fee=D("5.00"))
    earning = await _ingestor(uow, fee_hook=working).finalize_fee(catalog["brand"].id, result.earning.id)

    assert earning.platform_fee == D("5.00")
    assert working.calls == [(catalog["brand"].id, D("1000.00"), D("160.00"))]
    assert len(store.expenses) == expenses_before
    assert len(store.royalties) == 2


async def test_finalize_fee_twice_conflicts(store, make_uow, catalog):
    uow = make_uow()
    ingestor = _ingestor(uow)
    result = await ingestor.ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("100.00"), date(2024, 2, 1),
        run_allocation=True,
    )

    with pytest.raises(ConflictError):
        await ingestor.finalize_fee(catalog["brand"].id, result.earning.id)


async def test_finalize_fee_before_allocation_conflicts(store, make_uow, catalog):
    uow = make_uow()
    ingestor = _ingestor(uow)
    result = await ingestor.ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("100.00"), date(2024, 2, 1),
    )

    with pytest.raises(ConflictError):
        await ingestor.finalize_fee(catalog["brand"].id, result.earning.id)


async def test_finalize_fee_surfaces_hook_failure(store, make_uow, catalog):
    uow = make_uow()
    result = await _ingestor(uow, fee_hook=FixedFeeHook(error=RuntimeError("boom"))).ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("100.00"), date(2024, 2, 1),
        run_allocation=True,
    )

    with pytest.raises(DependencyFailure):
        await _ingestor(uow, fee_hook=FixedFeeHook(error=RuntimeError("boom"))).finalize_fee(
            catalog["brand"].id, result.earning.id
        )


async def test_allocate_recorded_earning_then_conflict(store, make_uow, catalog):
    uow = make_uow()
    ingestor = _ingestor(uow)
    recorded = await ingestor.ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("1000.00"), date(2024, 2, 1),
    )

    result = await ingestor.allocate(catalog["brand"].id, recorded.earning.id)

    assert result.allocation.recouped_amount == D("200.00")
    assert result.allocation.total_royalties == D("640.00")

    with pytest.raises(ConflictError):
        await ingestor.allocate(catalog["brand"].id, recorded.earning.id)
    assert len(store.royalties) == 2
    assert len([e for e in store.expenses if e.expense_amount < 0]) == 1


async def test_allocate_unknown_earning_is_not_found(store, make_uow, catalog):
    with pytest.raises(NotFoundError):
        await _ingestor(make_uow()).allocate(catalog["brand"].id, uuid.uuid4())


async def test_failure_during_settlement_rolls_everything_back(store, make_uow, catalog):
    uow = make_uow()

    async def broken_add_all(royalties):
        raise RuntimeError("disk full")

    uow.royalties.add_all = broken_add_all

    with pytest.raises(RuntimeError):
        await _ingestor(uow).ingest(
            catalog["brand"].id, catalog["release"].id, "Streaming", D("1000.00"), date(2024, 2, 1),
            run_allocation=True,
        )

    assert uow.rollbacks == 1
    assert store.earnings == {}
    assert [e.expense_amount for e in store.expenses] == [D("200.00")]


async def test_notifications_sent_after_commit(store, make_uow, catalog):
    notifier = RecordingNotifier()

    result = await _ingestor(make_uow(), notifier=notifier).ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("1000.00"), date(2024, 2, 1),
        description="Spotify Q1", run_allocation=True,
    )

    assert result.notifications_sent == 1
    recipients, artist_name, release_title, amounts = notifier.calls[0]
    assert recipients == ["a@example.com", "manager@example.com"]
    assert artist_name == "Artist A"
    assert release_title == "First Light"
    assert amounts.royalty_amount == D("400.00")
    assert amounts.recouped_amount == D("200.00")
    assert amounts.earning_description == "Spotify Q1"


async def test_notification_failure_does_not_fail_ingestion(store, make_uow, catalog):
    result = await _ingestor(make_uow(), notifier=RecordingNotifier(fail=True)).ingest(
        catalog["brand"].id, catalog["release"].id, "Streaming", D("1000.00"), date(2024, 2, 1),
        run_allocation=True,
    )

    assert result.notifications_sent == 0
    assert result.earning.id in store.earnings
    assert len(store.royalties) == 2


async def test_ingest_many_reports_row_errors(store, make_uow, catalog):
    release_id = catalog["release"].id
    items = [
        EarningInput(release_id=release_id, amount="100.00", date_recorded="2024-02-01"),
        EarningInput(release_id=release_id, amount="abc", date_recorded="2024-02-01"),
        EarningInput(release_id=uuid.uuid4(), amount="5.00", date_recorded="2024-02-01"),
        EarningInput(release_id=release_id, amount="50.00", date_recorded=None),
        EarningInput(
            release_id=release_id, amount="300.00", date_recorded="2024-02-02",
            type="Streaming", calculate_royalties=True,
        ),
    ]

    result = await _ingestor(make_uow()).ingest_many(catalog["brand"].id, items)

    assert result.processed == 5
    assert len(result.created) == 2
    assert [e.split(":")[0] for e in result.errors] == ["Row 2", "Row 3", "Row 4"]
    assert result.created[1].allocation.recouped_amount == D("200.00")
    assert len(store.earnings) == 2
