"""End-to-end tests for the HTTP API."""
import uuid
from datetime import date
from decimal import Decimal

from label_settlement.models import LabelPaymentMethod, PaymentMethod
from tests.conftest import ADMIN_HEADERS, SYSTEM_HEADERS

D = Decimal


def _headers(brand):
    return {**ADMIN_HEADERS, "X-Brand-Id": str(brand.id)}


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_create_earning_with_allocation(client, seeded):
    response = await client.post(
        "/earnings",
        headers=_headers(seeded["sublabel"]),
        json={
            "release_id": str(seeded["release"].id),
            "type": "Streaming",
            "amount": "1000.00",
            "description": "Spotify Q1",
            "date_recorded": "2024-02-01",
            "calculate_royalties": True,
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert D(body["earning"]["amount"]) == D("1000.00")
    assert body["earning"]["allocated_at"] is not None
    assert body["fee_pending"] is False
    allocation = body["allocation"]
    assert D(allocation["recouped_amount"]) == D("200.00")
    assert D(allocation["remaining_recuperable_balance"]) == D("0")
    assert sorted(D(r["amount"]) for r in allocation["royalties"]) == [D("240.00"), D("400.00")]

    balance = await client.get(
        f"/releases/{seeded['release'].id}/recuperable-balance",
        headers=_headers(seeded["sublabel"]),
    )
    assert D(balance.json()["recuperable_balance"]) == D("0")


async def test_create_earning_without_allocation(client, seeded):
    response = await client.post(
        "/earnings",
        headers=_headers(seeded["sublabel"]),
        json={"release_id": str(seeded["release"].id), "amount": 150, "date_recorded": "2024-02-01"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["allocation"] is None
    assert body["earning"]["type"] == "Streaming"

    allocated = await client.post(
        f"/earnings/{body['earning']['id']}/allocate",
        headers=_headers(seeded["sublabel"]),
    )
    assert allocated.status_code == 200
    assert D(allocated.json()["allocation"]["recouped_amount"]) == D("150.00")
    assert allocated.json()["allocation"]["royalties"] == []

    again = await client.post(
        f"/earnings/{body['earning']['id']}/allocate",
        headers=_headers(seeded["sublabel"]),
    )
    assert again.status_code == 409


async def test_malformed_amount_is_bad_request(client, seeded):
    response = await client.post(
        "/earnings",
        headers=_headers(seeded["sublabel"]),
        json={"release_id": str(seeded["release"].id), "amount": "12.345", "date_recorded": "2024-02-01"},
    )
    assert response.status_code == 400

    oversized = await client.post(
        "/earnings",
        headers=_headers(seeded["sublabel"]),
        json={"release_id": str(seeded["release"].id), "amount": "1e40", "date_recorded": "2024-02-01"},
    )
    assert oversized.status_code == 400


async def test_release_of_other_brand_is_not_found(client, seeded):
    response = await client.post(
        "/earnings",
        headers=_headers(seeded["label"]),
        json={"release_id": str(seeded["release"].id), "amount": "10.00", "date_recorded": "2024-02-01"},
    )

    assert response.status_code == 404


async def test_invalid_admin_token(client, seeded):
    response = await client.post(
        "/earnings",
        headers={"X-Admin-Token": "wrong", "X-Brand-Id": str(seeded["sublabel"].id)},
        json={"release_id": str(seeded["release"].id), "amount": "10.00", "date_recorded": "2024-02-01"},
    )

    assert response.status_code == 401


async def test_finalize_fee_on_unallocated_earning_conflicts(client, seeded):
    created = await client.post(
        "/earnings",
        headers=_headers(seeded["sublabel"]),
        json={"release_id": str(seeded["release"].id), "amount": "10.00", "date_recorded": "2024-02-01"},
    )

    response = await client.post(
        f"/earnings/{created.json()['earning']['id']}/finalize-fee",
        headers=_headers(seeded["sublabel"]),
    )

    assert response.status_code == 409


async def test_bulk_reports_failed_rows(client, seeded):
    release_id = str(seeded["release"].id)
    response = await client.post(
        "/earnings/bulk",
        headers=_headers(seeded["sublabel"]),
        json={"earnings": [
            {"release_id": release_id, "amount": "10.00", "date_recorded": "2024-02-01"},
            {"release_id": release_id, "amount": "oops", "date_recorded": "2024-02-01"},
            {"release_id": str(uuid.uuid4()), "amount": "5.00", "date_recorded": "2024-02-01"},
        ]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["processed"] == 3
    assert body["created"] == 1
    assert [e.split(":")[0] for e in body["errors"]] == ["Row 2", "Row 3"]


async def test_preview_csv(client, seeded):
    content = b"Cat. No,Release Title,Revenue ($)\nSUB-001,,12.50\n,Unknown,3.00\n"

    response = await client.post(
        "/earnings/preview-csv",
        headers=_headers(seeded["sublabel"]),
        files={"csv_file": ("earnings.csv", content, "text/csv")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["rows"][0]["matched_release"]["title"] == "First Light"
    assert body["rows"][0]["match_method"] == "catalog_no"
    assert body["rows"][1]["matched_release"] is None
    assert body["summary"]["total_matched"] == 1
    assert D(body["summary"]["total_earning_amount"]) == D("12.50")


async def test_preview_csv_without_amount_column(client, seeded):
    response = await client.post(
        "/earnings/preview-csv",
        headers=_headers(seeded["sublabel"]),
        files={"csv_file": ("earnings.csv", b"Title,Notes\nFirst Light,x\n", "text/csv")},
    )

    assert response.status_code == 400


async def test_add_recuperable_expense(client, seeded):
    url = f"/releases/{seeded['release'].id}/recuperable-expenses"

    response = await client.post(
        url,
        headers=_headers(seeded["sublabel"]),
        json={"expense_description": "Video", "expense_amount": "50.00", "date_recorded": "2024-03-01"},
    )
    assert response.status_code == 201
    assert D(response.json()["expense_amount"]) == D("50.00")

    invalid = await client.post(
        url,
        headers=_headers(seeded["sublabel"]),
        json={"expense_description": "Refund", "expense_amount": "-5.00"},
    )
    assert invalid.status_code == 400

    foreign = await client.post(
        url,
        headers=_headers(seeded["label"]),
        json={"expense_description": "Video", "expense_amount": "50.00"},
    )
    assert foreign.status_code == 404

    balance = await client.get(
        f"/releases/{seeded['release'].id}/recuperable-balance",
        headers=_headers(seeded["sublabel"]),
    )
    assert D(balance.json()["recuperable_balance"]) == D("250.00")


async def test_artist_balance(client, seeded, db):
    db.add(PaymentMethod(
        artist_id=seeded["artist_a"].id, type="PayPal", account_name="A",
        account_number_or_email="a@example.com",
    ))
    await db.commit()
    await client.post(
        "/earnings",
        headers=_headers(seeded["sublabel"]),
        json={
            "release_id": str(seeded["release"].id), "amount": "1000.00",
            "date_recorded": "2024-02-01", "calculate_royalties": True,
        },
    )

    response = await client.get(
        f"/artists/{seeded['artist_a'].id}/balance",
        headers=_headers(seeded["sublabel"]),
    )

    assert response.status_code == 200
    body = response.json()
    assert D(body["balance"]) == D("400.00")
    assert body["has_payment_method"] is True
    assert body["ready_for_payout"] is True

    foreign = await client.get(
        f"/artists/{seeded['artist_a'].id}/balance",
        headers=_headers(seeded["label"]),
    )
    assert foreign.status_code == 404


async def test_label_balance_and_breakdown(client, seeded):
    await client.post(
        "/earnings",
        headers=_headers(seeded["sublabel"]),
        json={
            "release_id": str(seeded["release"].id), "amount": "1000.00",
            "date_recorded": "2024-02-01", "calculate_royalties": True,
        },
    )
    sublabel_id = seeded["sublabel"].id

    # The parent label may read its sub-label
    balance = await client.get(f"/labels/{sublabel_id}/balance", headers=_headers(seeded["label"]))
    assert balance.status_code == 200
    assert D(balance.json()["net_music"]) == D("360.00")
    assert balance.json()["ready_for_payout"] is False

    breakdown = await client.get(f"/labels/{sublabel_id}/breakdown", headers=_headers(seeded["sublabel"]))
    assert breakdown.status_code == 200
    assert [row["release_title"] for row in breakdown.json()] == ["First Light"]

    empty_period = await client.get(
        f"/labels/{sublabel_id}/balance",
        headers=_headers(seeded["sublabel"]),
        params={"start_date": "2025-01-01", "end_date": "2025-12-31"},
    )
    assert D(empty_period.json()["net_music"]) == D("0")


async def test_label_access_rules(client, seeded):
    label_id = seeded["label"].id

    # A sub-label may not read its parent
    response = await client.get(f"/labels/{label_id}/balance", headers=_headers(seeded["sublabel"]))
    assert response.status_code == 404

    inverted = await client.get(
        f"/labels/{label_id}/balance",
        headers=_headers(seeded["label"]),
        params={"start_date": "2024-03-01", "end_date": "2024-01-01"},
    )
    assert inverted.status_code == 400


async def test_system_artists_due_payment(client, seeded, db):
    db.add(PaymentMethod(
        artist_id=seeded["artist_a"].id, type="PayPal", account_name="A",
        account_number_or_email="a@example.com",
    ))
    await db.commit()
    await client.post(
        "/earnings",
        headers=_headers(seeded["sublabel"]),
        json={
            "release_id": str(seeded["release"].id), "amount": "1000.00",
            "date_recorded": "2024-02-01", "calculate_royalties": True,
        },
    )

    response = await client.get("/system/artists-due-payment", headers=SYSTEM_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [r["artist_name"] for r in body["results"]] == ["Artist A"]

    unauthorized = await client.get("/system/artists-due-payment", headers={"X-System-Token": "wrong"})
    assert unauthorized.status_code == 401


async def test_system_sublabels_due_payment(client, seeded, db):
    db.add(LabelPaymentMethod(
        brand_id=seeded["sublabel"].id, type="Bank", account_name="Sub", account_number_or_email="123",
    ))
    await db.commit()
    await client.post(
        "/earnings",
        headers=_headers(seeded["sublabel"]),
        json={
            "release_id": str(seeded["release"].id), "amount": "1000.00",
            "date_recorded": date(2024, 2, 1).isoformat(), "calculate_royalties": True,
        },
    )

    response = await client.get(
        "/system/sublabels-due-payment",
        headers=SYSTEM_HEADERS,
        params={"parent_brand_id": str(seeded["label"].id), "limit": 500},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["limit"] == 100
    assert [r["brand_name"] for r in body["results"]] == ["Sub Label"]
    assert D(body["results"][0]["balance"]) == D("360.00")
