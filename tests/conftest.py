"""
Pytest configuration and shared fixtures.

- In-memory repository fakes for service tests
- An in-memory SQLite database (aiosqlite) for repository and API tests
- An httpx client bound to the FastAPI app
"""

import os

# Set up test environment before any imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["SYSTEM_TOKEN"] = "test-system-token"
os.environ["RESEND_API_KEY"] = ""

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from label_settlement.core.database import Base, get_db  # noqa: E402
from label_settlement.models import (  # noqa: E402
    Artist,
    ArtistTeamMember,
    Brand,
    RecuperableExpense,
    Release,
    ReleaseArtist,
)
from tests.fakes import FakeStore, FakeUnitOfWork, FixedFeeHook, RecordingNotifier  # noqa: E402

ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}
SYSTEM_HEADERS = {"X-System-Token": "test-system-token"}


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def make_uow(store):
    """Build the unit of work after the test has filled the store."""
    def _make() -> FakeUnitOfWork:
        return FakeUnitOfWork(store)
    return _make


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def fee_hook() -> FixedFeeHook:
    return FixedFeeHook()


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def seeded(db):
    """
    One label with a sub-label, a release with two artists and a
    200.00 recoupable expense.
    """
    label = Brand(brand_name="Parent Label")
    db.add(label)
    await db.flush()

    sublabel = Brand(
        brand_name="Sub Label",
        parent_brand_id=label.id,
        music_transaction_fixed_fee=Decimal("0"),
        music_revenue_percentage_fee=Decimal("0"),
        music_fee_revenue_type="net",
    )
    db.add(sublabel)
    await db.flush()

    artist_a = Artist(brand_id=sublabel.id, name="Artist A", payout_point=Decimal("100.00"))
    artist_z = Artist(brand_id=sublabel.id, name="Artist Z", payout_point=Decimal("1000.00"))
    db.add_all([artist_a, artist_z])
    await db.flush()

    db.add(ArtistTeamMember(artist_id=artist_a.id, email_address="a@example.com"))

    release = Release(brand_id=sublabel.id, catalog_no="SUB-001", title="First Light")
    db.add(release)
    await db.flush()

    db.add_all([
        ReleaseArtist(
            release_id=release.id,
            artist_id=artist_a.id,
            streaming_royalty_percentage=Decimal("0.500"),
        ),
        ReleaseArtist(
            release_id=release.id,
            artist_id=artist_z.id,
            streaming_royalty_percentage=Decimal("0.300"),
        ),
        RecuperableExpense(
            release_id=release.id,
            brand_id=sublabel.id,
            expense_description="Mastering",
            expense_amount=Decimal("200.00"),
            date_recorded=date(2024, 1, 1),
        ),
    ])
    await db.commit()

    return {
        "label": label,
        "sublabel": sublabel,
        "artist_a": artist_a,
        "artist_z": artist_z,
        "release": release,
    }


@pytest.fixture
async def client(session_maker):
    from label_settlement.main import app

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
