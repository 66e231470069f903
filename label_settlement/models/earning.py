"""
Earning model.

One reported revenue event for a release. Earnings are append-only: the
only mutation after creation is finalizing the platform fee, once, after
allocation has run.
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from label_settlement.core.database import Base, utcnow


class EarningType(str, Enum):
    """Revenue categories that resolve to a split percentage."""
    STREAMING = "Streaming"
    SYNC = "Sync"
    DOWNLOADS = "Downloads"
    PHYSICAL = "Physical"


class Earning(Base):
    """Reported revenue for a release."""

    __tablename__ = "earnings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    release_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("releases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Free text so unrecognized categories can still be recorded
    type: Mapped[str] = mapped_column(
        String(45),
        default=EarningType.STREAMING.value,
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    date_recorded: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    platform_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0"),
        nullable=False,
    )

    # Set when recoupment and distribution have run for this earning
    allocated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    # Set when platform_fee has been written
    fee_finalized_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
    )

    @property
    def is_allocated(self) -> bool:
        return self.allocated_at is not None

    @property
    def is_fee_finalized(self) -> bool:
        return self.fee_finalized_at is not None

    def __repr__(self) -> str:
        return f"<Earning {self.id} type={self.type} amount={self.amount}>"
