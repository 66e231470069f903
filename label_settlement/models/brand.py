"""
Brand model.

A brand is a label tenant. Brands with a parent are sub-labels: they own
their releases and events, and the parent label owes them the net of what
those earn.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from label_settlement.core.database import Base, utcnow


class FeeRevenueType(str, Enum):
    """Which revenue figure a percentage platform fee applies to."""
    GROSS = "gross"
    NET = "net"


class Brand(Base):
    """Label tenant with its platform fee settings."""

    __tablename__ = "brands"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    brand_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Sub-labels point at their parent label
    parent_brand_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("brands.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Music earning fee settings
    music_transaction_fixed_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0"),
        nullable=False,
    )
    # Percentage expressed as 0-100
    music_revenue_percentage_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=5, scale=2),
        default=Decimal("0"),
        nullable=False,
    )
    music_fee_revenue_type: Mapped[str] = mapped_column(
        String(10),
        default=FeeRevenueType.NET.value,
        nullable=False,
    )

    payment_processing_fee_for_payouts: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
    )

    @property
    def is_sublabel(self) -> bool:
        return self.parent_brand_id is not None

    def __repr__(self) -> str:
        return f"<Brand {self.id} name={self.brand_name}>"
