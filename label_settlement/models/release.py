"""Release (catalog entry) and per-artist royalty splits."""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String, DateTime, Numeric, ForeignKey, CheckConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from label_settlement.core.database import Base, utcnow

if TYPE_CHECKING:
    from label_settlement.models.artist import Artist


class RoyaltyType(str, Enum):
    """Basis a split percentage is applied to."""
    REVENUE = "Revenue"
    PROFIT = "Profit"


class Release(Base):
    """Catalog entry owned by a brand."""

    __tablename__ = "releases"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    brand_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("brands.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    catalog_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
    )

    artist_splits: Mapped[List["ReleaseArtist"]] = relationship(
        "ReleaseArtist",
        back_populates="release",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Release {self.id} catalog_no={self.catalog_no} title={self.title}>"


def _royalty_type_column() -> Mapped[str]:
    return mapped_column(
        SAEnum(RoyaltyType, values_callable=lambda x: [e.value for e in x], native_enum=False),
        default=RoyaltyType.REVENUE,
        nullable=False,
    )


class ReleaseArtist(Base):
    """
    Royalty split of one artist on one release.

    Each revenue category carries its own percentage (0.000 to 1.000) and
    royalty type. Percentages across artists on a release need not sum to
    1; whatever is left is kept by the label.
    """

    __tablename__ = "release_artists"

    release_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("releases.id", ondelete="CASCADE"),
        primary_key=True,
    )
    artist_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("artists.id", ondelete="CASCADE"),
        primary_key=True,
    )

    streaming_royalty_percentage: Mapped[Decimal] = mapped_column(
        Numeric(precision=4, scale=3), default=Decimal("0.500"), nullable=False,
    )
    streaming_royalty_type: Mapped[RoyaltyType] = _royalty_type_column()
    sync_royalty_percentage: Mapped[Decimal] = mapped_column(
        Numeric(precision=4, scale=3), default=Decimal("0.500"), nullable=False,
    )
    sync_royalty_type: Mapped[RoyaltyType] = _royalty_type_column()
    download_royalty_percentage: Mapped[Decimal] = mapped_column(
        Numeric(precision=4, scale=3), default=Decimal("0.500"), nullable=False,
    )
    download_royalty_type: Mapped[RoyaltyType] = _royalty_type_column()
    physical_royalty_percentage: Mapped[Decimal] = mapped_column(
        Numeric(precision=4, scale=3), default=Decimal("0.200"), nullable=False,
    )
    physical_royalty_type: Mapped[RoyaltyType] = _royalty_type_column()

    release: Mapped["Release"] = relationship(
        "Release",
        back_populates="artist_splits",
    )
    artist: Mapped["Artist"] = relationship("Artist")

    __table_args__ = (
        CheckConstraint(
            "streaming_royalty_percentage >= 0 AND streaming_royalty_percentage <= 1 "
            "AND sync_royalty_percentage >= 0 AND sync_royalty_percentage <= 1 "
            "AND download_royalty_percentage >= 0 AND download_royalty_percentage <= 1 "
            "AND physical_royalty_percentage >= 0 AND physical_royalty_percentage <= 1",
            name="check_release_artist_percentage_range",
        ),
    )

    def __repr__(self) -> str:
        return f"<ReleaseArtist release={self.release_id} artist={self.artist_id}>"
