"""Artist model for royalty tracking."""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import String, DateTime, Numeric, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from label_settlement.core.database import Base, utcnow

if TYPE_CHECKING:
    from label_settlement.models.payment import PaymentMethod


class Artist(Base):
    """Artist entity owed royalties by a brand."""

    __tablename__ = "artists"

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
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Balance the artist must exceed before a payout is due
    payout_point: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("1000"),
        nullable=False,
    )
    hold_payouts: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    # Relationships
    payment_methods: Mapped[List["PaymentMethod"]] = relationship(
        "PaymentMethod",
        back_populates="artist",
        cascade="all, delete-orphan",
    )
    team_members: Mapped[List["ArtistTeamMember"]] = relationship(
        "ArtistTeamMember",
        back_populates="artist",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Artist {self.id} name={self.name}>"


class ArtistTeamMember(Base):
    """Person with access to an artist's dashboard; receives earning emails."""

    __tablename__ = "artist_team_members"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    artist_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("artists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    email_address: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    artist: Mapped["Artist"] = relationship(
        "Artist",
        back_populates="team_members",
    )

    def __repr__(self) -> str:
        return f"<ArtistTeamMember {self.id} email={self.email_address}>"
