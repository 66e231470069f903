"""
Event and ticket sales.

Ticketing itself lives elsewhere; these tables are read here only to fold
event revenue into a sub-label's balance.
"""
import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, Date, Integer, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from label_settlement.core.database import Base


class TicketStatus(str, Enum):
    """Ticket statuses. Only paid ones count toward sales."""
    NEW = "New"
    PAYMENT_CONFIRMED = "Payment Confirmed"
    TICKET_SENT = "Ticket sent."
    CANCELED = "Canceled"
    REFUNDED = "Refunded"


PAID_TICKET_STATUSES = (TicketStatus.PAYMENT_CONFIRMED.value, TicketStatus.TICKET_SENT.value)


class Event(Base):
    """Event owned by a brand."""

    __tablename__ = "events"

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
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Event {self.id} title={self.title}>"


class Ticket(Base):
    """Ticket order for an event."""

    __tablename__ = "tickets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(String(45), default=TicketStatus.NEW.value, nullable=False)
    price_per_ticket: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    number_of_entries: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    platform_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=12, scale=2), nullable=True)
    payment_processing_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        default=Decimal("0"),
        nullable=False,
    )
    date_paid: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    def __repr__(self) -> str:
        return f"<Ticket {self.id} event={self.event_id} status={self.status}>"
