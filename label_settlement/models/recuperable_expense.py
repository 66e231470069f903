"""
Recuperable expense ledger.

LEDGER CONVENTION:
- Positive expense_amount: money the label advanced against the release
- Negative expense_amount: recoupment taken from an earning

BALANCE CALCULATION:
  recuperable_balance = sum(expense_amount) for the release

  There is no stored running total. A recoupment never exceeds the balance
  it was computed from, so the sum stays >= 0 when writes are serialized
  per release.
"""
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from label_settlement.core.database import Base, utcnow


class RecuperableExpense(Base):
    """Signed ledger entry against a release."""

    __tablename__ = "recuperable_expenses"

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
    brand_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("brands.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Earning that produced a recoupment entry
    earning_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("earnings.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    expense_description: Mapped[str] = mapped_column(String(255), nullable=False)
    expense_amount: Mapped[Decimal] = mapped_column(Numeric(precision=12, scale=2), nullable=False)
    date_recorded: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utcnow,
        nullable=False,
    )

    @property
    def is_recoupment(self) -> bool:
        return self.expense_amount < 0

    def __repr__(self) -> str:
        return f"<RecuperableExpense {self.id} release={self.release_id} amount={self.expense_amount}>"
