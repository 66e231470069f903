"""
Recuperation waterfall.

Business rules:
1. recuperable_balance = sum of every RecuperableExpense entry for the release
   (a negative sum is treated as 0)

2. Recoupment:
   - recouped = min(earning_amount, recuperable_balance)
   - a -recouped entry is written only when recouped > 0
   - remaining = earning_amount - recouped

3. new_balance = max(0, balance - recouped), reported only, never stored

Applying the waterfall twice for one earning recoups twice. Callers must
hold the release lock and apply it at most once per earning.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from label_settlement.core.money import ZERO, to_money
from label_settlement.models.recuperable_expense import RecuperableExpense
from label_settlement.repositories.base import RecuperableExpenseRepository

logger = logging.getLogger(__name__)


@dataclass
class WaterfallResult:
    """Outcome of applying one earning to a release's recoupable balance."""
    recouped_amount: Decimal
    remaining_amount: Decimal
    new_balance: Decimal
    balance_before: Decimal
    entry: Optional[RecuperableExpense] = None


class RecuperationWaterfall:
    """Reduces a release's recoupable balance before royalties are paid."""

    def __init__(self, expenses: RecuperableExpenseRepository):
        self.expenses = expenses

    async def balance(self, release_id: UUID) -> Decimal:
        """Current recoupable balance, clamped at zero."""
        return max(ZERO, to_money(await self.expenses.balance(release_id)))

    async def apply(
        self,
        release_id: UUID,
        brand_id: UUID,
        earning_amount: Decimal,
        recorded_date: date,
        category: str,
        earning_id: Optional[UUID] = None,
    ) -> WaterfallResult:
        """
        Recoup outstanding expenses from an earning.

        Args:
            release_id: Release the earning belongs to
            brand_id: Brand owning the release
            earning_amount: Gross earning amount
            recorded_date: Date stamped on the recoupment entry
            category: Earning category, used in the entry description
            earning_id: Earning that triggered the recoupment

        Returns:
            WaterfallResult with recouped and remaining amounts
        """
        earning_amount = to_money(earning_amount)
        raw_balance = to_money(await self.expenses.balance(release_id))
        if raw_balance < 0:
            logger.warning(
                f"Release {release_id} has a negative recuperable balance ({raw_balance}), treating as 0"
            )
        current_balance = max(ZERO, raw_balance)

        if current_balance <= 0:
            return WaterfallResult(
                recouped_amount=ZERO,
                remaining_amount=earning_amount,
                new_balance=ZERO,
                balance_before=current_balance,
            )

        recouped = min(earning_amount, current_balance)
        entry = None
        if recouped > 0:
            entry = await self.expenses.add(
                RecuperableExpense(
                    release_id=release_id,
                    brand_id=brand_id,
                    earning_id=earning_id,
                    expense_description=f"Recouped from {category} earnings",
                    expense_amount=-recouped,
                    date_recorded=recorded_date,
                )
            )
            logger.info(f"Recouped {recouped} on release {release_id} (balance was {current_balance})")

        return WaterfallResult(
            recouped_amount=recouped,
            remaining_amount=earning_amount - recouped,
            new_balance=max(ZERO, current_balance - recouped),
            balance_before=current_balance,
            entry=entry,
        )

    async def add_expense(
        self,
        release_id: UUID,
        brand_id: UUID,
        description: str,
        amount: Decimal,
        recorded_date: date,
    ) -> RecuperableExpense:
        """
        Record a new recoupable expense (positive ledger entry).

        Raises:
            ValueError: If the amount is not positive or the description is empty
        """
        amount = to_money(amount)
        if amount <= 0:
            raise ValueError("Expense amount must be greater than 0")
        if not description or not description.strip():
            raise ValueError("Expense description is required")

        entry = await self.expenses.add(
            RecuperableExpense(
                release_id=release_id,
                brand_id=brand_id,
                expense_description=description.strip(),
                expense_amount=amount,
                date_recorded=recorded_date,
            )
        )
        logger.info(f"Added recuperable expense {amount} to release {release_id}")
        return entry
