"""
Platform fee for music earnings.

The settlement engine only needs something with a compute_fee() method; the
brand-settings calculator below is the default.

Fee schedule (per brand):
- fixed fee per earning: music_transaction_fixed_fee
- percentage fee: music_revenue_percentage_fee (0-100) of either the gross
  earning or the net left after recoupment and royalties, per
  music_fee_revenue_type
- total = fixed + percentage, each rounded to cents
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from label_settlement.core.errors import DependencyFailure
from label_settlement.core.money import ZERO, to_money
from label_settlement.models.brand import FeeRevenueType
from label_settlement.repositories.base import BrandRepository


class PlatformFeeHook(Protocol):
    async def compute_fee(
        self,
        tenant_id: UUID,
        gross_amount: Decimal,
        net_after_recoup_and_royalties: Decimal,
    ) -> Decimal: ...


@dataclass
class FeeBreakdown:
    """Platform fee split into its parts."""
    fixed_fee: Decimal = ZERO
    percentage_fee: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.fixed_fee + self.percentage_fee


class BrandPlatformFeeCalculator:
    """Computes the platform fee from the brand's fee settings."""

    def __init__(self, brands: BrandRepository):
        self.brands = brands

    async def breakdown(
        self,
        tenant_id: UUID,
        gross_amount: Decimal,
        net_after_recoup_and_royalties: Decimal,
    ) -> FeeBreakdown:
        brand = await self.brands.get(tenant_id)
        if brand is None:
            raise DependencyFailure(f"Brand {tenant_id} not found for platform fee")

        result = FeeBreakdown()

        fixed = Decimal(str(brand.music_transaction_fixed_fee or 0))
        if fixed > 0:
            result.fixed_fee = to_money(fixed)

        percentage = Decimal(str(brand.music_revenue_percentage_fee or 0))
        if percentage > 0:
            revenue_type = brand.music_fee_revenue_type
            if revenue_type == FeeRevenueType.GROSS.value:
                base = gross_amount
            elif revenue_type == FeeRevenueType.NET.value:
                base = net_after_recoup_and_royalties
            else:
                base = ZERO
            result.percentage_fee = to_money(base * percentage / 100)

        return result

    async def compute_fee(
        self,
        tenant_id: UUID,
        gross_amount: Decimal,
        net_after_recoup_and_royalties: Decimal,
    ) -> Decimal:
        breakdown = await self.breakdown(tenant_id, gross_amount, net_after_recoup_and_royalties)
        return breakdown.total
