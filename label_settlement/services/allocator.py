"""
Royalty allocation.

Business rules:
1. The earning category picks the split field on ReleaseArtist:
   Streaming -> streaming, Sync -> sync, Downloads -> download,
   Physical -> physical. Any other category resolves to 0 for every
   artist, so no royalties are written and the label keeps the remainder.

2. Only splits with royalty type "Revenue" are paid out here.

3. royalty_amount = round_half_up(remaining_amount * percentage, 0.01),
   independently per artist. The sum may drift from the remainder by up
   to half a cent per artist; the label keeps the drift.
"""
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from label_settlement.core.money import to_money
from label_settlement.models.earning import EarningType
from label_settlement.models.release import ReleaseArtist, RoyaltyType
from label_settlement.models.royalty import Royalty
from label_settlement.repositories.base import ReleaseArtistRepository, RoyaltyRepository

logger = logging.getLogger(__name__)


# Earning category -> ReleaseArtist field prefix
CATEGORY_SPLIT_FIELDS: Dict[str, str] = {
    EarningType.STREAMING.value: "streaming",
    EarningType.SYNC.value: "sync",
    EarningType.DOWNLOADS.value: "download",
    EarningType.PHYSICAL.value: "physical",
}


# Length of royalties.description
MAX_DESCRIPTION_LENGTH = 255


def royalty_description(category: str, source: str) -> str:
    """Royalty description quoting the earning, shortened to fit the column."""
    prefix = f"{category} royalty from "
    suffix = " (after recoupment)"
    room = MAX_DESCRIPTION_LENGTH - len(prefix) - len(suffix)
    if len(source) > room:
        source = source[: max(room - 3, 0)] + "..."
    return f"{prefix}{source}{suffix}"


def resolve_split(split: ReleaseArtist, category: str) -> Tuple[Decimal, Optional[RoyaltyType]]:
    """
    Return (percentage, royalty type) of a split for an earning category.

    Unknown categories give (0, None).
    """
    prefix = CATEGORY_SPLIT_FIELDS.get(category)
    if prefix is None:
        return Decimal("0"), None

    percentage = getattr(split, f"{prefix}_royalty_percentage") or Decimal("0")
    royalty_type = getattr(split, f"{prefix}_royalty_type") or RoyaltyType.REVENUE
    return Decimal(str(percentage)), RoyaltyType(royalty_type)


class RoyaltyAllocator:
    """Splits what is left of an earning across the release's artists."""

    def __init__(
        self,
        release_artists: ReleaseArtistRepository,
        royalties: RoyaltyRepository,
    ):
        self.release_artists = release_artists
        self.royalties = royalties

    async def distribute(
        self,
        earning_id: Optional[UUID],
        release_id: UUID,
        category: str,
        remaining_amount: Decimal,
        recorded_date: date,
        description: Optional[str] = None,
    ) -> List[Royalty]:
        """
        Create royalty rows for every artist with a positive split.

        Args:
            earning_id: Earning the royalties come from
            release_id: Release the earning belongs to
            category: Earning category (Streaming, Sync, Downloads, Physical)
            remaining_amount: Earning amount left after recoupment
            recorded_date: Date stamped on the royalties
            description: Earning description, quoted in royalty descriptions

        Returns:
            Created royalties (possibly empty)
        """
        remaining_amount = to_money(remaining_amount)
        if remaining_amount <= 0:
            return []

        if category not in CATEGORY_SPLIT_FIELDS:
            logger.info(
                f"Earning category {category!r} has no royalty split; label retains {remaining_amount}"
            )
            return []

        splits = await self.release_artists.list_for_release(release_id)
        source = description or "earning"

        royalties: List[Royalty] = []
        for split in splits:
            percentage, royalty_type = resolve_split(split, category)
            if royalty_type != RoyaltyType.REVENUE:
                logger.info(
                    f"Skipping {royalty_type.value if royalty_type else 'unknown'} split "
                    f"for artist {split.artist_id} on release {release_id}"
                )
                continue
            if percentage <= 0:
                continue

            royalties.append(
                Royalty(
                    artist_id=split.artist_id,
                    release_id=release_id,
                    earning_id=earning_id,
                    percentage_of_earning=percentage,
                    amount=to_money(remaining_amount * percentage),
                    description=royalty_description(category, source),
                    date_recorded=recorded_date,
                )
            )

        if not royalties:
            return []

        created = await self.royalties.add_all(royalties)
        logger.info(
            f"Distributed {sum(r.amount for r in created)} of {remaining_amount} "
            f"to {len(created)} artists on release {release_id}"
        )
        return created
