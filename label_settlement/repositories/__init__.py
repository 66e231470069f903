from label_settlement.repositories.base import (
    ArtistSortField,
    DateRange,
    EventSalesTotals,
    ReleaseEarningTotals,
    SettlementUnitOfWork,
)
from label_settlement.repositories.sql import SqlUnitOfWork

__all__ = [
    "ArtistSortField",
    "DateRange",
    "EventSalesTotals",
    "ReleaseEarningTotals",
    "SettlementUnitOfWork",
    "SqlUnitOfWork",
]
