from label_settlement.models.brand import Brand, FeeRevenueType
from label_settlement.models.artist import Artist, ArtistTeamMember
from label_settlement.models.release import Release, ReleaseArtist, RoyaltyType
from label_settlement.models.earning import Earning, EarningType
from label_settlement.models.recuperable_expense import RecuperableExpense
from label_settlement.models.royalty import Royalty
from label_settlement.models.payment import Payment, PaymentMethod, LabelPayment, LabelPaymentMethod
from label_settlement.models.event import Event, Ticket, TicketStatus, PAID_TICKET_STATUSES

__all__ = [
    # Tenancy and catalog
    "Brand",
    "FeeRevenueType",
    "Artist",
    "ArtistTeamMember",
    "Release",
    "ReleaseArtist",
    "RoyaltyType",
    # Settlement ledger
    "Earning",
    "EarningType",
    "RecuperableExpense",
    "Royalty",
    # Payouts
    "Payment",
    "PaymentMethod",
    "LabelPayment",
    "LabelPaymentMethod",
    # Event sales
    "Event",
    "Ticket",
    "TicketStatus",
    "PAID_TICKET_STATUSES",
]
