"""
Earning notifications.

Notices are collected while an earning is settled and dispatched only after
the settlement transaction has committed. A failed send is logged and never
reaches the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Protocol, Sequence

from label_settlement.services.email_service import render_earning_email, send_email

logger = logging.getLogger(__name__)


@dataclass
class EarningAmounts:
    """Figures quoted in an earning notification."""
    earning_description: str
    earning_amount: Decimal
    recouped_amount: Decimal
    recuperable_balance: Decimal
    royalty_amount: Optional[Decimal] = None


@dataclass
class EarningNotice:
    """One pending notification for one artist's team."""
    recipients: List[str]
    artist_name: str
    release_title: str
    amounts: EarningAmounts


@dataclass
class DispatchReport:
    sent: int = 0
    failed: List[str] = field(default_factory=list)


class NotificationSender(Protocol):
    async def notify_earning(
        self,
        recipients: Sequence[str],
        artist_name: str,
        release_title: str,
        amounts: EarningAmounts,
    ) -> bool: ...


def _fmt(amount: Decimal) -> str:
    return f"{amount:,.2f}"


class ResendNotificationSender:
    """Sends earning notifications by email through Resend."""

    async def notify_earning(
        self,
        recipients: Sequence[str],
        artist_name: str,
        release_title: str,
        amounts: EarningAmounts,
    ) -> bool:
        html = render_earning_email(
            artist_name=artist_name,
            release_title=release_title,
            earning_description=amounts.earning_description,
            earning_amount=_fmt(amounts.earning_amount),
            recouped_amount=_fmt(amounts.recouped_amount),
            recuperable_balance=_fmt(amounts.recuperable_balance),
            royalty_amount=_fmt(amounts.royalty_amount) if amounts.royalty_amount is not None else None,
        )
        return await send_email(
            to=list(recipients),
            subject=f"New earnings posted for {artist_name} - {release_title}",
            html=html,
        )


async def dispatch_notices(
    sender: NotificationSender,
    notices: Sequence[EarningNotice],
) -> DispatchReport:
    """Send every notice, logging failures instead of raising."""
    report = DispatchReport()
    for notice in notices:
        try:
            delivered = await sender.notify_earning(
                notice.recipients,
                notice.artist_name,
                notice.release_title,
                notice.amounts,
            )
        except Exception as e:
            logger.error(f"Earning notification for {notice.artist_name} failed: {e}")
            report.failed.append(notice.artist_name)
            continue

        if delivered:
            report.sent += 1
        else:
            logger.warning(f"Earning notification for {notice.artist_name} was not sent")
            report.failed.append(notice.artist_name)
    return report
