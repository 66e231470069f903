"""Email service using Resend."""
import logging
from html import escape
from typing import List, Optional

import resend

from label_settlement.core.config import settings

logger = logging.getLogger(__name__)


# Initialize Resend with API key from environment
resend.api_key = settings.RESEND_API_KEY


async def send_email(
    to: str | List[str],
    subject: str,
    html: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to: Recipient email(s)
        subject: Email subject
        html: HTML content of the email

    Returns:
        True if email was sent successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not configured, email not sent")
        return False

    params = {
        "from": settings.NOTIFICATION_FROM_EMAIL,
        "to": [to] if isinstance(to, str) else to,
        "subject": subject,
        "html": html,
    }
    resend.Emails.send(params)
    return True


def render_earning_email(
    artist_name: str,
    release_title: str,
    earning_description: str,
    earning_amount: str,
    recouped_amount: str,
    recuperable_balance: str,
    royalty_amount: Optional[str],
) -> str:
    """Build the HTML body of a new-earnings notification."""
    royalty = royalty_amount if royalty_amount is not None else "(Not applied)"

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
    </head>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 20px; border-radius: 8px 8px 0 0;">
            <h1 style="color: white; margin: 0;">New earnings posted</h1>
        </div>

        <div style="background: #f9f9f9; padding: 20px; border: 1px solid #ddd; border-top: none; border-radius: 0 0 8px 8px;">
            <p style="font-size: 16px; color: #333;">
                Hi <strong>{escape(artist_name)}</strong>, new earnings were posted for
                <strong>{escape(release_title)}</strong>.
            </p>

            <table style="border-collapse: collapse; width: 100%;">
                <tr><td style="padding: 8px; border-bottom: 1px solid #eee;"><strong>Earning:</strong></td><td style="padding: 8px; border-bottom: 1px solid #eee;">{escape(earning_description)}</td></tr>
                <tr><td style="padding: 8px; border-bottom: 1px solid #eee;"><strong>Amount:</strong></td><td style="padding: 8px; border-bottom: 1px solid #eee;">{earning_amount}</td></tr>
                <tr><td style="padding: 8px; border-bottom: 1px solid #eee;"><strong>Recouped expenses:</strong></td><td style="padding: 8px; border-bottom: 1px solid #eee;">{recouped_amount}</td></tr>
                <tr><td style="padding: 8px; border-bottom: 1px solid #eee;"><strong>Remaining recuperable balance:</strong></td><td style="padding: 8px; border-bottom: 1px solid #eee;">{recuperable_balance}</td></tr>
                <tr><td style="padding: 8px; border-bottom: 1px solid #eee;"><strong>Your royalty:</strong></td><td style="padding: 8px; border-bottom: 1px solid #eee;">{royalty}</td></tr>
            </table>

            <p style="margin-top: 20px;">
                <a href="{settings.DASHBOARD_URL}"
                   style="background: #667eea; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">
                    Open dashboard
                </a>
            </p>

            <hr style="border: none; border-top: 1px solid #ddd; margin: 30px 0;">

            <p style="font-size: 12px; color: #999; text-align: center;">
                This email was sent automatically by the label dashboard.
            </p>
        </div>
    </body>
    </html>
    """
