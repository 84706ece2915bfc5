# services/email_service.py
import html
import logging
import textwrap

from config import ORG_NAME, CURRENCY
from domain.models import EventRegistration
from utils.email_utils import QR_CID, send_email_with_inline_qr

logger = logging.getLogger(__name__)


def ticket_email_html(registration: EventRegistration) -> str:
    name = html.escape(registration.registrant_name or "")
    title = html.escape(registration.event_title or "the event")
    where = html.escape(registration.event_location or "")
    when = html.escape(registration.event_date or "")
    paid = (
        f"{CURRENCY}{registration.amount_paid:,.2f}" if registration.amount_paid > 0 else "Free"
    )

    return textwrap.dedent(f"""\
        <div style="font-family:system-ui,-apple-system,Segoe UI,Roboto,Arial,sans-serif; font-size:15px; line-height:1.5;">
          <p>Hi {name},</p>

          <p>You're registered for <b>{title}</b>. Your e-ticket is below.</p>

          <table style="border-collapse:collapse;margin:8px 0 14px;">
            <tr><td style="padding:2px 12px 2px 0;color:#6b7280;">Date</td><td><b>{when}</b></td></tr>
            <tr><td style="padding:2px 12px 2px 0;color:#6b7280;">Venue</td><td><b>{where}</b></td></tr>
            <tr><td style="padding:2px 12px 2px 0;color:#6b7280;">Amount</td><td><b>{paid}</b></td></tr>
            <tr><td style="padding:2px 12px 2px 0;color:#6b7280;">Ticket</td><td><code>{registration.id}</code></td></tr>
          </table>

          <p style="margin:12px 0 6px; font-weight:600;">Show this QR at the entrance:</p>
          <img src="cid:{QR_CID}" alt="Ticket QR" style="max-width:300px; height:auto; border:1px solid #e5e7eb; border-radius:8px;" />

          <p style="color:#0A402F;margin-top:14px;">
            You can also open the ticket any time under <b>Events → My Tickets</b>.
          </p>

          <p style="margin-top:16px;">
            Warm regards,<br/>
            <b>{html.escape(ORG_NAME)}</b>
          </p>
        </div>
    """)


def send_ticket_confirmation(registration: EventRegistration, qr_bytes: bytes) -> None:
    subject = f"Your ticket for {registration.event_title or 'our event'}"
    send_email_with_inline_qr(
        recipient=registration.registrant_email,
        subject=subject,
        body_html=ticket_email_html(registration),
        qr_bytes=qr_bytes,
        attachment_filename=f"ticket_{registration.id}.png",
    )
    logger.info("Ticket confirmation queued for registration %s", registration.id)
