"""Email service for booking confirmations and updates."""

import asyncio
import html
import logging
import smtplib
from email.message import EmailMessage

from ..core.config import Settings
from ..schemas.booking import Booking

logger = logging.getLogger(__name__)


def format_money(amount: int, currency: str) -> str:
    """Render minor units as a decimal amount with its currency code."""
    return f"{amount / 100:,.2f} {currency}"


def render_confirmation(booking: Booking, e_ticket: str) -> str:
    reference = html.escape(booking.booking_reference)
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Booking Confirmation</h2>
  <p>Dear Passenger,</p>
  <p>Your flight booking has been received.</p>
  <h3>Booking Details</h3>
  <p><strong>Booking Reference:</strong> {reference}</p>
  <p><strong>Status:</strong> {booking.status.value}</p>
  <p><strong>Total Price:</strong> {format_money(booking.total_price.amount, booking.total_price.currency)}</p>
  <p><strong>Cabin Class:</strong> {booking.cabin_class.value}</p>
  <h3>E-Ticket</h3>
  <p>Your e-ticket number: <strong>{html.escape(e_ticket)}</strong></p>
  <p>Thank you for flying with SkyBook.</p>
</div>
"""


def render_update(booking: Booking) -> str:
    reference = html.escape(booking.booking_reference)
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Booking Update</h2>
  <p>Dear Passenger,</p>
  <p>Your flight booking has been updated.</p>
  <h3>Updated Booking Details</h3>
  <p><strong>Booking Reference:</strong> {reference}</p>
  <p><strong>New Status:</strong> {booking.status.value}</p>
  <p><strong>Total Price:</strong> {format_money(booking.total_price.amount, booking.total_price.currency)}</p>
  <p>If you have any questions, please contact customer service.</p>
</div>
"""


class EmailService:
    """Sends booking emails over SMTP; a no-op when no SMTP host is configured."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return self.settings.email_enabled

    def _build_message(self, to: str, subject: str, body_html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.settings.smtp_sender
        msg["To"] = to
        msg.set_content("This message requires an HTML-capable mail client.")
        msg.add_alternative(body_html, subtype="html")
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30) as server:
            server.starttls()
            if self.settings.smtp_user and self.settings.smtp_password:
                server.login(self.settings.smtp_user, self.settings.smtp_password)
            server.send_message(msg)

    async def send(self, to: str, subject: str, body_html: str) -> None:
        """
        Send one HTML email.

        smtplib blocks, so delivery runs in a worker thread. SMTP errors
        propagate to the caller.
        """
        if not self.enabled:
            logger.info(
                "Email disabled, skipping send",
                extra={"to": to, "subject": subject}
            )
            return

        msg = self._build_message(to, subject, body_html)
        await asyncio.to_thread(self._deliver, msg)

        logger.info("Email sent", extra={"to": to, "subject": subject})

    async def send_booking_confirmation(self, to: str, booking: Booking, e_ticket: str) -> None:
        await self.send(
            to,
            f"Booking Confirmation - {booking.booking_reference}",
            render_confirmation(booking, e_ticket),
        )

    async def send_booking_update(self, to: str, booking: Booking) -> None:
        await self.send(
            to,
            f"Booking Update - {booking.booking_reference}",
            render_update(booking),
        )
