"""
Email delivery for customer notifications.

Implements billing.core.ports.NotificationDelivery on top of Django's mail
framework; the transport (SMTP, console, locmem in tests) comes from
settings.EMAIL_BACKEND.
"""

import logging
import smtplib

from django.conf import settings
from django.core.mail import send_mail

from billing.conf import billing_setting
from billing.core.types import DeliveryResult

logger = logging.getLogger(__name__)


class EmailNotificationDelivery:
    """Send each notification as a plain-text email."""

    def __init__(self, from_email: str | None = None, fail_silently: bool = False):
        self.from_email = from_email
        self.fail_silently = fail_silently

    def _sender(self) -> str:
        if self.from_email:
            return self.from_email
        return f'"{billing_setting("SENDER_NAME")}" <{settings.DEFAULT_FROM_EMAIL}>'

    def deliver(self, recipient_email: str, title: str, message: str) -> DeliveryResult:
        """
        Send one email.

        Returns:
            DeliveryResult with success=False and the error text if sending failed
        """
        if not recipient_email:
            return DeliveryResult(success=False, error="Recipient has no email address")

        try:
            sent = send_mail(
                subject=title,
                message=message,
                from_email=self._sender(),
                recipient_list=[recipient_email],
                fail_silently=self.fail_silently,
            )
        except (smtplib.SMTPException, ValueError, OSError) as e:
            logger.exception(f"Error sending notification email to {recipient_email}: {e}")
            return DeliveryResult(success=False, error=str(e))

        if sent == 0:
            return DeliveryResult(success=False, error="Mail backend accepted no messages")
        return DeliveryResult(success=True)


def get_default_delivery() -> EmailNotificationDelivery:
    return EmailNotificationDelivery()
