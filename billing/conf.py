"""
Billing policy settings.

Values come from settings.BILLING and fall back to DEFAULTS for missing keys.
"""

from typing import Any

from django.conf import settings

from billing.core.bills import DEFAULT_DUE_DAYS
from billing.core.notifications import (
    DEFAULT_CURRENCY_SYMBOL,
    DEFAULT_DATE_FORMAT,
    DEFAULT_NOTIFICATION_LIMIT,
)

DEFAULTS: dict[str, Any] = {
    "DUE_DAYS": DEFAULT_DUE_DAYS,
    "DEFAULT_CONNECTION_TYPE": "residential",
    "CURRENCY_SYMBOL": DEFAULT_CURRENCY_SYMBOL,
    "DATE_FORMAT": DEFAULT_DATE_FORMAT,
    "NOTIFICATION_LIMIT": DEFAULT_NOTIFICATION_LIMIT,
    "SENDER_NAME": "Electricity Board",
}


def billing_setting(name: str) -> Any:
    """
    Look up a billing policy value.

    Raises:
        KeyError: If name is not a known billing setting
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown billing setting: {name}")
    return getattr(settings, "BILLING", {}).get(name, DEFAULTS[name])


def message_format_options() -> dict[str, str]:
    """Keyword arguments for the notification builders."""
    return {
        "currency_symbol": billing_setting("CURRENCY_SYMBOL"),
        "date_format": billing_setting("DATE_FORMAT"),
    }
