"""
WhatsApp deep link construction.

Builds https://wa.me/<country_code><digits>?text=<encoded message> links that
open a pre-filled conversation in the WhatsApp client.
"""

import re
import logging
from typing import Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)

WHATSAPP_BASE_URL = "https://wa.me/"
DEFAULT_COUNTRY_CODE = "55"

# Characters left alone by JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


class InvalidPhoneNumberError(ValueError):
    """Phone number has no digits left after normalization."""
    pass


def normalize_phone_digits(phone: Optional[str]) -> str:
    """Strip every non-digit character: '(11) 98888-7777' -> '11988887777'."""
    return re.sub(r'\D', '', phone or '')


def encode_message(message: str) -> str:
    """Percent-encode text the way encodeURIComponent does (UTF-8)."""
    return quote(message or "", safe=_URI_COMPONENT_SAFE)


def build_whatsapp_link(
    phone: str,
    message: str,
    country_code: str = DEFAULT_COUNTRY_CODE
) -> str:
    """
    Build a wa.me deep link for a phone number and message.

    The country code is a fixed literal prefix. Raises
    InvalidPhoneNumberError when the phone has no digits.
    """
    digits = normalize_phone_digits(phone)
    if not digits:
        raise InvalidPhoneNumberError("Phone number has no digits")

    prefix = normalize_phone_digits(country_code)
    return f"{WHATSAPP_BASE_URL}{prefix}{digits}?text={encode_message(message)}"
