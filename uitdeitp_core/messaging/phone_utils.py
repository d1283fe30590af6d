"""
Phone Number Utilities
======================
Normalization of Romanian mobile numbers to the canonical ``+40XXXXXXXXX``.
"""

import re
from typing import Optional

COUNTRY_PREFIX = "+40"

# ASCII digits, a single leading "+", and common separators. Anything else,
# letters and non-ASCII digits included, makes the input invalid.
_ALLOWED_INPUT = re.compile(r"^\+?[0-9 \t\-./()]+$")
_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_phone(value: Optional[str]) -> Optional[str]:
    """
    Normalize a Romanian mobile number.

    Accepted shapes after separators are removed: ``+40`` + 9 digits,
    ``40`` + 9 digits, ``0`` + 9 digits, or the bare 9 digits. The 9-digit
    national part must start with ``7``.

    Args:
        value: Raw user input

    Returns:
        ``+40XXXXXXXXX`` or None when the input is not a Romanian mobile
    """
    if value is None:
        return None

    raw = str(value).strip()
    if not raw or not _ALLOWED_INPUT.match(raw):
        return None

    digits = _NON_DIGITS.sub("", raw)

    if raw.startswith("+"):
        if len(digits) != 11 or not digits.startswith("40"):
            return None
        national = digits[2:]
    elif len(digits) == 11 and digits.startswith("40"):
        national = digits[2:]
    elif len(digits) == 10 and digits.startswith("0"):
        national = digits[1:]
    elif len(digits) == 9:
        national = digits
    else:
        return None

    if not national.startswith("7"):
        return None

    return COUNTRY_PREFIX + national


def is_valid_phone(value: Optional[str]) -> bool:
    """Check whether the input normalizes to a Romanian mobile."""
    return normalize_phone(value) is not None


def national_digits(phone: str) -> str:
    """The 9 digits after ``+40`` of a canonical number."""
    if not phone.startswith(COUNTRY_PREFIX) or len(phone) != 12:
        raise ValueError("Not a canonical phone number")
    return phone[len(COUNTRY_PREFIX):]


def display_phone(phone: str) -> str:
    """
    Human display format, e.g. ``0712 345 678``.

    Input that does not normalize is returned unchanged.
    """
    canonical = normalize_phone(phone)
    if canonical is None:
        return phone
    d = national_digits(canonical)
    return f"0{d[0:3]} {d[3:6]} {d[6:]}"


def mask_phone(phone: str) -> str:
    """Mask the middle digits for logs: ``+40712***678``."""
    if len(phone) < 9:
        return "***"
    return f"{phone[:6]}***{phone[-3:]}"
