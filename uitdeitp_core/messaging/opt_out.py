"""
Opt-Out Tokens
==============
Compact base-36 tokens that carry a phone number inside short SMS links.

The token is an encoding, not a secret: anyone holding it can recover the
number. It only keeps the unsubscribe link short enough for one SMS part.
"""

import re
from typing import Optional

from ..errors import ValidationError
from .phone_utils import COUNTRY_PREFIX, national_digits, normalize_phone

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_TOKEN_PATTERN = re.compile(r"^[0-9a-zA-Z]{1,12}$")

OPT_OUT_PATH = "/o"


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    chars = []
    while number:
        number, rem = divmod(number, 36)
        chars.append(_ALPHABET[rem])
    return "".join(reversed(chars))


def encode_opt_out_token(phone: str) -> str:
    """
    Encode a canonical phone number as a lowercase base-36 token.

    Args:
        phone: ``+40XXXXXXXXX``

    Returns:
        Token of at most 6 characters

    Raises:
        ValidationError: If the phone is not a valid Romanian mobile
    """
    canonical = normalize_phone(phone)
    if canonical is None:
        raise ValidationError(reason="opt-out token requested for invalid phone")
    return _to_base36(int(national_digits(canonical)))


def decode_opt_out_token(token: Optional[str]) -> Optional[str]:
    """
    Decode a token back to ``+40XXXXXXXXX``.

    Returns None for anything that does not decode to 9 digits starting
    with ``7``.
    """
    if not token or not _TOKEN_PATTERN.match(token):
        return None

    digits = str(int(token, 36)).zfill(9)
    if len(digits) != 9 or not digits.startswith("7"):
        return None

    return COUNTRY_PREFIX + digits


def build_opt_out_link(phone: str, base_url: str) -> str:
    """Short unsubscribe link, e.g. ``https://uitdeitp.ro/o?t=bs41fy``."""
    token = encode_opt_out_token(phone)
    return f"{base_url.rstrip('/')}{OPT_OUT_PATH}?t={token}"
