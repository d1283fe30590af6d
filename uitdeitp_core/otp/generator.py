"""
Code Generation
===============
Six-digit verification codes from a CSPRNG.
"""

import hmac
import re
import secrets

CODE_MIN = 100000
CODE_MAX = 999999

_CODE_PATTERN = re.compile(r"^\d{6}$")


def generate_code() -> str:
    """Random code in 100000..999999, never with a leading zero."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def is_well_formed(code) -> bool:
    return isinstance(code, str) and bool(_CODE_PATTERN.match(code))


def codes_match(expected: str, provided: str) -> bool:
    """Constant-time comparison."""
    return hmac.compare_digest(expected.encode(), provided.encode())
