"""
Messaging Module
================
Phone normalization, opt-out tokens, SMS encoding and message templates.
"""

# Re-export all public APIs
from .models import EncodingType, GSM7_BASIC, GSM7_EXTENDED
from .encoding import detect_encoding, count_gsm7_characters, to_gsm7
from .segmentation import calculate_segments
from .phone_utils import (
    normalize_phone,
    is_valid_phone,
    display_phone,
    mask_phone,
    national_digits,
)
from .opt_out import (
    encode_opt_out_token,
    decode_opt_out_token,
    build_opt_out_link,
    OPT_OUT_PATH,
)
from .templates import (
    verification_message,
    reminder_message,
    reminder_email_subject,
    reminder_email_html,
    template_key,
    format_ro_date,
)

__all__ = [
    # Models
    "EncodingType",
    "GSM7_BASIC",
    "GSM7_EXTENDED",
    # Encoding
    "detect_encoding",
    "count_gsm7_characters",
    "to_gsm7",
    "calculate_segments",
    # Phone
    "normalize_phone",
    "is_valid_phone",
    "display_phone",
    "mask_phone",
    "national_digits",
    # Opt-out
    "encode_opt_out_token",
    "decode_opt_out_token",
    "build_opt_out_link",
    "OPT_OUT_PATH",
    # Templates
    "verification_message",
    "reminder_message",
    "reminder_email_subject",
    "reminder_email_html",
    "template_key",
    "format_ro_date",
]
