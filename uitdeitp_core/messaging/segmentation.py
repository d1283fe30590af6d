"""
Message Segmentation
====================
SMS part calculation.
"""

from typing import Tuple

from .models import EncodingType
from .encoding import detect_encoding, count_gsm7_characters

GSM7_SINGLE = 160
GSM7_CONCAT = 153
UCS2_SINGLE = 70
UCS2_CONCAT = 67


def calculate_segments(text: str) -> Tuple[int, EncodingType, int]:
    """
    Calculate the number of SMS parts required.

    Segment limits:
    - GSM-7: 160 chars (single), 153 chars (concatenated)
    - UCS-2: 70 chars (single), 67 chars (concatenated)

    Args:
        text: Message content

    Returns:
        Tuple of (segments, encoding, char_count)
    """
    encoding = detect_encoding(text)

    if encoding == EncodingType.GSM7:
        char_count = count_gsm7_characters(text)
        single, concat = GSM7_SINGLE, GSM7_CONCAT
    else:
        char_count = len(text)
        single, concat = UCS2_SINGLE, UCS2_CONCAT

    if char_count <= single:
        return 1, encoding, char_count
    return (char_count + concat - 1) // concat, encoding, char_count
