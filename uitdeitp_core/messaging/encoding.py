"""
Encoding Detection
==================
SMS encoding detection, character counting and Romanian transliteration.
"""

from .models import EncodingType, GSM7_BASIC, GSM7_EXTENDED, ROMANIAN_TRANSLITERATION


def detect_encoding(text: str) -> EncodingType:
    """
    Detect the required encoding for a message.

    A single Romanian diacritic is enough to force UCS-2.
    """
    for char in text:
        if char not in GSM7_BASIC and char not in GSM7_EXTENDED:
            return EncodingType.UCS2
    return EncodingType.GSM7


def count_gsm7_characters(text: str) -> int:
    """Count GSM-7 character units (extension chars count as 2)."""
    return sum(2 if char in GSM7_EXTENDED else 1 for char in text)


def to_gsm7(text: str) -> str:
    """Replace Romanian diacritics with their base letters."""
    return text.translate(ROMANIAN_TRANSLITERATION)
