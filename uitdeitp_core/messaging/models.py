"""
Messaging Models
================
Character sets used to keep SMS text inside one GSM-7 part.
"""

from enum import Enum


class EncodingType(str, Enum):
    """SMS encoding types."""
    GSM7 = "GSM-7"
    UCS2 = "UCS-2"


# GSM 03.38 basic character set
GSM7_BASIC = set(
    "@£$¥èéùìòÇ\nØø\rÅåΔ_ΦΓΛΩΠΨΣΘΞÆæßÉ !\"#¤%&'()*+,-./0123456789:;<=>?"
    "¡ABCDEFGHIJKLMNOPQRSTUVWXYZÄÖÑÜ§¿abcdefghijklmnopqrstuvwxyzäöñüà"
)

# GSM-7 extension table (each counts as 2)
GSM7_EXTENDED = set("€^{}\\[~]|\f")

# Romanian diacritics, comma-below and legacy cedilla forms
ROMANIAN_TRANSLITERATION = str.maketrans({
    "ă": "a", "Ă": "A",
    "â": "a", "Â": "A",
    "î": "i", "Î": "I",
    "ș": "s", "Ș": "S",
    "ş": "s", "Ş": "S",
    "ț": "t", "Ț": "T",
    "ţ": "t", "Ţ": "T",
})
