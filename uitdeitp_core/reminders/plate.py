"""
Plate Numbers
=============
Romanian registration plate validation and formatting.
"""

import re
from typing import Optional

_PLATE_PATTERN = re.compile(r"^([A-Z]{1,2})-?(\d{2,3})-?([A-Z]{3})$")
_WHITESPACE = re.compile(r"\s+")

ROMANIAN_COUNTIES = {
    "AB": "Alba",
    "AG": "Argeș",
    "AR": "Arad",
    "B": "București",
    "BC": "Bacău",
    "BH": "Bihor",
    "BN": "Bistrița-Năsăud",
    "BR": "Brăila",
    "BT": "Botoșani",
    "BV": "Brașov",
    "BZ": "Buzău",
    "CJ": "Cluj",
    "CL": "Călărași",
    "CS": "Caraș-Severin",
    "CT": "Constanța",
    "CV": "Covasna",
    "DB": "Dâmbovița",
    "DJ": "Dolj",
    "GJ": "Gorj",
    "GL": "Galați",
    "GR": "Giurgiu",
    "HD": "Hunedoara",
    "HR": "Harghita",
    "IF": "Ilfov",
    "IL": "Ialomița",
    "IS": "Iași",
    "MH": "Mehedinți",
    "MM": "Maramureș",
    "MS": "Mureș",
    "NT": "Neamț",
    "OT": "Olt",
    "PH": "Prahova",
    "SB": "Sibiu",
    "SJ": "Sălaj",
    "SM": "Satu Mare",
    "SV": "Suceava",
    "TL": "Tulcea",
    "TM": "Timiș",
    "TR": "Teleorman",
    "VL": "Vâlcea",
    "VN": "Vrancea",
    "VS": "Vaslui",
}


def format_plate_number(plate: Optional[str]) -> Optional[str]:
    """
    Format a plate as ``XX-123-ABC``.

    Spaces and missing dashes are tolerated. Returns None if the input
    does not look like a Romanian plate.
    """
    if not plate:
        return None
    cleaned = _WHITESPACE.sub("", plate).upper()
    match = _PLATE_PATTERN.match(cleaned)
    if not match:
        return None
    county, number, letters = match.groups()
    return f"{county}-{number}-{letters}"


def is_valid_plate_number(plate: Optional[str]) -> bool:
    return format_plate_number(plate) is not None


def county_name(plate: str) -> Optional[str]:
    """County for a plate, e.g. ``CJ-12-ABC`` -> ``Cluj``."""
    formatted = format_plate_number(plate)
    if formatted is None:
        return None
    return ROMANIAN_COUNTIES.get(formatted.split("-")[0])
