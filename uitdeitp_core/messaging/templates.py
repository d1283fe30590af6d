"""
Message Templates
=================
SMS and email bodies for verification codes and expiry reminders.

SMS bodies are transliterated to GSM-7 so a typical message fits in a
single 160-character part.
"""

import html
from datetime import date
from typing import Optional

from .encoding import to_gsm7

_LABELS = {
    "itp": "ITP",
    "rca": "RCA",
    "rovinieta": "Rovinieta",
}

_URGENT_ACTIONS = {
    "itp": "Programeaza urgent inspectia tehnica!",
    "rca": "Reinnoieste urgent asigurarea!",
    "rovinieta": "Cumpara urgent rovinieta!",
}

_FRIENDLY_ACTIONS = {
    "itp": "sa programezi inspectia tehnica",
    "rca": "sa reinnoiesti asigurarea RCA",
    "rovinieta": "sa cumperi o rovinieta noua",
}


def _type_key(reminder_type) -> str:
    return str(getattr(reminder_type, "value", reminder_type)).lower()


def type_label(reminder_type) -> str:
    key = _type_key(reminder_type)
    return _LABELS.get(key, key.upper())


def format_ro_date(value: date) -> str:
    """``2025-03-09`` -> ``09.03.2025``."""
    return value.strftime("%d.%m.%Y")


def template_key(days_until: int) -> str:
    """Template bucket for a reminder: expired, 1d, 3d or 7d."""
    if days_until < 0:
        return "expired"
    if days_until <= 1:
        return "1d"
    if days_until <= 3:
        return "3d"
    return "7d"


def verification_message(code: str, station_name: Optional[str] = None) -> str:
    """SMS carrying a verification code."""
    if station_name:
        body = (
            f"Codul tau {station_name}: {code}\n"
            "Introdu pe tableta pentru reminder ITP.\n"
            "Nu ai cerut? Ignora."
        )
    else:
        body = (
            f"Codul tau de verificare: {code}\n"
            "Codul expira in 10 minute.\n"
            "uitdeitp.ro"
        )
    return to_gsm7(body)


def reminder_message(
    reminder_type,
    name: Optional[str],
    plate: str,
    expiry_date: date,
    days_until: int,
    opt_out_link: Optional[str] = None,
) -> str:
    """
    SMS reminder for an upcoming or past expiry.

    Args:
        reminder_type: ReminderType or its value
        name: Recipient name, may be empty
        plate: Formatted plate number
        expiry_date: Expiry date
        days_until: Whole days until expiry, negative once expired
        opt_out_link: Unsubscribe link appended on its own line

    Returns:
        GSM-7 message body
    """
    key = _type_key(reminder_type)
    label = type_label(key)
    when = format_ro_date(expiry_date)
    bucket = template_key(days_until)
    who = name.strip() if name and name.strip() else ""
    urgent = _URGENT_ACTIONS.get(key, "Verifica documentele!")

    if bucket == "expired":
        prefix = f"ATENTIE: {who}, " if who else "ATENTIE: "
        body = f"{prefix}{label} pentru {plate} a EXPIRAT la data de {when}. {urgent}"
    elif bucket == "1d":
        prefix = f"URGENT: {who}, " if who else "URGENT: "
        moment = "AZI" if days_until == 0 else "MAINE"
        body = f"{prefix}{label} pentru {plate} expira {moment} ({when})! {urgent}"
    elif bucket == "3d":
        prefix = f"Reminder: {who}, " if who else "Reminder: "
        body = f"{prefix}{label} pentru {plate} expira in {days_until} zile ({when})! {urgent}"
    else:
        greeting = f"Buna {who}! " if who else "Buna! "
        action = _FRIENDLY_ACTIONS.get(key, "sa verifici documentele")
        body = (
            f"{greeting}{label} pentru {plate} expira in {days_until} zile ({when}). "
            f"Nu uita {action}!"
        )

    if opt_out_link:
        body = f"{body}\nDezabonare: {opt_out_link}"

    return to_gsm7(body)


def reminder_email_subject(reminder_type, plate: str, days_until: int) -> str:
    label = type_label(reminder_type)
    if days_until < 0:
        return f"{label} pentru {plate} a expirat"
    if days_until == 0:
        return f"Reminder: {label} pentru {plate} expiră azi"
    return f"Reminder: {label} pentru {plate} expiră în {days_until} zile"


def reminder_email_html(
    reminder_type,
    name: Optional[str],
    plate: str,
    expiry_date: date,
    days_until: int,
    opt_out_link: Optional[str] = None,
) -> str:
    """Minimal HTML body for the email channel."""
    label = html.escape(type_label(reminder_type))
    greeting = f"Bună {html.escape(name)}," if name else "Bună,"
    when = format_ro_date(expiry_date)
    if days_until < 0:
        status = f"a expirat la data de <strong>{when}</strong>"
    else:
        status = f"expiră pe <strong>{when}</strong> (în {days_until} zile)"

    parts = [
        f"<p>{greeting}</p>",
        f"<p>{label} pentru vehiculul <strong>{html.escape(plate)}</strong> {status}.</p>",
        "<p>Echipa uitdeITP</p>",
    ]
    if opt_out_link:
        parts.append(
            f'<p style="font-size:12px">Nu mai vrei notificări? '
            f'<a href="{html.escape(opt_out_link)}">Dezabonare</a></p>'
        )
    return "\n".join(parts)
