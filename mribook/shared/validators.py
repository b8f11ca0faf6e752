"""Field normalisers shared by the request schemas and the booking client"""

import re
from datetime import date, datetime
from typing import Optional

SLOT_TIME_FORMAT = "%I:%M %p"

EMAIL_RE = re.compile(r"^[a-z0-9._%+-]+@[a-z0-9.-]+\.[a-z]{2,}$")
NON_DIGITS_RE = re.compile(r"\D")


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """North American number in E.164 form ("+1" and ten digits)"""
    if not phone:
        return phone

    digits = NON_DIGITS_RE.sub("", phone)
    if len(digits) == 11 and digits[0] == "1":
        digits = digits[1:]
    if len(digits) != 10:
        raise ValueError("Phone number must be 10 digits")
    return "+1" + digits


def validate_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return email

    normalized = email.strip().lower()
    if not EMAIL_RE.match(normalized):
        raise ValueError("Invalid email format")
    return normalized


def validate_dmy_date(value: str) -> str:
    """
    Canonical "D/M/YYYY" form of a slot date.

    Padding is dropped ("03/04/2025" -> "3/4/2025") so one calendar day has one key.
    """
    parts = (value or "").strip().split("/")
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError("Date must look like D/M/YYYY")

    day, month, year = map(int, parts)
    try:
        parsed = date(year, month, day)
    except ValueError as e:
        raise ValueError(f"Invalid date: {value}") from e
    return f"{parsed.day}/{parsed.month}/{parsed.year}"


def validate_slot_time(value: str) -> str:
    """Zero padded "hh:mm AM/PM" on a half hour ("9:30 am" -> "09:30 AM")"""
    try:
        parsed = datetime.strptime((value or "").strip().upper(), SLOT_TIME_FORMAT)
    except ValueError as e:
        raise ValueError("Slot time must look like 09:30 AM") from e
    if parsed.minute % 30:
        raise ValueError("Slot time must fall on a 30 minute boundary")
    return parsed.strftime(SLOT_TIME_FORMAT)
