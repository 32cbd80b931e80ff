import datetime
import random
import string
from typing import Any, Optional


def generate_member_id() -> str:
    """
    Creates a collision-resistant member ID.
    Example: '2025-11-05T09:12:33.120045-k3x9q2'
    """
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{datetime.datetime.now().isoformat()}-{suffix}"


def to_iso_date(value: Any) -> str:
    """
    Normalizes a date-like value to 'YYYY-MM-DD'.
    Accepts date/datetime objects, ISO strings and 'dd/mm/yyyy' strings.
    Returns an empty string for anything else.
    """
    if value is None:
        return ""
    if isinstance(value, datetime.datetime):
        return value.date().isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return ""

    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y"):
        try:
            return datetime.datetime.strptime(text[:10], fmt).date().isoformat()
        except ValueError:
            continue
    return ""


def parse_iso_date(value: str) -> Optional[datetime.date]:
    """Returns a date for an ISO string, or None if it is empty/invalid."""
    if not value:
        return None
    try:
        return datetime.date.fromisoformat(value[:10])
    except ValueError:
        return None


def calculate_age(date_of_birth: str, today: Optional[datetime.date] = None) -> Optional[int]:
    """
    Calculates age in whole years.
    Returns None if the birth date is missing or invalid.
    """
    birth = parse_iso_date(date_of_birth)
    if birth is None:
        return None

    today = today or datetime.date.today()
    age = today.year - birth.year
    # Birthday hasn't happened yet this year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def format_date_vn(value: str) -> str:
    """
    Formats an ISO date the Vietnamese way (dd/mm/yyyy).
    Example: '1980-03-07' -> '07/03/1980'
    """
    d = parse_iso_date(value)
    return d.strftime("%d/%m/%Y") if d else ""
