"""Date parsing and locale formatting utilities"""

from datetime import date, datetime
from typing import Optional, Union

MONTHS_EN = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
MONTHS_AR = [
    "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
    "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
]

_EASTERN_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")

DateLike = Union[date, datetime, str, None]


def parse_date(value: DateLike) -> Optional[date]:
    """Accept date, datetime or ISO string; None/blank/invalid → None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except ValueError:
        return None


def parse_datetime(value: DateLike) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date(value: DateLike, locale: str = "ar", style: str = "short") -> str:
    """
    Locale date for reports.

    short: "Jan 15, 2026" / "١٥ يناير ٢٠٢٦"
    long:  "January 15, 2026, 02:30 PM" / "١٥ يناير ٢٠٢٦، ٠٢:٣٠ م"

    Fixed month tables keep the output independent of the host's locale data.
    """
    moment = parse_datetime(value)
    if moment is None:
        return ""

    if locale == "ar":
        text = f"{moment.day} {MONTHS_AR[moment.month - 1]} {moment.year}"
        if style == "long":
            suffix = "ص" if moment.hour < 12 else "م"
            text += f"، {moment.strftime('%I:%M')} {suffix}"
        return text.translate(_EASTERN_DIGITS)

    if style == "long":
        meridiem = "AM" if moment.hour < 12 else "PM"
        return f"{MONTHS_EN[moment.month - 1]} {moment.day}, {moment.year}, {moment.strftime('%I:%M')} {meridiem}"
    return f"{MONTHS_EN[moment.month - 1][:3]} {moment.day}, {moment.year}"
