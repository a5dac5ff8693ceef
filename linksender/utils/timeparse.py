from __future__ import annotations

import re
from datetime import datetime, time
from typing import Any

TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})(?:\s*(AM|PM))?", re.IGNORECASE)

# Clock cells come back from the scheduling sheet three hours ahead of their
# displayed value (9:00 AM is stored as 12:00).
CLOCK_OFFSET_HOURS = 3


def _anchor(reference: datetime, hours: int, minutes: int) -> datetime:
    return reference.replace(hour=hours, minute=minutes, second=0, microsecond=0)


def parse_appointment_time(value: Any, reference: datetime | None = None) -> datetime | None:
    """Normalize a raw appointment time cell to a datetime on the reference date.

    Rules:
    - clock values (``datetime.time``/``datetime.datetime``) are shifted back
      by three hours, wrapping past midnight
    - text is searched for ``H:MM`` with an optional AM/PM suffix
    - text without a meridiem and an hour between 1 and 7 is taken as PM
    - anything unparseable returns None
    """
    if not value:
        return None
    reference = reference or datetime.now()

    try:
        if isinstance(value, (datetime, time)):
            hours = (value.hour - CLOCK_OFFSET_HOURS) % 24
            return _anchor(reference, hours, value.minute)

        text = str(value).strip()
        if not text:
            return None

        match = TIME_PATTERN.search(text)
        if not match:
            return None

        hours = int(match.group(1))
        minutes = int(match.group(2))
        meridiem = match.group(3).upper() if match.group(3) else None

        if meridiem == "PM" and hours != 12:
            hours += 12
        elif meridiem == "AM" and hours == 12:
            hours = 0
        elif meridiem is None and 1 <= hours <= 7:
            hours += 12

        return _anchor(reference, hours, minutes)
    except (TypeError, ValueError):
        return None


def format_send_timestamp(moment: datetime) -> str:
    """Render a send stamp as ``h:mm AM``."""
    return moment.strftime("%I:%M %p").lstrip("0")
