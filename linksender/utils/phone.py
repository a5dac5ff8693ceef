from __future__ import annotations

import re
from typing import Any


def is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def format_phone(phone: Any) -> str:
    """Strip a phone cell down to digits and a leading +.

    The scheduling sheet stores numbers in mixed formats ("(555) 123-4567",
    "555.123.4567", "+1 555 123 4567"); ClickSend accepts the bare digits.
    """
    if is_blank(phone):
        return ""
    return re.sub(r"[^\d+]", "", str(phone).strip())


def mask_phone(phone: Any) -> str:
    """Keep the last four digits of a phone number for log lines."""
    digits = re.sub(r"\D", "", str(phone or ""))
    if len(digits) <= 4:
        return "*" * len(digits)
    return f"{'*' * (len(digits) - 4)}{digits[-4:]}"
