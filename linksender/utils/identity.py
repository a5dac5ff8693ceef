from __future__ import annotations

import re
from typing import Any

TITLE_PATTERN = re.compile(
    r"^(?:Dr\.|Mr\.|Mrs\.|Ms\.|(?:Doctor|DR|Miss)\b)\s*",
    re.IGNORECASE,
)
PC_MARKER_PATTERN = re.compile(r"/PC", re.IGNORECASE)


def extract_provider_first_name(tab_name: str, appt_with: Any = None) -> str:
    """Derive the provider token used in the meeting link.

    Rules:
    - prefer the "Appt With" value when present, else the tab name
    - drop one leading title and any /PC marker
    - keep the first word, letters only, lowercase
    """
    source = str(tab_name or "")
    if appt_with is not None and str(appt_with).strip():
        source = str(appt_with)

    source = TITLE_PATTERN.sub("", source.strip(), count=1)
    source = PC_MARKER_PATTERN.sub("", source)

    parts = source.split()
    if not parts:
        return ""
    return re.sub(r"[^a-zA-Z]", "", parts[0]).lower()
