"""Classify the free-text Follow Up note of an appointment row.

The note column is clinic shorthand ("lvm", "3 wks", "resch", "seen"...).
Rules are evaluated in order and the first matching rule decides whether the
patient has already been handled for today and must not receive a link.
Voicemail and confirmation notes sit at the top and mean "not seen yet", even
when the same note also mentions something a later rule would match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

NOT_SEEN_MARKERS = ("vm", "lvm", "confirmed", "conf")
HANDLED_MARKERS = ("cancel", "resch", "doxy")
NO_FOLLOW_UP_MARKERS = ("no f/u", "no fu", "nof/u", "nofu")

DATE_PATTERN = re.compile(r"\d{1,2}[/\-]\d{1,2}([/\-]\d{2,4})?")
RS_PATTERN = re.compile(r"\brs\b")
WEEK_PATTERNS = (
    re.compile(r"^\d+\s*w$"),
    re.compile(r"^\d+\s*wks?$"),
    re.compile(r"^\d+\s*weeks?$"),
    re.compile(r"\d+\s*weeks?\s+with"),
    re.compile(r"\d+\s*wks?\s+with"),
    re.compile(r"\d+\s*w\s+with"),
    re.compile(r"^w$"),
)
MONTH_PATTERNS = (
    re.compile(r"^\d+\s*m$"),
    re.compile(r"^\d+\s*mo$"),
    re.compile(r"^\d+\s*months?$"),
    re.compile(r"\d+\s*months?\s+with"),
    re.compile(r"\d+\s*mo\s+with"),
)
SEEN_EXCLUSION_PATTERNS = (
    re.compile(r"recently\s+seen"),
    re.compile(r"seen\s+yesterday"),
    re.compile(r"seen\s+last"),
    re.compile(r"just\s+seen"),
    re.compile(r"been\s+seen"),
    re.compile(r"was\s+seen"),
    re.compile(r"already\s+seen"),
)
SEEN_PATTERNS = (
    re.compile(r"^seen$"),
    re.compile(r",\s*seen"),
    re.compile(r"\bseen\b"),
)


@dataclass(frozen=True, slots=True)
class FollowUpRule:
    name: str
    predicate: Callable[[str], bool]
    seen: bool


def _contains_any(markers: tuple[str, ...]) -> Callable[[str], bool]:
    return lambda note: any(marker in note for marker in markers)


def _matches_any(patterns: tuple[re.Pattern[str], ...]) -> Callable[[str], bool]:
    return lambda note: any(pattern.search(note) for pattern in patterns)


def _historical_seen(note: str) -> bool:
    return "seen" in note and _matches_any(SEEN_EXCLUSION_PATTERNS)(note)


FOLLOW_UP_RULES: tuple[FollowUpRule, ...] = (
    FollowUpRule("voicemail_or_confirmed", _contains_any(NOT_SEEN_MARKERS), seen=False),
    FollowUpRule("cancelled_or_rescheduled", _contains_any(HANDLED_MARKERS), seen=True),
    FollowUpRule("no_follow_up", _contains_any(NO_FOLLOW_UP_MARKERS), seen=True),
    FollowUpRule("follow_up_date", lambda note: bool(DATE_PATTERN.search(note)), seen=True),
    FollowUpRule("rescheduled_short", lambda note: note == "rs" or bool(RS_PATTERN.search(note)), seen=True),
    FollowUpRule("follow_up_weeks", _matches_any(WEEK_PATTERNS), seen=True),
    FollowUpRule("follow_up_months", _matches_any(MONTH_PATTERNS), seen=True),
    FollowUpRule("seen_previously", _historical_seen, seen=False),
    FollowUpRule("seen", lambda note: "seen" in note and _matches_any(SEEN_PATTERNS)(note), seen=True),
)


def normalize_note(note: Any) -> str:
    if note is None:
        return ""
    return str(note).strip().lower()


def classify_follow_up(note: Any) -> FollowUpRule | None:
    """Return the first rule matching the note, or None for blank/unmatched notes."""
    normalized = normalize_note(note)
    if not normalized:
        return None
    for rule in FOLLOW_UP_RULES:
        if rule.predicate(normalized):
            return rule
    return None


def has_been_seen(note: Any) -> bool:
    rule = classify_follow_up(note)
    return rule.seen if rule is not None else False
