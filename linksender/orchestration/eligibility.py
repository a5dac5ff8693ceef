"""Decide which rows of a provider tab are due a video-visit link."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from linksender.domain.models import AppointmentRow, ProviderTab
from linksender.orchestration.follow_up import classify_follow_up
from linksender.utils.identity import extract_provider_first_name
from linksender.utils.phone import is_blank
from linksender.utils.timeparse import parse_appointment_time

logger = logging.getLogger(__name__)

DEFAULT_LEAD_MINUTES = 5

STATUS_READY = "ready"
STATUS_SCHEMA_MISSING = "schema_missing"
STATUS_NO_TELEHEALTH = "no_telehealth"
STATUS_SHIFT_NOT_STARTED = "shift_not_started"

SKIP_NO_PHONE = "no_phone"
SKIP_INCOMPLETE_INTAKE = "incomplete_intake"
SKIP_ALREADY_SEEN = "already_seen"


@dataclass(slots=True)
class RowSkip:
    row: AppointmentRow
    reason: str
    detail: str | None = None


@dataclass(slots=True)
class TabPlan:
    tab_name: str
    status: str
    telehealth_rows: list[AppointmentRow] = field(default_factory=list)
    earliest_time: datetime | None = None
    shift_start: datetime | None = None
    provider_token: str = ""
    candidates: list[AppointmentRow] = field(default_factory=list)
    skips: list[RowSkip] = field(default_factory=list)

    @property
    def ready(self) -> bool:
        return self.status == STATUS_READY


def select_telehealth_rows(tab: ProviderTab) -> list[AppointmentRow]:
    return [row for row in tab.rows if row.is_telehealth]


def earliest_appointment(rows: list[AppointmentRow], reference: datetime) -> datetime | None:
    earliest: datetime | None = None
    for row in rows:
        parsed = parse_appointment_time(row.raw_time, reference)
        if parsed is None:
            logger.debug("Tab row %s: could not parse time %r", row.row_number, row.raw_time)
            continue
        if earliest is None or parsed < earliest:
            earliest = parsed
    return earliest


def shift_has_started(
    earliest: datetime | None,
    current_time: datetime,
    lead_minutes: int = DEFAULT_LEAD_MINUTES,
) -> bool:
    """Shift opens ``lead_minutes`` before the earliest appointment.

    With no parsable appointment time the gate stays open.
    """
    if earliest is None:
        return True
    return current_time >= earliest - timedelta(minutes=lead_minutes)


def skip_reason(row: AppointmentRow, *, has_dob_column: bool) -> RowSkip | None:
    if is_blank(row.phone):
        return RowSkip(row, SKIP_NO_PHONE)
    if has_dob_column and row.dob is not None and str(row.dob).strip() == "*":
        return RowSkip(row, SKIP_INCOMPLETE_INTAKE)
    rule = classify_follow_up(row.follow_up)
    if rule is not None and rule.seen:
        return RowSkip(row, SKIP_ALREADY_SEEN, detail=rule.name)
    return None


def evaluate_tab(
    tab: ProviderTab,
    current_time: datetime,
    *,
    lead_minutes: int = DEFAULT_LEAD_MINUTES,
) -> TabPlan:
    """Work out the gate and the send candidates for one tab without side effects."""
    missing = tab.columns.missing_required()
    if missing:
        logger.info("Missing required columns in tab %s: %s", tab.name, ", ".join(missing))
        return TabPlan(tab_name=tab.name, status=STATUS_SCHEMA_MISSING)

    telehealth_rows = select_telehealth_rows(tab)
    if not telehealth_rows:
        logger.info("No telehealth appointments found in tab %s", tab.name)
        return TabPlan(tab_name=tab.name, status=STATUS_NO_TELEHEALTH)

    earliest = earliest_appointment(telehealth_rows, current_time)
    plan = TabPlan(
        tab_name=tab.name,
        status=STATUS_READY,
        telehealth_rows=telehealth_rows,
        earliest_time=earliest,
    )

    if earliest is None:
        logger.info(
            "Tab %s: no appointment time could be parsed; proceeding with sends",
            tab.name,
        )
    else:
        plan.shift_start = earliest - timedelta(minutes=lead_minutes)
        if not shift_has_started(earliest, current_time, lead_minutes):
            logger.info(
                "Tab %s: shift starts at %s, now %s; skipping",
                tab.name,
                plan.shift_start.strftime("%H:%M"),
                current_time.strftime("%H:%M"),
            )
            plan.status = STATUS_SHIFT_NOT_STARTED
            return plan

    plan.provider_token = extract_provider_first_name(tab.name, tab.appt_with)
    has_dob_column = tab.columns.dob is not None
    for row in telehealth_rows:
        skip = skip_reason(row, has_dob_column=has_dob_column)
        if skip is None:
            plan.candidates.append(row)
        else:
            plan.skips.append(skip)
    return plan
