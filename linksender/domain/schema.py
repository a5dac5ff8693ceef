"""Header-driven column resolution for provider tabs."""

from __future__ import annotations

from typing import Any, Sequence

from linksender.domain.models import AppointmentRow, ColumnMap, ProviderTab, TabHandle

HEADER_APPOINTMENT_TYPE = "O/T"
HEADER_TIME = "Time"
HEADER_PHONE = "Phone #"
HEADER_LINK_SENT = "Link Sent"
HEADER_APPT_WITH = "Appt With"
HEADER_FOLLOW_UP = "Follow Up"
HEADER_DOB = "DOB"

DEFAULT_PATIENT_NAME = "Patient"


def _index(headers: list[str], name: str) -> int | None:
    try:
        return headers.index(name)
    except ValueError:
        return None


def _cell(values: Sequence[Any], index: int | None) -> Any:
    if index is None or index >= len(values):
        return None
    return values[index]


def resolve_columns(header_row: Sequence[Any]) -> ColumnMap:
    """Map known header names to column indices.

    Time falls back to the first column when the header is missing.
    """
    headers = [str(value).strip() for value in header_row]
    time_index = _index(headers, HEADER_TIME)
    return ColumnMap(
        appointment_type=_index(headers, HEADER_APPOINTMENT_TYPE),
        time=0 if time_index is None else time_index,
        phone=_index(headers, HEADER_PHONE),
        link_sent=_index(headers, HEADER_LINK_SENT),
        appt_with=_index(headers, HEADER_APPT_WITH),
        follow_up=_index(headers, HEADER_FOLLOW_UP),
        dob=_index(headers, HEADER_DOB),
    )


def build_row(row_number: int, values: Sequence[Any], columns: ColumnMap) -> AppointmentRow:
    patient = _cell(values, 0)
    return AppointmentRow(
        row_number=row_number,
        patient_name=patient if patient not in (None, "") else DEFAULT_PATIENT_NAME,
        appointment_type=_cell(values, columns.appointment_type) or "",
        raw_time=_cell(values, columns.time),
        phone=_cell(values, columns.phone),
        link_sent=_cell(values, columns.link_sent),
        follow_up=_cell(values, columns.follow_up),
        dob=_cell(values, columns.dob),
    )


def load_provider_tab(
    name: str,
    grid: Sequence[Sequence[Any]],
    handle: TabHandle | None = None,
) -> ProviderTab:
    """Build a ProviderTab from a 2-D grid whose first row is the header."""
    if not grid:
        return ProviderTab(name=name, rows=[], columns=resolve_columns([]), handle=handle)

    columns = resolve_columns(grid[0])
    rows = [
        build_row(offset + 2, values, columns)
        for offset, values in enumerate(grid[1:])
    ]
    appt_with = _cell(grid[1], columns.appt_with) if len(grid) > 1 else None
    return ProviderTab(
        name=name,
        rows=rows,
        columns=columns,
        handle=handle,
        appt_with=appt_with,
    )
