from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol, Sequence


class TabHandle(Protocol):
    """One worksheet of the daily workbook."""

    name: str

    def read_grid(self) -> list[list[Any]]: ...

    def write_cell(self, row: int, column: int, value: str) -> None: ...


class Workbook(Protocol):
    name: str

    def tabs(self) -> Sequence[TabHandle]: ...


class WorkbookSource(Protocol):
    def find_todays_workbook(self, today: date) -> Workbook | None: ...


class SmsSender(Protocol):
    def send(self, phone: str, body: str) -> SmsResult: ...


class ErrorLogSink(Protocol):
    def record(self, outcome: SendOutcome) -> None: ...


@dataclass(slots=True)
class SmsResult:
    success: bool
    error: str | None = None


@dataclass(slots=True)
class AppointmentRow:
    row_number: int
    patient_name: str
    appointment_type: str
    raw_time: Any
    phone: Any
    link_sent: Any = None
    follow_up: Any = None
    dob: Any = None

    @property
    def is_telehealth(self) -> bool:
        return str(self.appointment_type or "").strip().upper().startswith("T")


@dataclass(slots=True)
class ColumnMap:
    appointment_type: int | None
    time: int
    phone: int | None
    link_sent: int | None
    appt_with: int | None = None
    follow_up: int | None = None
    dob: int | None = None

    def missing_required(self) -> list[str]:
        required = {
            "appointment_type": self.appointment_type,
            "phone": self.phone,
            "link_sent": self.link_sent,
        }
        return [name for name, index in required.items() if index is None]


@dataclass(slots=True)
class ProviderTab:
    name: str
    rows: list[AppointmentRow]
    columns: ColumnMap
    handle: TabHandle | None = None
    appt_with: Any = None

    def write_link_sent(self, row: AppointmentRow, value: str) -> None:
        if self.columns.link_sent is None:
            raise ValueError(f"Tab {self.name!r} has no Link Sent column")
        if self.handle is not None:
            self.handle.write_cell(row.row_number, self.columns.link_sent + 1, value)
        row.link_sent = value


@dataclass(slots=True)
class SendOutcome:
    success: bool
    provider_tab: str
    patient_name: str
    appointment_time: Any
    phone: Any
    error: str | None = None
    row_number: int | None = None

    def as_log_row(self) -> list[Any]:
        return [
            self.provider_tab,
            self.patient_name,
            "" if self.appointment_time is None else str(self.appointment_time),
            "" if self.phone is None else str(self.phone),
            self.error or "",
        ]


@dataclass(slots=True)
class TabResult:
    tab_name: str
    status: str = "processed"
    sent_count: int = 0
    outcomes: list[SendOutcome] = field(default_factory=list)
    skipped: Counter[str] = field(default_factory=Counter)

    @property
    def error_count(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)


@dataclass(slots=True)
class RunSummary:
    workbook_name: str | None = None
    tabs_processed: int = 0
    messages_sent: int = 0
    errors: int = 0
    stopped_at: str | None = None
    skipped: dict[str, int] = field(default_factory=dict)
    tab_statuses: dict[str, str] = field(default_factory=dict)
