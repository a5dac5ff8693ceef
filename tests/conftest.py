from __future__ import annotations

from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from linksender.config import LinkSenderConfig
from linksender.domain.models import SendOutcome, SmsResult

TZ = ZoneInfo("America/Los_Angeles")

HEADERS = ["Patient", "Time", "O/T", "Phone #", "Link Sent", "Appt With", "Follow Up", "DOB"]


class FakeTab:
    def __init__(self, name: str, grid: list[list[Any]] | None = None) -> None:
        self.name = name
        self.grid = grid or []
        self.writes: list[tuple[int, int, str]] = []
        self.reads = 0

    def read_grid(self) -> list[list[Any]]:
        self.reads += 1
        return [list(row) for row in self.grid]

    def write_cell(self, row: int, column: int, value: str) -> None:
        self.writes.append((row, column, value))
        self.grid[row - 1][column - 1] = value


class FakeWorkbook:
    def __init__(self, name: str, tabs: list[FakeTab]) -> None:
        self.name = name
        self._tabs = tabs

    def tabs(self) -> list[FakeTab]:
        return self._tabs


class FakeWorkbookSource:
    def __init__(self, workbook: FakeWorkbook | None) -> None:
        self.workbook = workbook
        self.lookups: list[Any] = []

    def find_todays_workbook(self, today):
        self.lookups.append(today)
        return self.workbook


class FakeSender:
    def __init__(self, *, fail_for: set[str] | None = None, raise_for: set[str] | None = None) -> None:
        self.fail_for = fail_for or set()
        self.raise_for = raise_for or set()
        self.sent: list[tuple[str, str]] = []

    def send(self, phone: str, body: str) -> SmsResult:
        if phone in self.raise_for:
            raise ConnectionError("connection reset")
        if phone in self.fail_for:
            return SmsResult(success=False, error="ClickSend API error: INVALID_RECIPIENT")
        self.sent.append((phone, body))
        return SmsResult(success=True)


class FakeErrorLog:
    def __init__(self) -> None:
        self.entries: list[SendOutcome] = []

    def record(self, outcome: SendOutcome) -> None:
        self.entries.append(outcome)


def make_grid(*rows: list[Any], headers: list[str] = HEADERS) -> list[list[Any]]:
    return [list(headers), *[list(row) for row in rows]]


@pytest.fixture
def config() -> LinkSenderConfig:
    return LinkSenderConfig(stop_at_tabs=("Therapist",), timezone="America/Los_Angeles")


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 9, 10, 0, tzinfo=TZ)


@pytest.fixture
def sender() -> FakeSender:
    return FakeSender()


@pytest.fixture
def error_log() -> FakeErrorLog:
    return FakeErrorLog()
