"""Append-only error log kept as a worksheet next to the schedule."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable
from zoneinfo import ZoneInfo

import gspread

from linksender.domain.models import SendOutcome

logger = logging.getLogger(__name__)

ERROR_LOG_HEADERS = [
    "Timestamp",
    "Provider Tab",
    "Patient Name",
    "Appointment Time",
    "Phone Number",
    "Error Message",
]
TIMESTAMP_FORMAT = "%m/%d/%Y %H:%M:%S"


def format_error_row(outcome: SendOutcome, logged_at: datetime) -> list[Any]:
    return [logged_at.strftime(TIMESTAMP_FORMAT), *outcome.as_log_row()]


class SheetErrorLog:
    """Writes failed sends to the "Messaging Errors" worksheet.

    The worksheet is created with a bold header row the first time an error
    is recorded. A failure to write the log is logged and never raised.
    """

    def __init__(
        self,
        open_spreadsheet: Callable[[], gspread.Spreadsheet],
        sheet_name: str,
        timezone: str = "UTC",
    ) -> None:
        self._open_spreadsheet = open_spreadsheet
        self.sheet_name = sheet_name
        self.tz = ZoneInfo(timezone)
        self._worksheet: gspread.Worksheet | None = None

    def _get_or_create_worksheet(self) -> gspread.Worksheet:
        if self._worksheet is not None:
            return self._worksheet

        spreadsheet = self._open_spreadsheet()
        try:
            worksheet = spreadsheet.worksheet(self.sheet_name)
        except gspread.exceptions.WorksheetNotFound:
            worksheet = spreadsheet.add_worksheet(
                title=self.sheet_name,
                rows=1000,
                cols=len(ERROR_LOG_HEADERS),
            )
            worksheet.append_row(ERROR_LOG_HEADERS)
            worksheet.format("A1:F1", {"textFormat": {"bold": True}})
            logger.info("Created error log worksheet %s", self.sheet_name)

        self._worksheet = worksheet
        return worksheet

    def record(self, outcome: SendOutcome) -> None:
        try:
            worksheet = self._get_or_create_worksheet()
            worksheet.append_row(
                format_error_row(outcome, datetime.now(tz=self.tz)),
                value_input_option="RAW",
            )
        except Exception:
            logger.exception(
                "Failed to log error for tab %s: %s",
                outcome.provider_tab,
                outcome.error,
            )


def open_error_log_spreadsheet(
    client: gspread.Client,
    *,
    spreadsheet_id: str,
    sheet_name: str,
) -> gspread.Spreadsheet:
    """Open the configured spreadsheet, or a standalone one named after the log."""
    if spreadsheet_id:
        return client.open_by_key(spreadsheet_id)
    try:
        return client.open(sheet_name)
    except gspread.exceptions.SpreadsheetNotFound:
        logger.info("Creating standalone error log spreadsheet %s", sheet_name)
        return client.create(sheet_name)
