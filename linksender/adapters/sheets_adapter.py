"""Google Drive lookup and gspread access for the daily schedule workbook."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable

import gspread
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build

from linksender.config import LinkSenderConfig, LinkSenderError

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.readonly",
]
GOOGLE_SHEETS_MIME = "application/vnd.google-apps.spreadsheet"
EXCEL_SUFFIXES = (".xlsx", ".xls")
TITLE_SUFFIX = " appointment"


class UnsupportedWorkbookFormatError(LinkSenderError):
    """Raised when today's schedule exists only as an Excel upload."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(
            f"Cannot process Excel file {file_name!r} directly. Convert it to Google Sheets: "
            f"1. Open the file {file_name!r}. "
            "2. Go to File > Save as Google Sheets. "
            "3. Run the link sender again."
        )


def workbook_date_tokens(today: date) -> list[str]:
    """Date spellings used in schedule titles, e.g. 03-07-2026 and 3-7-2026."""
    padded = today.strftime("%m-%d-%Y")
    bare = f"{today.month}-{today.day}-{today.year}"
    return [padded] if padded == bare else [padded, bare]


def select_workbook_file(files: Iterable[dict[str, Any]]) -> dict[str, Any] | None:
    """Pick the native Google Sheets file among title matches.

    An Excel match is rejected before any native sheet that follows it.
    """
    for item in files:
        name = str(item.get("name", ""))
        if name.lower().endswith(EXCEL_SUFFIXES):
            raise UnsupportedWorkbookFormatError(name)
        if item.get("mimeType") == GOOGLE_SHEETS_MIME:
            return item
    return None


def _drive_query(token: str, *, native_only: bool) -> str:
    query = f"name contains '{token}{TITLE_SUFFIX}' and trashed = false"
    if native_only:
        query = f"mimeType = '{GOOGLE_SHEETS_MIME}' and {query}"
    return query


@dataclass
class GoogleSheetsTab:
    worksheet: gspread.Worksheet

    @property
    def name(self) -> str:
        return self.worksheet.title

    def read_grid(self) -> list[list[Any]]:
        return self.worksheet.get_all_values()

    def write_cell(self, row: int, column: int, value: str) -> None:
        self.worksheet.update_cell(row, column, value)


@dataclass
class GoogleSheetsWorkbook:
    spreadsheet: gspread.Spreadsheet

    @property
    def name(self) -> str:
        return self.spreadsheet.title

    def tabs(self) -> list[GoogleSheetsTab]:
        return [GoogleSheetsTab(worksheet) for worksheet in self.spreadsheet.worksheets()]


class GoogleWorkbookSource:
    """Find today's schedule workbook in Drive and open it with gspread."""

    def __init__(self, client: gspread.Client, drive: Any) -> None:
        self.client = client
        self.drive = drive

    @classmethod
    def from_service_account(cls, credentials_path: Path | str) -> GoogleWorkbookSource:
        credentials = Credentials.from_service_account_file(str(credentials_path), scopes=SCOPES)
        client = gspread.authorize(credentials)
        drive = build("drive", "v3", credentials=credentials, cache_discovery=False)
        return cls(client, drive)

    @classmethod
    def from_config(cls, config: LinkSenderConfig) -> GoogleWorkbookSource:
        return cls.from_service_account(config.credentials_path)

    def _search(self, query: str) -> list[dict[str, Any]]:
        logger.debug("Searching Drive with query: %s", query)
        response = (
            self.drive.files()
            .list(q=query, fields="files(id, name, mimeType)", pageSize=50)
            .execute()
        )
        return response.get("files", [])

    def _open(self, item: dict[str, Any]) -> GoogleSheetsWorkbook:
        logger.info("Found sheet: %s", item.get("name"))
        return GoogleSheetsWorkbook(self.client.open_by_key(item["id"]))

    def find_todays_workbook(self, today: date) -> GoogleSheetsWorkbook | None:
        tokens = workbook_date_tokens(today)
        logger.info("Looking for sheets with date: %s", " or ".join(tokens))

        for token in tokens:
            files = self._search(_drive_query(token, native_only=True))
            if files:
                return self._open(files[0])

        for token in tokens:
            try:
                item = select_workbook_file(self._search(_drive_query(token, native_only=False)))
            except UnsupportedWorkbookFormatError as exc:
                logger.error("%s", exc)
                return None
            if item is not None:
                return self._open(item)

        logger.info("No matching files found")
        return None
