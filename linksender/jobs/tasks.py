"""Task functions executed by the scheduler."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from linksender.config import LinkSenderConfig, load_config
from linksender.domain.models import (
    ErrorLogSink,
    RunSummary,
    SendOutcome,
    SmsSender,
    TabHandle,
    TabResult,
    WorkbookSource,
)
from linksender.domain.schema import load_provider_tab
from linksender.reporting.summary import compute_summary, format_summary
from linksender.workflows.dispatch import NOT_AVAILABLE, dispatch_tab

logger = logging.getLogger(__name__)

SYSTEM_TAB = "System"


def find_stop_tab(tab_name: str, stop_markers: Sequence[str]) -> str | None:
    """Return the stop marker contained in a tab name (case-insensitive)."""
    lowered = tab_name.lower()
    for marker in stop_markers:
        if marker and marker.lower() in lowered:
            return marker
    return None


def _process_tab(
    handle: TabHandle,
    *,
    config: LinkSenderConfig,
    sender: SmsSender | None,
    error_log: ErrorLogSink,
    current_time: datetime,
) -> TabResult:
    tab_name = handle.name
    try:
        tab = load_provider_tab(tab_name, handle.read_grid(), handle=handle)
    except Exception as exc:  # unreadable tab is skipped like any other tab fault
        logger.exception("Error reading tab %s", tab_name)
        outcome = SendOutcome(
            success=False,
            provider_tab=tab_name,
            patient_name=NOT_AVAILABLE,
            appointment_time=NOT_AVAILABLE,
            phone=NOT_AVAILABLE,
            error=str(exc),
        )
        error_log.record(outcome)
        return TabResult(tab_name=tab_name, status="failed", outcomes=[outcome])

    if not tab.rows:
        logger.info("Tab %s has no data rows", tab_name)
    return dispatch_tab(
        tab,
        sender=sender,
        error_log=error_log,
        current_time=current_time,
        config=config,
    )


def run_once(
    config: LinkSenderConfig,
    *,
    workbook_source: WorkbookSource,
    sender: SmsSender | None,
    error_log: ErrorLogSink,
    current_time: datetime | None = None,
) -> RunSummary:
    """Run one pass over today's workbook and return the totals."""
    current_time = current_time or datetime.now(tz=config.tz)
    logger.info("Starting telehealth SMS send process at %s", current_time.isoformat())

    results: list[TabResult] = []
    workbook_name: str | None = None
    stopped_at: str | None = None

    try:
        workbook = workbook_source.find_todays_workbook(current_time.date())
        if workbook is None:
            logger.info("No appointment sheet found for today")
            return compute_summary(results)

        workbook_name = workbook.name
        logger.info("Found sheet: %s", workbook_name)
        tabs = list(workbook.tabs())

        if any(find_stop_tab(tab.name, config.stop_at_tabs) for tab in tabs):
            logger.info("Using stop tabs: %s", ", ".join(config.stop_at_tabs))
        else:
            logger.info("None of the stop tabs found, proceeding with all tabs")

        for handle in tabs:
            if find_stop_tab(handle.name, config.stop_at_tabs):
                stopped_at = handle.name
                logger.info("Reached stop tab: %s. Ending processing.", handle.name)
                break

            logger.info("Processing tab: %s", handle.name)
            results.append(
                _process_tab(
                    handle,
                    config=config,
                    sender=sender,
                    error_log=error_log,
                    current_time=current_time,
                )
            )
    except Exception as exc:
        logger.critical("CRITICAL ERROR: %s", exc, exc_info=True)
        error_log.record(
            SendOutcome(
                success=False,
                provider_tab=SYSTEM_TAB,
                patient_name=NOT_AVAILABLE,
                appointment_time=NOT_AVAILABLE,
                phone=NOT_AVAILABLE,
                error=str(exc),
            )
        )

    summary = compute_summary(results, workbook_name=workbook_name, stopped_at=stopped_at)
    logger.info("Process complete\n%s", format_summary(summary))
    return summary


def _build_live_collaborators(
    config: LinkSenderConfig,
) -> tuple[WorkbookSource, SmsSender | None, ErrorLogSink]:
    from linksender.adapters.clicksend_client import ClickSendClient
    from linksender.adapters.sheets_adapter import GoogleWorkbookSource
    from linksender.reporting.error_log import SheetErrorLog, open_error_log_spreadsheet

    source = GoogleWorkbookSource.from_config(config)
    sender = None if config.dry_run else ClickSendClient.from_config(config)
    error_log = SheetErrorLog(
        lambda: open_error_log_spreadsheet(
            source.client,
            spreadsheet_id=config.spreadsheet_id,
            sheet_name=config.error_log_sheet,
        ),
        config.error_log_sheet,
        timezone=config.timezone,
    )
    return source, sender, error_log


def send_all_provider_links() -> None:
    """Entry point for scheduled runs: one pass with environment configuration."""
    config = load_config()
    source, sender, error_log = _build_live_collaborators(config)
    run_once(config, workbook_source=source, sender=sender, error_log=error_log)


def check_configuration(
    config: LinkSenderConfig,
    workbook_source: WorkbookSource,
    *,
    current_time: datetime | None = None,
) -> dict[str, object]:
    """Report configuration state and whether today's workbook can be found."""
    current_time = current_time or datetime.now(tz=config.tz)
    logger.info("ClickSend username: %s", config.clicksend_username or "NOT SET")
    logger.info("ClickSend API key: %s", "Set" if config.clicksend_api_key else "NOT SET")
    logger.info("Current time: %s", current_time.isoformat())
    logger.info("Time zone: %s", config.timezone)

    report: dict[str, object] = {
        "clicksend_username": config.clicksend_username,
        "clicksend_api_key_set": bool(config.clicksend_api_key),
        "timezone": config.timezone,
        "current_time": current_time.isoformat(),
        "workbook": None,
        "tab_count": 0,
    }

    workbook = workbook_source.find_todays_workbook(current_time.date())
    if workbook is None:
        logger.info("No appointment sheet found for today")
        return report

    tab_count = len(workbook.tabs())
    logger.info("Found appointment sheet: %s", workbook.name)
    logger.info("Number of tabs: %s", tab_count)
    report["workbook"] = workbook.name
    report["tab_count"] = tab_count
    return report
