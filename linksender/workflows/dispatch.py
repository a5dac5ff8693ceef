"""Per-tab send workflow: evaluate, send, stamp the Link Sent cell, log failures."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from linksender.config import LinkSenderConfig
from linksender.domain.models import (
    AppointmentRow,
    ErrorLogSink,
    ProviderTab,
    SendOutcome,
    SmsSender,
    TabResult,
)
from linksender.orchestration.eligibility import evaluate_tab
from linksender.orchestration.send import build_message_body
from linksender.utils.logging import get_structured_logger, log_row_event
from linksender.utils.phone import is_blank
from linksender.utils.timeparse import format_send_timestamp

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

WORKFLOW_STEP = "telehealth_link_send"
NOT_AVAILABLE = "N/A"


def append_send_stamp(existing: object, stamp: str) -> str:
    """Append a send stamp to a Link Sent cell, keeping earlier stamps."""
    if is_blank(existing):
        return stamp
    return f"{existing} {stamp}"


def _failure(tab: ProviderTab, row: AppointmentRow, error: str) -> SendOutcome:
    return SendOutcome(
        success=False,
        provider_tab=tab.name,
        patient_name=str(row.patient_name),
        appointment_time=row.raw_time,
        phone=row.phone,
        error=error,
        row_number=row.row_number,
    )


def _send_row(
    tab: ProviderTab,
    row: AppointmentRow,
    *,
    body: str,
    sender: SmsSender,
    clock: Clock,
) -> SendOutcome:
    try:
        sms = sender.send(str(row.phone), body)
    except Exception as exc:  # sender faults are recorded per row
        return _failure(tab, row, f"{type(exc).__name__}: {exc}")

    if not sms.success:
        return _failure(tab, row, sms.error or "Unknown send error")

    stamp = format_send_timestamp(clock())
    tab.write_link_sent(row, append_send_stamp(row.link_sent, stamp))
    return SendOutcome(
        success=True,
        provider_tab=tab.name,
        patient_name=str(row.patient_name),
        appointment_time=row.raw_time,
        phone=row.phone,
        row_number=row.row_number,
    )


def dispatch_tab(
    tab: ProviderTab,
    *,
    sender: SmsSender | None,
    error_log: ErrorLogSink,
    current_time: datetime,
    config: LinkSenderConfig,
    clock: Clock | None = None,
) -> TabResult:
    """Send links for every due row of a tab.

    Send failures are recorded and the loop moves on to the next row. Any
    other fault ends this tab only.
    """
    clock = clock or (lambda: datetime.now(tz=current_time.tzinfo))
    row_logger = get_structured_logger()
    result = TabResult(tab_name=tab.name)

    try:
        plan = evaluate_tab(tab, current_time, lead_minutes=config.lead_minutes)
        result.status = plan.status if not plan.ready else "processed"
        if not plan.ready:
            return result

        for skip in plan.skips:
            result.skipped[skip.reason] += 1
            log_row_event(
                row_logger,
                workflow_step=WORKFLOW_STEP,
                provider_tab=tab.name,
                patient_name=str(skip.row.patient_name),
                row=skip.row.row_number,
                status="skipped",
                message=f"Skipped: {skip.reason}" + (f" ({skip.detail})" if skip.detail else ""),
            )

        body = build_message_body(plan.provider_token, config.link_host)
        for row in plan.candidates:
            if config.dry_run or sender is None:
                result.skipped["dry_run"] += 1
                log_row_event(
                    row_logger,
                    workflow_step=WORKFLOW_STEP,
                    provider_tab=tab.name,
                    patient_name=str(row.patient_name),
                    row=row.row_number,
                    status="skipped",
                    message="Dry-run: would send link",
                )
                continue

            outcome = _send_row(tab, row, body=body, sender=sender, clock=clock)
            result.outcomes.append(outcome)
            if outcome.success:
                result.sent_count += 1
                log_row_event(
                    row_logger,
                    workflow_step=WORKFLOW_STEP,
                    provider_tab=tab.name,
                    patient_name=outcome.patient_name,
                    row=row.row_number,
                    status="sent",
                    message=f"Link sent, marker now {row.link_sent!s}",
                )
                continue

            error_log.record(outcome)
            log_row_event(
                row_logger,
                workflow_step=WORKFLOW_STEP,
                provider_tab=tab.name,
                patient_name=outcome.patient_name,
                row=row.row_number,
                status="failed",
                error_code="SEND_FAILED",
                error_message=outcome.error,
                message="Send failed",
            )
    except Exception as exc:  # a broken tab must not stop the remaining tabs
        logger.exception("Error processing tab %s", tab.name)
        result.status = "failed"
        outcome = SendOutcome(
            success=False,
            provider_tab=tab.name,
            patient_name=NOT_AVAILABLE,
            appointment_time=NOT_AVAILABLE,
            phone=NOT_AVAILABLE,
            error=str(exc),
        )
        result.outcomes.append(outcome)
        error_log.record(outcome)

    return result
