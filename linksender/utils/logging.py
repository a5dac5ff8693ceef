"""Structured JSON logging helpers for row-level send events."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any


class JsonFormatter(logging.Formatter):
    """Format log records as JSON with the row event fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "workflow_step": getattr(record, "workflow_step", "unknown"),
            "provider_tab": getattr(record, "provider_tab", None),
            "patient_name": mask_patient_name(getattr(record, "patient_name", "")),
            "row": getattr(record, "row", None),
            "status": getattr(record, "status", record.levelname.lower()),
        }

        error_code = getattr(record, "error_code", None)
        error_message = getattr(record, "error_message", None)
        if error_code is not None:
            payload["error_code"] = error_code
        if error_message is not None:
            payload["error_message"] = error_message

        message = record.getMessage()
        if message:
            payload["message"] = message

        return json.dumps(payload, ensure_ascii=False)


def mask_patient_name(name: str) -> str:
    """Mask a patient name down to its first letter."""
    if not name:
        return ""

    visible = 1
    if len(name) <= visible:
        return "*"
    return f"{name[:visible]}{'*' * (len(name) - visible)}"


def get_structured_logger(name: str = "linksender.rows") -> logging.Logger:
    """Return a logger configured to emit JSON records."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_row_event(
    logger: logging.Logger,
    *,
    workflow_step: str,
    provider_tab: str,
    patient_name: str,
    row: int | None,
    status: str,
    message: str = "",
    error_code: str | None = None,
    error_message: str | None = None,
) -> None:
    """Emit a structured event for one appointment row."""
    extra: dict[str, Any] = {
        "workflow_step": workflow_step,
        "provider_tab": provider_tab,
        "patient_name": patient_name,
        "row": row,
        "status": status,
        "error_code": error_code,
        "error_message": error_message,
    }
    level = logging.WARNING if status == "failed" else logging.INFO
    logger.log(level, message, extra=extra)
