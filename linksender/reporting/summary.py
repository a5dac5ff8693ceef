"""Summary aggregation for a send run."""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from linksender.domain.models import RunSummary, TabResult


def compute_summary(
    tab_results: Iterable[TabResult],
    *,
    workbook_name: str | None = None,
    stopped_at: str | None = None,
) -> RunSummary:
    """Aggregate per-tab results into run totals."""
    results = list(tab_results)
    skipped: Counter[str] = Counter()
    for result in results:
        skipped.update(result.skipped)

    return RunSummary(
        workbook_name=workbook_name,
        tabs_processed=len(results),
        messages_sent=sum(result.sent_count for result in results),
        errors=sum(result.error_count for result in results),
        stopped_at=stopped_at,
        skipped=dict(skipped),
        tab_statuses={result.tab_name: result.status for result in results},
    )


def format_summary(summary: RunSummary) -> str:
    lines = [
        f"Workbook: {summary.workbook_name or 'none'}",
        f"Providers processed: {summary.tabs_processed}",
        f"SMS messages sent: {summary.messages_sent}",
        f"Errors: {summary.errors}",
    ]
    if summary.stopped_at:
        lines.append(f"Stopped at tab: {summary.stopped_at}")
    if summary.skipped:
        reasons = ", ".join(f"{reason}={count}" for reason, count in sorted(summary.skipped.items()))
        lines.append(f"Skipped: {reasons}")
    return "\n".join(lines)
