from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from conftest import TZ, FakeErrorLog, FakeTab, FakeWorkbook, FakeWorkbookSource, make_grid
from linksender.config import ConfigError, LinkSenderConfig, load_config
from linksender.jobs import scheduler
from linksender.jobs.tasks import check_configuration, find_stop_tab, run_once


def _provider_tab(name: str) -> FakeTab:
    return FakeTab(name, make_grid([f"{name} patient", "9:00 AM", "T", "5551112222", "", "", "", ""]))


def test_resolve_work_days_defaults_to_weekdays() -> None:
    assert scheduler.resolve_work_days({}) == "mon,tue,wed,thu,fri"


def test_resolve_work_days_uses_env_and_filters_invalid() -> None:
    assert scheduler.resolve_work_days({"LINKSENDER_WORK_DAYS": "Tue,wed,garbage,thu"}) == "tue,wed,thu"


def test_load_config_reads_environment() -> None:
    config = load_config(
        {
            "LINKSENDER_SPREADSHEET_ID": "sheet-123",
            "LINKSENDER_GOOGLE_CREDENTIALS_PATH": "/secrets/sa.json",
            "CLICKSEND_USERNAME": "clinic",
            "CLICKSEND_API_KEY": "key",
            "LINKSENDER_LEAD_MINUTES": "10",
            "LINKSENDER_STOP_AT_TABS": "Therapist, Counseling ,,",
            "LINKSENDER_DRY_RUN": "true",
            "LINKSENDER_TIMEZONE": "America/New_York",
        }
    )

    assert config.spreadsheet_id == "sheet-123"
    assert config.credentials_path == Path("/secrets/sa.json")
    assert config.has_clicksend_credentials is True
    assert config.lead_minutes == 10
    assert config.stop_at_tabs == ("Therapist", "Counseling")
    assert config.dry_run is True
    assert config.tz.key == "America/New_York"
    assert config.error_log_sheet == "Messaging Errors"
    assert config.clicksend_api_url == "https://rest.clicksend.com/v3/sms/send"


def test_load_config_defaults() -> None:
    config = load_config({})

    assert config.lead_minutes == 5
    assert config.stop_at_tabs == ()
    assert config.dry_run is False
    assert config.has_clicksend_credentials is False
    assert config.link_host == "goldstandard.doxy.me"


@pytest.mark.parametrize(
    "env",
    [
        {"LINKSENDER_LEAD_MINUTES": "five"},
        {"LINKSENDER_LEAD_MINUTES": "-1"},
        {"LINKSENDER_TIMEZONE": "Mars/Olympus"},
        {"LINKSENDER_HTTP_TIMEOUT": "soon"},
    ],
)
def test_load_config_rejects_bad_values(env) -> None:
    with pytest.raises(ConfigError):
        load_config(env)


def test_build_trigger_fires_on_interval_within_hours() -> None:
    config = LinkSenderConfig(interval_minutes=15, active_hours="8-17", work_days="mon,tue")
    trigger = scheduler.build_trigger(config)

    next_fire = trigger.get_next_fire_time(None, datetime(2026, 3, 9, 7, 3, tzinfo=TZ))

    assert next_fire == datetime(2026, 3, 9, 8, 0, tzinfo=TZ)
    assert trigger.get_next_fire_time(None, datetime(2026, 3, 9, 8, 1, tzinfo=TZ)).minute == 15


def test_build_scheduler_registers_single_instance_job() -> None:
    built = scheduler.build_scheduler(LinkSenderConfig())

    job = built.get_job(scheduler.JOB_ID)
    assert job is not None
    assert job.max_instances == 1
    assert job.coalesce is True


def test_find_stop_tab_is_case_insensitive_substring() -> None:
    assert find_stop_tab("THERAPIST - Kim", ("therapist",)) == "therapist"
    assert find_stop_tab("Dr. Lee", ("therapist",)) is None
    assert find_stop_tab("Dr. Lee", ()) is None


def test_run_once_stops_at_stop_tab(now, sender, error_log) -> None:
    tabs = [_provider_tab("A"), _provider_tab("B"), _provider_tab("StopMarker"), _provider_tab("C")]
    config = LinkSenderConfig(stop_at_tabs=("StopMarker",))

    summary = run_once(
        config,
        workbook_source=FakeWorkbookSource(FakeWorkbook("3-9-2026 appointments", tabs)),
        sender=sender,
        error_log=error_log,
        current_time=now,
    )

    assert summary.tabs_processed == 2
    assert summary.messages_sent == 2
    assert summary.stopped_at == "StopMarker"
    assert list(summary.tab_statuses) == ["A", "B"]
    assert tabs[2].reads == 0
    assert tabs[3].reads == 0


def test_run_once_without_workbook_returns_zero_counts(config, now, sender, error_log) -> None:
    source = FakeWorkbookSource(None)

    summary = run_once(config, workbook_source=source, sender=sender, error_log=error_log, current_time=now)

    assert source.lookups == [now.date()]
    assert (summary.tabs_processed, summary.messages_sent) == (0, 0)
    assert error_log.entries == []


def test_run_once_records_system_failure(config, now, sender) -> None:
    class ExplodingSource:
        def find_todays_workbook(self, today):
            raise RuntimeError("drive unavailable")

    error_log = FakeErrorLog()
    summary = run_once(config, workbook_source=ExplodingSource(), sender=sender, error_log=error_log, current_time=now)

    assert summary.tabs_processed == 0
    assert len(error_log.entries) == 1
    assert error_log.entries[0].provider_tab == "System"
    assert error_log.entries[0].error == "drive unavailable"


def test_run_once_continues_after_unreadable_tab(config, now, sender, error_log) -> None:
    class UnreadableTab(FakeTab):
        def read_grid(self):
            raise TimeoutError("read timed out")

    tabs = [UnreadableTab("Broken"), _provider_tab("Lee")]

    summary = run_once(
        config,
        workbook_source=FakeWorkbookSource(FakeWorkbook("wb", tabs)),
        sender=sender,
        error_log=error_log,
        current_time=now,
    )

    assert summary.tabs_processed == 2
    assert summary.messages_sent == 1
    assert summary.tab_statuses == {"Broken": "failed", "Lee": "processed"}
    assert error_log.entries[0].provider_tab == "Broken"


def test_check_configuration_reports_workbook(config, now) -> None:
    source = FakeWorkbookSource(FakeWorkbook("3-9-2026 appointment", [_provider_tab("A"), _provider_tab("B")]))

    report = check_configuration(config, source, current_time=now)

    assert report["workbook"] == "3-9-2026 appointment"
    assert report["tab_count"] == 2
    assert report["clicksend_api_key_set"] is False
