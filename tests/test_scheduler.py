import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from scripts.errors import ConfigError
from scripts.scheduler import DailyTrigger, Scheduler

UTC = ZoneInfo("UTC")
NEW_YORK = ZoneInfo("America/New_York")


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def test_from_cron_daily_expression():
    trigger = DailyTrigger.from_cron("0 9 * * *")
    assert (trigger.hour, trigger.minute, trigger.tz) == (9, 0, None)
    assert DailyTrigger.from_cron("@daily", UTC) == DailyTrigger(0, 0, UTC)


@pytest.mark.parametrize("expr", ["0 9 * *", "0 9 1 * *", "*/5 * * * *", "0 24 * * *", "60 9 * * *", "0 9 * * MON"])
def test_from_cron_rejects_non_daily(expr):
    with pytest.raises(ConfigError):
        DailyTrigger.from_cron(expr)


def test_next_after_same_day_and_next_day():
    trigger = DailyTrigger(9, 0, UTC)

    assert trigger.next_after(_utc(2026, 10, 18, 8, 0)) == _utc(2026, 10, 18, 9, 0)
    assert trigger.next_after(_utc(2026, 10, 18, 9, 0)) == _utc(2026, 10, 19, 9, 0)
    assert trigger.next_after(_utc(2026, 10, 18, 23, 59)) == _utc(2026, 10, 19, 9, 0)


def test_next_after_uses_trigger_timezone():
    trigger = DailyTrigger(9, 0, NEW_YORK)
    # 08:00 EDT
    nxt = trigger.next_after(_utc(2026, 10, 18, 12, 0))
    assert nxt == _utc(2026, 10, 18, 13, 0)


def test_next_after_across_dst_change():
    trigger = DailyTrigger(9, 0, NEW_YORK)
    # 10:00 EDT on Oct 31; clocks fall back overnight
    nxt = trigger.next_after(_utc(2026, 10, 31, 14, 0))
    assert nxt == _utc(2026, 11, 1, 14, 0)
    assert nxt.astimezone(NEW_YORK).hour == 9


def test_runs_immediately_then_stops():
    calls = []
    scheduler = None

    def job():
        calls.append("run")
        scheduler.stop()

    scheduler = Scheduler(job, DailyTrigger(9, 0, UTC))
    scheduler.run()

    assert calls == ["run"]


def test_runs_again_at_trigger_time():
    times = iter([_utc(2026, 10, 18, 8, 0), _utc(2026, 10, 18, 9, 0, 1)])
    calls = []
    scheduler = None

    def job():
        calls.append(len(calls))
        if len(calls) == 2:
            scheduler.stop()

    scheduler = Scheduler(job, DailyTrigger(9, 0, UTC), clock=lambda: next(times))
    scheduler.run()

    assert calls == [0, 1]


def test_crashing_job_does_not_stop_schedule():
    times = iter([_utc(2026, 10, 18, 8, 0), _utc(2026, 10, 18, 9, 0)])
    calls = []
    scheduler = None

    def job():
        calls.append("run")
        if len(calls) == 1:
            raise RuntimeError("boom")
        scheduler.stop()

    scheduler = Scheduler(job, DailyTrigger(9, 0, UTC), clock=lambda: next(times))
    scheduler.run()

    assert calls == ["run", "run"]


def test_stop_interrupts_wait():
    calls = []
    scheduler = Scheduler(lambda: calls.append("run"), DailyTrigger(9, 0, UTC))
    timer = threading.Timer(0.05, scheduler.stop)
    timer.start()
    try:
        scheduler.run()
    finally:
        timer.cancel()

    assert calls == ["run"]
    assert scheduler.stopped


def test_already_stopped_never_runs():
    event = threading.Event()
    event.set()
    calls = []

    Scheduler(lambda: calls.append("run"), DailyTrigger(9, 0, UTC), stop_event=event).run()

    assert calls == []
