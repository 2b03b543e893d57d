"""Run a job once at startup and then once a day at a fixed wall-clock time."""

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from scripts.errors import ConfigError

logger = logging.getLogger(__name__)

_CRON_ALIASES = {"@daily": "0 0 * * *", "@midnight": "0 0 * * *"}


def _cron_number(raw: str, name: str, upper: int, expr: str) -> int:
    if not raw.isdigit() or int(raw) > upper:
        raise ConfigError(f"Unsupported {name} field {raw!r} in cron expression {expr!r}")
    return int(raw)


@dataclass(frozen=True)
class DailyTrigger:
    hour: int
    minute: int
    tz: ZoneInfo | None = None

    @classmethod
    def from_cron(cls, expr: str, tz: ZoneInfo | None = None) -> "DailyTrigger":
        """Parse a daily cron expression such as ``0 9 * * *``.

        Only a fixed minute and hour are supported; day-of-month, month and
        day-of-week must all be ``*``.
        """
        normalized = _CRON_ALIASES.get(expr.strip(), expr)
        fields = normalized.split()
        if len(fields) != 5:
            raise ConfigError(f"Cron expression must have five fields: {expr!r}")
        if any(f != "*" for f in fields[2:]):
            raise ConfigError(f"Only daily cron expressions (M H * * *) are supported: {expr!r}")
        minute = _cron_number(fields[0], "minute", 59, expr)
        hour = _cron_number(fields[1], "hour", 23, expr)
        return cls(hour=hour, minute=minute, tz=tz)

    def _at(self, day: date) -> datetime:
        at = time(self.hour, self.minute)
        if self.tz is not None:
            return datetime.combine(day, at, tzinfo=self.tz)
        # naive -> system local time, DST aware
        return datetime.combine(day, at).astimezone()

    def next_after(self, moment: datetime) -> datetime:
        """Return the first trigger time strictly after ``moment``."""
        local = moment.astimezone(self.tz) if self.tz is not None else moment.astimezone()
        for offset in range(3):
            candidate = self._at(local.date() + timedelta(days=offset))
            if candidate > local:
                return candidate
        raise AssertionError("no trigger found within three days")  # pragma: no cover


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Scheduler:
    """Single-threaded daily runner with a cooperative stop signal."""

    def __init__(self, job, trigger: DailyTrigger, *, clock=_utcnow, stop_event=None):
        self._job = job
        self._trigger = trigger
        self._clock = clock
        self._stop = stop_event or threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def _run_job(self) -> None:
        try:
            self._job()
        except Exception:
            logger.exception("Scheduled job crashed; waiting for the next trigger")

    def _sleep_until(self, when: datetime) -> bool:
        """Block until ``when``. Returns True if stopped while waiting."""
        while True:
            remaining = (when - self._clock()).total_seconds()
            if remaining <= 0:
                return False
            if self._stop.wait(remaining):
                return True

    def run(self) -> None:
        if self.stopped:
            return
        self._run_job()
        while not self.stopped:
            next_run = self._trigger.next_after(self._clock())
            logger.info("Next run scheduled for %s", next_run.isoformat())
            if self._sleep_until(next_run):
                break
            logger.info("Scheduled prompt generation started...")
            self._run_job()
        logger.info("Scheduler stopped")
