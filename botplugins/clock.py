"""A clock that stores reminder timers and fires them on schedule."""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from .timer import Timer
from .wake import next_wake_time, should_fire

log = logging.getLogger(__name__)

_MONTH_NAMES = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}
_DAY_NAMES = {
    name: number
    for number, name in enumerate(("sun", "mon", "tue", "wed", "thu", "fri", "sat"))
}
_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}
_SEARCH_LIMIT = timedelta(days=366 * 5)
_MINUTE = timedelta(minutes=1)


def _parse_value(text: str, names: Optional[dict]) -> int:
    lowered = text.lower()
    if names and lowered in names:
        return names[lowered]
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"failed to parse int from {text!r}") from None


def _parse_field(text: str, low: int, high: int, names: Optional[dict]) -> tuple[set[int], bool]:
    values: set[int] = set()
    star = False
    for part in text.split(","):
        span, slash, step_text = part.partition("/")
        step = 1
        if slash:
            step = _parse_value(step_text, None)
            if step <= 0:
                raise ValueError(f"step of range should be a positive number: {part!r}")
        if span in ("*", "?"):
            start, end = low, high
            if step == 1:
                star = True
        elif "-" in span:
            first, _, last = span.partition("-")
            start, end = _parse_value(first, names), _parse_value(last, names)
        else:
            start = _parse_value(span, names)
            end = high if slash else start
        if start < low or end > high:
            raise ValueError(f"value out of range ({low}-{high}): {part!r}")
        if start > end:
            raise ValueError(f"beginning of range after end: {part!r}")
        values.update(range(start, end + 1, step))
    return values, star


class CronSchedule:
    """A five-field cron expression (minute hour day-of-month month day-of-week)."""

    def __init__(self, expression: str) -> None:
        self.expression = expression
        spec = expression.strip()
        spec = _DESCRIPTORS.get(spec.lower(), spec) if spec.startswith("@") else spec
        if spec.startswith("@"):
            raise ValueError(f"unrecognized descriptor: {expression!r}")
        fields = spec.split()
        if len(fields) != 5:
            raise ValueError(f"expected exactly 5 fields, found {len(fields)}: {expression!r}")
        self._minutes, _ = _parse_field(fields[0], 0, 59, None)
        self._hours, _ = _parse_field(fields[1], 0, 23, None)
        self._days, self._dom_star = _parse_field(fields[2], 1, 31, None)
        self._months, _ = _parse_field(fields[3], 1, 12, _MONTH_NAMES)
        weekdays, self._dow_star = _parse_field(fields[4], 0, 7, _DAY_NAMES)
        self._weekdays = {day % 7 for day in weekdays}

    def _day_matches(self, moment: datetime) -> bool:
        dom_ok = moment.day in self._days
        dow_ok = (moment.weekday() + 1) % 7 in self._weekdays
        if self._dom_star or self._dow_star:
            return dom_ok and dow_ok
        return dom_ok or dow_ok

    def matches(self, moment: datetime) -> bool:
        """Whether the minute containing ``moment`` is scheduled."""
        return (
            moment.minute in self._minutes
            and moment.hour in self._hours
            and moment.month in self._months
            and self._day_matches(moment)
        )

    def next_after(self, moment: datetime) -> datetime:
        """The first scheduled minute strictly after ``moment``."""
        current = moment.replace(second=0, microsecond=0) + _MINUTE
        limit = moment + _SEARCH_LIMIT
        while current <= limit:
            if current.month not in self._months:
                year, month = divmod(current.month, 12)
                current = datetime(current.year + year, month + 1, 1, tzinfo=current.tzinfo)
            elif not self._day_matches(current):
                current = current.replace(hour=0, minute=0) + timedelta(days=1)
            elif current.hour not in self._hours:
                current = current.replace(minute=0) + timedelta(hours=1)
            elif current.minute not in self._minutes:
                current += _MINUTE
            else:
                return current
        raise ValueError(f"schedule never fires: {self.expression!r}")


class Clock:
    """Keeps timers in sqlite and in memory, running each on its own thread.

    ``sender`` is called with the timer whenever it fires.
    """

    def __init__(self, db_path, sender: Callable[[Timer], None]) -> None:
        self._sender = sender
        self._lock = threading.RLock()
        self._timers: dict[int, Timer] = {}
        self._jobs: dict[int, tuple[threading.Event, threading.Thread]] = {}
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS timer ("
                "id INTEGER PRIMARY KEY, emdwhm INTEGER, sid INTEGER, gid INTEGER, "
                "alert TEXT, cron TEXT, url TEXT)"
            )
            self._db.commit()
            rows = self._db.execute(
                "SELECT id, emdwhm, sid, gid, alert, cron, url FROM timer"
            ).fetchall()
        for row in rows:
            self.register_timer(Timer(*row), save=False)

    def __enter__(self) -> "Clock":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def register_timer(self, timer: Timer, save: bool) -> bool:
        """Start running ``timer``; with ``save`` its id is derived and it is stored.

        A bad cron expression leaves the timer unregistered, with the reason
        in ``timer.alert``.
        """
        if save:
            timer.id = timer.timer_id()
        key = timer.id
        existing = self.get_timer(key)
        if existing is not None and existing is not timer:
            existing.en = False
        log.info("registering timer %d", key)

        if timer.cron:
            try:
                schedule = CronSchedule(timer.cron)
            except ValueError as err:
                timer.alert = str(err)
                return False
            try:
                if save:
                    self.add_timer_into_db(timer)
                self.add_timer_into_map(timer)
            except sqlite3.Error as err:
                log.error("cannot store timer %d: %s", key, err)
                return False
            self._start(key, self._run_cron, timer, schedule)
            return True

        if save:
            try:
                self.add_timer_into_db(timer)
            except sqlite3.Error as err:
                log.error("cannot store timer %d: %s", key, err)
        self.add_timer_into_map(timer)
        self._start(key, self._run_date, timer)
        return True

    def _start(self, key: int, target, *args) -> None:
        stop = threading.Event()
        thread = threading.Thread(target=target, args=(*args, stop), daemon=True)
        with self._lock:
            old = self._jobs.pop(key, None)
            if old is not None:
                old[0].set()
            self._jobs[key] = (stop, thread)
        thread.start()

    def _fire(self, timer: Timer) -> None:
        try:
            self._sender(timer)
        except Exception:  # noqa: BLE001 - a failing send must not kill the timer
            log.exception("sending timer %d failed", timer.id)

    def _run_cron(self, timer: Timer, schedule: CronSchedule, stop: threading.Event) -> None:
        while not stop.is_set():
            now = datetime.now()
            wake = schedule.next_after(now)
            if stop.wait(max(0.0, (wake - now).total_seconds())):
                return
            self._fire(timer)

    def _run_date(self, timer: Timer, stop: threading.Event) -> None:
        while timer.en and not stop.is_set():
            now = datetime.now()
            wake = next_wake_time(timer, now)
            log.info("timer %08x sleeps %ds", timer.id, int((wake - now).total_seconds()))
            if stop.wait(max(0.0, (wake - datetime.now()).total_seconds())):
                return
            if should_fire(timer, datetime.now()):
                self._fire(timer)

    def cancel_timer(self, key: int) -> bool:
        """Stop and forget the timer ``key``; False if there is none."""
        timer = self.get_timer(key)
        if timer is None:
            return False
        if not timer.cron:
            timer.en = False
        with self._lock:
            job = self._jobs.pop(key, None)
            if job is not None:
                job[0].set()
            self._timers.pop(key, None)
            try:
                self._db.execute("DELETE FROM timer WHERE id = ?", (key,))
                self._db.commit()
            except sqlite3.Error as err:
                log.error("cannot delete timer %d: %s", key, err)
                return False
        return True

    def list_timers(self, group_id: int) -> list[str]:
        """Human-readable descriptions of the group's timers."""
        with self._lock:
            timers = [t for t in self._timers.values() if t.grp_id == group_id]
        listed = []
        for timer in timers:
            info = timer.info()
            text = info[info.index("]") + 1:] + "\n"
            text = text.replace("-1", "每")
            text = text.replace("月0日0周", "月周天")
            text = text.replace("月0日", "月")
            text = text.replace("日0周", "日")
            listed.append(text)
        return listed

    def get_timer(self, key: int) -> Optional[Timer]:
        """The timer stored under ``key``, or None."""
        with self._lock:
            return self._timers.get(key)

    def add_timer_into_db(self, timer: Timer) -> None:
        """Insert or replace the timer's row."""
        with self._lock:
            self._db.execute(
                "INSERT OR REPLACE INTO timer (id, emdwhm, sid, gid, alert, cron, url) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    timer.id,
                    timer.emdwhm,
                    timer.self_id,
                    timer.grp_id,
                    timer.alert,
                    timer.cron,
                    timer.url,
                ),
            )
            self._db.commit()

    def add_timer_into_map(self, timer: Timer) -> None:
        """Keep the timer in memory under its id."""
        with self._lock:
            self._timers[timer.id] = timer

    def close(self) -> None:
        """Stop every running timer and close the database."""
        with self._lock:
            jobs = list(self._jobs.values())
            self._jobs.clear()
        for stop, _ in jobs:
            stop.set()
        for _, thread in jobs:
            thread.join(timeout=1)
        with self._lock:
            self._db.close()