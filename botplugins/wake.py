"""When a date-based timer should next wake, and whether it fires now."""

from __future__ import annotations

from datetime import datetime, timedelta

from .timer import Timer

_HOUR = timedelta(hours=1)


def _weekday(moment: datetime) -> int:
    """Weekday with Sunday = 0."""
    return (moment.weekday() + 1) % 7


def _make(year, month, day, hour, minute, second, microsecond, tzinfo=None) -> datetime:
    """Build a datetime, letting out-of-range fields roll over."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1, tzinfo=tzinfo) + timedelta(
        days=day - 1, hours=hour, minutes=minute, seconds=second, microseconds=microsecond
    )


def _add_date(moment: datetime, years: int = 0, months: int = 0, days: int = 0) -> datetime:
    return _make(
        moment.year + years,
        moment.month + months,
        moment.day + days,
        moment.hour,
        moment.minute,
        moment.second,
        moment.microsecond,
        moment.tzinfo,
    )


def first_weekday(date: datetime, weekday: int) -> datetime:
    """The first day of ``date``'s month falling on ``weekday`` (Sunday = 0)."""
    if not 0 <= weekday <= 6:
        raise ValueError(f"invalid weekday {weekday}")
    day = _add_date(date, days=1 - date.day)
    while _weekday(day) != weekday:
        day = _add_date(day, days=1)
    return day


def next_wake_time(timer: Timer, now: datetime) -> datetime:
    """The moment a date-based timer should next wake up, always after ``now``."""
    m, d, h, mn, w = timer.month, timer.day, timer.hour, timer.minute, timer.week

    unit = timedelta(0)
    if mn >= 0:
        if h < 0:
            unit = _HOUR
        elif d < 0 or w < 0:
            unit = timedelta(days=1)
        elif d == 0 and w >= 0:
            delta = timedelta(days=w - _weekday(now))
            if delta < timedelta(0):
                delta = timedelta(days=7)
            unit += delta
    else:
        unit = timedelta(minutes=1)

    stable = 0
    if mn < 0:
        mn = now.minute
    if h < 0:
        h = now.hour
    else:
        stable |= 0x8
    if d < 0:
        d = now.day
    elif d > 0:
        stable |= 0x4
    else:
        d = now.day
        if w >= 0:
            stable |= 0x2
    if m < 0:
        m = now.month
    else:
        stable |= 0x1

    if stable == 0b0101:
        if timer.day != now.day or timer.month != now.month:
            h = 0
    elif stable == 0b1001:
        if timer.month != now.month:
            d = 0
    elif stable == 0b0001:
        if timer.month != now.month:
            d = 0
            h = 0

    date = _make(now.year, m, d, h, mn, now.second, now.microsecond, now.tzinfo)
    if unit > timedelta(0):
        date += unit

    if date <= now:
        if timer.month < 0:
            if timer.day > 0 or (timer.day == 0 and timer.week >= 0):
                date = _add_date(date, months=1)
            elif timer.day < 0 or timer.week < 0:
                if timer.hour > 0:
                    date = _add_date(date, days=1)
                elif timer.minute > 0:
                    date += _HOUR
        else:
            date = _add_date(date, years=1)

    if stable & 0x8 and date.hour != h:
        if stable & 0x4 == 0:
            date = _add_date(date, days=1) - _HOUR
        elif stable & 0x2 == 0:
            date = _add_date(date, days=7) - _HOUR
        else:
            date = _add_date(date, years=1) - _HOUR

    if stable & 0x4 and date.day != d:
        date = _add_date(date, years=1, days=-1)

    if stable & 0x2 and _weekday(date) != w:
        date = first_weekday(_add_date(date, years=1), w)

    if date <= now:
        date = now + timedelta(minutes=1)
    return date


def _hour_minute_match(timer: Timer, now: datetime) -> bool:
    return (timer.hour < 0 or timer.hour == now.hour) and (
        timer.minute < 0 or timer.minute == now.minute
    )


def should_fire(timer: Timer, now: datetime) -> bool:
    """Whether an enabled date-based timer is due at ``now``."""
    if not timer.en:
        return False
    if timer.month >= 0 and timer.month != now.month:
        return False
    if timer.day < 0 or timer.day == now.day:
        return _hour_minute_match(timer, now)
    if timer.day == 0 and (timer.week < 0 or timer.week == _weekday(now)):
        return _hour_minute_match(timer, now)
    return False