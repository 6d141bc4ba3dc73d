"""Group reminder timers packed into a single integer field."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass

_FIELD_BITS = 0xFFFFFF
_EN_MASK = 0x800000
_DIGITS = "零一二三四五六七八九十"
_ATOI = re.compile(r"[+-]?[0-9]+")


def _packed(shift: int, width: int, doc: str) -> property:
    unset = (1 << width) - 1
    mask = unset << shift

    def getter(self: "Timer") -> int:
        value = (self.emdwhm & mask) >> shift
        return -1 if value == unset else value

    def setter(self: "Timer", value: int) -> None:
        self.emdwhm = ((value << shift) & mask) | (self.emdwhm & ~mask & _FIELD_BITS)

    return property(getter, setter, doc=doc)


@dataclass
class Timer:
    """A reminder; ``emdwhm`` packs enable, month, day, week, hour and minute.

    A value of -1 in any date field means "every". Weeks count from
    Sunday = 0.
    """

    id: int = 0
    emdwhm: int = 0
    self_id: int = 0
    grp_id: int = 0
    alert: str = ""
    cron: str = ""
    url: str = ""

    month = _packed(19, 4, "Month 1-12, or -1 for every month.")
    day = _packed(14, 5, "Day of month, 0 for weekly timers, or -1 for every day.")
    week = _packed(11, 3, "Weekday with Sunday = 0, or -1 for every week.")
    hour = _packed(6, 5, "Hour 0-23, or -1 for every hour.")
    minute = _packed(0, 6, "Minute 0-59, or -1 for every minute.")

    @property
    def en(self) -> bool:
        """Whether the timer is enabled."""
        return self.emdwhm & _EN_MASK != 0

    @en.setter
    def en(self, enabled: bool) -> None:
        if enabled:
            self.emdwhm |= _EN_MASK
        else:
            self.emdwhm &= 0x7FFFFF

    def info(self) -> str:
        """The normalised description the timer id is derived from."""
        if self.cron:
            return f"[{self.grp_id}]{self.cron}"
        return (
            f"[{self.grp_id}]{self.month}月{self.day}日{self.week}周"
            f"{self.hour}:{self.minute}"
        )

    def timer_id(self) -> int:
        """Little-endian uint32 from the first four bytes of the md5 of ``info``."""
        digest = hashlib.md5(self.info().encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "little")

    def message_segments(self) -> list[dict]:
        """Message segments sent to the group when the timer fires."""
        segments = [
            {"type": "at", "data": {"qq": "all"}},
            {"type": "text", "data": {"text": self.alert}},
        ]
        if self.url:
            segments.append({"type": "image", "data": {"file": self.url, "cache": "0"}})
        return segments


def chinese_char_to_int(char: str) -> int:
    """Map one Chinese numeral to 0-10; 日 and 天 mean Sunday (7)."""
    if char in ("日", "天"):
        return 7
    index = _DIGITS.find(char)
    return index if index >= 0 and len(char) == 1 else 0


def chinese_num_to_int(text: str) -> int:
    """Convert up to two Chinese numerals (or decimal digits) to an int.

    "每" alone means -1, "每二" means -2 and so on.
    """
    if not text:
        raise ValueError("empty number")
    first = text[0]
    if first.isdecimal():
        return int(text) if _ATOI.fullmatch(text) else 0
    if first == "每":
        return -chinese_char_to_int(text[1]) if len(text) == 2 else -1
    if len(text) == 1:
        return chinese_char_to_int(first)
    ten = chinese_char_to_int(first)
    if ten != 10:
        ten *= 10
    unit = chinese_char_to_int(text[1])
    if unit == 10:
        unit = 0
    return ten + unit


def _drop_middle_ten(text: str) -> str:
    return text[0] + text[2] if len(text) == 3 else text


def get_filled_cron_timer(croncmd: str, alert: str, img: str, botqq: int, gid: int) -> Timer:
    """Build a timer driven by a cron expression."""
    return Timer(alert=alert, cron=croncmd, url=img, self_id=botqq, grp_id=gid)


def get_filled_timer(date_strs, botqq: int, grp: int, match_date_only: bool) -> Timer:
    """Build a timer from the regex groups of a reminder command.

    On invalid input the returned timer is disabled and ``alert`` says why.
    """
    month_str, day_week_str, hour_str, minute_str = date_strs[1:5]
    timer = Timer()

    month = chinese_num_to_int(month_str)
    if (month != -1 and month <= 0) or month > 12:
        timer.alert = "月份非法！"
        return timer
    timer.month = month

    if len(day_week_str) == 4:
        day = chinese_num_to_int(day_week_str[0] + day_week_str[2])
        if (day != -1 and day <= 0) or day > 31:
            timer.alert = "日期非法1！"
            return timer
        timer.day = day
    elif day_week_str[-1] == "日":
        day = chinese_num_to_int(day_week_str[:-1])
        if (day != -1 and day <= 0) or day > 31:
            timer.alert = "日期非法2！"
            return timer
        timer.day = day
    elif day_week_str[0] == "每":
        timer.week = -1
    else:
        week = chinese_num_to_int(day_week_str[1:])
        if week == 7:
            week = 0
        if week < 0 or week > 6:
            timer.alert = "星期非法！"
            return timer
        timer.week = week

    hour = chinese_num_to_int(_drop_middle_ten(hour_str))
    if hour < -1 or hour > 23:
        timer.alert = "小时非法！"
        return timer
    timer.hour = hour

    minute = chinese_num_to_int(_drop_middle_ten(minute_str))
    if minute < -1 or minute > 59:
        timer.alert = "分钟非法！"
        return timer
    timer.minute = minute

    if not match_date_only:
        url = date_strs[5]
        if url:
            timer.url = url.encode("utf-8")[3:].decode("utf-8", errors="ignore")
            if not timer.url.startswith("http"):
                timer.url = "illegal"
                return timer
        timer.alert = date_strs[6]
        timer.en = True
    timer.self_id = botqq
    timer.grp_id = grp
    return timer