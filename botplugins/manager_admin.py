"""Pure helpers behind the group administration commands."""

from __future__ import annotations

import random
from typing import Mapping, Sequence

MAX_BAN_MINUTES = 43199  # a ban may last at most just under a month
MAX_CARD_BYTES = 60
MAX_TITLE_BYTES = 18

_MINUTE_UNITS = {"分钟"}
_HOUR_UNITS = {"小时"}
_DAY_UNITS = {"天"}
_EN_MINUTE_UNITS = {"min", "mins", "m"}
_EN_HOUR_UNITS = {"hour", "hours", "h"}
_EN_DAY_UNITS = {"day", "days", "d"}


class CommandError(Exception):
    """A command cannot be carried out; the message is shown to the user."""


def _to_int(amount) -> int:
    try:
        return int(amount)
    except (TypeError, ValueError):
        return 0


def ban_seconds(amount, unit: str, english: bool) -> int:
    """Ban length in seconds for ``amount`` of ``unit``, capped below a month.

    Unknown units count as minutes; with ``english`` the short English unit
    names are understood as well.
    """
    minutes = _to_int(amount)
    hours = _HOUR_UNITS | (_EN_HOUR_UNITS if english else set())
    days = _DAY_UNITS | (_EN_DAY_UNITS if english else set())
    if unit in hours:
        minutes *= 60
    elif unit in days:
        minutes *= 60 * 24
    if minutes >= MAX_BAN_MINUTES + 1:
        minutes = MAX_BAN_MINUTES
    return minutes * 60


def unescape_forward(content: str) -> str:
    """Undo the escaping of square brackets in forwarded CQ codes."""
    return content.replace("&#91;", "[").replace("&#93;", "]")


def check_card(card: str) -> str:
    """Return the group card, or raise if it is too long."""
    if len(card.encode("utf-8")) > MAX_CARD_BYTES:
        raise CommandError("名字太长啦！")
    return card


def check_title(title: str) -> str:
    """Return the special title, or raise if it is too long."""
    if len(title.encode("utf-8")) > MAX_TITLE_BYTES:
        raise CommandError("头衔太长啦！")
    return title


def parse_cron_command(groups: Sequence[str]) -> tuple[str, str, str]:
    """Split the regex groups of a cron reminder into (cron, alert, url)."""
    if len(groups) == 4:
        url = groups[2]
        if url.startswith("用"):
            url = url[1:]
        return groups[1], groups[3], url
    if len(groups) == 3:
        return groups[1], groups[2], ""
    raise CommandError("参数非法!")


def pick_lucky_member(
    members: Sequence[Mapping], rng: random.Random, self_id: int, user_id: int
) -> str:
    """Pick one of the ten most recently active members and announce them."""
    if not members:
        raise CommandError("群里没有成员")
    ordered = sorted(members, key=lambda m: int(m.get("last_sent_time", 0)))
    recent = ordered[max(0, len(ordered) - 10):]
    who = recent[rng.randrange(len(recent))]
    uid = int(who.get("user_id", 0))
    if uid == self_id:
        return "幸运儿居然是我自己"
    if uid == user_id:
        return "哎呀，就是你自己了"
    nick = who.get("card") or who.get("nickname", "")
    return f"{nick} 就是你啦！"