import random

import pytest

from botplugins.manager_admin import (
    CommandError,
    ban_seconds,
    check_card,
    check_title,
    parse_cron_command,
    pick_lucky_member,
    unescape_forward,
)


def test_ban_minutes_pinned():
    assert ban_seconds("1", "分钟", False) == 60


def test_ban_units_relate():
    assert ban_seconds(1, "小时", False) == ban_seconds(60, "分钟", False)
    assert ban_seconds(1, "天", False) == ban_seconds(24, "小时", False)


def test_ban_english_units_only_when_enabled():
    assert ban_seconds(2, "h", True) == ban_seconds(120, "分钟", False)
    assert ban_seconds(2, "h", False) == ban_seconds(2, "分钟", False)
    assert ban_seconds(1, "days", True) == ban_seconds(1, "天", False)


def test_ban_is_capped():
    assert ban_seconds(100, "天", False) == ban_seconds(43199, "分钟", False)
    assert ban_seconds(43200, "分钟", False) == ban_seconds(43199, "分钟", False)


def test_ban_bad_amount_is_zero():
    assert ban_seconds("abc", "分钟", False) == ban_seconds(0, "分钟", False)


def test_unescape_forward():
    assert unescape_forward("&#91;CQ:face,id=1&#93;") == "[CQ:face,id=1]"


def test_check_card_length():
    assert check_card("a" * 60) == "a" * 60
    with pytest.raises(CommandError, match="名字太长啦！"):
        check_card("a" * 61)
    with pytest.raises(CommandError):
        check_card("名" * 21)


def test_check_title_length():
    assert check_title("头衔头衔头衔") == "头衔头衔头衔"
    with pytest.raises(CommandError, match="头衔太长啦！"):
        check_title("头衔头衔头衔头")


def test_parse_cron_with_url():
    groups = ["x", "0 8 * * *", "用http://img.example.com/a.png", "起床"]
    assert parse_cron_command(groups) == ("0 8 * * *", "起床", "http://img.example.com/a.png")


def test_parse_cron_without_url():
    assert parse_cron_command(["x", "0 8 * * *", "起床"]) == ("0 8 * * *", "起床", "")


def test_parse_cron_bad():
    with pytest.raises(CommandError, match="参数非法!"):
        parse_cron_command(["x", "y"])


def _member(uid, sent, card="", nickname=""):
    return {"user_id": uid, "last_sent_time": sent, "card": card, "nickname": nickname}


def test_pick_self_and_user():
    assert pick_lucky_member([_member(1, 5)], random.Random(0), 1, 2) == "幸运儿居然是我自己"
    assert pick_lucky_member([_member(2, 5)], random.Random(0), 1, 2) == "哎呀，就是你自己了"


def test_pick_card_then_nickname():
    assert pick_lucky_member([_member(9, 1, card="卡片", nickname="昵称")], random.Random(0), 1, 2) == "卡片 就是你啦！"
    assert pick_lucky_member([_member(9, 1, nickname="昵称")], random.Random(0), 1, 2) == "昵称 就是你啦！"


def test_pick_only_recent_ten():
    members = [_member(100 + i, i, nickname=f"n{i}") for i in range(15)]
    stale = {f"n{i} 就是你啦！" for i in range(5)}
    picks = {pick_lucky_member(members, random.Random(seed), 1, 2) for seed in range(200)}
    assert picks.isdisjoint(stale)
    assert len(picks) <= 10


def test_pick_empty():
    with pytest.raises(CommandError):
        pick_lucky_member([], random.Random(0), 1, 2)