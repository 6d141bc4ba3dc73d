from datetime import datetime

import pytest

from botplugins.clock import Clock, CronSchedule
from botplugins.timer import get_filled_cron_timer, get_filled_timer


def test_cron_step_matches_and_next():
    schedule = CronSchedule("*/15 * * * *")
    assert schedule.matches(datetime(2022, 1, 1, 0, 30))
    assert not schedule.matches(datetime(2022, 1, 1, 0, 31))
    assert schedule.next_after(datetime(2022, 1, 1, 0, 31)) == datetime(2022, 1, 1, 0, 45)


def test_cron_next_is_strictly_after():
    schedule = CronSchedule("30 8 * * *")
    assert schedule.next_after(datetime(2022, 3, 5, 8, 30)) == datetime(2022, 3, 6, 8, 30)


def test_cron_yearly_rolls_over():
    schedule = CronSchedule("0 0 1 1 *")
    assert schedule.next_after(datetime(2022, 3, 5, 12, 0)) == datetime(2023, 1, 1, 0, 0)


def test_cron_descriptor_equals_expression():
    moment = datetime(2022, 6, 7, 13, 14)
    assert CronSchedule("@daily").next_after(moment) == CronSchedule("0 0 * * *").next_after(moment)


def test_cron_day_of_month_or_weekday():
    schedule = CronSchedule("0 0 13 * fri")
    assert schedule.matches(datetime(2022, 5, 6, 0, 0))  # a Friday
    assert schedule.matches(datetime(2022, 5, 13, 0, 0))
    assert not schedule.matches(datetime(2022, 5, 7, 0, 0))


def test_cron_sunday_as_seven():
    assert CronSchedule("0 0 * * 7").matches(datetime(2022, 5, 8, 0, 0))


@pytest.mark.parametrize("expression", ["", "* * * *", "61 * * * *", "*/0 * * * *", "5-1 * * * *", "@often"])
def test_cron_invalid(expression):
    with pytest.raises(ValueError):
        CronSchedule(expression)


def test_cron_impossible_date():
    with pytest.raises(ValueError):
        CronSchedule("0 0 30 2 *").next_after(datetime(2022, 1, 1))


def test_clock_db_only_then_reload(tmp_path):
    db = tmp_path / "test.db"
    with Clock(db, lambda t: None) as clock:
        clock.add_timer_into_db(get_filled_timer(["", "12", "-1", "12", "0", "", "test"], 0, 0, False))
        assert clock.list_timers(0) == []
    with Clock(db, lambda t: None) as clock:
        assert clock.list_timers(0) == ["12月1周12:0\n"]


def test_register_date_timer(tmp_path):
    with Clock(tmp_path / "c.db", lambda t: None) as clock:
        timer = get_filled_timer(["", "每", "每周", "8", "30", "", "x"], 0, 7, False)
        assert clock.register_timer(timer, save=True)
        assert timer.id == timer.timer_id()
        assert clock.get_timer(timer.id) is timer
        assert clock.list_timers(7) == ["每月每周8:30\n"]
        assert clock.list_timers(8) == []


def test_register_and_cancel_cron(tmp_path):
    with Clock(tmp_path / "c.db", lambda t: None) as clock:
        timer = get_filled_cron_timer("0 0 1 1 *", "hello", "", 1, 5)
        assert clock.register_timer(timer, save=True)
        assert clock.list_timers(5) == ["0 0 1 1 *\n"]
        assert clock.cancel_timer(timer.id)
        assert clock.get_timer(timer.id) is None
        assert not clock.cancel_timer(timer.id)
    with Clock(tmp_path / "c.db", lambda t: None) as clock:
        assert clock.list_timers(5) == []


def test_register_bad_cron(tmp_path):
    with Clock(tmp_path / "c.db", lambda t: None) as clock:
        timer = get_filled_cron_timer("not a cron", "hello", "", 1, 5)
        assert not clock.register_timer(timer, save=True)
        assert timer.alert != "hello"
        assert clock.get_timer(timer.id) is None


def test_reregister_disables_old(tmp_path):
    with Clock(tmp_path / "c.db", lambda t: None) as clock:
        first = get_filled_timer(["", "12", "-1", "12", "0", "", "a"], 0, 3, False)
        second = get_filled_timer(["", "12", "-1", "12", "0", "", "b"], 0, 3, False)
        clock.register_timer(first, save=True)
        clock.register_timer(second, save=True)
        assert not first.en
        assert clock.get_timer(second.id) is second