from datetime import date

import pytest

from botplugins.nativewife import WifeGallery, clean_wife_name


def test_clean_wife_name():
    assert clean_wife_name("添加wife 小明", "添加wife") == "小明"
    assert clean_wife_name("删除wife a/b\\c", "删除wife") == "abc"
    assert clean_wife_name("hello", "添加wife") == ""


def test_group_folder_uses_base36(tmp_path):
    gallery = WifeGallery(tmp_path)
    assert gallery.group_folder(36) == tmp_path / "10"


def test_draw_empty_raises(tmp_path):
    with pytest.raises(LookupError):
        WifeGallery(tmp_path).draw(1, "alice", date(2022, 9, 1))


def test_add_and_draw_single(tmp_path):
    gallery = WifeGallery(tmp_path)
    path = gallery.add(5, "yui", b"picture")
    assert path.read_bytes() == b"picture"
    assert gallery.draw(5, "alice", date(2022, 9, 1)) == ("yui", path)


def test_draw_is_stable_for_a_day(tmp_path):
    gallery = WifeGallery(tmp_path)
    names = {"a", "b", "c", "d"}
    for n in names:
        gallery.add(7, n, n.encode())
    first = gallery.draw(7, "alice", date(2022, 9, 1))
    second = gallery.draw(7, "alice", date(2022, 9, 1))
    assert first == second
    assert first[0] in names
    assert first[1].read_bytes() == first[0].encode()


def test_remove(tmp_path):
    gallery = WifeGallery(tmp_path)
    gallery.add(3, "x", b"1")
    gallery.remove(3, "x")
    with pytest.raises(LookupError):
        gallery.draw(3, "alice", date(2022, 1, 1))
    with pytest.raises(FileNotFoundError):
        gallery.remove(3, "x")


def test_add_empty_name_raises(tmp_path):
    with pytest.raises(ValueError):
        WifeGallery(tmp_path).add(1, "//", b"x")