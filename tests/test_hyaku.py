import csv
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import requests

from botplugins.hyaku import (
    BED,
    CSV_NAME,
    Poem,
    download_csv,
    load_poems,
    poem_image_urls,
)

HEADER = ["番号", "歌人", "上の句", "下の句", "上の句ひらがな", "下の句ひらがな"]


def _write(path, rows):
    with open(path, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        writer.writerows(rows)


def _rows(count=100):
    return [[str(i), f"poet{i}", f"up{i}", f"low{i}", f"uk{i}", f"lk{i}"] for i in range(1, count + 1)]


def test_load_poems_reads_all_in_order(tmp_path):
    path = tmp_path / "hyaku.csv"
    _write(path, _rows())
    poems = load_poems(path)
    assert len(poems) == 100
    assert [p.number for p in poems] == [str(i) for i in range(1, 101)]
    assert poems[41].poet == "poet42"


def test_poem_string_layout():
    poem = Poem("1", "天智天皇", "秋の田の", "わが衣手は", "あきのたの", "わがころもでは")
    assert str(poem) == (
        "●番号：1\n◉歌人：天智天皇\n○上の句：秋の田の\n○下の句：わが衣手は\n"
        "◎上の句ひらがな：あきのたの\n◎下の句ひらがな：わがころもでは\n"
    )


def test_load_poems_rejects_wrong_count(tmp_path):
    path = tmp_path / "hyaku.csv"
    _write(path, _rows(99))
    with pytest.raises(ValueError, match="invalid csvfile"):
        load_poems(path)


def test_load_poems_rejects_out_of_order(tmp_path):
    rows = _rows()
    rows[0][0], rows[1][0] = rows[1][0], rows[0][0]
    path = tmp_path / "hyaku.csv"
    _write(path, rows)
    with pytest.raises(ValueError):
        load_poems(path)


def test_load_poems_rejects_bad_number(tmp_path):
    rows = _rows()
    rows[5][0] = "six"
    path = tmp_path / "hyaku.csv"
    _write(path, rows)
    with pytest.raises(ValueError):
        load_poems(path)


def test_image_urls_are_zero_padded():
    jpg, png = poem_image_urls(7)
    assert jpg == BED + "img/007.jpg"
    assert png == BED + "img/007.png"


@pytest.mark.parametrize("number", [0, 101, -3])
def test_image_urls_out_of_range(number):
    with pytest.raises(ValueError, match="超出范围"):
        poem_image_urls(number)


def test_download_writes_file(tmp_path):
    target = tmp_path / "sub" / "hyaku.csv"
    response = SimpleNamespace(content=b"a,b\n", raise_for_status=lambda: None)
    with patch("requests.get", return_value=response) as get:
        result = download_csv(target)
    assert result == target
    assert target.read_bytes() == b"a,b\n"
    assert get.call_args.args[0] == BED + CSV_NAME


def test_download_skips_existing_file(tmp_path):
    target = tmp_path / "hyaku.csv"
    target.write_bytes(b"kept")
    with patch("requests.get") as get:
        download_csv(target)
    assert get.call_count == 0
    assert target.read_bytes() == b"kept"


def test_download_failure_leaves_no_file(tmp_path):
    target = tmp_path / "hyaku.csv"

    def fail():
        raise requests.HTTPError("404")

    response = SimpleNamespace(content=b"", raise_for_status=fail)
    with patch("requests.get", return_value=response):
        with pytest.raises(requests.HTTPError):
            download_csv(target)
    assert not target.exists()