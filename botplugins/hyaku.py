"""The Ogura Hyakunin Isshu: one hundred poems loaded from a CSV table."""

from __future__ import annotations

import csv
import re
from dataclasses import astuple, dataclass
from pathlib import Path
from typing import Union

import requests

BED = "https://gitcode.net/u011570312/OguraHyakuninIsshu/-/raw/master/"
CSV_NAME = "小倉百人一首.csv"
POEM_COUNT = 100

_LABELS = (
    ("●", "番号"),
    ("◉", "歌人"),
    ("○", "上の句"),
    ("○", "下の句"),
    ("◎", "上の句ひらがな"),
    ("◎", "下の句ひらがな"),
)
_ATOI = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class Poem:
    """One poem: its number, poet, both halves and their kana readings."""

    number: str
    poet: str
    upper: str
    lower: str
    upper_kana: str
    lower_kana: str

    def __str__(self) -> str:
        return "".join(
            f"{mark}{label}：{value}\n"
            for (mark, label), value in zip(_LABELS, astuple(self))
        )


def load_poems(path: Union[str, Path]) -> list[Poem]:
    """Read the poem table, skipping its title row.

    The table must hold exactly one hundred rows of six fields, numbered
    1 to 100 in order; otherwise ValueError is raised.
    """
    with open(path, newline="", encoding="utf-8") as handle:
        records = list(csv.reader(handle))[1:]
    if len(records) != POEM_COUNT:
        raise ValueError("invalid csvfile")
    poems = []
    for expected, record in enumerate(records, start=1):
        if len(record) != len(_LABELS):
            raise ValueError("invalid csvfile")
        if not _ATOI.fullmatch(record[0]):
            raise ValueError(f"invalid poem number {record[0]!r}")
        if int(record[0]) != expected:
            raise ValueError("invalid csvfile")
        poems.append(Poem(*record))
    return poems


def poem_image_urls(number: int) -> tuple[str, str]:
    """The (illustration, card) image URLs of poem ``number`` (1-100)."""
    if number < 1 or number > POEM_COUNT:
        raise ValueError("超出范围")
    return f"{BED}img/{number:03d}.jpg", f"{BED}img/{number:03d}.png"


def download_csv(path: Union[str, Path]) -> Path:
    """Fetch the poem table to ``path`` unless it is already there."""
    target = Path(path)
    if target.exists():
        return target
    try:
        response = requests.get(BED + CSV_NAME, timeout=60)
        response.raise_for_status()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(response.content)
    except (requests.RequestException, OSError):
        target.unlink(missing_ok=True)
        raise
    return target