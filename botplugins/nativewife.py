"""Per-group galleries of "wife" pictures drawn once a day per member."""

from __future__ import annotations

import hashlib
import random
from datetime import date
from pathlib import Path
from typing import Union

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    sign = "-" if number < 0 else ""
    number = abs(number)
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_DIGITS[rem])
    return sign + "".join(reversed(digits))


def clean_wife_name(text: str, command: str) -> str:
    """The name following ``command`` in ``text``, without spaces or slashes.

    Returns an empty string when the command is absent.
    """
    compact = text.replace(" ", "")
    index = compact.rfind(command)
    if index < 0:
        return ""
    name = compact[index + len(command):]
    return name.replace("/", "").replace("\\", "")


class WifeGallery:
    """Pictures stored as files in one folder per group."""

    def __init__(self, base: Union[str, Path]) -> None:
        self.base = Path(base)

    def group_folder(self, gid: int) -> Path:
        """The folder of group ``gid``, named by the group number in base 36."""
        return self.base / _base36(gid)

    def _names(self, gid: int) -> list[str]:
        folder = self.group_folder(gid)
        if not folder.is_dir():
            return []
        return sorted(entry.name for entry in folder.iterdir())

    def draw(self, gid: int, name: str, today: date) -> tuple[str, Path]:
        """The (wife name, picture path) of member ``name`` for ``today``.

        The same member gets the same wife all day. Raises LookupError when
        the group has no pictures.
        """
        wives = self._names(gid)
        if not wives:
            raise LookupError("一个wife也没有哦~")
        if len(wives) == 1:
            chosen = wives[0]
        else:
            key = f"{name}{today.year}{today.month}{today.day}".encode("utf-8")
            seed = int.from_bytes(hashlib.md5(key).digest()[:8], "little", signed=True)
            chosen = wives[random.Random(seed).randrange(len(wives))]
        return chosen, self.group_folder(gid) / chosen

    def add(self, gid: int, name: str, data: bytes) -> Path:
        """Store a picture under ``name``; raises ValueError for an empty name."""
        clean = name.replace("/", "").replace("\\", "")
        if not clean:
            raise ValueError("没有找到wife的名字！")
        folder = self.group_folder(gid)
        folder.mkdir(parents=True, exist_ok=True)
        target = folder / clean
        target.write_bytes(data)
        return target

    def remove(self, gid: int, name: str) -> None:
        """Delete the picture ``name``; raises FileNotFoundError if it is missing."""
        clean = name.replace("/", "").replace("\\", "")
        if not clean:
            raise ValueError("没有找到wife的名字！")
        (self.group_folder(gid) / clean).unlink()