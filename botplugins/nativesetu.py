"""Local picture folders indexed by difference hash in sqlite."""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Iterator, Union

from PIL import Image

log = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".gif", ".webp")
SUMMARY_TITLE = "所有本地setu分类"

_HASH_WIDTH = 9
_HASH_HEIGHT = 8


def is_image_name(name: str) -> bool:
    """Whether a file name has one of the supported picture suffixes."""
    return name.lower().endswith(IMAGE_SUFFIXES)


def difference_hash(image: Image.Image) -> int:
    """The 64-bit difference hash of ``image`` as a signed integer.

    The image is shrunk to 9x8 and turned to grey; each bit says whether a
    pixel is darker than its right-hand neighbour.
    """
    small = image.convert("RGB").resize((_HASH_WIDTH, _HASH_HEIGHT), Image.BILINEAR)
    pixels = small.load()
    value = 0
    index = 0
    for y in range(_HASH_HEIGHT):
        row = [
            0.299 * r + 0.587 * g + 0.114 * b
            for r, g, b in (pixels[x, y] for x in range(_HASH_WIDTH))
        ]
        for left, right in zip(row, row[1:]):
            if left < right:
                value |= 1 << (63 - index)
            index += 1
    if value >= 1 << 63:
        value -= 1 << 64
    return value


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _directories(root: Path, rel: str = "") -> Iterator[tuple[str, str]]:
    """(relative path, folder name) of every folder below ``root``, depth first."""
    base = root / rel if rel else root
    for entry in sorted(base.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            child = f"{rel}/{entry.name}" if rel else entry.name
            yield child, entry.name
            yield from _directories(root, child)


class SetuStore:
    """One sqlite table per picture folder, keyed by difference hash."""

    def __init__(self, db_path: Union[str, Path]) -> None:
        self._db_path = str(db_path)
        self._lock = threading.RLock()
        self._db = sqlite3.connect(self._db_path, check_same_thread=False)

    def __enter__(self) -> "SetuStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _reset(self) -> None:
        with self._lock:
            self._db.close()
            path = Path(self._db_path)
            if self._db_path != ":memory:" and path.is_file():
                path.unlink()
            self._db = sqlite3.connect(self._db_path, check_same_thread=False)

    def scan_all(self, root: Union[str, Path]) -> None:
        """Rebuild the whole index from the folders under ``root``."""
        root = Path(root)
        self._reset()
        for relpath, name in _directories(root):
            self.scan_class(root, relpath, name)

    def scan_class(self, root: Union[str, Path], relpath: str, name: str) -> int:
        """Re-index one folder into the table ``name``; returns the pictures read."""
        folder = Path(root) / relpath
        entries = sorted(folder.iterdir(), key=lambda p: p.name)
        table = _quote(name)
        with self._lock:
            self._db.execute(f"DROP TABLE IF EXISTS {table}")
            self._db.execute(
                f"CREATE TABLE {table} (imgid INTEGER PRIMARY KEY, name TEXT, path TEXT)"
            )
            self._db.commit()
        added = 0
        for entry in entries:
            if entry.is_dir() or not is_image_name(entry.name):
                continue
            rel = f"{relpath}/{entry.name}"
            log.debug("[nsetu] read %s", rel)
            with Image.open(entry) as image:
                image_id = difference_hash(image)
            log.debug("[nsetu] insert %s with id %d into %s", entry.name, image_id, name)
            with self._lock:
                self._db.execute(
                    f"INSERT OR REPLACE INTO {table} (imgid, name, path) VALUES (?, ?, ?)",
                    (image_id, entry.name, rel),
                )
                self._db.commit()
            added += 1
        return added

    def classes(self) -> list[str]:
        """Names of all indexed folders, sorted."""
        with self._lock:
            rows = self._db.execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            ).fetchall()
        return [row[0] for row in rows]

    def count(self, name: str) -> int:
        """Number of pictures in a folder's table."""
        with self._lock:
            return self._db.execute(f"SELECT COUNT(*) FROM {_quote(name)}").fetchone()[0]

    def pick(self, name: str) -> tuple[str, str]:
        """A random (file name, relative path) from the folder ``name``."""
        if name not in self.classes():
            raise LookupError(f"no such class {name!r}")
        with self._lock:
            row = self._db.execute(
                f"SELECT name, path FROM {_quote(name)} ORDER BY RANDOM() LIMIT 1"
            ).fetchone()
        if row is None:
            raise LookupError(f"class {name!r} is empty")
        return row[0], row[1]

    def summary(self) -> str:
        """A numbered list of folders with their picture counts."""
        lines = [SUMMARY_TITLE]
        for index, name in enumerate(self.classes()):
            try:
                lines.append(f"{index:02d}. {name}({self.count(name)})")
            except sqlite3.Error as err:
                log.error("[nsetu] %s", err)
                lines.append(f"{index:02d}. {name}(error)")
        return "\n".join(lines)

    def close(self) -> None:
        """Close the database."""
        with self._lock:
            self._db.close()