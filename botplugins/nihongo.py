"""Japanese grammar entries looked up by tag."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from typing import Optional

_COLUMNS = (
    "id",
    "tag",
    "name",
    "pronunciation",
    "usage",
    "meaning",
    "explanation",
    "example",
    "grammar_url",
)


@dataclass
class Grammar:
    """One grammar entry."""

    id: int = 0
    tag: str = ""
    name: str = ""
    pronunciation: str = ""
    usage: str = ""
    meaning: str = ""
    explanation: str = ""
    example: str = ""
    grammar_url: str = ""

    def __str__(self) -> str:
        return (
            f"ID:\n{self.id}\n\n标签:\n{self.tag}\n\n语法名:\n{self.name}\n\n"
            f"发音:\n{self.pronunciation}\n\n用法:\n{self.usage}\n\n意思:\n{self.meaning}\n\n"
            f"解说:\n{self.explanation}\n\n示例:\n{self.example}"
        )


class GrammarStore:
    """A sqlite table of grammar entries."""

    def __init__(self, db_path) -> None:
        self._lock = threading.Lock()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS grammar ("
                "id INTEGER PRIMARY KEY, tag TEXT, name TEXT, pronunciation TEXT, "
                "usage TEXT, meaning TEXT, explanation TEXT, example TEXT, grammar_url TEXT)"
            )
            self._db.commit()

    def __enter__(self) -> "GrammarStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def count(self) -> int:
        """Number of entries."""
        with self._lock:
            return self._db.execute("SELECT COUNT(*) FROM grammar").fetchone()[0]

    def random_by_tag(self, tag: str) -> Optional[Grammar]:
        """A random entry whose tag contains ``tag``, or None."""
        with self._lock:
            row = self._db.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM grammar WHERE tag LIKE ? "
                "ORDER BY RANDOM() LIMIT 1",
                (f"%{tag}%",),
            ).fetchone()
        if row is None:
            return None
        entry = Grammar(*(value if value is not None else "" for value in row))
        return entry if entry.id else None

    def close(self) -> None:
        """Close the database."""
        with self._lock:
            self._db.close()