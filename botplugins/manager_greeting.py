"""Welcome and farewell messages, join verification and gist-based approval."""

from __future__ import annotations

import hashlib
import logging
import random
import re
import sqlite3
import threading
import time
from typing import Callable, Optional

import requests

from .manager_admin import CommandError

log = logging.getLogger(__name__)

GIST_RAW = "https://gist.githubusercontent.com/{}/{}/raw/{}"
AVATAR_URL = "http://q4.qlogo.cn/g?b=qq&nk={}&s=640"
GIST_WINDOW_SECONDS = 600

VERIFY_SET_MASK = 0x1
VERIFY_CLEAR_MASK = 0x7FFFFFFF_FFFFFFFE
GIST_SET_MASK = 0x10
GIST_CLEAR_MASK = 0x7FFFFFFF_FFFFFFFD

ENABLE_OPTIONS = frozenset({"开启", "打开", "启用"})
DISABLE_OPTIONS = frozenset({"关闭", "关掉", "禁用"})

GREETING_KINDS = ("welcome", "farewell")

_ANSWER_MARK = "答案："
_ATOI = re.compile(r"[+-]?[0-9]+")


def render_greeting(template: str, uid: int, nickname: str, gid: int, group_name: str) -> str:
    """Fill the placeholders of a greeting template with CQ codes and names."""
    uid_text = str(uid)
    replacements = (
        ("{at}", f"[CQ:at,qq={uid_text}]"),
        ("{nickname}", nickname),
        ("{avatar}", f"[CQ:image,file={AVATAR_URL.format(uid_text)}]"),
        ("{uid}", uid_text),
        ("{gid}", str(gid)),
        ("{groupname}", group_name),
    )
    text = template
    for placeholder, value in replacements:
        text = text.replace(placeholder, value)
    return text


def toggle_flag(data: int, option: str, set_mask: int, clear_mask: int) -> Optional[int]:
    """Apply an enable/disable option to a flag word.

    Enabling ORs in ``set_mask``, disabling ANDs with ``clear_mask``.
    Returns None when the option is neither.
    """
    if option in ENABLE_OPTIONS:
        return data | set_mask
    if option in DISABLE_OPTIONS:
        return data & clear_mask
    return None


def parse_gist_answer(comment: str) -> tuple[str, str]:
    """Split a join request's answer into (github user, gist hash)."""
    start = comment.find(_ANSWER_MARK)
    answer = comment[start + len(_ANSWER_MARK):] if start >= 0 else comment
    divider = answer.find("/")
    if divider <= 0:
        raise CommandError("格式错误!")
    return answer[:divider], answer[divider + 1:]


def verification_question(rng: random.Random) -> tuple[int, int, int]:
    """Two addends below 100 and their sum."""
    a = rng.randrange(100)
    b = rng.randrange(100)
    return a, b, a + b


def check_verification_answer(text: str, expected: int) -> Optional[bool]:
    """Judge an answer; None when the text is not a number at all."""
    cleaned = text.replace(" ", "")
    if not _ATOI.fullmatch(cleaned):
        return None
    return int(cleaned) == expected


class GreetingStore:
    """Per-group welcome and farewell templates kept in sqlite."""

    def __init__(self, db_path) -> None:
        self._lock = threading.Lock()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            for kind in GREETING_KINDS:
                self._db.execute(
                    f"CREATE TABLE IF NOT EXISTS {kind} (gid INTEGER PRIMARY KEY, msg TEXT)"
                )
            self._db.commit()

    def __enter__(self) -> "GreetingStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @staticmethod
    def _table(kind: str) -> str:
        if kind not in GREETING_KINDS:
            raise ValueError(f"unknown greeting kind {kind!r}")
        return kind

    def set_message(self, kind: str, gid: int, text: str) -> None:
        """Store (or replace) the group's template of the given kind."""
        table = self._table(kind)
        with self._lock:
            self._db.execute(f"INSERT OR REPLACE INTO {table} (gid, msg) VALUES (?, ?)", (gid, text))
            self._db.commit()

    def get_message(self, kind: str, gid: int) -> Optional[str]:
        """The group's template of the given kind, or None if unset."""
        table = self._table(kind)
        with self._lock:
            row = self._db.execute(f"SELECT msg FROM {table} WHERE gid = ?", (gid,)).fetchone()
        return None if row is None else row[0]

    def close(self) -> None:
        """Close the database."""
        with self._lock:
            self._db.close()


def _http_get(url: str) -> bytes:
    response = requests.get(url, timeout=30)
    response.raise_for_status()
    return response.content


class GistVerifier:
    """Approves join requests backed by a fresh timestamp in a github gist."""

    def __init__(self, db_path, fetch: Optional[Callable[[str], bytes]] = None) -> None:
        self._fetch = fetch or _http_get
        self._lock = threading.Lock()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._db.execute("CREATE TABLE IF NOT EXISTS member (qq INTEGER PRIMARY KEY, ghun TEXT)")
            self._db.commit()

    def __enter__(self) -> "GistVerifier":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def check(
        self, qq: int, gid: int, ghun: str, gist_hash: str, now: Optional[float] = None
    ) -> tuple[bool, str]:
        """Verify the gist and record the member; returns (ok, reason)."""
        with self._lock:
            known = self._db.execute("SELECT 1 FROM member WHERE ghun = ?", (ghun,)).fetchone()
        if known is not None:
            return False, "该github用户已入群"
        gidhex = hashlib.md5(str(gid).encode("utf-8")).hexdigest()
        url = GIST_RAW.format(ghun, gist_hash, gidhex)
        log.debug("[gist]visit url: %s", url)
        try:
            data = self._fetch(url)
        except Exception as err:  # noqa: BLE001 - any fetch failure is reported
            return False, "无法连接到gist: " + str(err)
        text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else str(data)
        log.debug("[gist]get data: %s", text)
        if not _ATOI.fullmatch(text):
            return False, "时间戳格式错误: " + text
        stamp = int(text)
        current = time.time() if now is None else now
        if abs(int(current) - stamp) >= GIST_WINDOW_SECONDS:
            return False, "时间戳超时"
        with self._lock:
            self._db.execute("INSERT OR REPLACE INTO member (qq, ghun) VALUES (?, ?)", (qq, ghun))
            self._db.commit()
        return True, ""

    def close(self) -> None:
        """Close the database."""
        with self._lock:
            self._db.close()