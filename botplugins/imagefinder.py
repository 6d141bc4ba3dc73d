"""Keyword illustration search."""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Mapping
from urllib.parse import quote_plus

import requests

SEARCH_URL = "https://api.pixivel.moe/v2/pixiv/illust/search/"
SEARCH_REFERER = "https://pixivel.moe/"
SEARCH_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/94.0.4606.61 Safari/537.36"
)

_HREF = re.compile(r'<a href=".*">')


class SearchError(Exception):
    """The search service failed or reported an error."""


def format_tags(tags: Iterable[Mapping[str, Any]]) -> str:
    """Tags as lines of ``#name (translation)``, each preceded by a newline."""
    parts = []
    for tag in tags:
        parts.append(f"\n#{tag.get('name') or ''}")
        translation = tag.get("translation") or ""
        if translation:
            parts.append(f" ({translation})")
    return "".join(parts)


def clean_description(text: str) -> str:
    """Turn line breaks into newlines and strip links from a description."""
    return _HREF.sub("", text.replace("<br />", "\n").replace("</a>", ""))


def parse_search_result(payload: Any) -> list[dict]:
    """The illustrations in a search reply; raises SearchError on an error reply."""
    if isinstance(payload, (bytes, bytearray, str)):
        try:
            payload = json.loads(payload)
        except ValueError as err:
            raise SearchError(str(err)) from err
    if not isinstance(payload, dict):
        raise SearchError("unexpected search reply")
    if payload.get("error"):
        raise SearchError(payload.get("message") or "")
    data = payload.get("data") or {}
    return list(data.get("illusts") or [])


def search(keyword: str) -> list[dict]:
    """Search illustrations by keyword."""
    response = requests.get(
        SEARCH_URL + quote_plus(keyword) + "?page=0",
        headers={"Referer": SEARCH_REFERER, "User-Agent": SEARCH_UA},
        timeout=30,
    )
    response.raise_for_status()
    return parse_search_result(response.content)