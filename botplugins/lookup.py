"""Online lookups: abbreviation guesses, slang definitions and the juejuezi generator."""

from __future__ import annotations

import json
from typing import Any, Optional

import requests

GUESS_URL = "https://lab.magiconch.com/api/nbnhhsh/guess"
JIKIPEDIA_URL = "https://api.jikipedia.com/go/search_entities"
DEFINITION_URL = "https://jikipedia.com/definition/"
JUEJUEZI_URL = "https://www.offjuan.com/api/juejuezi/text"
JUEJUEZI_REFERER = "https://juejuezi.offjuan.com/"
JUEJUEZI_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36"
)
NOT_FOUND = "好像什么都没查到，换个关键词试一试？"

_JIKIPEDIA_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Encoding": "gzip, deflate, br",
    "Accept-Language": "zh-CN,zh-TW;q=0.9,zh;q=0.8",
    "Client": "web",
    "Client-Version": "2.7.2g",
    "Connection": "keep-alive",
    "Host": "api.jikipedia.com",
    "Origin": "https://jikipedia.com",
    "Referer": "https://jikipedia.com/",
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-site",
    "User-Agent": (
        "Mozilla/5.0 (Linux; Android 6.0; Nexus 5 Build/MRA58N) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/102.0.0.0 Mobile Safari/537.36"
    ),
    "sec-ch-ua": '" Not A;Brand";v="99", "Chromium";v="102", "Google Chrome";v="102"',
    "sec-ch-ua-mobile": "?1",
    "sec-ch-ua-platform": '"Android"',
    "Content-Type": "application/json;charset=UTF-8",
}


def _load(payload: Any) -> Any:
    if isinstance(payload, (bytes, bytearray, str)):
        try:
            return json.loads(payload)
        except ValueError:
            return None
    return payload


def _text(value: Any) -> str:
    """A JSON value as display text; missing and null become empty."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _path(value: Any, *keys: Any) -> Any:
    for key in keys:
        try:
            value = value[key]
        except (KeyError, IndexError, TypeError):
            return None
    return value


def parse_guess_response(payload: Any) -> list[str]:
    """Candidate meanings from an abbreviation-guess reply.

    Prefers ``trans`` and falls back to ``inputting`` of the first entry.
    """
    first = _path(_load(payload), 0)
    if not isinstance(first, dict):
        return []
    values = first["trans"] if "trans" in first else first.get("inputting")
    if values is None:
        return []
    if not isinstance(values, list):
        values = [values]
    return [_text(v) for v in values]


def guess_abbreviation(text: str) -> list[str]:
    """Ask the guessing service what an abbreviation stands for."""
    response = requests.post(GUESS_URL, data={"text": text}, timeout=30)
    return parse_guess_response(response.content)


def search_definition(keyword: str) -> Optional[dict]:
    """The first definition of ``keyword``, or None when nothing is found."""
    body = {"phrase": keyword, "page": 1, "size": 60}
    response = requests.post(
        JIKIPEDIA_URL,
        data=json.dumps(body, ensure_ascii=False).encode("utf-8"),
        headers=_JIKIPEDIA_HEADERS,
        timeout=30,
    )
    if response.status_code != 200:
        raise LookupError(f"status code: {response.status_code}")
    definition = _path(_load(response.content), "data", 0, "definitions", 0)
    return definition if definition is not None else None


def format_definition(definition: Optional[dict]) -> str:
    """The reply text for a definition; raises LookupError when it is empty."""
    if definition is None or _text(definition) == "":
        raise LookupError(NOT_FOUND)
    return (
        f"【标题】:{_text(_path(definition, 'term', 'title'))}"
        f"\n【释义】:{_text(_path(definition, 'plaintext'))}"
        f"\n【原文】:{DEFINITION_URL}{_text(_path(definition, 'id'))}"
    )


def juejuezi_payload(verb: str, noun: str) -> str:
    """The JSON body sent to the juejuezi generator."""
    return json.dumps({"verb": verb, "noun": noun}, ensure_ascii=False, separators=(",", ":"))


def juejuezi(verb: str, noun: str) -> str:
    """Generate a juejuezi sentence from a verb and a noun."""
    response = requests.post(
        JUEJUEZI_URL,
        data=juejuezi_payload(verb, noun).encode("utf-8"),
        headers={"Referer": JUEJUEZI_REFERER, "User-Agent": JUEJUEZI_UA},
        timeout=30,
    )
    return _text(_path(_load(response.content), "text"))