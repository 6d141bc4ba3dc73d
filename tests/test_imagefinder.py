import json
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from botplugins.imagefinder import (
    SEARCH_REFERER,
    SEARCH_URL,
    SearchError,
    clean_description,
    format_tags,
    parse_search_result,
    search,
)


def test_format_tags_with_and_without_translation():
    tags = [{"name": "a", "translation": "b"}, {"name": "c", "translation": ""}]
    assert format_tags(tags) == "\n#a (b)\n#c"


def test_format_tags_empty():
    assert format_tags([]) == ""


def test_clean_description_strips_links():
    text = 'line1<br /><a href="http://x">link</a> end'
    assert clean_description(text) == "line1\nlink end"


def test_clean_description_plain_text_unchanged():
    assert clean_description("plain") == "plain"


def test_parse_search_result_lists_illusts():
    body = {"error": False, "data": {"illusts": [{"id": 1}, {"id": 2}]}}
    illusts = parse_search_result(json.dumps(body))
    assert [i["id"] for i in illusts] == [1, 2]


def test_parse_search_result_error_message():
    with pytest.raises(SearchError, match="rate limited"):
        parse_search_result({"error": True, "message": "rate limited"})


def test_parse_search_result_invalid_json():
    with pytest.raises(SearchError):
        parse_search_result(b"<html>")


def test_search_builds_url():
    content = json.dumps({"data": {"illusts": [{"id": 9}]}}).encode()
    response = SimpleNamespace(content=content, raise_for_status=lambda: None)
    with patch("requests.get", return_value=response) as get:
        illusts = search("cat girl")
    assert illusts == [{"id": 9}]
    assert get.call_args.args[0] == SEARCH_URL + "cat+girl?page=0"
    assert get.call_args.kwargs["headers"]["Referer"] == SEARCH_REFERER