"""Tests for client-side pagination."""

import pytest

from signoz_mcp.paginate import paginate, parse_params, slice_page, wrap

ITEMS = list(range(120))


def test_first_page():
    result = paginate(ITEMS, 0, 50)
    assert result["data"] == list(range(50))
    assert result["pagination"] == {"total": 120, "offset": 0, "limit": 50, "hasMore": True, "nextOffset": 50}


def test_last_partial_page():
    result = paginate(ITEMS, 100, 50)
    assert result["data"] == list(range(100, 120))
    assert result["pagination"] == {"total": 120, "offset": 100, "limit": 50, "hasMore": False}


def test_walking_pages_covers_every_item_once():
    seen, offset = [], 0
    while True:
        result = paginate(ITEMS, offset, 35)
        seen.extend(result["data"])
        if not result["pagination"]["hasMore"]:
            break
        offset = result["pagination"]["nextOffset"]
    assert seen == ITEMS


def test_offset_past_end_is_clamped():
    result = paginate(ITEMS, 500, 10)
    assert result["data"] == []
    assert result["pagination"]["offset"] == 120
    assert result["pagination"]["hasMore"] is False


def test_empty_input():
    assert paginate([], 0, 10) == {
        "data": [],
        "pagination": {"total": 0, "offset": 0, "limit": 10, "hasMore": False},
    }


def test_slice_page_clamps():
    assert slice_page(ITEMS[:5], -3, 2) == [0, 1]
    assert slice_page(ITEMS[:5], 3, 100) == [3, 4]
    assert slice_page(ITEMS[:5], 1, -1) == []


def test_wrap_next_offset_uses_limit():
    result = wrap([1, 2], total=10, offset=4, limit=5)
    assert result["pagination"]["hasMore"] is True
    assert result["pagination"]["nextOffset"] == 9


@pytest.mark.parametrize(
    "args, expected",
    [
        ({}, (50, 0)),
        ({"limit": "20", "offset": "40"}, (20, 40)),
        ({"limit": 0, "offset": -1}, (50, 0)),
        ({"limit": "lots", "offset": "first"}, (50, 0)),
        ({"limit": True}, (50, 0)),
    ],
)
def test_parse_params(args, expected):
    assert parse_params(args) == expected


def test_parse_params_custom_default():
    assert parse_params({}, default_limit=20) == (20, 0)


def test_twenty_five_items():
    items = list(range(25))
    tail = paginate(items, 20, 10)
    assert len(tail["data"]) == 5
    assert tail["pagination"]["hasMore"] is False
    assert "nextOffset" not in tail["pagination"]

    head = paginate(items, 0, 10)
    assert len(head["data"]) == 10
    assert head["pagination"]["nextOffset"] == 10
