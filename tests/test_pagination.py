import pytest

from pwadir.core.models import SortOrder
from pwadir.core.pagination import LIST_PAGE_SIZE, parse_int, resolve_view_state


def test_absent_parameters_resolve_to_defaults() -> None:
    state = resolve_view_state({})
    assert state.page_number == 1
    assert state.sort_order == SortOrder.NEWEST
    assert state.window_start == 0
    assert state.window_limit == LIST_PAGE_SIZE == 32
    assert state.window_end == 32
    assert state.is_search_mode is False
    assert state.has_backlink is False
    assert state.main_page is True
    assert state.search_query is None
    assert state.content_only is False


@pytest.mark.parametrize("page", ["", "abc", "0", "-4", "   ", "NaN"])
def test_malformed_page_falls_back_to_first_page(page: str) -> None:
    state = resolve_view_state({"page": page})
    assert state.page_number == 1
    assert state.window_start == 0


def test_page_three_derives_window_start() -> None:
    state = resolve_view_state({"page": "3"})
    assert state.page_number == 3
    assert state.window_start == 64
    assert state.window_end == 96


def test_explicit_start_overrides_derived_window() -> None:
    state = resolve_view_state({"page": "3", "start": "5"})
    assert state.page_number == 3
    assert state.window_start == 5


def test_explicit_zero_start_is_kept() -> None:
    state = resolve_view_state({"page": "3", "start": "0"})
    assert state.window_start == 0


def test_negative_start_uses_derived_window() -> None:
    state = resolve_view_state({"page": "2", "start": "-10"})
    assert state.window_start == 32


@pytest.mark.parametrize(
    ("limit", "expected"),
    [("10", 10), ("0", 32), ("-1", 32), ("junk", 32), ("12abc", 12)],
)
def test_limit_parsing(limit: str, expected: int) -> None:
    assert resolve_view_state({"limit": limit}).window_limit == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("3abc", 3), (" 7", 7), ("1.5", 1), ("+2", 2), ("-3", -3), ("x", None), ("", None), (None, None)],
)
def test_parse_int_reads_leading_integer(raw, expected) -> None:
    assert parse_int(raw) == expected


@pytest.mark.parametrize(
    ("sort", "expected"),
    [("score", SortOrder.SCORE), ("SCORE", SortOrder.SCORE), ("newest", SortOrder.NEWEST), ("bogus", SortOrder.NEWEST)],
)
def test_sort_order_defaults_on_unknown_values(sort: str, expected: SortOrder) -> None:
    assert resolve_view_state({"sort": sort}).sort_order == expected


def test_query_enables_search_mode_and_backlink() -> None:
    state = resolve_view_state({"query": "foo"})
    assert state.is_search_mode is True
    assert state.has_backlink is True
    assert state.main_page is False
    assert state.search_query == "foo"


def test_empty_query_still_counts_as_search() -> None:
    state = resolve_view_state({"query": ""})
    assert state.is_search_mode is True
    assert state.search_query == ""


@pytest.mark.parametrize(("raw", "expected"), [("1", True), ("true", True), ("false", False), ("0", False), ("", False)])
def test_content_only_flag(raw: str, expected: bool) -> None:
    assert resolve_view_state({"contentOnly": raw}).content_only is expected
