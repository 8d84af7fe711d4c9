"""Turn raw list request parameters into a ViewState.

Malformed numbers never fail a request: each one falls back to its default.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from pwadir.core.models import DEFAULT_SORT_ORDER, SortOrder, ViewState


LIST_PAGE_SIZE = 32
DEFAULT_PAGE_NUMBER = 1

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_FALSE_FLAGS = {"", "0", "false"}


def parse_int(value: str | None) -> int | None:
    """Parse the leading integer of ``value`` ("3abc" -> 3, "1.5" -> 1), or None."""
    if value is None:
        return None
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def parse_sort_order(value: str | None) -> SortOrder:
    if not value:
        return DEFAULT_SORT_ORDER
    try:
        return SortOrder(value.strip().lower())
    except ValueError:
        return DEFAULT_SORT_ORDER


def parse_flag(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() not in _FALSE_FLAGS


def resolve_view_state(params: Mapping[str, str]) -> ViewState:
    search_query = params.get("query")
    is_search_mode = search_query is not None

    page_number = parse_int(params.get("page"))
    if page_number is None or page_number < 1:
        page_number = DEFAULT_PAGE_NUMBER

    window_start = parse_int(params.get("start"))
    if window_start is None or window_start < 0:
        window_start = (page_number - 1) * LIST_PAGE_SIZE

    window_limit = parse_int(params.get("limit"))
    if window_limit is None or window_limit <= 0:
        window_limit = LIST_PAGE_SIZE

    return ViewState(
        is_search_mode=is_search_mode,
        has_backlink=is_search_mode,
        main_page=not is_search_mode,
        page_number=page_number,
        sort_order=parse_sort_order(params.get("sort")),
        window_start=window_start,
        window_limit=window_limit,
        window_end=page_number * LIST_PAGE_SIZE,
        search_query=search_query,
        content_only=parse_flag(params.get("contentOnly")),
    )
