from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlencode

from pwadir.core.models import DEFAULT_SORT_ORDER, DisplayModel, ListPage, PageMetadata, SortOrder, ViewState

if TYPE_CHECKING:
    from pwadir.runtime.catalog import Catalog, SearchIndex


LIST_PATH = "/pwas"
SEARCH_PATH = "/pwas/search"


def previous_page_number(page_number: int) -> int | None:
    # Landing on page 1 carries no explicit page number.
    if page_number <= 2:
        return None
    return page_number - 1


def list_url(
    *,
    page_number: int | None = None,
    sort_order: SortOrder = DEFAULT_SORT_ORDER,
    search_query: str | None = None,
) -> str:
    """Serialize a list link, omitting every parameter that equals its default."""
    params: list[tuple[str, str]] = []
    path = LIST_PATH
    if search_query is not None:
        path = SEARCH_PATH
        params.append(("query", search_query))
    if page_number is not None and page_number > 1:
        params.append(("page", str(page_number)))
    if sort_order != DEFAULT_SORT_ORDER:
        params.append(("sort", sort_order.value))
    if not params:
        return path
    return f"{path}?{urlencode(params)}"


async def fetch_list_page(view_state: ViewState, catalog: Catalog, search_index: SearchIndex) -> ListPage:
    if view_state.is_search_mode:
        return await search_index.search(view_state.search_query or "")
    return await catalog.list(view_state.window_start, view_state.window_limit, view_state.sort_order)


def compose_display_model(view_state: ViewState, page: ListPage, metadata: PageMetadata) -> DisplayModel:
    page_number = view_state.page_number
    sort_order = view_state.sort_order
    has_previous_page = page_number > 1
    previous_number = previous_page_number(page_number)

    next_page_url = None
    if page.has_more:
        next_page_url = list_url(
            page_number=page_number + 1,
            sort_order=sort_order,
            search_query=view_state.search_query,
        )

    previous_page_url = None
    if has_previous_page:
        previous_page_url = list_url(
            page_number=previous_number,
            sort_order=sort_order,
            search_query=view_state.search_query,
        )

    return DisplayModel(
        title=metadata.title,
        description=metadata.description,
        url=metadata.url,
        entries=page.entries,
        has_next_page=page.has_more,
        has_previous_page=has_previous_page,
        next_page_number=page_number + 1,
        previous_page_number=previous_number,
        current_page_number=page_number,
        sort_order=False if sort_order == DEFAULT_SORT_ORDER else sort_order,
        show_newest=sort_order == SortOrder.NEWEST,
        show_score=sort_order == SortOrder.SCORE,
        start_entry=view_state.window_start + 1,
        main_page=view_state.main_page,
        search=view_state.is_search_mode,
        backlink=view_state.has_backlink,
        search_query=view_state.search_query,
        content_only=view_state.content_only,
        next_page_url=next_page_url,
        previous_page_url=previous_page_url,
        newest_url=list_url(sort_order=SortOrder.NEWEST),
        score_url=list_url(sort_order=SortOrder.SCORE),
    )
