from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from pwadir.client.dom import Document, Element
from pwadir.client.router import ROUTE_ADD, ROUTE_NEWEST, ROUTE_SCORE, ROUTE_SEARCH, ROUTE_VIEW, Router
from pwadir.client.search_toggle import HIDDEN_CLASS, SearchToggle, require_element


logger = logging.getLogger(__name__)

ACTIVE_TAB_CLASS = "activetab"
TAB_SELECTOR = "#newest, #score"


class UnregisteredRouteError(LookupError):
    pass


class RouteState(BaseModel):
    model_config = ConfigDict(frozen=True)

    route: str
    backlink: bool = False
    subtitle: bool = False
    search: bool = False
    show_tabs: bool = False
    current_tab: str | None = None


DEFAULT_ROUTE_STATES = (
    RouteState(route=ROUTE_NEWEST, subtitle=True, show_tabs=True, current_tab=ROUTE_NEWEST),
    RouteState(route=ROUTE_SCORE, subtitle=True, show_tabs=True, current_tab=ROUTE_SCORE),
    RouteState(route=ROUTE_SEARCH, backlink=True, search=True),
    RouteState(route=ROUTE_ADD, backlink=True),
    RouteState(route=ROUTE_VIEW, backlink=True),
)


def show_element(element: Element, visible: bool) -> None:
    if visible:
        element.class_list.remove(HIDDEN_CLASS)
        return
    element.class_list.add(HIDDEN_CLASS)


class Shell:
    """Apply each route's registered chrome descriptor to the page header."""

    def __init__(self, document: Document, router: Router):
        self._backlink = require_element(document, "#backlink")
        self._subtitle = require_element(document, "#subtitle")
        self._search = require_element(document, "#search")
        self._tabs = document.query_selector_all(TAB_SELECTOR)
        self._states: dict[str, RouteState] = {}
        self._sealed = False
        self._current_state: RouteState | None = None
        self.search_toggle = SearchToggle(
            document,
            router,
            on_show_form=self._hide_tabs,
            on_hide_form=self._restore_tabs,
        )

    @property
    def current_state(self) -> RouteState | None:
        return self._current_state

    def set_state_for_route(self, state: RouteState) -> None:
        if self._sealed:
            raise RuntimeError("Route states cannot change once navigation has started")
        self._states[state.route] = state

    def _hide_tabs(self) -> None:
        for tab in self._tabs:
            show_element(tab, False)

    def _restore_tabs(self) -> None:
        visible = self._current_state.show_tabs if self._current_state else False
        for tab in self._tabs:
            show_element(tab, visible)

    def _update_tab(self, tab: Element, state: RouteState) -> None:
        show_element(tab, state.show_tabs)
        if not state.current_tab:
            return
        if tab.id == state.current_tab:
            tab.class_list.add(ACTIVE_TAB_CLASS)
            return
        tab.class_list.remove(ACTIVE_TAB_CLASS)

    def on_route_change(self, route: str) -> None:
        state = self._states.get(route)
        if state is None:
            raise UnregisteredRouteError(f"No shell state registered for route {route!r}")
        self._sealed = True
        self._current_state = state
        show_element(self._backlink, state.backlink)
        show_element(self._subtitle, state.subtitle)
        show_element(self._search, state.search)
        for tab in self._tabs:
            self._update_tab(tab, state)
        logger.debug("Applied shell state for %s", route)
