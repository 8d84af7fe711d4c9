from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from pwadir.client.dom import Document, Element, Event
from pwadir.client.router import Router
from pwadir.core.list_view import list_url


HIDDEN_CLASS = "hidden"


class SearchToggleState(str, Enum):
    HIDDEN = "hidden"
    SHOWN = "shown"


def require_element(root: Document | Element, selector: str) -> Element:
    element = root.query_selector(selector)
    if element is None:
        raise ValueError(f"Page is missing required element {selector!r}")
    return element


class SearchToggle:
    """Show/hide the search form from its toggle button.

    The form's ``hidden`` class is the only state, so route changes that show or
    hide the form are reflected here without extra bookkeeping.
    """

    def __init__(
        self,
        document: Document,
        router: Router,
        *,
        on_show_form: Callable[[], None] | None = None,
        on_hide_form: Callable[[], None] | None = None,
    ):
        self._router = router
        self._form = require_element(document, "#search")
        self._input = require_element(self._form, "#search-input")
        self._button = require_element(document, "#search-button")
        self._on_show_form = on_show_form
        self._on_hide_form = on_hide_form
        self._transitioning = False

        self._button.add_event_listener("click", self._on_button_click)
        self._form.add_event_listener("submit", self._on_submit)

    @property
    def state(self) -> SearchToggleState:
        if self._form.class_list.contains(HIDDEN_CLASS):
            return SearchToggleState.HIDDEN
        return SearchToggleState.SHOWN

    def toggle(self) -> SearchToggleState:
        # Toggles requested from inside a show/hide hook are dropped.
        if self._transitioning:
            return self.state
        self._transitioning = True
        try:
            if self.state == SearchToggleState.HIDDEN:
                self._form.class_list.remove(HIDDEN_CLASS)
                self._input.focus()
                if self._on_show_form:
                    self._on_show_form()
            else:
                self._form.class_list.add(HIDDEN_CLASS)
                if self._on_hide_form:
                    self._on_hide_form()
        finally:
            self._transitioning = False
        return self.state

    def _on_button_click(self, event: Event) -> None:
        event.prevent_default()
        self.toggle()

    def _on_submit(self, event: Event) -> None:
        event.prevent_default()
        query = self._input.value.strip()
        if query and query != self._router.query_param("query"):
            self._router.navigate(list_url(search_query=query))
        self._input.focus()
