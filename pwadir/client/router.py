from __future__ import annotations

import logging
from collections.abc import Callable
from urllib.parse import parse_qs, urlsplit

from pwadir.core.models import SortOrder


logger = logging.getLogger(__name__)

ROUTE_NEWEST = "newest"
ROUTE_SCORE = "score"
ROUTE_SEARCH = "search"
ROUTE_ADD = "add"
ROUTE_VIEW = "view"

RouteListener = Callable[[str], None]


class UnroutableUrlError(ValueError):
    pass


def resolve_route(url: str) -> str:
    parts = urlsplit(url)
    path = parts.path.rstrip("/") or "/"
    if path in {"/", "/pwas"}:
        sort = parse_qs(parts.query).get("sort", [""])[-1]
        return ROUTE_SCORE if sort == SortOrder.SCORE.value else ROUTE_NEWEST
    if path == "/pwas/search":
        return ROUTE_SEARCH
    if path == "/pwas/add":
        return ROUTE_ADD
    if path.startswith("/pwas/"):
        return ROUTE_VIEW
    raise UnroutableUrlError(f"No route for {url}")


class Router:
    """Client-side location holder that turns navigations into route-change events."""

    def __init__(self, location: str = "/pwas"):
        self._location = location
        self._listeners: list[RouteListener] = []

    @property
    def location(self) -> str:
        return self._location

    @property
    def route(self) -> str:
        return resolve_route(self._location)

    def query_param(self, name: str) -> str | None:
        values = parse_qs(urlsplit(self._location).query, keep_blank_values=True).get(name)
        return values[-1] if values else None

    def listen(self, listener: RouteListener) -> None:
        self._listeners.append(listener)

    def navigate(self, url: str) -> str:
        route = resolve_route(url)
        self._location = url
        logger.debug("Navigated to %s (%s)", url, route)
        for listener in list(self._listeners):
            listener(route)
        return route
