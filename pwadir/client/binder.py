"""Bind online-aware and signedin-aware elements to the signal bus.

Each element is classified into an ``ElementRole`` once, at binding time. A
signal change is written into the element's dataset and delivered as a
``change`` event; the element's listener then projects the previous and current
signal values through the rule for its role.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol
from urllib.parse import urljoin

import httpx

from pwadir.client.dom import Document, Element, Event
from pwadir.client.signals import Signal, SignalBus, SignalChange


logger = logging.getLogger(__name__)

ONLINE_AWARE_CLASS = "online-aware"
SIGNEDIN_AWARE_CLASS = "signedin-aware"
AUTH_BUTTON_ID = "auth-button"
FADE_TRANSITION = "opacity .5s ease-in-out"

_DATASET_KEYS = {Signal.CONNECTIVITY: "online", Signal.AUTH: "signedin"}


class ElementRole(Enum):
    AUTH_BUTTON = "auth-button"
    GATED_BUTTON = "gated-button"
    GATED_PANEL = "gated-panel"
    ONLINE_BUTTON = "online-button"
    CACHEABLE_CARD = "cacheable-card"
    OFFLINE_BANNER = "offline-banner"

    @property
    def signals(self) -> frozenset[Signal]:
        if self in {ElementRole.AUTH_BUTTON, ElementRole.GATED_BUTTON, ElementRole.GATED_PANEL}:
            return frozenset({Signal.CONNECTIVITY, Signal.AUTH})
        return frozenset({Signal.CONNECTIVITY})


def classify(element: Element) -> ElementRole | None:
    """Resolve an element's role, most specific first; None when no rule applies."""
    classes = element.class_list
    online_aware = classes.contains(ONLINE_AWARE_CLASS)
    signedin_aware = classes.contains(SIGNEDIN_AWARE_CLASS)

    if online_aware and signedin_aware:
        if element.tag == "button":
            return ElementRole.AUTH_BUTTON if element.id == AUTH_BUTTON_ID else ElementRole.GATED_BUTTON
        if element.tag == "div":
            return ElementRole.GATED_PANEL
        return None

    if not online_aware:
        return None
    if element.tag == "div" and classes.contains("button"):
        return ElementRole.ONLINE_BUTTON
    if element.tag == "a" and classes.contains("card") and element.has_attribute("href"):
        return ElementRole.CACHEABLE_CARD
    if element.tag == "div" and classes.contains("offline-status"):
        return ElementRole.OFFLINE_BANNER
    return None


@dataclass(frozen=True)
class Snapshot:
    online: bool
    signed_in: bool


def read_snapshot(element: Element) -> Snapshot:
    dataset = element.dataset
    return Snapshot(
        online=json.loads(dataset.get("online", "false")),
        signed_in=json.loads(dataset.get("signedin", "false")),
    )


@dataclass(frozen=True)
class Binding:
    element: Element
    role: ElementRole


class ExistenceProbe(Protocol):
    async def __call__(self, href: str) -> bool: ...


class HttpExistenceProbe:
    """HEAD the card's target; only a 200 counts as locally available."""

    def __init__(self, base_url: str, *, timeout_seconds: float = 5.0, client: httpx.AsyncClient | None = None):
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self._client = client

    async def __call__(self, href: str) -> bool:
        url = urljoin(self.base_url, href)
        try:
            if self._client is not None:
                response = await self._client.head(url, timeout=self.timeout_seconds)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.head(url)
        except httpx.HTTPError as exc:
            logger.debug("Existence probe for %s failed: %s", url, exc)
            return False
        return response.status_code == 200


def _cancel_click(event: Event) -> None:
    event.prevent_default()


def set_available(element: Element, available: bool, *, fade: bool) -> None:
    if fade:
        element.style["transition"] = FADE_TRANSITION
    element.style["opacity"] = "1" if available else "0.5"
    element.onclick = None if available else _cancel_click


class ReactiveElementBinder:
    def __init__(self, document: Document, bus: SignalBus, probe: ExistenceProbe | None = None):
        self.document = document
        self.bus = bus
        self.probe = probe
        self._bindings: list[Binding] = []
        self._pending: set[asyncio.Task[None]] = set()
        self._deferred: list[tuple[Element, str]] = []
        self._bound = False
        self._rules = {
            ElementRole.AUTH_BUTTON: self._project_auth_button,
            ElementRole.GATED_BUTTON: self._project_gated_button,
            ElementRole.GATED_PANEL: self._project_gated_panel,
            ElementRole.ONLINE_BUTTON: self._project_online_button,
            ElementRole.CACHEABLE_CARD: self._project_card,
            ElementRole.OFFLINE_BANNER: self._project_banner,
        }

    @property
    def bindings(self) -> tuple[Binding, ...]:
        return tuple(self._bindings)

    def bind(self) -> tuple[Binding, ...]:
        if self._bound:
            raise RuntimeError("Reactive elements are already bound")
        self._bound = True

        selector = f".{ONLINE_AWARE_CLASS}, .{SIGNEDIN_AWARE_CLASS}"
        for element in self.document.query_selector_all(selector):
            role = classify(element)
            if role is None:
                continue
            binding = Binding(element=element, role=role)
            for signal in role.signals:
                element.dataset[_DATASET_KEYS[signal]] = json.dumps(False)
            if role == ElementRole.OFFLINE_BANNER:
                element.text = "Offline"
            element.add_event_listener("change", self._change_listener(binding))
            self._bindings.append(binding)

        self.bus.subscribe(self._broadcast)
        logger.debug("Bound %d reactive elements", len(self._bindings))
        return self.bindings

    def _change_listener(self, binding: Binding):
        def on_change(event: Event) -> None:
            previous, current = event.detail
            self._rules[binding.role](binding.element, previous, current)

        return on_change

    def _broadcast(self, change: SignalChange) -> None:
        key = _DATASET_KEYS[change.signal]
        for binding in self._bindings:
            if change.signal not in binding.role.signals:
                continue
            element = binding.element
            previous = read_snapshot(element)
            element.dataset[key] = json.dumps(change.value)
            element.dispatch_event(Event("change", detail=(previous, read_snapshot(element))))

    def _project_auth_button(self, element: Element, previous: Snapshot, current: Snapshot) -> None:
        element.disabled = not current.online

    def _project_gated_button(self, element: Element, previous: Snapshot, current: Snapshot) -> None:
        element.disabled = not (current.online and current.signed_in)

    def _project_gated_panel(self, element: Element, previous: Snapshot, current: Snapshot) -> None:
        set_available(element, current.online and current.signed_in, fade=False)

    def _project_online_button(self, element: Element, previous: Snapshot, current: Snapshot) -> None:
        set_available(element, current.online, fade=current.online)

    def _project_card(self, element: Element, previous: Snapshot, current: Snapshot) -> None:
        if current.online:
            set_available(element, True, fade=True)
            return
        href = element.get_attribute("href")
        if not href:
            return
        if self.probe is None:
            set_available(element, False, fade=True)
            return
        self._schedule_probe(element, href)

    def _schedule_probe(self, element: Element, href: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Outside an event loop the probe waits for settle().
            self._deferred.append((element, href))
            return
        self._track(loop.create_task(self._probe_card(element, href)))

    def _track(self, task: asyncio.Task[None]) -> None:
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _probe_card(self, element: Element, href: str) -> None:
        available = await self.probe(href)
        set_available(element, available, fade=True)

    def _project_banner(self, element: Element, previous: Snapshot, current: Snapshot) -> None:
        element.style["display"] = "block"
        element.style["transition"] = FADE_TRANSITION
        element.style["opacity"] = "0" if current.online else "1"

    async def settle(self) -> None:
        """Start deferred existence probes, then wait for every outstanding one."""
        loop = asyncio.get_running_loop()
        while self._deferred:
            element, href = self._deferred.pop(0)
            self._track(loop.create_task(self._probe_card(element, href)))
        while True:
            pending = [task for task in self._pending if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)
