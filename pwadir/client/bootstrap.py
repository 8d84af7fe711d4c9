"""Client start-up: wire network status, the auth provider, and navigation into the page."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from pwadir.client.binder import AUTH_BUTTON_ID, ExistenceProbe, ReactiveElementBinder
from pwadir.client.dom import Document, Element, Event
from pwadir.client.router import Router
from pwadir.client.shell import DEFAULT_ROUTE_STATES, RouteState, Shell
from pwadir.client.signals import Signal, SignalBus


logger = logging.getLogger(__name__)


class ClientConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    client_id: str = ""
    ga_id: str | None = None


def read_client_config(document: Document) -> ClientConfig:
    element = document.get_element_by_id("config")
    if element is None:
        logger.warning("Config element not found; using defaults")
        return ClientConfig()
    return ClientConfig.model_validate_json(element.text_content)


@dataclass(frozen=True)
class AuthUser:
    signed_in: bool
    id_token: str | None = None


class AuthProvider(Protocol):
    def current_user(self) -> AuthUser: ...

    def listen(self, callback: Callable[[AuthUser], None]) -> None: ...

    def sign_in(self) -> None: ...

    def sign_out(self) -> None: ...


class ClientApp:
    def __init__(
        self,
        document: Document,
        *,
        online: bool,
        auth: AuthProvider,
        router: Router | None = None,
        probe: ExistenceProbe | None = None,
        route_states: Iterable[RouteState] = DEFAULT_ROUTE_STATES,
    ):
        self.document = document
        self.auth = auth
        self.router = router or Router()
        self.bus = SignalBus(online=online)
        self.binder = ReactiveElementBinder(document, self.bus, probe)
        self.shell = Shell(document, self.router)
        self.config = ClientConfig()
        self._route_states = tuple(route_states)
        self._connectivity = self.bus.writer(Signal.CONNECTIVITY)
        self._sign_in = self.bus.writer(Signal.AUTH)
        self._started = False

    def start(self) -> None:
        if self._started:
            raise RuntimeError("Client already started")
        self._started = True

        self.config = read_client_config(self.document)
        self.binder.bind()
        for state in self._route_states:
            self.shell.set_state_for_route(state)
        self._setup_signin()
        self._setup_save_button()

        # Page load counts as a connectivity notification, not only later changes.
        self.bus.announce(Signal.CONNECTIVITY)

        self.router.listen(self.shell.on_route_change)
        self.shell.on_route_change(self.router.route)

    def on_online(self) -> None:
        self._connectivity.set(True)

    def on_offline(self) -> None:
        self._connectivity.set(False)

    async def settle(self) -> None:
        await self.binder.settle()

    def _token_input(self) -> Element | None:
        if self.document.get_element_by_id("pwaForm") is None:
            return None
        return self.document.get_element_by_id("idToken")

    def _on_user_change(self, user: AuthUser) -> None:
        token_input = self._token_input()
        if token_input is not None:
            token_input.value = (user.id_token or "") if user.signed_in else ""
        if not user.signed_in:
            logger.info("User signed out or never signed in")
        self._sign_in.set(user.signed_in)

    def _setup_signin(self) -> None:
        self._on_user_change(self.auth.current_user())
        self.auth.listen(self._on_user_change)

        auth_button = self.document.get_element_by_id(AUTH_BUTTON_ID)
        if auth_button is None:
            return

        def update_label(_event: Event | None = None) -> None:
            auth_button.text = "Logout" if auth_button.dataset.get("signedin") == "true" else "Login"

        def on_click(_event: Event) -> None:
            if auth_button.dataset.get("signedin") == "true":
                self.auth.sign_out()
            else:
                self.auth.sign_in()

        auth_button.add_event_listener("change", update_label)
        auth_button.add_event_listener("click", on_click)
        update_label()

    def _setup_save_button(self) -> None:
        submit_button = self.document.get_element_by_id("pwaSubmit")
        form = self.document.get_element_by_id("pwaForm")
        if submit_button is None or form is None:
            return

        def on_click(_event: Event) -> None:
            # Block a second submission while the first is in flight.
            submit_button.disabled = True
            form.dispatch_event(Event("submit"))

        submit_button.add_event_listener("click", on_click)
