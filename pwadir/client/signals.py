"""Tab-wide connectivity and sign-in signals.

Each signal has exactly one writer; everything else subscribes and reads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


logger = logging.getLogger(__name__)


class Signal(str, Enum):
    CONNECTIVITY = "connectivity"
    AUTH = "auth"


@dataclass(frozen=True)
class SignalChange:
    signal: Signal
    value: bool
    previous: bool


SignalListener = Callable[[SignalChange], None]


class SignalWriter:
    def __init__(self, bus: SignalBus, signal: Signal):
        self._bus = bus
        self._signal = signal

    @property
    def signal(self) -> Signal:
        return self._signal

    def set(self, value: bool) -> bool:
        """Write the signal; returns whether a change notification was broadcast."""
        return self._bus._write(self._signal, value)


class SignalBus:
    def __init__(self, *, online: bool, suppress_duplicates: bool = True):
        self.suppress_duplicates = suppress_duplicates
        self._values = {Signal.CONNECTIVITY: bool(online), Signal.AUTH: False}
        self._claimed: set[Signal] = set()
        self._listeners: list[SignalListener] = []

    @property
    def online(self) -> bool:
        return self._values[Signal.CONNECTIVITY]

    @property
    def signed_in(self) -> bool:
        return self._values[Signal.AUTH]

    def value(self, signal: Signal) -> bool:
        return self._values[signal]

    def writer(self, signal: Signal) -> SignalWriter:
        if signal in self._claimed:
            raise RuntimeError(f"The {signal.value} signal already has a writer")
        self._claimed.add(signal)
        return SignalWriter(self, signal)

    def subscribe(self, listener: SignalListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def announce(self, signal: Signal) -> None:
        """Broadcast the current value even though it did not change (page-load notification)."""
        value = self._values[signal]
        self._publish(SignalChange(signal=signal, value=value, previous=value))

    def _write(self, signal: Signal, value: bool) -> bool:
        value = bool(value)
        previous = self._values[signal]
        if self.suppress_duplicates and previous == value:
            return False
        self._values[signal] = value
        logger.info("%s signal -> %s", signal.value, value)
        self._publish(SignalChange(signal=signal, value=value, previous=previous))
        return True

    def _publish(self, change: SignalChange) -> None:
        for listener in list(self._listeners):
            listener(change)
