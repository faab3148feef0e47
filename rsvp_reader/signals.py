"""Minimal multicast notification channel."""

from __future__ import annotations

from typing import Callable, Dict, Generic, TypeVar

T = TypeVar("T")

Listener = Callable[[T], None]
Unsubscribe = Callable[[], None]


class Channel(Generic[T]):
    """Deliver a value to every connected callback.

    ``connect`` returns a handle that detaches the callback. Emission iterates
    over a snapshot of the callbacks, so detaching while an event is being
    delivered only affects later events.
    """

    def __init__(self) -> None:
        self._listeners: Dict[int, Listener] = {}
        self._next_token = 0

    def connect(self, callback: Listener) -> Unsubscribe:
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = callback

        def disconnect() -> None:
            self._listeners.pop(token, None)

        return disconnect

    def emit(self, value: T) -> None:
        for callback in tuple(self._listeners.values()):
            callback(value)

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = ["Channel", "Listener", "Unsubscribe"]
