"""Explicitly owned listener registry (replaces module-level event buses)."""

from __future__ import annotations

import logging
from typing import Callable, Generic, ParamSpec

logger = logging.getLogger(__name__)

P = ParamSpec("P")

Unsubscribe = Callable[[], None]


class ListenerSet(Generic[P]):
    """Ordered set of callbacks.

    ``add()`` returns an idempotent unsubscribe callable. A failing
    listener is logged and does not prevent delivery to the others.
    """

    def __init__(self, name: str = "listeners"):
        self._name = name
        self._listeners: list[Callable[P, None]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def add(self, listener: Callable[P, None]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, *args: P.args, **kwargs: P.kwargs) -> None:
        for listener in list(self._listeners):
            try:
                listener(*args, **kwargs)
            except Exception:
                logger.exception("Listener failed in %s", self._name)

    def clear(self) -> None:
        self._listeners.clear()
