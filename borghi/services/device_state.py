"""Network and battery signals consumed by the sync gate and queue monitor.

Host glue (platform bindings, the HTTP surface, tests) pushes updates into
the in-process feeds; each change is delivered to registered listeners.
``HttpReachabilityProbe`` can keep the network feed current on hosts where no
platform reachability API exists.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

import httpx

from borghi.contracts.sync import BatteryState, NetworkState
from borghi.services.listeners import ListenerSet, Unsubscribe

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class NetworkProbe(Protocol):
    async def get_state(self) -> NetworkState: ...

    def add_listener(self, listener: Listener) -> Unsubscribe: ...


class BatteryProbe(Protocol):
    async def get_level(self) -> float: ...

    async def is_low_power_mode(self) -> bool: ...

    def add_level_listener(self, listener: Listener) -> Unsubscribe: ...

    def add_low_power_listener(self, listener: Listener) -> Unsubscribe: ...


class NetworkStateFeed:
    """Latest known network state; listeners fire when it changes."""

    def __init__(self, initial: NetworkState | None = None):
        self._state = initial or NetworkState()
        self._listeners: ListenerSet[[]] = ListenerSet("network")

    @property
    def state(self) -> NetworkState:
        return self._state

    async def get_state(self) -> NetworkState:
        return self._state

    def add_listener(self, listener: Listener) -> Unsubscribe:
        return self._listeners.add(listener)

    def update(self, state: NetworkState) -> None:
        if state == self._state:
            return
        logger.info(
            "Network changed: connected=%s reachable=%s",
            state.is_connected, state.is_internet_reachable,
        )
        self._state = state
        self._listeners.emit()


class BatteryStateFeed:
    """Latest known battery state with separate level / low-power events."""

    def __init__(self, initial: BatteryState | None = None):
        self._state = initial or BatteryState()
        self._level_listeners: ListenerSet[[]] = ListenerSet("battery-level")
        self._low_power_listeners: ListenerSet[[]] = ListenerSet("battery-low-power")

    @property
    def state(self) -> BatteryState:
        return self._state

    async def get_level(self) -> float:
        return self._state.level

    async def is_low_power_mode(self) -> bool:
        return self._state.low_power_mode

    def add_level_listener(self, listener: Listener) -> Unsubscribe:
        return self._level_listeners.add(listener)

    def add_low_power_listener(self, listener: Listener) -> Unsubscribe:
        return self._low_power_listeners.add(listener)

    def update(self, level: float | None = None, low_power_mode: bool | None = None) -> None:
        previous = self._state
        self._state = BatteryState(
            level=previous.level if level is None else level,
            low_power_mode=previous.low_power_mode if low_power_mode is None else low_power_mode,
        )
        if self._state.level != previous.level:
            self._level_listeners.emit()
        if self._state.low_power_mode != previous.low_power_mode:
            logger.info("Low power mode %s", "on" if self._state.low_power_mode else "off")
            self._low_power_listeners.emit()


class HttpReachabilityProbe:
    """Checks internet reachability with a lightweight HTTP request."""

    def __init__(
        self,
        url: str,
        feed: NetworkStateFeed,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._url = url
        self._feed = feed
        self._client = http_client or httpx.AsyncClient(timeout=5.0)

    async def refresh(self) -> NetworkState:
        """Probe once and publish the result into the feed."""
        try:
            resp = await self._client.head(self._url)
            reachable = resp.status_code < 500
            connected = True
        except httpx.ConnectError as exc:
            logger.debug("Reachability probe could not connect: %s", exc)
            reachable = False
            connected = False
        except httpx.HTTPError as exc:
            logger.debug("Reachability probe failed: %s", exc)
            reachable = False
            connected = self._feed.state.is_connected

        state = NetworkState(is_connected=connected, is_internet_reachable=reachable)
        self._feed.update(state)
        return state

    async def aclose(self) -> None:
        await self._client.aclose()
