"""Background queue drainer driven by connectivity and power events.

``QueueSyncMonitor.start()`` fires one drain attempt immediately and then one
per network / battery-level / low-power event. At most one drain runs at a
time: an attempt that finds one in flight is dropped, not queued. Each
attempt checks the sync gate first and is a no-op when conditions are bad.
Drain failures are logged and absorbed; the next event gets another chance.
"""

from __future__ import annotations

import asyncio
import logging

from borghi.contracts.sync import DrainReport
from borghi.persistence.capture_queue import CaptureQueueStore, UploadFn
from borghi.services.device_state import BatteryProbe, NetworkProbe
from borghi.services.listeners import Unsubscribe

logger = logging.getLogger(__name__)


class MonitorSubscription:
    """Owns the event subscriptions created by ``QueueSyncMonitor.start()``.

    ``stop()`` is the only teardown and may be called repeatedly. It does
    not cancel a drain already in progress.
    """

    def __init__(self, unsubscribers: list[Unsubscribe]):
        self._unsubscribers = unsubscribers

    @property
    def active(self) -> bool:
        return bool(self._unsubscribers)

    def stop(self) -> None:
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()


class QueueSyncMonitor:
    def __init__(
        self,
        store: CaptureQueueStore,
        network: NetworkProbe,
        battery: BatteryProbe,
        upload: UploadFn,
    ):
        self._store = store
        self._network = network
        self._battery = battery
        self._upload = upload
        self._running = False
        self._subscription: MonitorSubscription | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tasks: set[asyncio.Task] = set()
        self._last_report: DrainReport | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_draining(self) -> bool:
        return self._running

    @property
    def is_started(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def last_report(self) -> DrainReport | None:
        return self._last_report

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> MonitorSubscription:
        """Drain once now, then on every network or battery event.

        Must be called from inside the running event loop.
        """
        if self.is_started:
            logger.warning("Queue monitor already started")
            return self._subscription  # type: ignore[return-value]

        self._loop = asyncio.get_running_loop()
        self._spawn("start")
        self._subscription = MonitorSubscription([
            self._network.add_listener(lambda: self._schedule("network")),
            self._battery.add_level_listener(lambda: self._schedule("battery-level")),
            self._battery.add_low_power_listener(lambda: self._schedule("low-power")),
        ])
        logger.info("Queue monitor started")
        return self._subscription

    def stop(self) -> None:
        """Unsubscribe all listeners. No-op when not started."""
        if self._subscription is None:
            return
        self._subscription.stop()
        self._subscription = None
        logger.info("Queue monitor stopped")

    async def wait_idle(self) -> None:
        """Wait until every scheduled drain attempt has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Drain attempts
    # ------------------------------------------------------------------

    async def trigger(self, reason: str = "manual") -> DrainReport | None:
        """Run one drain attempt now.

        Returns ``None`` when the attempt was dropped (another drain in
        flight), gated (conditions not met) or failed.
        """
        if self._running:
            logger.debug("Drain already running, dropping %s trigger", reason)
            return None
        # Claim the slot before the first await so overlapping triggers drop
        self._running = True
        try:
            if not await self._store.can_sync():
                logger.debug("Sync conditions not met (%s trigger)", reason)
                return None
            logger.info("Draining capture queue (%s trigger)", reason)
            report = await self._store.drain(self._upload)
            self._last_report = report
            return report
        except Exception:
            logger.exception("Capture queue drain failed (%s trigger)", reason)
            return None
        finally:
            self._running = False

    def _schedule(self, reason: str) -> None:
        """Listener entry point; safe to call from any thread."""
        if self._loop is None:
            return
        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None
        if current is self._loop:
            self._spawn(reason)
        else:
            self._loop.call_soon_threadsafe(self._spawn, reason)

    def _spawn(self, reason: str) -> None:
        task = asyncio.get_running_loop().create_task(self.trigger(reason))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
