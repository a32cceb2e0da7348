"""Sync condition gate: may the queue be drained right now?

Requires network connected *and* internet reachable, battery level at or
above the threshold, and low-power mode off. Battery read failures are
permissive (level 1.0, low-power off) so a broken sensor never blocks sync
forever; a failing network read counts as offline.
"""

from __future__ import annotations

import logging

from borghi.services.device_state import BatteryProbe, NetworkProbe

logger = logging.getLogger(__name__)

DEFAULT_MIN_BATTERY_LEVEL = 0.15


class SyncConditionGate:
    def __init__(
        self,
        network: NetworkProbe,
        battery: BatteryProbe,
        min_battery_level: float = DEFAULT_MIN_BATTERY_LEVEL,
    ):
        self._network = network
        self._battery = battery
        self._min_battery_level = min_battery_level

    @property
    def network(self) -> NetworkProbe:
        return self._network

    @property
    def battery(self) -> BatteryProbe:
        return self._battery

    async def can_sync(self) -> bool:
        try:
            net = await self._network.get_state()
        except Exception as exc:
            logger.warning("Network state unavailable, assuming offline: %s", exc)
            return False
        if not net.online:
            logger.debug("Sync blocked: offline")
            return False

        try:
            level = await self._battery.get_level()
        except Exception as exc:
            logger.debug("Battery level unreadable, assuming full: %s", exc)
            level = 1.0
        try:
            low_power = await self._battery.is_low_power_mode()
        except Exception as exc:
            logger.debug("Low power flag unreadable, assuming off: %s", exc)
            low_power = False

        if level < self._min_battery_level or low_power:
            logger.debug("Sync blocked: battery %.2f, low power %s", level, low_power)
            return False
        return True
