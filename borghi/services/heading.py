"""Compass heading feed: interchangeable sources plus circular smoothing.

Two sources sit behind one interface:

- ``NativeCompassSource``: platform compass samples, true heading preferred,
  magnetic heading as fallback.
- ``MagnetometerHeadingSource``: raw magnetometer vector, used when the
  native compass is unavailable.

``HeadingTracker`` only sees the ``HeadingSource`` interface; targeting only
sees the tracker's smoothed float.
"""

from __future__ import annotations

import logging
import math
from abc import ABC
from collections import deque
from typing import Callable

from borghi.services.geo import normalize_degrees
from borghi.services.listeners import ListenerSet, Unsubscribe

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 12


class HeadingSource(ABC):
    """Pushes heading samples in degrees [0, 360) to its listeners."""

    name: str = "abstract"

    def __init__(self) -> None:
        self._listeners: ListenerSet[[float]] = ListenerSet(f"heading:{self.name}")

    def add_listener(self, listener: Callable[[float], None]) -> Unsubscribe:
        return self._listeners.add(listener)

    def _publish(self, heading_deg: float) -> None:
        self._listeners.emit(normalize_degrees(heading_deg))


class NativeCompassSource(HeadingSource):
    name = "native_compass"

    def push(self, true_heading: float | None, magnetic_heading: float | None = None) -> None:
        """Feed one platform sample.

        Platforms report a negative true heading when it cannot be computed
        (no location fix); the magnetic value is used then.
        """
        if true_heading is not None and true_heading >= 0:
            self._publish(true_heading)
        elif magnetic_heading is not None:
            self._publish(magnetic_heading)


class MagnetometerHeadingSource(HeadingSource):
    name = "magnetometer"

    def push(self, x: float, y: float, z: float = 0.0) -> None:
        """Feed one raw magnetometer vector (device frame, z ignored)."""
        if x == 0.0 and y == 0.0:
            return
        # atan2(y, x) is 0 at east; rotate so 0 is north
        self._publish(math.degrees(math.atan2(y, x)) + 90.0)


def select_heading_source(native_available: bool) -> HeadingSource:
    """Native compass when the platform offers one, magnetometer otherwise."""
    if native_available:
        return NativeCompassSource()
    logger.info("Native compass unavailable, using magnetometer-derived heading")
    return MagnetometerHeadingSource()


class HeadingSmoother:
    """Circular (vector) mean over a sliding window of samples.

    Averaging unit vectors avoids the 359/1 wraparound artefact of an
    arithmetic mean.
    """

    def __init__(self, window: int = DEFAULT_WINDOW):
        if window < 1:
            raise ValueError("window must be >= 1")
        self._samples: deque[float] = deque(maxlen=window)

    def __len__(self) -> int:
        return len(self._samples)

    def add(self, heading_deg: float) -> float:
        self._samples.append(math.radians(heading_deg))
        return self.value  # type: ignore[return-value]

    @property
    def value(self) -> float | None:
        if not self._samples:
            return None
        n = len(self._samples)
        x = sum(math.cos(r) for r in self._samples) / n
        y = sum(math.sin(r) for r in self._samples) / n
        return normalize_degrees(math.degrees(math.atan2(y, x)))

    def reset(self) -> None:
        self._samples.clear()


class HeadingTracker:
    """Keeps the latest smoothed heading from whichever source is attached."""

    def __init__(self, window: int = DEFAULT_WINDOW):
        self._smoother = HeadingSmoother(window)
        self._source: HeadingSource | None = None
        self._unsubscribe: Unsubscribe | None = None

    @property
    def heading(self) -> float | None:
        return self._smoother.value

    @property
    def source_name(self) -> str | None:
        return self._source.name if self._source else None

    def attach(self, source: HeadingSource) -> None:
        self.detach()
        self._source = source
        self._unsubscribe = source.add_listener(self._smoother.add)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._source = None
        self._smoother.reset()
