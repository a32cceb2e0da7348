"""Enumerations shared across all Borghi contracts."""

from enum import Enum


class CaptureStatus(str, Enum):
    """Lifecycle of a queued capture.

    ``pending`` is the only non-terminal state.
    """
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


class TargetMode(str, Enum):
    """How a village suggestion was produced."""
    HEADING = "heading"  # directional pick, higher confidence
    NEAREST = "nearest"


class CardinalDirection(str, Enum):
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"
