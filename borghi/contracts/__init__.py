"""Borghi data contracts: Pydantic v2 models for the capture-and-sync core.

Data authority
--------------

**Local JSON documents** (source of truth on the device):
- ``QueueDocument`` / ``CaptureRecord``: ``<data_dir>/capture_queue.json``
- Saved / visited village ids: ``<data_dir>/village_lists.json``

**Bundled reference data** (read-only, loaded once at startup):
- ``Village``: ``borghi/data/villages.json``

Calculated (never persisted)
----------------------------
- ``TargetPick``, ``ProximityPick``, ``TargetSuggestion``: village targeting
- ``DrainReport``, ``SyncStatus``: sync bookkeeping for the UI
"""

from borghi.contracts.enums import CaptureStatus, CardinalDirection, TargetMode
from borghi.contracts.common import DocumentModel, Position
from borghi.contracts.village import Village
from borghi.contracts.targeting import (
    ProximityPick,
    TargetOptions,
    TargetPick,
    TargetSuggestion,
)
from borghi.contracts.capture import CaptureRecord, QueueDocument
from borghi.contracts.sync import BatteryState, DrainReport, NetworkState, SyncStatus

__all__ = [
    # Enums
    "CaptureStatus",
    "CardinalDirection",
    "TargetMode",
    # Common
    "DocumentModel",
    "Position",
    # Domain models
    "Village",
    "ProximityPick",
    "TargetOptions",
    "TargetPick",
    "TargetSuggestion",
    "CaptureRecord",
    "QueueDocument",
    "BatteryState",
    "DrainReport",
    "NetworkState",
    "SyncStatus",
]
