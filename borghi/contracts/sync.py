"""Sync contracts: device signals and drain bookkeeping exposed to the UI."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class NetworkState(BaseModel):
    """Point-in-time network reachability.

    ``is_internet_reachable`` is ``None`` while the platform has not
    determined it yet; that counts as unreachable.
    """

    is_connected: bool = False
    is_internet_reachable: bool | None = None

    @property
    def online(self) -> bool:
        return self.is_connected and bool(self.is_internet_reachable)


class BatteryState(BaseModel):
    level: float = Field(default=1.0, ge=0.0, le=1.0)
    low_power_mode: bool = False


class DrainReport(BaseModel):
    """Outcome of a single pass over the pending records."""

    started_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
    finished_at: datetime | None = None
    processed: int = 0
    uploaded: int = 0
    retried: int = 0
    failed: int = 0

    @property
    def changed(self) -> bool:
        return (self.uploaded + self.retried + self.failed) > 0


class SyncStatus(BaseModel):
    can_sync: bool
    drain_running: bool
    pending: int = 0
    done: int = 0
    failed: int = 0
    last_report: DrainReport | None = None
