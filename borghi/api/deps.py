"""FastAPI dependency injection wiring."""

from __future__ import annotations

from fastapi import Depends, Request

from borghi.persistence.capture_queue import CaptureQueueStore
from borghi.persistence.village_lists import VillageListStore
from borghi.persistence.village_registry import VillageRegistry
from borghi.runtime import Runtime
from borghi.services.capture_service import CaptureService
from borghi.services.queue_monitor import QueueSyncMonitor


# ------------------------------------------------------------------
# Runtime (singleton from app.state)
# ------------------------------------------------------------------


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


def get_registry(runtime: Runtime = Depends(get_runtime)) -> VillageRegistry:
    return runtime.registry


def get_store(runtime: Runtime = Depends(get_runtime)) -> CaptureQueueStore:
    return runtime.store


def get_capture_service(runtime: Runtime = Depends(get_runtime)) -> CaptureService:
    return runtime.capture


def get_monitor(runtime: Runtime = Depends(get_runtime)) -> QueueSyncMonitor:
    return runtime.monitor


def get_lists(runtime: Runtime = Depends(get_runtime)) -> VillageListStore:
    return runtime.lists
