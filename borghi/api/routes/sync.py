"""Sync status and manual drain trigger."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from borghi.api.deps import get_monitor, get_store
from borghi.contracts.enums import CaptureStatus
from borghi.contracts.sync import SyncStatus
from borghi.persistence.capture_queue import CaptureQueueStore
from borghi.services.queue_monitor import QueueSyncMonitor

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get("/status")
async def sync_status(
    store: CaptureQueueStore = Depends(get_store),
    monitor: QueueSyncMonitor = Depends(get_monitor),
) -> dict:
    records = await store.list_all()
    counts = {s: 0 for s in CaptureStatus}
    for r in records:
        counts[CaptureStatus(r.status)] += 1
    status = SyncStatus(
        can_sync=await store.can_sync(),
        drain_running=monitor.is_draining,
        pending=counts[CaptureStatus.PENDING],
        done=counts[CaptureStatus.DONE],
        failed=counts[CaptureStatus.FAILED],
        last_report=monitor.last_report,
    )
    return status.model_dump(mode="json")


@router.post("/drain")
async def drain_now(
    monitor: QueueSyncMonitor = Depends(get_monitor),
) -> dict:
    if monitor.is_draining:
        raise HTTPException(status_code=409, detail="A drain is already running")
    report = await monitor.trigger("api")
    return {
        "drained": report is not None,
        "report": report.model_dump(mode="json") if report else None,
    }
