"""Capture queue endpoints: enqueue, list, delete."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from borghi.api.deps import get_capture_service, get_registry, get_store
from borghi.contracts.common import Position
from borghi.persistence.capture_queue import CaptureQueueStore
from borghi.persistence.errors import SourceMissingError
from borghi.persistence.village_registry import VillageRegistry
from borghi.services.capture_service import CaptureService

router = APIRouter(prefix="/captures", tags=["captures"])


class CaptureRequest(BaseModel):
    temp_path: str = Field(..., min_length=1, description="Camera output file")
    village_id: str
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    heading: float = Field(..., ge=0.0, lt=360.0)


@router.get("")
async def list_captures(
    status: str | None = None,
    store: CaptureQueueStore = Depends(get_store),
) -> list[dict]:
    records = await store.list_all()
    if status is not None:
        records = [r for r in records if r.status == status]
    return [r.to_document() for r in records]


@router.post("", status_code=201)
async def create_capture(
    body: CaptureRequest,
    registry: VillageRegistry = Depends(get_registry),
    service: CaptureService = Depends(get_capture_service),
    store: CaptureQueueStore = Depends(get_store),
) -> dict:
    village = registry.get(body.village_id)
    if village is None:
        raise HTTPException(status_code=404, detail="Village not found")
    try:
        capture_id = await service.capture(
            body.temp_path,
            village,
            Position(lat=body.lat, lng=body.lng),
            body.heading,
        )
    except SourceMissingError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "source_missing", "message": "Photo no longer available, retake it", "path": exc.path},
        ) from exc
    record = await store.get(capture_id)
    return record.to_document() if record else {"id": capture_id}


@router.get("/{capture_id}")
async def get_capture(
    capture_id: str,
    store: CaptureQueueStore = Depends(get_store),
) -> dict:
    record = await store.get(capture_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Capture not found")
    return record.to_document()


@router.delete("/{capture_id}", status_code=204, response_class=Response)
async def delete_capture(
    capture_id: str,
    store: CaptureQueueStore = Depends(get_store),
) -> Response:
    if not await store.remove(capture_id):
        raise HTTPException(status_code=404, detail="Capture not found")
    return Response(status_code=204)
