"""Village lookup and targeting endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from borghi.api.deps import get_capture_service, get_registry, get_runtime
from borghi.contracts.common import Position
from borghi.persistence.village_registry import VillageRegistry
from borghi.runtime import Runtime
from borghi.services.capture_service import CaptureService
from borghi.services.geo import to_cardinal

router = APIRouter(prefix="/villages", tags=["villages"])


@router.get("")
async def list_villages(
    region: str | None = None,
    registry: VillageRegistry = Depends(get_registry),
) -> list[dict]:
    villages = registry.by_region(region) if region else list(registry)
    return [v.to_document() for v in villages]


@router.get("/regions")
async def list_regions(registry: VillageRegistry = Depends(get_registry)) -> list[dict]:
    return [
        {"region_id": region, "villages": len(registry.by_region(region))}
        for region in registry.regions
    ]


@router.get("/target")
async def target_village(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
    heading: float = Query(..., ge=0.0, lt=360.0),
    region: str | None = None,
    runtime: Runtime = Depends(get_runtime),
) -> dict:
    options = runtime.capture.options.model_copy(update={"region_filter": region})
    pick = runtime.targeter.pick_by_heading(Position(lat=lat, lng=lng), heading, options)
    if pick is None:
        raise HTTPException(status_code=404, detail="No village in sight")
    return pick.model_dump(mode="json", by_alias=True)


@router.get("/nearest")
async def nearest_village(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
    max_km: float | None = Query(default=None, ge=0.0),
    runtime: Runtime = Depends(get_runtime),
) -> dict:
    radius = runtime.settings.nearest_max_km if max_km is None else max_km
    near = runtime.targeter.nearest_village(Position(lat=lat, lng=lng), radius)
    if near is None:
        raise HTTPException(status_code=404, detail=f"No village within {radius:g} km")
    return near.model_dump(mode="json", by_alias=True)


@router.get("/suggest")
async def suggest_village(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
    heading: float | None = Query(default=None, ge=0.0, lt=360.0),
    runtime: Runtime = Depends(get_runtime),
    service: CaptureService = Depends(get_capture_service),
) -> dict:
    """Composite pick. Without an explicit heading, the tracked compass is used."""
    if heading is None:
        heading = runtime.heading.heading
    suggestion = service.suggest(Position(lat=lat, lng=lng), heading)
    if suggestion is None:
        raise HTTPException(status_code=404, detail="No village nearby")
    data = suggestion.model_dump(mode="json", by_alias=True)
    data["heading"] = heading
    data["cardinal"] = to_cardinal(heading).value if heading is not None else None
    return data


@router.get("/{village_id}")
async def get_village(
    village_id: str,
    registry: VillageRegistry = Depends(get_registry),
) -> dict:
    village = registry.get(village_id)
    if village is None:
        raise HTTPException(status_code=404, detail="Village not found")
    return village.to_document()
