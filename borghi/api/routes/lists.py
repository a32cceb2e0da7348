"""Saved and visited village lists."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response

from borghi.api.deps import get_lists, get_registry
from borghi.persistence.village_lists import VillageListStore
from borghi.persistence.village_registry import VillageRegistry

router = APIRouter(prefix="/lists", tags=["lists"])


@router.get("/saved")
async def list_saved(lists: VillageListStore = Depends(get_lists)) -> list[str]:
    return await lists.saved()


@router.put("/saved/{village_id}")
async def save_village(
    village_id: str,
    lists: VillageListStore = Depends(get_lists),
    registry: VillageRegistry = Depends(get_registry),
) -> dict:
    if registry.get(village_id) is None:
        raise HTTPException(status_code=404, detail="Village not found")
    await lists.save(village_id)
    return {"village_id": village_id, "saved": True}


@router.delete("/saved/{village_id}", status_code=204, response_class=Response)
async def unsave_village(
    village_id: str,
    lists: VillageListStore = Depends(get_lists),
) -> Response:
    await lists.unsave(village_id)
    return Response(status_code=204)


@router.get("/visited")
async def list_visited(lists: VillageListStore = Depends(get_lists)) -> list[str]:
    return await lists.visited()
