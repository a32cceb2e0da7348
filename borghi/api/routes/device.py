"""Device signal intake: network, battery and compass samples from host glue.

Network and battery changes trigger drain attempts through the queue monitor.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from borghi.api.deps import get_runtime
from borghi.contracts.sync import NetworkState
from borghi.runtime import Runtime
from borghi.services.geo import to_cardinal
from borghi.services.heading import MagnetometerHeadingSource, NativeCompassSource

router = APIRouter(prefix="/device", tags=["device"])


class BatteryUpdate(BaseModel):
    level: float | None = Field(default=None, ge=0.0, le=1.0)
    low_power_mode: bool | None = None


class HeadingSample(BaseModel):
    """Native compass fields or raw magnetometer vector, per active source."""

    true_heading: float | None = None
    magnetic_heading: float | None = None
    x: float | None = None
    y: float | None = None
    z: float = 0.0


@router.put("/network")
async def update_network(
    state: NetworkState,
    runtime: Runtime = Depends(get_runtime),
) -> dict:
    runtime.network.update(state)
    return runtime.network.state.model_dump()


@router.put("/battery")
async def update_battery(
    body: BatteryUpdate,
    runtime: Runtime = Depends(get_runtime),
) -> dict:
    runtime.battery.update(level=body.level, low_power_mode=body.low_power_mode)
    return runtime.battery.state.model_dump()


@router.put("/heading")
async def push_heading(
    sample: HeadingSample,
    runtime: Runtime = Depends(get_runtime),
) -> dict:
    source = runtime.heading_source
    if isinstance(source, NativeCompassSource):
        if sample.true_heading is None and sample.magnetic_heading is None:
            raise HTTPException(status_code=422, detail="Compass sample needs true_heading or magnetic_heading")
        source.push(sample.true_heading, sample.magnetic_heading)
    elif isinstance(source, MagnetometerHeadingSource):
        if sample.x is None or sample.y is None:
            raise HTTPException(status_code=422, detail="Magnetometer sample needs x and y")
        source.push(sample.x, sample.y, sample.z)

    heading = runtime.heading.heading
    return {
        "source": source.name,
        "heading": heading,
        "cardinal": to_cardinal(heading).value if heading is not None else None,
    }
