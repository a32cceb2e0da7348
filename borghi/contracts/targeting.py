"""Targeting contracts: options and results of village selection.

All models here are **calculated** (never persisted).
"""

from pydantic import BaseModel, Field

from borghi.contracts.enums import TargetMode
from borghi.contracts.village import Village


class TargetOptions(BaseModel):
    """Tuning knobs for heading-based targeting.

    The defaults are product tuning, not correctness constraints.
    """

    max_km: float = Field(default=25.0, ge=0)
    angle_tolerance_deg: float = Field(default=12.0, ge=0, le=180)
    angle_weight: float = 1.0
    distance_weight: float = 0.15
    region_filter: str | None = None


class TargetPick(BaseModel):
    """Best village inside the cone of sight. Lower ``score`` is better."""

    village: Village
    distance_km: float = Field(..., ge=0)
    bearing_to_village: float = Field(..., ge=0, lt=360)
    heading_diff: float = Field(..., ge=0, le=180)
    score: float


class ProximityPick(BaseModel):
    """Closest village within a radius, regardless of heading."""

    village: Village
    distance_km: float = Field(..., ge=0)


class TargetSuggestion(BaseModel):
    """Result of the composite policy, tagged with the mode that produced it.

    ``pick`` carries the directional details when ``mode`` is ``heading``.
    """

    mode: TargetMode
    village: Village
    distance_km: float = Field(..., ge=0)
    pick: TargetPick | None = None
