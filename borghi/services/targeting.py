"""Village targeting: which borgo is the camera pointing at?

A village is "aimed at" when it lies within ``max_km`` and its bearing from
the user is inside the cone of sight (``angle_tolerance_deg`` around the
heading). Survivors are ranked by a composite score

    score = angle_weight * heading_diff + distance_weight * distance_km

and the lowest score wins. When no heading is available, or the cone is
empty, the composite policy falls back to the nearest village and tags the
result accordingly: a directional pick is higher confidence than a
proximity pick for downstream consumers.
"""

from __future__ import annotations

import logging
from typing import Iterable

from borghi.contracts.common import Position
from borghi.contracts.enums import TargetMode
from borghi.contracts.targeting import (
    ProximityPick,
    TargetOptions,
    TargetPick,
    TargetSuggestion,
)
from borghi.contracts.village import Village
from borghi.services.geo import angular_difference, bearing_degrees, distance_km

logger = logging.getLogger(__name__)

DEFAULT_NEAREST_MAX_KM = 30.0


class VillageTargeter:
    """Selects villages from a static registry. Never raises on valid input.

    Iteration follows registry order, so ties go to the first village
    encountered.
    """

    def __init__(self, villages: Iterable[Village]):
        self._villages: tuple[Village, ...] = tuple(villages)

    def pick_by_heading(
        self,
        position: Position,
        heading_deg: float,
        options: TargetOptions | None = None,
    ) -> TargetPick | None:
        opts = options or TargetOptions()
        best: TargetPick | None = None

        for village in self._villages:
            if opts.region_filter and village.region_id != opts.region_filter:
                continue
            target = village.position
            d = distance_km(position, target)
            if d > opts.max_km:
                continue
            brng = bearing_degrees(position, target)
            diff = angular_difference(heading_deg, brng)
            if diff > opts.angle_tolerance_deg:
                continue  # outside the cone of sight

            score = opts.angle_weight * diff + opts.distance_weight * d
            if best is None or score < best.score:
                best = TargetPick(
                    village=village,
                    distance_km=d,
                    bearing_to_village=brng,
                    heading_diff=diff,
                    score=score,
                )

        return best

    def nearest_village(
        self,
        position: Position,
        max_km: float = DEFAULT_NEAREST_MAX_KM,
    ) -> ProximityPick | None:
        best: ProximityPick | None = None
        for village in self._villages:
            d = distance_km(position, village.position)
            if d <= max_km and (best is None or d < best.distance_km):
                best = ProximityPick(village=village, distance_km=d)
        return best

    def suggest(
        self,
        position: Position,
        heading_deg: float | None,
        options: TargetOptions | None = None,
        nearest_max_km: float = DEFAULT_NEAREST_MAX_KM,
    ) -> TargetSuggestion | None:
        """Heading pick when possible, otherwise nearest village."""
        if heading_deg is not None:
            pick = self.pick_by_heading(position, heading_deg, options)
            if pick is not None:
                return TargetSuggestion(
                    mode=TargetMode.HEADING,
                    village=pick.village,
                    distance_km=pick.distance_km,
                    pick=pick,
                )
            logger.debug("No village in cone at heading %.1f, falling back to nearest", heading_deg)

        near = self.nearest_village(position, nearest_max_km)
        if near is None:
            return None
        return TargetSuggestion(
            mode=TargetMode.NEAREST,
            village=near.village,
            distance_km=near.distance_km,
        )
