"""Capture flow: suggest a village, then queue the confirmed shot.

Visit listeners (badge engine, visited-village log...) are notified only
after the shot is safely queued. Their failures are logged and never undo
the capture.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from borghi.contracts.common import Position
from borghi.contracts.targeting import TargetOptions, TargetSuggestion
from borghi.contracts.village import Village
from borghi.persistence.capture_queue import CaptureQueueStore
from borghi.services.listeners import Unsubscribe
from borghi.services.targeting import DEFAULT_NEAREST_MAX_KM, VillageTargeter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisitEvent:
    """A village was visited (a capture of it was queued)."""

    region_id: str
    village_id: str
    village_name: str
    province_code: str | None = None
    capture_id: str | None = None


VisitListener = Callable[[VisitEvent], Awaitable[None]]


class CaptureService:
    def __init__(
        self,
        targeter: VillageTargeter,
        store: CaptureQueueStore,
        options: TargetOptions | None = None,
        nearest_max_km: float = DEFAULT_NEAREST_MAX_KM,
    ):
        self._targeter = targeter
        self._store = store
        self._options = options or TargetOptions()
        self._nearest_max_km = nearest_max_km
        self._visit_listeners: list[VisitListener] = []

    @property
    def options(self) -> TargetOptions:
        return self._options

    def add_visit_listener(self, listener: VisitListener) -> Unsubscribe:
        self._visit_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._visit_listeners:
                self._visit_listeners.remove(listener)

        return unsubscribe

    def suggest(self, position: Position, heading_deg: float | None) -> TargetSuggestion | None:
        return self._targeter.suggest(
            position, heading_deg, self._options, self._nearest_max_km
        )

    async def capture(
        self,
        temp_asset_path: str | Path,
        village: Village,
        position: Position,
        heading_deg: float,
    ) -> str:
        """Queue the shot and announce the visit. Returns the capture id.

        ``SourceMissingError`` propagates so the UI can ask for a retake.
        """
        capture_id = await self._store.enqueue(
            temp_asset_path,
            village_id=village.id,
            village_name=village.name,
            lat=position.lat,
            lng=position.lng,
            heading=heading_deg,
        )
        event = VisitEvent(
            region_id=village.region_id,
            village_id=village.id,
            village_name=village.name,
            province_code=village.province_code,
            capture_id=capture_id,
        )
        for listener in list(self._visit_listeners):
            try:
                await listener(event)
            except Exception:
                logger.exception("Visit listener failed for %s", village.id)
        return capture_id
