"""Static village registry: bundled lite dataset, loaded once at startup."""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Iterator

from pydantic import TypeAdapter

from borghi.contracts.village import Village

logger = logging.getLogger(__name__)

BUNDLED_DATASET = "villages.json"

_villages_adapter = TypeAdapter(list[Village])


class VillageRegistry:
    """Immutable, ordered collection of villages.

    Order is the dataset order; targeting tie-breaks depend on it.
    """

    def __init__(self, villages: list[Village] | tuple[Village, ...]):
        self._villages: tuple[Village, ...] = tuple(villages)
        self._by_id = {v.id: v for v in self._villages}

    def __iter__(self) -> Iterator[Village]:
        return iter(self._villages)

    def __len__(self) -> int:
        return len(self._villages)

    @property
    def villages(self) -> tuple[Village, ...]:
        return self._villages

    def get(self, village_id: str) -> Village | None:
        return self._by_id.get(village_id)

    def by_region(self, region_id: str) -> list[Village]:
        return [v for v in self._villages if v.region_id == region_id]

    @property
    def regions(self) -> list[str]:
        return sorted({v.region_id for v in self._villages})

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_json(cls, raw: str) -> "VillageRegistry":
        return cls(_villages_adapter.validate_json(raw))

    @classmethod
    def load(cls, path: Path | None = None) -> "VillageRegistry":
        """Load from *path*, or from the dataset bundled with the package."""
        if path is None:
            raw = resources.files("borghi.data").joinpath(BUNDLED_DATASET).read_text(encoding="utf-8")
            source = f"bundled {BUNDLED_DATASET}"
        else:
            raw = Path(path).read_text(encoding="utf-8")
            source = str(path)
        registry = cls.from_json(raw)
        logger.info("Loaded %d villages from %s", len(registry), source)
        return registry

    def to_json(self) -> str:
        return json.dumps(
            [v.to_document() for v in self._villages], ensure_ascii=False, indent=2
        )
