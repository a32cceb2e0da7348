"""Saved and visited village ids, kept in one small JSON document.

Stored at: ``<data_dir>/village_lists.json`` as
``{"saved": [...], "visited": [...]}``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

from borghi.persistence.errors import PersistenceError

logger = logging.getLogger(__name__)

LISTS_FILENAME = "village_lists.json"
SAVED = "saved"
VISITED = "visited"


class VillageListStore:
    """Bookmarks ("saved") and the visited log. Additions are idempotent."""

    def __init__(self, root: str | Path):
        self._path = Path(root) / LISTS_FILENAME
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Saved
    # ------------------------------------------------------------------

    async def saved(self) -> list[str]:
        return await self._get(SAVED)

    async def is_saved(self, village_id: str) -> bool:
        return village_id in await self.saved()

    async def save(self, village_id: str) -> None:
        await self._update(SAVED, add=village_id)

    async def unsave(self, village_id: str) -> None:
        await self._update(SAVED, discard=village_id)

    async def toggle_saved(self, village_id: str) -> bool:
        """Flip the bookmark; returns the new state."""
        async with self._lock:
            data = await asyncio.to_thread(self._read_sync)
            ids = data[SAVED]
            if village_id in ids:
                ids.remove(village_id)
                now_saved = False
            else:
                ids.append(village_id)
                now_saved = True
            await asyncio.to_thread(self._write_sync, data)
        return now_saved

    # ------------------------------------------------------------------
    # Visited
    # ------------------------------------------------------------------

    async def visited(self) -> list[str]:
        return await self._get(VISITED)

    async def is_visited(self, village_id: str) -> bool:
        return village_id in await self.visited()

    async def mark_visited(self, village_id: str) -> None:
        """Record a visit; a visited village is no longer a bookmark."""
        async with self._lock:
            data = await asyncio.to_thread(self._read_sync)
            if village_id not in data[VISITED]:
                data[VISITED].append(village_id)
            if village_id in data[SAVED]:
                data[SAVED].remove(village_id)
            await asyncio.to_thread(self._write_sync, data)

    async def unmark_visited(self, village_id: str) -> None:
        await self._update(VISITED, discard=village_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get(self, key: str) -> list[str]:
        async with self._lock:
            data = await asyncio.to_thread(self._read_sync)
        return list(data[key])

    async def _update(self, key: str, add: str | None = None, discard: str | None = None) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read_sync)
            ids = data[key]
            if add is not None and add not in ids:
                ids.append(add)
            if discard is not None and discard in ids:
                ids.remove(discard)
            await asyncio.to_thread(self._write_sync, data)

    def _read_sync(self) -> dict[str, list[str]]:
        empty: dict[str, list[str]] = {SAVED: [], VISITED: []}
        if not self._path.exists():
            return empty
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise PersistenceError(f"Cannot read {self._path}: {exc}") from exc
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt village lists at %s", self._path)
            return empty
        if not isinstance(data, dict):
            return empty
        for key in (SAVED, VISITED):
            value = data.get(key)
            empty[key] = [str(x) for x in value] if isinstance(value, list) else []
        return empty

    def _write_sync(self, data: dict[str, list[str]]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {self._path}: {exc}") from exc
