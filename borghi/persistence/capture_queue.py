"""File-backed offline capture queue: one JSON document plus an asset directory.

Layout under ``root``::

    capture_queue.json      {"items": [CaptureRecord, ...]}
    captures/<id>.<ext>     permanent copies of the camera's temporary files

Every mutation is a read-modify-write of the whole document, serialized by an
in-process ``asyncio.Lock``. ``drain`` releases the lock while uploads run and
merges its results back by record id, so captures taken during a long drain
are neither blocked nor overwritten. A second lock held for the whole drain
keeps overlapping drains from uploading the same record. Document writes go
through a temporary file and ``os.replace``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Protocol

from borghi.contracts.capture import CaptureRecord, QueueDocument
from borghi.contracts.enums import CaptureStatus
from borghi.contracts.sync import DrainReport
from borghi.persistence.errors import PersistenceError, QueueSchemaError, SourceMissingError
from borghi.persistence.queue_schema import (
    CURRENT_VERSION,
    dump_queue_document,
    load_queue_document,
)

logger = logging.getLogger(__name__)

QUEUE_FILENAME = "capture_queue.json"
ASSET_DIRNAME = "captures"
DEFAULT_MAX_TRIES = 5
DEFAULT_EXTENSION = "jpg"

UploadFn = Callable[[CaptureRecord], Awaitable[None]]


class SyncGate(Protocol):
    async def can_sync(self) -> bool: ...


class CaptureQueueStore:
    """Single source of truth for queued capture work and its state."""

    def __init__(
        self,
        root: str | Path,
        *,
        gate: SyncGate | None = None,
        max_tries: int = DEFAULT_MAX_TRIES,
    ):
        self._root = Path(root)
        self._queue_path = self._root / QUEUE_FILENAME
        self._asset_dir = self._root / ASSET_DIRNAME
        self._gate = gate
        self._max_tries = max_tries
        self._lock = asyncio.Lock()
        # Held for a whole drain; _lock only guards single document updates
        self._drain_lock = asyncio.Lock()
        self._last_id = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def queue_path(self) -> Path:
        return self._queue_path

    @property
    def asset_dir(self) -> Path:
        return self._asset_dir

    @property
    def max_tries(self) -> int:
        return self._max_tries

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_all(self) -> list[CaptureRecord]:
        """All records in any state, sorted by id (capture order)."""
        async with self._lock:
            doc = await self._read()
        return sorted(doc.items, key=lambda r: r.id)

    async def get(self, record_id: str) -> CaptureRecord | None:
        async with self._lock:
            doc = await self._read()
        return doc.get(record_id)

    async def can_sync(self) -> bool:
        """Whether network and power conditions allow a drain right now."""
        if self._gate is None:
            return True
        return await self._gate.can_sync()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def enqueue(
        self,
        temp_asset_path: str | Path,
        village_id: str,
        village_name: str,
        lat: float,
        lng: float,
        heading: float,
    ) -> str:
        """Promote the camera file to permanent storage and queue it as pending.

        Raises ``SourceMissingError`` if the temporary file is gone, and
        ``PersistenceError`` for any other storage failure.
        """
        source = _local_path(temp_asset_path)
        if not await asyncio.to_thread(source.is_file):
            raise SourceMissingError(source)

        async with self._lock:
            doc = await self._read()
            record_id = self._next_id(doc)
            ext = source.suffix.lstrip(".") or DEFAULT_EXTENSION
            destination = self._asset_dir / f"{record_id}.{ext}"

            moved = await asyncio.to_thread(_transfer_asset, source, destination)

            record = CaptureRecord(
                id=record_id,
                asset_uri=str(destination),
                village_id=village_id,
                village_name=village_name,
                lat=lat,
                lng=lng,
                heading=heading,
                captured_at=datetime.now(tz=timezone.utc),
            )
            doc.items.append(record)
            try:
                await self._write(doc)
            except PersistenceError:
                await asyncio.to_thread(_rollback_asset, source, destination, moved)
                raise

        # The temporary file goes only once the record is durable
        if not moved:
            await asyncio.to_thread(_delete_quietly, source)

        logger.info("Queued capture %s for %s (%s)", record_id, village_name, village_id)
        return record_id

    async def remove(self, record_id: str) -> bool:
        """Delete a record and, best effort, its asset file.

        Returns ``False`` if no such record exists.
        """
        async with self._lock:
            doc = await self._read()
            record = doc.get(record_id)
            if record is None:
                return False
            await asyncio.to_thread(_delete_quietly, Path(record.asset_uri))
            doc.items = [it for it in doc.items if it.id != record_id]
            await self._write(doc)

        logger.info("Removed capture %s", record_id)
        return True

    async def drain(self, upload: UploadFn) -> DrainReport:
        """Attempt to upload every pending record once.

        - ``tries >= max_tries``: the record becomes ``failed`` without an upload.
        - upload succeeds: ``done``, ``last_error`` cleared.
        - upload raises: ``tries`` + 1, ``last_error`` set, stays ``pending``.

        A record's failure never stops the others. The document is written
        once at the end, and only if something changed. Overlapping drains
        run one after the other; enqueue and remove are never blocked.
        """
        async with self._drain_lock:
            return await self._drain_once(upload)

    async def _drain_once(self, upload: UploadFn) -> DrainReport:
        report = DrainReport()
        async with self._lock:
            doc = await self._read()
        pending = sorted((r for r in doc.items if r.is_pending), key=lambda r: r.id)

        changes: dict[str, CaptureRecord] = {}
        for record in pending:
            report.processed += 1
            if record.tries >= self._max_tries:
                changes[record.id] = record.model_copy(update={"status": CaptureStatus.FAILED})
                report.failed += 1
                logger.warning(
                    "Capture %s gave up after %d tries: %s",
                    record.id, record.tries, record.last_error,
                )
                continue

            try:
                await upload(record)
            except Exception as exc:
                changes[record.id] = record.model_copy(
                    update={"tries": record.tries + 1, "last_error": _error_message(exc)}
                )
                report.retried += 1
                logger.warning("Upload of capture %s failed: %s", record.id, exc)
            else:
                changes[record.id] = record.model_copy(
                    update={"status": CaptureStatus.DONE, "last_error": None}
                )
                report.uploaded += 1

        if changes:
            async with self._lock:
                current = await self._read()
                # Records removed during the uploads stay removed
                current.items = [changes.get(it.id, it) for it in current.items]
                await self._write(current)

        report.finished_at = datetime.now(tz=timezone.utc)
        logger.info(
            "Drain finished: %d processed, %d uploaded, %d retried, %d failed",
            report.processed, report.uploaded, report.retried, report.failed,
        )
        return report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _next_id(self, doc: QueueDocument) -> str:
        """Millisecond timestamp, bumped past any id already handed out."""
        candidate = time.time_ns() // 1_000_000
        for item in doc.items:
            if item.id.isdigit():
                candidate = max(candidate, int(item.id) + 1)
        candidate = max(candidate, self._last_id + 1)
        self._last_id = candidate
        return str(candidate)

    async def _read(self) -> QueueDocument:
        return await asyncio.to_thread(self._read_sync)

    async def _write(self, doc: QueueDocument) -> None:
        await asyncio.to_thread(self._write_sync, doc)

    def _ensure_setup(self) -> None:
        try:
            self._asset_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot create asset directory {self._asset_dir}: {exc}") from exc
        if not self._queue_path.exists():
            self._write_sync(QueueDocument())

    def _read_sync(self) -> QueueDocument:
        self._ensure_setup()
        try:
            raw = self._queue_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Cannot read {self._queue_path}: {exc}") from exc

        try:
            doc, version = load_queue_document(raw)
        except QueueSchemaError as exc:
            # Local cache only, not a system of record: start over
            logger.warning("Resetting unreadable capture queue %s: %s", self._queue_path, exc)
            doc = QueueDocument()
            self._write_sync(doc)
            return doc

        if version != CURRENT_VERSION:
            logger.info(
                "Upgrading capture queue from schema v%d to v%d (%d records)",
                version, CURRENT_VERSION, len(doc.items),
            )
            self._write_sync(doc)
        return doc

    def _write_sync(self, doc: QueueDocument) -> None:
        tmp_path = self._queue_path.with_name(self._queue_path.name + ".tmp")
        try:
            self._queue_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(dump_queue_document(doc), encoding="utf-8")
            os.replace(tmp_path, self._queue_path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {self._queue_path}: {exc}") from exc


# ------------------------------------------------------------------
# File helpers
# ------------------------------------------------------------------

def _local_path(uri: str | Path) -> Path:
    """Accept plain paths and ``file://`` URIs from the camera layer."""
    text = str(uri)
    if text.startswith("file://"):
        text = text[len("file://"):]
    return Path(text)


def _transfer_asset(source: Path, destination: Path) -> bool:
    """Copy the asset to permanent storage; fall back to a move if the copy fails.

    Success means the permanent copy exists. Returns ``True`` when the source
    was moved, ``False`` when it was copied and is still in place.
    """
    moved = False
    try:
        shutil.copy2(source, destination)
    except FileNotFoundError as exc:
        raise SourceMissingError(source) from exc
    except OSError as copy_exc:
        logger.warning("Copy of %s failed (%s), trying move", source, copy_exc)
        try:
            shutil.move(str(source), str(destination))
        except FileNotFoundError as exc:
            raise SourceMissingError(source) from exc
        except OSError as exc:
            raise PersistenceError(f"Cannot store asset {source} -> {destination}: {exc}") from exc
        moved = True

    if not destination.is_file():
        raise PersistenceError(f"Asset not found at {destination} after transfer")
    return moved


def _rollback_asset(source: Path, destination: Path, moved: bool) -> None:
    """Undo ``_transfer_asset`` after the record could not be written."""
    if moved:
        try:
            shutil.move(str(destination), str(source))
        except OSError as exc:
            logger.error("Could not restore %s to %s: %s", destination, source, exc)
        return
    _delete_quietly(destination)


def _delete_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not delete asset %s: %s", path, exc)


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__ or "upload error"
