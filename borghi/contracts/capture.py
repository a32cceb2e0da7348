"""CaptureRecord and QueueDocument: the offline capture queue.

Persisted as one JSON document: ``<data_dir>/capture_queue.json``
(shape ``{"items": [...]}``). Asset files live in ``<data_dir>/captures/``.

Wire keys keep the historic camelCase names (``uri``, ``villageId``,
``takenAt``...) so documents written by earlier app versions load unchanged.
"""

from datetime import datetime, timezone

from pydantic import Field

from borghi.contracts.common import DocumentModel
from borghi.contracts.enums import CaptureStatus


class CaptureRecord(DocumentModel):
    """One queued photo plus capture-time metadata awaiting upload.

    Only the queue store mutates records; ``status`` follows
    ``pending -> done`` or ``pending -> failed`` and never leaves a
    terminal state automatically.
    """

    id: str = Field(..., min_length=1, description="Creation timestamp (ms), sortable")
    asset_uri: str = Field(..., alias="uri", description="Path in permanent storage")
    village_id: str = Field(..., alias="villageId")
    village_name: str = Field(..., alias="villageName")
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    heading: float
    captured_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc), alias="takenAt"
    )
    status: CaptureStatus = CaptureStatus.PENDING
    tries: int = Field(default=0, ge=0)
    last_error: str | None = Field(default=None, alias="lastError")

    @property
    def is_pending(self) -> bool:
        return self.status == CaptureStatus.PENDING


class QueueDocument(DocumentModel):
    """Current schema of the persisted queue."""

    items: list[CaptureRecord] = Field(default_factory=list)

    def get(self, record_id: str) -> CaptureRecord | None:
        for item in self.items:
            if item.id == record_id:
                return item
        return None
