"""Tests for capture queue contracts."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from borghi.contracts.capture import CaptureRecord, QueueDocument
from borghi.contracts.enums import CaptureStatus

STORED_RECORD = {
    "id": "1718900000000",
    "uri": "/data/captures/1718900000000.jpg",
    "villageId": "liguria-noli",
    "villageName": "Noli",
    "lat": 44.2,
    "lng": 8.41,
    "heading": 182.5,
    "takenAt": "2024-06-20T16:13:20Z",
    "status": "pending",
    "tries": 2,
    "lastError": "timeout",
}


class TestCaptureRecord:
    def test_from_stored_keys(self):
        record = CaptureRecord.from_document(STORED_RECORD)
        assert record.asset_uri == "/data/captures/1718900000000.jpg"
        assert record.village_id == "liguria-noli"
        assert record.tries == 2
        assert record.last_error == "timeout"
        assert record.status == CaptureStatus.PENDING
        assert record.is_pending

    def test_to_document_uses_stored_keys(self):
        record = CaptureRecord.from_document(STORED_RECORD)
        doc = record.to_document()
        assert doc["uri"] == STORED_RECORD["uri"]
        assert doc["villageId"] == "liguria-noli"
        assert doc["status"] == "pending"
        assert "takenAt" in doc
        assert "asset_uri" not in doc

    def test_last_error_omitted_when_none(self):
        record = CaptureRecord(
            id="1", asset_uri="/a.jpg", village_id="v", village_name="V",
            lat=0.0, lng=0.0, heading=0.0,
        )
        assert "lastError" not in record.to_document()
        assert record.tries == 0
        assert record.status == "pending"

    def test_terminal_states_not_pending(self):
        record = CaptureRecord.from_document({**STORED_RECORD, "status": "done"})
        assert not record.is_pending

    def test_rejects_negative_tries(self):
        with pytest.raises(ValidationError):
            CaptureRecord.from_document({**STORED_RECORD, "tries": -1})

    def test_rejects_unknown_status(self):
        with pytest.raises(ValidationError):
            CaptureRecord.from_document({**STORED_RECORD, "status": "uploading"})


class TestQueueDocument:
    def test_empty_default(self):
        assert QueueDocument().to_document() == {"items": []}

    def test_get_by_id(self):
        doc = QueueDocument.from_document({"items": [STORED_RECORD]})
        assert doc.get("1718900000000").village_name == "Noli"
        assert doc.get("missing") is None
