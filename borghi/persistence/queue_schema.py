"""Versioned loader for the capture queue document.

Known schemas, newest first:

- **v1** (current): ``{"items": [CaptureRecord, ...]}``
- **v0** (legacy): a bare JSON array of records

``load_queue_document`` tries each parser strictly in order; anything that
is not the current schema is normalized and flagged for rewrite.
"""

from __future__ import annotations

import json
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError

from borghi.contracts.capture import CaptureRecord, QueueDocument
from borghi.persistence.errors import QueueSchemaError

CURRENT_VERSION = 1

_records_adapter = TypeAdapter(list[CaptureRecord])


def _parse_v1(data: Any) -> QueueDocument:
    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise ValueError("not a v1 queue document")
    return QueueDocument.model_validate(data)


def _parse_v0(data: Any) -> QueueDocument:
    if not isinstance(data, list):
        raise ValueError("not a v0 queue array")
    return QueueDocument(items=_records_adapter.validate_python(data))


# (version, parser): newest first
SCHEMAS: list[tuple[int, Callable[[Any], QueueDocument]]] = [
    (1, _parse_v1),
    (0, _parse_v0),
]


def load_queue_document(raw: str) -> tuple[QueueDocument, int]:
    """Parse *raw* JSON into the current schema.

    Returns the document and the schema version it was read as. Raises
    ``QueueSchemaError`` when the text is not JSON or no schema matches.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise QueueSchemaError(f"Queue document is not valid JSON: {exc}") from exc

    errors: list[str] = []
    for version, parser in SCHEMAS:
        try:
            return parser(data), version
        except (ValueError, ValidationError) as exc:
            errors.append(f"v{version}: {exc}")
    raise QueueSchemaError("Unrecognized queue document (" + "; ".join(errors) + ")")


def dump_queue_document(doc: QueueDocument) -> str:
    return json.dumps(doc.to_document(), ensure_ascii=False)
