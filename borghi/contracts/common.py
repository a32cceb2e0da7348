"""Base classes and shared types for Borghi contracts.

Unit conventions (all contracts and API responses):
- **Distances**: kilometers: suffix ``_km``
- **Bearings/headings**: degrees in [0, 360), 0 = north, clockwise: suffix ``_deg``
  (``heading`` and ``bearing_to_village`` keep their historic names)
- **Battery level**: fraction in [0, 1]
- **Datetimes**: always UTC, ISO 8601 in serialized form
- **Coordinates**: WGS84 decimal degrees
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DocumentModel(BaseModel):
    """Base model with JSON-document-friendly serialization.

    - Enums serialize as string values.
    - ``to_document()`` produces a JSON-safe dict keyed by alias.
    - ``from_document()`` hydrates from such a dict (aliases or field names).
    """

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_document(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "DocumentModel":
        """Create model instance from a document dict."""
        return cls.model_validate(data)


class Position(BaseModel):
    """WGS84 geographic coordinate from the location feed."""

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    model_config = ConfigDict(frozen=True)
