"""Village: static reference data, loaded once and never mutated.

Bundled at: ``borghi/data/villages.json`` (lite format, produced by
``borghi.etl.cli``).
"""

from pydantic import ConfigDict, Field, field_validator

from borghi.contracts.common import DocumentModel, Position


class Village(DocumentModel):
    """A small historic settlement ("borgo"), the unit of discovery."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        frozen=True,
    )

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)
    province_code: str | None = Field(default=None, alias="provinceCode")
    region_id: str = Field(..., alias="regionId")

    @field_validator("province_code", mode="before")
    @classmethod
    def empty_province_is_none(cls, v: str | None) -> str | None:
        # The import pipeline writes "" when the province is unknown
        return v or None

    @property
    def position(self) -> Position:
        return Position(lat=self.lat, lng=self.lng)
