"""
Pydantic base models shared by stored records and API responses.

DESIGN PRINCIPLE:
- Python attributes are snake_case; JSON on the wire and in the store is camelCase
- Every stored record carries a schemaVersion and is validated on read and write
- Models reflect data structure, not business logic
"""

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict

from civicdesk.utils.timeutils import parse_timestamp

SCHEMA_VERSION = 1


def as_utc(value):
    """field_validator hook: stored timestamps without an offset are UTC."""
    return parse_timestamp(value) if value is not None else None


class CamelModel(BaseModel):
    """Base for every model exchanged as camelCase JSON."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    def to_json_dict(self, **kwargs) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, **kwargs)


class StoredRecord(CamelModel):
    """
    Base for entities persisted in the key-value store.
    Records written before versioning existed are read as version 1.
    """
    schema_version: int = Field(default=SCHEMA_VERSION, description="Stored record schema version")

    def to_store(self) -> Dict[str, Any]:
        return self.to_json_dict()

    def to_api_dict(self) -> Dict[str, Any]:
        """Response body form; the storage schema version stays internal."""
        return self.to_json_dict(exclude={"schema_version"})

    @classmethod
    def from_store(cls, data: Any):
        return cls.model_validate(data)
