"""Shared base for wire DTOs: snake_case in Python, camelCase on the wire."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes the API's camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self, **kwargs) -> dict:
        """Serialize for a request body (camelCase keys, JSON-safe values)."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)
