"""Shared pydantic base for models exchanged with collaborators."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model that reads and writes camelCase keys but is populated by snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump to the camelCase JSON shape, dropping unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
