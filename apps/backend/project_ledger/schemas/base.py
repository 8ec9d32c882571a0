"""Base schema classes and generic types."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Immutable schema serialized with camelCase keys.

    Accepts both snake_case and camelCase input so cached JSON (written by
    alias) validates back into the same model.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
