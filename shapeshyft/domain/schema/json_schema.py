"""JSON Schema as a closed, recursive model.

Only the keywords the prompt renderer and the provider adapters understand are
kept. Anything else in a user-authored schema is dropped on parse, so what we
forward to a provider is always something we know how to describe.

Examples:
    >>> schema = JsonSchema.model_validate({"type": "object", "properties": {"name": {"type": "string"}}})
    >>> schema.to_dict()
    {'type': 'object', 'properties': {'name': {'type': 'string'}}}
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Keywords some providers reject outright.
META_KEYWORDS = ('$schema', '$id', 'definitions', '$defs')


class JsonSchema(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)

    type: str | None = None
    title: str | None = None
    description: str | None = None
    properties: dict[str, JsonSchema] | None = None
    required: list[str] | None = None
    items: JsonSchema | None = None
    enum: list[Any] | None = None
    default: Any = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    min_length: int | None = Field(default=None, alias='minLength')
    max_length: int | None = Field(default=None, alias='maxLength')
    pattern: str | None = None
    format: str | None = None
    additional_properties: bool | None = Field(default=None, alias='additionalProperties')

    schema_uri: str | None = Field(default=None, alias='$schema')
    schema_id: str | None = Field(default=None, alias='$id')
    definitions: dict[str, Any] | None = None
    defs: dict[str, Any] | None = Field(default=None, alias='$defs')

    @property
    def has_default(self) -> bool:
        """True when `default` was supplied, including an explicit null."""
        return 'default' in self.model_fields_set

    @property
    def effective_type(self) -> str:
        return self.type or 'object'

    def is_required(self, name: str) -> bool:
        return name in (self.required or [])

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to plain JSON Schema with only the supplied keywords."""
        return self.model_dump(by_alias=True, exclude_unset=True)


def parse_schema(raw: dict[str, Any] | JsonSchema | None) -> JsonSchema | None:
    if raw is None:
        return None
    if isinstance(raw, JsonSchema):
        return raw
    return JsonSchema.model_validate(raw)


def strip_meta_keywords(schema: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of `schema` without META_KEYWORDS, at every nesting level."""
    cleaned: dict[str, Any] = {}
    for key, value in schema.items():
        if key in META_KEYWORDS:
            continue
        if key == 'properties' and isinstance(value, dict):
            cleaned[key] = {
                name: strip_meta_keywords(prop) if isinstance(prop, dict) else prop
                for name, prop in value.items()
            }
        elif key == 'items' and isinstance(value, dict):
            cleaned[key] = strip_meta_keywords(value)
        else:
            cleaned[key] = value
    return cleaned
