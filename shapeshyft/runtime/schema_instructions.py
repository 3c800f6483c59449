"""Schema instruction renderer.

Turns an output JSON Schema into:
- a bullet list of field instructions a model can follow
- a representative example payload

Both are pure functions of the schema. The prompt builder is the only caller,
which keeps the preview prompt and the executed prompt in lockstep.
"""

from __future__ import annotations

import json
from typing import Any

from shapeshyft.domain.schema.json_schema import JsonSchema

_PLACEHOLDERS: dict[str, Any] = {
    'string': '<string>',
    'number': 0.0,
    'integer': 0,
    'boolean': True,
}


def render_instructions(schema: JsonSchema, depth: int = 0) -> str:
    """Render field instructions for every property of an object schema.

    Args:
        schema: Output schema (object or array of objects).
        depth: Indent level, two spaces per level.

    Returns:
        Newline-joined instruction lines, empty if the schema has no properties.
    """
    indent = '  ' * depth
    lines: list[str] = []

    if schema.effective_type == 'array' and schema.items is not None:
        lines.extend(_describe_items(schema.items, indent, depth))
        return '\n'.join(lines)

    if schema.effective_type != 'object' or not schema.properties:
        return ''

    for name, prop in schema.properties.items():
        marker = '(required)' if schema.is_required(name) else '(optional)'
        lines.append(f'{indent}- `{name}` ({prop.type or "any"}) {marker}: {prop.description or ""}')

        if prop.enum:
            allowed = ', '.join(json.dumps(v, ensure_ascii=False) for v in prop.enum)
            lines.append(f'{indent}  Allowed values: {allowed}')

        constraints = describe_constraints(prop)
        if constraints:
            lines.append(f'{indent}  Constraints: {constraints}')

        if prop.type == 'object' and prop.properties:
            lines.append(f'{indent}  Properties:')
            lines.append(render_instructions(prop, depth + 2))
        elif prop.type == 'array' and prop.items is not None:
            lines.extend(_describe_items(prop.items, indent, depth))

    return '\n'.join(lines)


def _describe_items(items: JsonSchema, indent: str, depth: int) -> list[str]:
    if items.effective_type == 'object' and items.properties:
        return [
            f'{indent}  (array of items, each item should have:)',
            render_instructions(items, depth + 2),
        ]
    return [f'{indent}  (array of {items.type or "any"} items)']


def describe_constraints(schema: JsonSchema) -> str:
    """Join the validation keywords present on `schema`, or '' when none are."""
    parts: list[str] = []
    if schema.minimum is not None:
        parts.append(f'min: {schema.minimum}')
    if schema.maximum is not None:
        parts.append(f'max: {schema.maximum}')
    if schema.min_length is not None:
        parts.append(f'min length: {schema.min_length}')
    if schema.max_length is not None:
        parts.append(f'max length: {schema.max_length}')
    if schema.pattern:
        parts.append(f'pattern: {schema.pattern}')
    if schema.format:
        parts.append(f'format: {schema.format}')
    return ', '.join(parts)


def generate_example(schema: JsonSchema) -> Any:
    """Build a representative instance of `schema`.

    Precedence: explicit default, then first enum value, then structure,
    then a fixed placeholder per primitive type (None for unknown types).
    """
    if schema.has_default:
        return schema.default
    if schema.enum:
        return schema.enum[0]

    schema_type = schema.effective_type
    if schema_type == 'object' and schema.properties:
        return {name: generate_example(prop) for name, prop in schema.properties.items()}

    if schema_type == 'array':
        if schema.items is not None:
            return [generate_example(schema.items)]
        return []

    return _PLACEHOLDERS.get(schema_type)


def is_complex(schema: JsonSchema) -> bool:
    """Whether the prompt should carry a generated example for this schema."""
    if not schema.properties:
        return False
    if len(schema.properties) > 3:
        return True
    return any(prop.type in ('object', 'array') for prop in schema.properties.values())
