"""Prompt assembly.

Two renditions of the same instructions:

- `build_prompt`: one human-readable prompt (preview / paste into a chat app)
- `build_legacy_prompts`: a system + user pair sent to providers on execution

Both take their schema sections from `build_schema_sections`, so the text a
user previews is exactly the text the model receives.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from shapeshyft.domain.schema.json_schema import JsonSchema
from shapeshyft.llm.base import ProviderName
from shapeshyft.runtime.schema_instructions import generate_example, is_complex, render_instructions

ASSISTANT_FRAMING = 'You are a helpful assistant that produces structured data output.'
RESPONSE_FORMAT_DIRECTIVE = (
    '## Response Format\n'
    'Respond with valid JSON only. Do not include any text outside the JSON object.'
)
STRUCTURED_USER_LEAD = 'Process the following data and generate the structured response:\n\n'
TEXT_USER_LEAD = 'Process the following text and generate the structured response:\n\n'

PROVIDER_NOTES: dict[ProviderName, str] = {
    ProviderName.OPENAI: 'Note: This prompt is optimized for OpenAI models (GPT-4, GPT-4o, etc.)',
    ProviderName.ANTHROPIC: 'Note: This prompt is optimized for Anthropic models (Claude)',
    ProviderName.GEMINI: 'Note: This prompt is optimized for Google Gemini models',
    ProviderName.LLM_SERVER: 'Note: This prompt is designed for custom LLM servers',
}


@dataclass(frozen=True)
class PromptInput:
    """Everything needed to assemble a prompt for one request."""

    input_data: Any
    output_schema: JsonSchema | None = None
    description: str | None = None
    context: str | None = None
    provider: ProviderName | None = None


@dataclass(frozen=True)
class LegacyPrompts:
    system: str
    user: str


def provider_note(provider: ProviderName | str | None) -> str:
    if provider is None:
        return ''
    try:
        return PROVIDER_NOTES.get(ProviderName(provider), '')
    except ValueError:
        return ''


def build_schema_sections(output_schema: JsonSchema | None) -> list[str]:
    """Required-fields section plus, for complex schemas, an example section.

    Returns an empty list when there is no output schema.
    """
    if output_schema is None:
        return []

    sections = [
        '## Required Output Fields\n'
        'Your response must include the following fields:\n'
        f'{render_instructions(output_schema)}'
    ]
    if is_complex(output_schema):
        example = json.dumps(generate_example(output_schema), indent=2, ensure_ascii=False)
        sections.append(f'## Example Output\n```json\n{example}\n```')
    return sections


def _instruction_sections(prompt_input: PromptInput) -> list[str]:
    sections: list[str] = []
    if prompt_input.description:
        sections.append(f'## Task\n{prompt_input.description}')
    if prompt_input.context:
        sections.append(f'## Context\n{prompt_input.context}')
    sections.extend(build_schema_sections(prompt_input.output_schema))
    sections.append(RESPONSE_FORMAT_DIRECTIVE)
    return sections


def build_prompt(prompt_input: PromptInput) -> str:
    """Combined prompt used for previews."""
    parts: list[str] = []

    note = provider_note(prompt_input.provider)
    if note:
        parts.append(f'<!-- {note} -->')

    parts.append(f'# Instructions\n\n{ASSISTANT_FRAMING}')
    parts.extend(_instruction_sections(prompt_input))
    parts.append('---')
    parts.append(f'# Input\n\nProcess the following data:\n\n{format_input_data(prompt_input.input_data)}')

    return '\n\n'.join(parts)


def build_legacy_prompts(prompt_input: PromptInput) -> LegacyPrompts:
    """System/user pair sent to providers when an endpoint is executed.

    The system prompt carries the preview's instruction sections, including
    `## Context` when the endpoint defines one.
    """
    system = '\n\n'.join([ASSISTANT_FRAMING, *_instruction_sections(prompt_input)])
    return LegacyPrompts(system=system, user=build_user_prompt(prompt_input.input_data))


def build_user_prompt(input_data: Any) -> str:
    if isinstance(input_data, dict):
        return STRUCTURED_USER_LEAD + format_input_data(input_data)
    return TEXT_USER_LEAD + format_input_data(input_data)


def format_input_data(value: Any) -> str:
    """
    Render request input for a prompt.

    Objects become `- key: <json>` bullets, with object-valued keys expanded
    one level deeper. Strings are used verbatim; anything else is JSON.
    """
    if isinstance(value, str):
        return value
    if not isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)

    lines: list[str] = []
    for key, item in value.items():
        if isinstance(item, dict):
            lines.append(f'- {key}:')
            for sub_key, sub_item in item.items():
                lines.append(f'    - {sub_key}: {json.dumps(sub_item, ensure_ascii=False)}')
        else:
            lines.append(f'- {key}: {json.dumps(item, ensure_ascii=False)}')
    return '\n'.join(lines)
