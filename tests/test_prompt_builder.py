from __future__ import annotations

from shapeshyft.domain.schema.json_schema import JsonSchema
from shapeshyft.llm.base import ProviderName
from shapeshyft.runtime.prompt_builder import (
    PromptInput,
    build_legacy_prompts,
    build_prompt,
    build_schema_sections,
    format_input_data,
)

COMPLEX_SCHEMA = JsonSchema.model_validate({
    'type': 'object',
    'properties': {
        'title': {'type': 'string'},
        'tags': {'type': 'array', 'items': {'type': 'string'}},
    },
    'required': ['title'],
})


def test_combined_prompt_section_order() -> None:
    prompt = build_prompt(
        PromptInput(
            input_data={'text': 'hello'},
            output_schema=COMPLEX_SCHEMA,
            description='Summarize',
            context='Be brief',
            provider=ProviderName.ANTHROPIC,
        )
    )

    markers = [
        '<!-- Note: This prompt is optimized for Anthropic models (Claude) -->',
        '# Instructions',
        '## Task\nSummarize',
        '## Context\nBe brief',
        '## Required Output Fields',
        '## Example Output',
        '## Response Format',
        '---',
        '# Input',
        '- text: "hello"',
    ]
    positions = [prompt.index(marker) for marker in markers]
    assert positions == sorted(positions)


def test_schema_sections_identical_in_both_forms() -> None:
    prompt_input = PromptInput(
        input_data={'a': 1},
        output_schema=COMPLEX_SCHEMA,
        description='Do it',
        provider=ProviderName.OPENAI,
    )

    combined = build_prompt(prompt_input)
    legacy = build_legacy_prompts(prompt_input)

    sections = build_schema_sections(COMPLEX_SCHEMA)
    assert len(sections) == 2
    for section in sections:
        assert section in combined
        assert section in legacy.system


def test_no_schema_omits_fields_but_keeps_json_directive() -> None:
    prompt_input = PromptInput(input_data='free text')

    combined = build_prompt(prompt_input)
    legacy = build_legacy_prompts(prompt_input)

    for text in (combined, legacy.system):
        assert '## Required Output Fields' not in text
        assert '## Example Output' not in text
        assert 'Respond with valid JSON only.' in text
    assert not combined.startswith('<!--')


def test_simple_schema_has_no_example() -> None:
    flat = JsonSchema.model_validate({'type': 'object', 'properties': {'a': {'type': 'string'}}})
    assert len(build_schema_sections(flat)) == 1


def test_legacy_user_prompt_structured_and_text() -> None:
    structured = build_legacy_prompts(PromptInput(input_data={'name': 'Ada'}))
    text = build_legacy_prompts(PromptInput(input_data='some words'))

    assert structured.user == 'Process the following data and generate the structured response:\n\n- name: "Ada"'
    assert text.user == 'Process the following text and generate the structured response:\n\nsome words'


def test_legacy_system_includes_context() -> None:
    legacy = build_legacy_prompts(PromptInput(input_data={}, context='Domain: retail'))
    assert legacy.system.startswith('You are a helpful assistant that produces structured data output.')
    assert '## Context\nDomain: retail' in legacy.system


def test_format_input_data() -> None:
    data = {'user': {'name': 'Ada', 'age': 36}, 'tags': ['a', 'b'], 'n': 1}

    assert format_input_data(data).splitlines() == [
        '- user:',
        '    - name: "Ada"',
        '    - age: 36',
        '- tags: ["a", "b"]',
        '- n: 1',
    ]
    assert format_input_data([1, 2]) == '[1, 2]'
    assert format_input_data('raw') == 'raw'
