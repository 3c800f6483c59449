from __future__ import annotations

import pytest

from shapeshyft.domain.schema.json_schema import JsonSchema
from shapeshyft.llm.base import LLMRequest
from shapeshyft.llm.mock import MockProvider


@pytest.mark.asyncio
async def test_mock_provider_returns_static_output() -> None:
    llm = MockProvider(output={'label': 'spam'})
    resp = await llm.generate(LLMRequest(prompt='classify this'))
    assert resp.content == {'label': 'spam'}
    assert resp.usage.total_tokens == resp.usage.prompt_tokens + resp.usage.completion_tokens
    assert len(llm.requests) == 1


@pytest.mark.asyncio
async def test_mock_provider_falls_back_to_schema_example() -> None:
    schema = JsonSchema.model_validate({'type': 'object', 'properties': {'n': {'type': 'integer'}}})
    resp = await MockProvider().generate(LLMRequest(prompt='x', output_schema=schema))
    assert resp.content == {'n': 0}
