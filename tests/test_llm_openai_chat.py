from __future__ import annotations

import json

import httpx
import pytest

from shapeshyft.core.errors import (
    MalformedProviderResponseError,
    ProviderConfigurationError,
    ProviderHTTPError,
)
from shapeshyft.domain.schema.json_schema import JsonSchema
from shapeshyft.llm.base import HostedProviderConfig, LLMRequest, ProviderName
from shapeshyft.llm.openai_chat import OpenAIChatProvider

SCHEMA = {'type': 'object', 'properties': {'name': {'type': 'string'}}, 'required': ['name']}


def _request() -> LLMRequest:
    return LLMRequest(
        prompt='PROMPT',
        system_prompt='SYSTEM',
        output_schema=JsonSchema.model_validate(SCHEMA),
    )


def test_build_payload_declares_schema_verbatim() -> None:
    provider = OpenAIChatProvider(HostedProviderConfig(api_key='sk-test'))

    payload = provider.build_payload(_request())

    tool = payload['tools'][0]['function']
    assert tool['name'] == 'structured_response'
    assert tool['parameters'] == SCHEMA
    assert payload['tool_choice'] == {'type': 'function', 'function': {'name': 'structured_response'}}
    assert payload['messages'][0] == {'role': 'system', 'content': 'SYSTEM'}
    assert payload['model'] == 'gpt-4o-mini'
    assert 'max_tokens' not in payload


def test_missing_api_key_fails_at_construction() -> None:
    with pytest.raises(ProviderConfigurationError):
        OpenAIChatProvider(HostedProviderConfig(api_key=''))


@pytest.mark.asyncio
async def test_generate_parses_function_arguments() -> None:
    # Arrange: chat completion with a forced tool call.
    fake_payload = {
        'model': 'gpt-4o-mini-2024-07-18',
        'choices': [{
            'message': {
                'tool_calls': [{
                    'type': 'function',
                    'function': {'name': 'structured_response', 'arguments': '{"name": "Ada"}'},
                }],
            },
        }],
        'usage': {'prompt_tokens': 12, 'completion_tokens': 5},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith('/v1/chat/completions')
        assert request.headers['authorization'] == 'Bearer sk-test'
        body = json.loads(request.content)
        assert body['tools'][0]['function']['parameters'] == SCHEMA
        return httpx.Response(200, json=fake_payload)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = OpenAIChatProvider(HostedProviderConfig(api_key='sk-test'), client=client)

        # Act
        resp = await provider.generate(_request())

    # Assert
    assert resp.content == {'name': 'Ada'}
    assert resp.raw_response == '{"name": "Ada"}'
    assert resp.model == 'gpt-4o-mini-2024-07-18'
    assert resp.provider == ProviderName.OPENAI
    assert (resp.usage.prompt_tokens, resp.usage.completion_tokens, resp.usage.total_tokens) == (12, 5, 17)
    assert resp.latency_ms >= 0


@pytest.mark.asyncio
@pytest.mark.parametrize('message', [
    {'content': '{"name": "Ada"}'},
    {'tool_calls': [{'function': {'name': 'other_tool', 'arguments': '{}'}}]},
    {'tool_calls': [{'function': {'name': 'structured_response', 'arguments': 'not json'}}]},
    {'tool_calls': [{'function': 'structured_response'}]},
])
async def test_generate_rejects_unstructured_responses(message: dict) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={'choices': [{'message': message}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = OpenAIChatProvider(HostedProviderConfig(api_key='sk-test'), client=client)

        with pytest.raises(MalformedProviderResponseError):
            await provider.generate(_request())


@pytest.mark.asyncio
async def test_generate_raises_on_http_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text='bad key')

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = OpenAIChatProvider(HostedProviderConfig(api_key='sk-test'), client=client)

        with pytest.raises(ProviderHTTPError) as info:
            await provider.generate(_request())

    assert info.value.status == 401
