from __future__ import annotations

import json

import httpx
import pytest

from shapeshyft.core.errors import MalformedProviderResponseError, ProviderConfigurationError
from shapeshyft.domain.schema.json_schema import JsonSchema
from shapeshyft.llm.anthropic_messages import AnthropicMessagesProvider
from shapeshyft.llm.base import HostedProviderConfig, LLMRequest, ProviderName
from shapeshyft.llm.gemini import GeminiProvider

SCHEMA = {
    '$schema': 'http://json-schema.org/draft-07/schema#',
    'type': 'object',
    'properties': {
        'items': {
            'type': 'array',
            'items': {'$id': 'item', 'type': 'object', 'properties': {'sku': {'type': 'string'}}},
        },
    },
}


def _request() -> LLMRequest:
    return LLMRequest(prompt='PROMPT', system_prompt='SYSTEM', output_schema=JsonSchema.model_validate(SCHEMA))


# -----------------------------------------
# Anthropic
# -----------------------------------------

def test_anthropic_payload_forces_tool() -> None:
    provider = AnthropicMessagesProvider(HostedProviderConfig(api_key='ak'))

    payload = provider.build_payload(_request())

    assert payload['tools'][0]['name'] == 'structured_response'
    assert payload['tools'][0]['input_schema'] == SCHEMA
    assert payload['tool_choice'] == {'type': 'tool', 'name': 'structured_response'}
    assert payload['system'] == 'SYSTEM'
    assert payload['max_tokens'] == 4096
    assert payload['messages'] == [{'role': 'user', 'content': 'PROMPT'}]


@pytest.mark.asyncio
async def test_anthropic_generate_reads_tool_use_block() -> None:
    # Arrange
    fake_payload = {
        'model': 'claude-3-5-sonnet-20241022',
        'content': [
            {'type': 'text', 'text': 'Here you go'},
            {'type': 'tool_use', 'name': 'structured_response', 'input': {'items': []}},
        ],
        'usage': {'input_tokens': 30, 'output_tokens': 7},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == '/v1/messages'
        assert request.headers['x-api-key'] == 'ak'
        assert request.headers['anthropic-version'] == '2023-06-01'
        return httpx.Response(200, json=fake_payload)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = AnthropicMessagesProvider(HostedProviderConfig(api_key='ak'), client=client)

        # Act
        resp = await provider.generate(_request())

    # Assert
    assert resp.content == {'items': []}
    assert resp.provider == ProviderName.ANTHROPIC
    assert resp.usage.total_tokens == 37


@pytest.mark.asyncio
async def test_anthropic_generate_without_tool_use_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={'content': [{'type': 'text', 'text': '{"items": []}'}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = AnthropicMessagesProvider(HostedProviderConfig(api_key='ak'), client=client)

        with pytest.raises(MalformedProviderResponseError):
            await provider.generate(_request())


def test_anthropic_requires_key() -> None:
    with pytest.raises(ProviderConfigurationError):
        AnthropicMessagesProvider(HostedProviderConfig(api_key=''))


# -----------------------------------------
# Gemini
# -----------------------------------------

def test_gemini_payload_strips_meta_keywords_recursively() -> None:
    provider = GeminiProvider(HostedProviderConfig(api_key='gk'))

    payload = provider.build_payload(_request())

    config = payload['generationConfig']
    assert config['responseMimeType'] == 'application/json'
    assert '$schema' not in config['responseSchema']
    assert '$id' not in config['responseSchema']['properties']['items']['items']
    assert config['responseSchema']['properties']['items']['items']['type'] == 'object'
    assert payload['systemInstruction'] == {'parts': [{'text': 'SYSTEM'}]}


@pytest.mark.asyncio
async def test_gemini_generate_parses_candidate_text() -> None:
    fake_payload = {
        'candidates': [{'content': {'parts': [{'text': '{"items": '}, {'text': '[{"sku": "A1"}]}'}]}}],
        'usageMetadata': {'promptTokenCount': 9, 'candidatesTokenCount': 4, 'totalTokenCount': 13},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith('/models/gemini-1.5-flash:generateContent')
        assert request.headers['x-goog-api-key'] == 'gk'
        assert 'model' not in json.loads(request.content)
        return httpx.Response(200, json=fake_payload)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = GeminiProvider(HostedProviderConfig(api_key='gk'), client=client)
        resp = await provider.generate(_request())

    assert resp.content == {'items': [{'sku': 'A1'}]}
    assert resp.model == 'gemini-1.5-flash'
    assert (resp.usage.prompt_tokens, resp.usage.completion_tokens, resp.usage.total_tokens) == (9, 4, 13)


@pytest.mark.asyncio
async def test_gemini_invalid_json_is_malformed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={'candidates': [{'content': {'parts': [{'text': 'sorry'}]}}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = GeminiProvider(HostedProviderConfig(api_key='gk'), client=client)

        with pytest.raises(MalformedProviderResponseError):
            await provider.generate(_request())
