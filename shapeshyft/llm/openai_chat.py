"""OpenAI Chat Completions adapter (HTTP-based).

Structured output is forced through function calling: one function tool named
`structured_response` whose `parameters` is the caller's schema, selected via
`tool_choice`. The function arguments string is the model output.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from shapeshyft.core.errors import MalformedProviderResponseError, ProviderConfigurationError
from shapeshyft.llm.base import (
    STRUCTURED_TOOL_DESCRIPTION,
    STRUCTURED_TOOL_NAME,
    HostedProviderConfig,
    LLMProvider,
    LLMRequest,
    LLMResponse,
    ProviderName,
    Stopwatch,
    drop_none,
    extract_usage,
    messages_for,
    post_json,
)

DEFAULT_BASE_URL = 'https://api.openai.com/v1'
DEFAULT_MODEL = 'gpt-4o-mini'


class OpenAIChatProvider(LLMProvider):
    """LLM adapter that calls OpenAI's Chat Completions API."""

    provider_name = ProviderName.OPENAI

    def __init__(self, config: HostedProviderConfig, client: httpx.AsyncClient | None = None) -> None:
        if not config.api_key:
            raise ProviderConfigurationError('OpenAI API key is required')
        self._cfg = config
        self._client = client
        self._default_model = config.model or DEFAULT_MODEL

    def build_payload(self, request: LLMRequest) -> dict[str, Any]:
        return drop_none({
            'model': request.model or self._default_model,
            'messages': messages_for(request),
            'tools': [
                {
                    'type': 'function',
                    'function': {
                        'name': STRUCTURED_TOOL_NAME,
                        'description': STRUCTURED_TOOL_DESCRIPTION,
                        'parameters': request.schema_dict,
                    },
                }
            ],
            'tool_choice': {'type': 'function', 'function': {'name': STRUCTURED_TOOL_NAME}},
            'temperature': request.temperature,
            'max_tokens': request.max_tokens,
        })

    async def generate(self, request: LLMRequest) -> LLMResponse:
        url = f'{(self._cfg.base_url or DEFAULT_BASE_URL).rstrip("/")}/chat/completions'
        headers = {
            'Authorization': f'Bearer {self._cfg.api_key}',
            'Content-Type': 'application/json',
        }
        body = self.build_payload(request)

        watch = Stopwatch()
        data = await post_json(
            url, body, headers=headers, timeout=self._cfg.timeout, client=self._client, label='OpenAI'
        )
        latency_ms = watch.elapsed_ms

        raw_response = _extract_tool_arguments(data)
        try:
            content = json.loads(raw_response)
        except json.JSONDecodeError as exc:
            raise MalformedProviderResponseError(
                f'OpenAI function call arguments are not valid JSON: {exc}'
            ) from exc

        return LLMResponse(
            content=content,
            raw_response=raw_response,
            usage=extract_usage(data),
            model=str(data.get('model') or body['model']),
            provider=self.provider_name,
            latency_ms=latency_ms,
        )


def _extract_tool_arguments(payload: Any) -> str:
    """Return the arguments string of the forced `structured_response` call."""
    if not isinstance(payload, dict):
        raise MalformedProviderResponseError('Expected function call response from OpenAI')

    choices = payload.get('choices')
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get('message') or {}
        tool_calls = message.get('tool_calls') if isinstance(message, dict) else None
        if isinstance(tool_calls, list) and tool_calls and isinstance(tool_calls[0], dict):
            function = tool_calls[0].get('function')
            if (
                isinstance(function, dict)
                and function.get('name') == STRUCTURED_TOOL_NAME
                and isinstance(function.get('arguments'), str)
            ):
                return function['arguments']

    raise MalformedProviderResponseError('Expected function call response from OpenAI')
