"""Anthropic Messages API adapter (HTTP-based).

Structured output uses tool-use: a single tool `structured_response` whose
`input_schema` is the caller's schema, forced with
`tool_choice: {type: tool, name: structured_response}`. The tool input is the
model output.
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
    post_json,
)

DEFAULT_BASE_URL = 'https://api.anthropic.com'
DEFAULT_MODEL = 'claude-3-5-sonnet-20241022'
DEFAULT_MAX_TOKENS = 4096
ANTHROPIC_VERSION = '2023-06-01'


class AnthropicMessagesProvider(LLMProvider):
    """LLM adapter that calls Anthropic's Messages API."""

    provider_name = ProviderName.ANTHROPIC

    def __init__(self, config: HostedProviderConfig, client: httpx.AsyncClient | None = None) -> None:
        if not config.api_key:
            raise ProviderConfigurationError('Anthropic API key is required')
        self._cfg = config
        self._client = client
        self._default_model = config.model or DEFAULT_MODEL

    def build_payload(self, request: LLMRequest) -> dict[str, Any]:
        return drop_none({
            'model': request.model or self._default_model,
            'max_tokens': request.max_tokens or DEFAULT_MAX_TOKENS,
            'system': request.system_prompt,
            'messages': [{'role': 'user', 'content': request.prompt}],
            'tools': [
                {
                    'name': STRUCTURED_TOOL_NAME,
                    'description': STRUCTURED_TOOL_DESCRIPTION,
                    'input_schema': request.schema_dict,
                }
            ],
            'tool_choice': {'type': 'tool', 'name': STRUCTURED_TOOL_NAME},
            'temperature': request.temperature,
        })

    async def generate(self, request: LLMRequest) -> LLMResponse:
        url = f'{(self._cfg.base_url or DEFAULT_BASE_URL).rstrip("/")}/v1/messages'
        headers = {
            'x-api-key': self._cfg.api_key,
            'anthropic-version': ANTHROPIC_VERSION,
            'Content-Type': 'application/json',
        }
        body = self.build_payload(request)

        watch = Stopwatch()
        data = await post_json(
            url, body, headers=headers, timeout=self._cfg.timeout, client=self._client, label='Anthropic'
        )
        latency_ms = watch.elapsed_ms

        content = _extract_tool_input(data)
        return LLMResponse(
            content=content,
            raw_response=json.dumps(content, ensure_ascii=False),
            usage=extract_usage(data),
            model=str(data.get('model') or body['model']),
            provider=self.provider_name,
            latency_ms=latency_ms,
        )


def _extract_tool_input(payload: Any) -> Any:
    if isinstance(payload, dict) and isinstance(payload.get('content'), list):
        for block in payload['content']:
            if (
                isinstance(block, dict)
                and block.get('type') == 'tool_use'
                and block.get('name') == STRUCTURED_TOOL_NAME
            ):
                return block.get('input')

    raise MalformedProviderResponseError('Expected tool_use response from Anthropic')
