"""Google Gemini adapter (generateContent REST API).

Gemini has no forced tool choice; structured output comes from controlled
generation instead: `responseMimeType: application/json` plus a
`responseSchema`. The schema is sent without the JSON Schema meta keywords
Gemini rejects.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from shapeshyft.core.errors import MalformedProviderResponseError, ProviderConfigurationError
from shapeshyft.domain.schema.json_schema import strip_meta_keywords
from shapeshyft.llm.base import (
    HostedProviderConfig,
    LLMProvider,
    LLMRequest,
    LLMResponse,
    LLMUsage,
    ProviderName,
    Stopwatch,
    drop_none,
    post_json,
)

DEFAULT_BASE_URL = 'https://generativelanguage.googleapis.com/v1beta'
DEFAULT_MODEL = 'gemini-1.5-flash'


class GeminiProvider(LLMProvider):
    """LLM adapter that calls Gemini's generateContent endpoint."""

    provider_name = ProviderName.GEMINI

    def __init__(self, config: HostedProviderConfig, client: httpx.AsyncClient | None = None) -> None:
        if not config.api_key:
            raise ProviderConfigurationError('Gemini API key is required')
        self._cfg = config
        self._client = client
        self._default_model = config.model or DEFAULT_MODEL

    def build_payload(self, request: LLMRequest) -> dict[str, Any]:
        system_instruction = None
        if request.system_prompt:
            system_instruction = {'parts': [{'text': request.system_prompt}]}

        return drop_none({
            'model': request.model or self._default_model,
            'contents': [{'role': 'user', 'parts': [{'text': request.prompt}]}],
            'systemInstruction': system_instruction,
            'generationConfig': drop_none({
                'responseMimeType': 'application/json',
                'responseSchema': strip_meta_keywords(request.schema_dict),
                'temperature': request.temperature,
                'maxOutputTokens': request.max_tokens,
            }),
        })

    async def generate(self, request: LLMRequest) -> LLMResponse:
        payload = self.build_payload(request)
        model = payload.pop('model')
        url = f'{(self._cfg.base_url or DEFAULT_BASE_URL).rstrip("/")}/models/{model}:generateContent'
        headers = {
            'x-goog-api-key': self._cfg.api_key,
            'Content-Type': 'application/json',
        }

        watch = Stopwatch()
        data = await post_json(
            url, payload, headers=headers, timeout=self._cfg.timeout, client=self._client, label='Gemini'
        )
        latency_ms = watch.elapsed_ms

        raw_response = _extract_text(data)
        try:
            content = json.loads(raw_response)
        except json.JSONDecodeError as exc:
            raise MalformedProviderResponseError(f'Gemini response is not valid JSON: {exc}') from exc

        return LLMResponse(
            content=content,
            raw_response=raw_response,
            usage=_extract_usage_metadata(data),
            model=model,
            provider=self.provider_name,
            latency_ms=latency_ms,
        )


def _extract_text(payload: Any) -> str:
    """Concatenate the text parts of the first candidate."""
    if isinstance(payload, dict):
        candidates = payload.get('candidates')
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            parts = (candidates[0].get('content') or {}).get('parts') or []
            texts = [p['text'] for p in parts if isinstance(p, dict) and isinstance(p.get('text'), str)]
            if texts:
                return ''.join(texts)

    raise MalformedProviderResponseError('Gemini response contained no text candidate')


def _extract_usage_metadata(payload: dict[str, Any]) -> LLMUsage:
    meta = payload.get('usageMetadata')
    if not isinstance(meta, dict):
        return LLMUsage()
    prompt_tokens = int(meta.get('promptTokenCount') or 0)
    completion_tokens = int(meta.get('candidatesTokenCount') or 0)
    total_tokens = meta.get('totalTokenCount')
    return LLMUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=int(total_tokens) if total_tokens is not None else prompt_tokens + completion_tokens,
    )
