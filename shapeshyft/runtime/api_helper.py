"""Stateless helpers behind the prompt/request helper routes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from shapeshyft.domain.schema.json_schema import JsonSchema
from shapeshyft.llm.base import LLMProvider, LLMRequest, ProviderName
from shapeshyft.llm.factory import ProviderConfig, create_provider, endpoint_hint, parse_provider

HELPER_SYSTEM_PROMPT = (
    'You are a helpful assistant that produces structured data output. '
    'Respond with valid JSON only.'
)


@dataclass(frozen=True)
class RequestOptions:
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None


def build_request_payload(
    *,
    prompt: str,
    output_schema: JsonSchema | None,
    provider: ProviderName | str,
    provider_config: ProviderConfig,
    options: RequestOptions | None = None,
    provider_factory: Callable[..., LLMProvider] = create_provider,
) -> dict[str, Any]:
    """Build a ready-to-send provider request for `prompt` without calling the provider.

    Returns:
        {'api_payload': ..., 'endpoint_url': ..., 'provider': ...}
    """
    name = parse_provider(provider)
    opts = options or RequestOptions()
    adapter = provider_factory(name, provider_config)

    request = LLMRequest(
        prompt=prompt,
        system_prompt=HELPER_SYSTEM_PROMPT,
        output_schema=output_schema or JsonSchema(type='object'),
        model=opts.model,
        temperature=opts.temperature if opts.temperature is not None else 0.0,
        max_tokens=opts.max_tokens,
    )

    return {
        'api_payload': adapter.build_payload(request),
        'endpoint_url': endpoint_hint(name, provider_config.endpoint_url),
        'provider': name.value,
    }
