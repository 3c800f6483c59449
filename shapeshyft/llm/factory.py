"""
Provider factory -- single entry point for building adapters.

Supported providers:

  openai      OpenAI Chat Completions   -- needs api_key
  anthropic   Anthropic Messages        -- needs api_key
  gemini      Google generateContent    -- needs api_key
  llm_server  User-operated server      -- needs endpoint_url (OpenAI-compatible payload)

The loosely typed ProviderConfig (what a stored key record can offer) is
narrowed here into the per-provider config each adapter requires.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from shapeshyft.core.errors import ProviderConfigurationError, UnknownProviderError
from shapeshyft.llm.anthropic_messages import AnthropicMessagesProvider
from shapeshyft.llm.base import HostedProviderConfig, LLMProvider, LLMServerConfig, ProviderName
from shapeshyft.llm.gemini import GeminiProvider
from shapeshyft.llm.llm_server import DEFAULT_TIMEOUT_SECONDS, LLMServerProvider
from shapeshyft.llm.openai_chat import OpenAIChatProvider

# Where a caller should send a payload built for a payload-only endpoint.
PROVIDER_ENDPOINTS: dict[ProviderName, str] = {
    ProviderName.OPENAI: 'https://api.openai.com/v1/chat/completions',
    ProviderName.ANTHROPIC: 'https://api.anthropic.com/v1/messages',
    ProviderName.GEMINI: 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent',
    ProviderName.LLM_SERVER: '{custom_endpoint}',
}


@dataclass(frozen=True)
class ProviderConfig:
    api_key: str | None = None
    endpoint_url: str | None = None
    model: str | None = None


def parse_provider(provider: str | ProviderName) -> ProviderName:
    try:
        return ProviderName(provider)
    except ValueError as exc:
        raise UnknownProviderError(f'Unknown provider type: {provider}') from exc


def create_provider(
    provider: str | ProviderName,
    config: ProviderConfig,
    *,
    timeout: float = 120.0,
    server_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: httpx.AsyncClient | None = None,
) -> LLMProvider:
    """
    Build the adapter for `provider`.

    Raises:
        UnknownProviderError: For identifiers outside ProviderName.
        ProviderConfigurationError: If the provider's required credential is missing.
    """
    name = parse_provider(provider)

    if name == ProviderName.LLM_SERVER:
        if not config.endpoint_url:
            raise ProviderConfigurationError('LLM Server endpoint URL is required')
        server_cfg = LLMServerConfig(
            endpoint_url=config.endpoint_url,
            model=config.model,
            timeout=server_timeout,
        )
        return LLMServerProvider(server_cfg, client=client)

    hosted_cfg = HostedProviderConfig(api_key=config.api_key or '', model=config.model, timeout=timeout)
    if name == ProviderName.OPENAI:
        return OpenAIChatProvider(hosted_cfg, client=client)
    if name == ProviderName.ANTHROPIC:
        return AnthropicMessagesProvider(hosted_cfg, client=client)
    if name == ProviderName.GEMINI:
        return GeminiProvider(hosted_cfg, client=client)

    raise UnknownProviderError(f'Unknown provider type: {provider}')


def endpoint_hint(provider: str | ProviderName, endpoint_url: str | None = None) -> str:
    """URL hint returned alongside payload-only responses."""
    name = parse_provider(provider)
    if name == ProviderName.LLM_SERVER and endpoint_url:
        return endpoint_url
    return PROVIDER_ENDPOINTS[name]
