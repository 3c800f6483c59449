from __future__ import annotations

import pytest

from shapeshyft.core.errors import ProviderConfigurationError, UnknownProviderError
from shapeshyft.llm.anthropic_messages import AnthropicMessagesProvider
from shapeshyft.llm.costs import estimate_cost, to_storage_cents
from shapeshyft.llm.factory import PROVIDER_ENDPOINTS, ProviderConfig, create_provider, endpoint_hint
from shapeshyft.llm.gemini import GeminiProvider
from shapeshyft.llm.llm_server import LLMServerProvider
from shapeshyft.llm.openai_chat import OpenAIChatProvider


@pytest.mark.parametrize('provider, expected', [
    ('openai', OpenAIChatProvider),
    ('anthropic', AnthropicMessagesProvider),
    ('gemini', GeminiProvider),
])
def test_factory_builds_hosted_adapters(provider, expected) -> None:
    adapter = create_provider(provider, ProviderConfig(api_key='k'))
    assert isinstance(adapter, expected)


def test_factory_builds_llm_server_from_url() -> None:
    adapter = create_provider('llm_server', ProviderConfig(endpoint_url='http://localhost:1234/v1'))
    assert isinstance(adapter, LLMServerProvider)
    assert adapter.endpoint_url == 'http://localhost:1234/v1'


def test_factory_unknown_provider() -> None:
    with pytest.raises(UnknownProviderError):
        create_provider('mistral', ProviderConfig(api_key='k'))


@pytest.mark.parametrize('provider, config', [
    ('openai', ProviderConfig()),
    ('gemini', ProviderConfig(endpoint_url='http://x')),
    ('llm_server', ProviderConfig(api_key='k')),
])
def test_factory_missing_credential(provider, config) -> None:
    with pytest.raises(ProviderConfigurationError):
        create_provider(provider, config)


def test_endpoint_hint() -> None:
    assert endpoint_hint('openai') == 'https://api.openai.com/v1/chat/completions'
    assert endpoint_hint('llm_server', 'http://my.server/run') == 'http://my.server/run'
    assert {name.value for name in PROVIDER_ENDPOINTS} == {'openai', 'anthropic', 'gemini', 'llm_server'}


def test_estimate_cost_known_and_default_models() -> None:
    assert estimate_cost('gpt-4o-mini', 1_000_000, 0) == 0.15
    assert estimate_cost('unknown-model-xyz', 1_000_000, 1_000_000) == 4.0
    assert estimate_cost('gemini-2.0-flash-exp', 5_000_000, 5_000_000) == 0.0
    assert estimate_cost('claude-3-opus-20240229', 0, 0) == 0.0


def test_storage_cents() -> None:
    assert to_storage_cents(0.15) == 15
    assert to_storage_cents(estimate_cost('gpt-4o', 2_000_000, 1_000_000)) == 1500
