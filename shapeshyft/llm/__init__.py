"""LLM adapters.

This package intentionally contains ONLY provider adapters.

Rules:
- No prompt assembly here.
- No persistence or analytics here.
- No retries; a provider call either succeeds or raises.

Those belong in the runtime layer.
"""
from .base import (
    HostedProviderConfig,
    LLMProvider,
    LLMRequest,
    LLMResponse,
    LLMServerConfig,
    LLMUsage,
    ProviderName,
)
from .costs import estimate_cost, to_storage_cents
from .factory import PROVIDER_ENDPOINTS, ProviderConfig, create_provider, endpoint_hint
