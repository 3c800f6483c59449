"""LLM provider interface.

This module defines the narrow contract used by orchestration code. Every provider:
- builds a provider-native request payload without network I/O (payload-only endpoints)
- calls the provider and forces schema-conformant output (LLM-calling endpoints)
- normalizes the native response into LLMResponse
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from shapeshyft.core.errors import MalformedProviderResponseError, ProviderHTTPError
from shapeshyft.domain.schema.json_schema import JsonSchema

STRUCTURED_TOOL_NAME = 'structured_response'
STRUCTURED_TOOL_DESCRIPTION = 'Generate structured response matching the schema'


class ProviderName(str, Enum):
    """Supported LLM providers."""

    OPENAI = 'openai'
    ANTHROPIC = 'anthropic'
    GEMINI = 'gemini'
    LLM_SERVER = 'llm_server'


@dataclass(frozen=True)
class LLMRequest:
    """
    A provider-agnostic request for structured output.

    Attributes:
        prompt: User-turn prompt text.
        output_schema: Schema the model output must satisfy.
        system_prompt: Optional system instructions.
        model: Optional model override; adapters fall back to their configured default.
        temperature: Sampling temperature, 0 unless overridden.
        max_tokens: Optional output token cap.
    """

    prompt: str
    output_schema: JsonSchema = field(default_factory=lambda: JsonSchema(type='object'))
    system_prompt: str | None = None
    model: str | None = None
    temperature: float = 0.0
    max_tokens: int | None = None

    @property
    def schema_dict(self) -> dict[str, Any]:
        return self.output_schema.to_dict()


@dataclass(frozen=True)
class LLMUsage:
    """Token usage summary; absent provider counts are reported as zero."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class LLMResponse:
    """A normalized provider response.

    Attributes:
        content: Parsed structured output.
        raw_response: The model output as serialized text.
        usage: Token usage.
        model: Model that actually served the request.
        provider: Provider identifier.
        latency_ms: Wall-clock time of the network call.
    """

    content: Any
    raw_response: str
    usage: LLMUsage
    model: str
    provider: ProviderName
    latency_ms: int


@dataclass(frozen=True)
class HostedProviderConfig:
    """Configuration for openai / anthropic / gemini."""

    api_key: str
    model: str | None = None
    base_url: str | None = None
    timeout: float = 120.0


@dataclass(frozen=True)
class LLMServerConfig:
    """Configuration for a user-operated, OpenAI-compatible LLM server."""

    endpoint_url: str
    model: str | None = None
    timeout: float = 120.0


class LLMProvider(ABC):
    """Structured-output adapter for one provider."""

    provider_name: ProviderName

    @abstractmethod
    def build_payload(self, request: LLMRequest) -> dict[str, Any]:
        """Build the provider-native request body. Performs no I/O."""
        raise NotImplementedError

    @abstractmethod
    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Call the provider and return schema-conformant content."""
        raise NotImplementedError


def messages_for(request: LLMRequest) -> list[dict[str, str]]:
    """OpenAI-style message list: optional system turn, then the user prompt."""
    messages: list[dict[str, str]] = []
    if request.system_prompt:
        messages.append({'role': 'system', 'content': request.system_prompt})
    messages.append({'role': 'user', 'content': request.prompt})
    return messages


def drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if v is not None}


def extract_usage(payload: dict[str, Any]) -> LLMUsage:
    """Read token counts from either OpenAI or Anthropic usage naming."""
    usage = payload.get('usage')
    if not isinstance(usage, dict):
        return LLMUsage()

    prompt_tokens = _first_int(usage, 'prompt_tokens', 'input_tokens')
    completion_tokens = _first_int(usage, 'completion_tokens', 'output_tokens')
    total_tokens = usage.get('total_tokens')
    if not isinstance(total_tokens, int):
        total_tokens = prompt_tokens + completion_tokens

    return LLMUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=total_tokens,
    )


def _first_int(usage: dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = usage.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0


async def post_json(
    url: str,
    body: dict[str, Any],
    *,
    headers: dict[str, str],
    timeout: float,
    client: httpx.AsyncClient | None = None,
    label: str,
) -> Any:
    """POST a JSON body and return the decoded JSON response.

    Raises:
        ProviderHTTPError: On a non-2xx status.
        MalformedProviderResponseError: If the body is not JSON.
    """
    if client is not None:
        resp = await client.post(url, json=body, headers=headers, timeout=timeout)
    else:
        async with httpx.AsyncClient() as owned:
            resp = await owned.post(url, json=body, headers=headers, timeout=timeout)

    if not resp.is_success:
        raise ProviderHTTPError(resp.status_code, resp.text, label=label)

    try:
        data = resp.json()
    except ValueError as exc:
        raise MalformedProviderResponseError(f'{label} returned a non-JSON body') from exc
    return data


class Stopwatch:
    """Measures the network call only; prompt construction happens before start."""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    @property
    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._start) * 1000)
