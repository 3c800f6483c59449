"""Mock LLM provider.

Use this for:
- deterministic tests
- offline development
- unit tests for orchestration logic
"""

from __future__ import annotations

import json
from typing import Any, Callable

from shapeshyft.domain.schema.json_schema import JsonSchema
from shapeshyft.llm.base import LLMProvider, LLMRequest, LLMResponse, LLMUsage, ProviderName
from shapeshyft.runtime.schema_instructions import generate_example


class MockProvider(LLMProvider):
    """A provider that returns pre-canned structured outputs.

    Provide either:
    - a static payload (returned as content), or
    - a callable that maps request -> payload, or
    - nothing, in which case the schema's generated example is returned.

    `error` makes every generate() call raise it instead.
    """

    def __init__(
        self,
        output: Any | None = None,
        fn: Callable[[LLMRequest], Any] | None = None,
        *,
        provider_name: ProviderName = ProviderName.OPENAI,
        model: str = 'mock-llm',
        error: Exception | None = None,
    ) -> None:
        self._output = output
        self._fn = fn
        self._model = model
        self._error = error
        self.provider_name = provider_name
        self.requests: list[LLMRequest] = []
        self.payload_requests: list[LLMRequest] = []

    def build_payload(self, request: LLMRequest) -> dict[str, Any]:
        self.payload_requests.append(request)
        return {
            'model': request.model or self._model,
            'system': request.system_prompt,
            'prompt': request.prompt,
            'schema': request.schema_dict,
        }

    async def generate(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        if self._error is not None:
            raise self._error

        if self._fn is not None:
            content = self._fn(request)
        elif self._output is not None:
            content = self._output
        else:
            content = generate_example(request.output_schema or JsonSchema(type='object'))

        prompt_tokens = len(request.prompt.split())
        raw = json.dumps(content)
        completion_tokens = len(raw.split())
        return LLMResponse(
            content=content,
            raw_response=raw,
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            model=request.model or self._model,
            provider=self.provider_name,
            latency_ms=0,
        )
