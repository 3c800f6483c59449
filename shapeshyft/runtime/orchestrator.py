"""Endpoint execution: resolve -> validate input -> build prompt -> payload or LLM call -> record.

This is the "application brain" behind the public AI route. It is responsible for:
- resolving a tenant-scoped project and endpoint by name
- enforcing the endpoint's HTTP verb and input kind
- turning the endpoint definition into a canonical LLMRequest
- payload-only endpoints: returning the provider-native payload, no network call
- LLM-calling endpoints: calling the provider, estimating cost, recording usage
- Observability: trace id + span around the provider call

Failure recording: once a credential has been resolved for an LLM-calling
endpoint, every attempt produces exactly one usage event, success or not.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from shapeshyft.core.errors import (
    CredentialUnavailableError,
    InputValidationError,
    LLMProcessingError,
    MethodNotAllowedError,
    NotFoundError,
    PayloadBuildError,
)
from shapeshyft.domain.analytics.entities import UsageEvent
from shapeshyft.domain.analytics.repository import AnalyticsRepositoryProtocol
from shapeshyft.domain.keys.entities import LlmApiKey
from shapeshyft.domain.keys.repository import KeyRepositoryProtocol
from shapeshyft.domain.projects.entities import Endpoint
from shapeshyft.domain.projects.repository import EndpointLookupProtocol
from shapeshyft.domain.schema.json_schema import JsonSchema, parse_schema
from shapeshyft.llm.base import LLMProvider, LLMRequest
from shapeshyft.llm.costs import estimate_cost, to_storage_cents
from shapeshyft.llm.factory import ProviderConfig, create_provider, endpoint_hint
from shapeshyft.observability.tracing import Span, log_event, new_trace_id
from shapeshyft.runtime.prompt_builder import PromptInput, build_legacy_prompts, build_prompt

ProviderFactory = Callable[[str, ProviderConfig], LLMProvider]


class KeyDecryptor(Protocol):
    def decrypt(self, ciphertext_hex: str, iv_hex: str) -> str:
        ...


@dataclass(frozen=True)
class ExecutionRequest:
    """One inbound call to a public endpoint."""

    organization_path: str
    project_name: str
    endpoint_name: str
    method: str
    query_params: dict[str, str] = field(default_factory=dict)
    body: bytes = b''


class EndpointOrchestrator:
    """Executes user-defined endpoints."""

    def __init__(
        self,
        *,
        endpoints: EndpointLookupProtocol,
        keys: KeyRepositoryProtocol,
        analytics: AnalyticsRepositoryProtocol,
        cipher: KeyDecryptor | None,
        provider_factory: ProviderFactory = create_provider,
    ) -> None:
        self._endpoints = endpoints
        self._keys = keys
        self._analytics = analytics
        self._cipher = cipher
        self._provider_factory = provider_factory

    async def execute(self, request: ExecutionRequest) -> dict[str, Any]:
        """Run one endpoint call end-to-end.

        Returns:
            Payload-only endpoints: {'api_payload', 'provider', 'endpoint_hint'}.
            LLM-calling endpoints: {'output', 'usage'}.

        Raises:
            NotFoundError, MethodNotAllowedError, InputValidationError,
            CredentialUnavailableError: before any provider work, nothing recorded.
            PayloadBuildError: payload-only endpoint could not build its payload.
            LLMProcessingError: the LLM attempt failed; a failed event was recorded.
        """
        trace_id = new_trace_id()
        started = time.perf_counter()

        log_event(
            'ai.request.start',
            trace_id=trace_id,
            organization_path=request.organization_path,
            project=request.project_name,
            endpoint=request.endpoint_name,
            method=request.method,
        )

        endpoint = self._resolve_endpoint(
            request.organization_path, request.project_name, request.endpoint_name
        )

        method = request.method.upper()
        if method != endpoint.http_method.value:
            raise MethodNotAllowedError(f'Method {method} not allowed. Use {endpoint.http_method.value}')

        input_data = _extract_input(endpoint, method, request.query_params, request.body)

        key = self._keys.get_active(endpoint.llm_key_id)
        if key is None:
            raise CredentialUnavailableError('LLM API key not found or inactive')

        if not endpoint.endpoint_type.calls_llm:
            return self._build_payload_only(trace_id, endpoint, key, input_data)

        return await self._call_llm(trace_id, started, endpoint, key, input_data)

    def preview_prompt(
        self,
        organization_path: str,
        project_name: str,
        endpoint_name: str,
        input_data: Any,
    ) -> dict[str, str]:
        """Render the combined prompt an endpoint would use, without any provider call."""
        endpoint = self._resolve_endpoint(organization_path, project_name, endpoint_name)
        key = self._keys.get_active(endpoint.llm_key_id)
        prompt = build_prompt(
            PromptInput(
                input_data=input_data,
                output_schema=_output_schema(endpoint),
                description=endpoint.instructions,
                context=endpoint.context,
                provider=key.provider if key else None,
            )
        )
        return {'prompt': prompt}

    # ------------------------------------------------------------------

    def _resolve_endpoint(self, organization_path: str, project_name: str, endpoint_name: str) -> Endpoint:
        project = self._endpoints.find_active_project(organization_path, project_name)
        if project is None:
            raise NotFoundError('Project not found')

        endpoint = self._endpoints.find_active_endpoint(project.uuid, endpoint_name)
        if endpoint is None:
            raise NotFoundError('Endpoint not found')
        return endpoint

    def _build_adapter(self, key: LlmApiKey) -> LLMProvider:
        api_key = None
        if key.has_api_key:
            if self._cipher is None:
                raise CredentialUnavailableError('Encryption key is not configured')
            api_key = self._cipher.decrypt(key.encrypted_api_key, key.encryption_iv)
        return self._provider_factory(key.provider, ProviderConfig(api_key=api_key, endpoint_url=key.endpoint_url))

    def _canonical_request(self, endpoint: Endpoint, key: LlmApiKey, input_data: Any) -> LLMRequest:
        output_schema = _output_schema(endpoint)
        prompts = build_legacy_prompts(
            PromptInput(
                input_data=input_data,
                output_schema=output_schema,
                description=endpoint.instructions,
                context=endpoint.context,
                provider=key.provider,
            )
        )
        return LLMRequest(
            prompt=prompts.user,
            system_prompt=prompts.system,
            output_schema=output_schema or JsonSchema(type='object'),
        )

    def _build_payload_only(
        self,
        trace_id: str,
        endpoint: Endpoint,
        key: LlmApiKey,
        input_data: Any,
    ) -> dict[str, Any]:
        try:
            llm_request = self._canonical_request(endpoint, key, input_data)
            adapter = self._build_adapter(key)
            payload = adapter.build_payload(llm_request)
            hint = endpoint_hint(key.provider, key.endpoint_url)
        except Exception as exc:
            log_event('ai.payload.failed', trace_id=trace_id, level=logging.WARNING, error=str(exc))
            raise PayloadBuildError(f'Failed to build API payload: {exc}') from exc

        log_event('ai.payload.built', trace_id=trace_id, provider=key.provider, endpoint_id=endpoint.uuid)
        return {
            'api_payload': payload,
            'provider': key.provider,
            'endpoint_hint': hint,
        }

    async def _call_llm(
        self,
        trace_id: str,
        started: float,
        endpoint: Endpoint,
        key: LlmApiKey,
        input_data: Any,
    ) -> dict[str, Any]:
        span = Span(name='llm.generate', trace_id=trace_id, attributes={'provider': key.provider})
        try:
            llm_request = self._canonical_request(endpoint, key, input_data)
            adapter = self._build_adapter(key)
            response = await adapter.generate(llm_request)
        except Exception as exc:
            span.end()
            error_message = str(exc) or exc.__class__.__name__
            latency_ms = int((time.perf_counter() - started) * 1000)
            self._analytics.record(
                UsageEvent(
                    endpoint_id=endpoint.uuid,
                    success=False,
                    error_message=error_message,
                    latency_ms=latency_ms,
                )
            )
            log_event(
                'ai.request.failed',
                trace_id=trace_id,
                span=span,
                level=logging.WARNING,
                endpoint_id=endpoint.uuid,
                error=error_message,
                latency_ms=latency_ms,
            )
            raise LLMProcessingError(f'LLM processing failed: {error_message}') from exc

        span.end()
        span.attributes['model'] = response.model
        log_event('span.end', trace_id=trace_id, span=span)

        cost = estimate_cost(response.model, response.usage.prompt_tokens, response.usage.completion_tokens)
        cost_cents = to_storage_cents(cost)
        self._analytics.record(
            UsageEvent(
                endpoint_id=endpoint.uuid,
                success=True,
                tokens_input=response.usage.prompt_tokens,
                tokens_output=response.usage.completion_tokens,
                latency_ms=response.latency_ms,
                estimated_cost_cents=cost_cents,
                request_metadata={'model': response.model, 'provider': response.provider.value},
            )
        )

        log_event(
            'ai.request.ok',
            trace_id=trace_id,
            endpoint_id=endpoint.uuid,
            model=response.model,
            tokens_input=response.usage.prompt_tokens,
            tokens_output=response.usage.completion_tokens,
            latency_ms=response.latency_ms,
            estimated_cost_cents=cost_cents,
        )
        return {
            'output': response.content,
            'usage': {
                'tokens_input': response.usage.prompt_tokens,
                'tokens_output': response.usage.completion_tokens,
                'latency_ms': response.latency_ms,
                'estimated_cost_cents': cost_cents,
            },
        }


def _output_schema(endpoint: Endpoint) -> JsonSchema | None:
    return parse_schema(endpoint.output_schema)


def _extract_input(endpoint: Endpoint, method: str, query_params: dict[str, str], body: bytes) -> Any:
    """Query parameters for GET, decoded JSON body otherwise; text kinds unwrap `text`."""
    if method == 'GET':
        data: Any = dict(query_params)
    else:
        try:
            data = json.loads(body or b'')
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InputValidationError('Invalid request body') from exc

    if endpoint.endpoint_type.text_input:
        text = data.get('text') if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise InputValidationError('Request body must have a "text" field for text input endpoints')
        return text

    return data
