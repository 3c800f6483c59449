"""Custom LLM server adapter.

Forwards an OpenAI-compatible payload (messages + forced `structured_response`
tool) to a user-operated URL. Servers in the wild answer in many shapes, so the
response is probed in a fixed priority order:

1. OpenAI tool call        choices[0].message.tool_calls[0].function.arguments
2. OpenAI message content  choices[0].message.content
3. OpenAI text choice      choices[0].text
4. Anthropic tool use      content[i] with type == "tool_use"
5. Anthropic text block    content[i].text
6. Generic string fields   response, text, output (in that order)
7. The whole body

JSON is then pulled out of the winning text: fenced code block first, then the
bracket-balanced span opened by the first `{` or `[`, then the text itself.
A truncated document is never trimmed down to an inner fragment.
"""

from __future__ import annotations

import json
import re
from typing import Any

import httpx

from shapeshyft.core.errors import MalformedProviderResponseError, ProviderConfigurationError
from shapeshyft.llm.base import (
    STRUCTURED_TOOL_DESCRIPTION,
    STRUCTURED_TOOL_NAME,
    LLMProvider,
    LLMRequest,
    LLMResponse,
    LLMServerConfig,
    ProviderName,
    Stopwatch,
    drop_none,
    extract_usage,
    messages_for,
    post_json,
)

DEFAULT_TIMEOUT_SECONDS = 120.0

_FENCED_BLOCK = re.compile(r'```(?:json)?\s*([\s\S]*?)```')


class LLMServerProvider(LLMProvider):
    """Adapter for a user-supplied OpenAI-compatible endpoint."""

    provider_name = ProviderName.LLM_SERVER

    def __init__(self, config: LLMServerConfig, client: httpx.AsyncClient | None = None) -> None:
        if not config.endpoint_url:
            raise ProviderConfigurationError('LLM Server endpoint URL is required')
        self._cfg = config
        self._client = client

    @property
    def endpoint_url(self) -> str:
        return self._cfg.endpoint_url

    def build_payload(self, request: LLMRequest) -> dict[str, Any]:
        return drop_none({
            'model': request.model or self._cfg.model,
            'messages': messages_for(request),
            'temperature': request.temperature,
            'max_tokens': request.max_tokens,
            'response_format': {'type': 'json_object'},
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
        })

    async def generate(self, request: LLMRequest) -> LLMResponse:
        body = self.build_payload(request)

        watch = Stopwatch()
        data = await post_json(
            self._cfg.endpoint_url,
            body,
            headers={'Content-Type': 'application/json'},
            timeout=self._cfg.timeout,
            client=self._client,
            label='LLM Server',
        )
        latency_ms = watch.elapsed_ms

        raw_response, content = parse_server_response(data)
        usage = extract_usage(data) if isinstance(data, dict) else extract_usage({})
        served_model = data.get('model') if isinstance(data, dict) else None

        return LLMResponse(
            content=content,
            raw_response=raw_response,
            usage=usage,
            model=str(served_model or request.model or self._cfg.model or 'custom'),
            provider=self.provider_name,
            latency_ms=latency_ms,
        )


def parse_server_response(result: Any) -> tuple[str, Any]:
    """Return (raw_text, parsed_content) from an arbitrary server body.

    Raises:
        MalformedProviderResponseError: If no JSON can be recovered.
    """
    if isinstance(result, dict) and _openai_text(result) is None:
        tool_input = _anthropic_tool_input(result)
        if tool_input is not None:
            return json.dumps(tool_input, ensure_ascii=False), tool_input

    raw = _select_text(result)
    extracted = extract_json(raw)
    try:
        return raw, json.loads(extracted)
    except json.JSONDecodeError as exc:
        raise MalformedProviderResponseError(f'Unable to parse LLM server response as JSON: {exc}') from exc


def _select_text(result: Any) -> str:
    if isinstance(result, dict):
        text = _openai_text(result)
        if text is not None:
            return text
        text = _anthropic_text(result)
        if text is not None:
            return text
        for key in ('response', 'text', 'output'):
            if isinstance(result.get(key), str):
                return result[key]
    return json.dumps(result, ensure_ascii=False)


def _openai_text(result: dict[str, Any]) -> str | None:
    choices = result.get('choices')
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    choice = choices[0]
    message = choice.get('message')

    if isinstance(message, dict):
        tool_calls = message.get('tool_calls')
        if isinstance(tool_calls, list) and tool_calls and isinstance(tool_calls[0], dict):
            function = tool_calls[0].get('function')
            arguments = function.get('arguments') if isinstance(function, dict) else None
            if isinstance(arguments, str):
                return arguments
            if arguments is not None:
                return json.dumps(arguments, ensure_ascii=False)
        if isinstance(message.get('content'), str) and message['content']:
            return message['content']

    if isinstance(choice.get('text'), str) and choice['text']:
        return choice['text']
    return None


def _content_blocks(result: dict[str, Any]) -> list[dict[str, Any]]:
    content = result.get('content')
    if not isinstance(content, list):
        return []
    return [block for block in content if isinstance(block, dict)]


def _anthropic_tool_input(result: dict[str, Any]) -> Any:
    for block in _content_blocks(result):
        if block.get('type') == 'tool_use' and 'input' in block:
            return block['input']
    return None


def _anthropic_text(result: dict[str, Any]) -> str | None:
    for block in _content_blocks(result):
        if isinstance(block.get('text'), str):
            return block['text']
    return None


def extract_json(text: str) -> str:
    """Pull a JSON document out of text that may carry prose around it."""
    match = _FENCED_BLOCK.search(text)
    if match:
        candidate = match.group(1).strip()
        if _is_json(candidate):
            return candidate

    candidate = _first_balanced_json(text)
    if candidate is not None:
        return candidate

    return text.strip()


def _first_balanced_json(text: str) -> str | None:
    """The top-level {...} or [...] opened by the first bracket, if it closes and parses."""
    openings = [index for index in (text.find('{'), text.find('[')) if index != -1]
    if not openings:
        return None

    opening = min(openings)
    end = _matching_close(text, opening)
    if end is None:
        return None
    candidate = text[opening:end + 1]
    return candidate if _is_json(candidate) else None


def _matching_close(text: str, opening: int) -> int | None:
    pairs = {'{': '}', '[': ']'}
    stack: list[str] = []
    in_string = False
    escaped = False

    for index in range(opening, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in pairs:
            stack.append(pairs[char])
        elif char in '}]':
            if not stack or stack.pop() != char:
                return None
            if not stack:
                return index
    return None


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True
