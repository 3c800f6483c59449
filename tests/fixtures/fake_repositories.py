"""In-memory stand-ins for the repositories the orchestrator talks to."""

from __future__ import annotations

from typing import Optional

from shapeshyft.domain.analytics.entities import UsageEvent
from shapeshyft.domain.keys.entities import LlmApiKey
from shapeshyft.domain.projects.entities import Endpoint, EndpointType, HttpMethod, Project


class FakeEndpointDirectory:
    def __init__(self, projects: dict[tuple[str, str], Project], endpoints: list[Endpoint]):
        self._projects = projects
        self._endpoints = endpoints

    def find_active_project(self, organization_path: str, project_name: str) -> Optional[Project]:
        project = self._projects.get((organization_path, project_name))
        if project and project.is_active:
            return project
        return None

    def find_active_endpoint(self, project_id: str, endpoint_name: str) -> Optional[Endpoint]:
        for endpoint in self._endpoints:
            if endpoint.project_id == project_id and endpoint.endpoint_name == endpoint_name and endpoint.is_active:
                return endpoint
        return None


class FakeKeyRepository:
    def __init__(self, keys: list[LlmApiKey]):
        self._keys = {key.uuid: key for key in keys}

    def get_active(self, key_uuid: str) -> Optional[LlmApiKey]:
        key = self._keys.get(key_uuid)
        return key if key and key.is_active else None


class FakeAnalyticsRepository:
    def __init__(self):
        self.events: list[UsageEvent] = []

    def record(self, event: UsageEvent) -> None:
        self.events.append(event)


class ReversingCipher:
    """Decrypts by reversing the ciphertext; enough to prove decrypt() is called."""

    def decrypt(self, ciphertext_hex: str, iv_hex: str) -> str:
        return ciphertext_hex[::-1]


def make_project(**overrides) -> Project:
    values = dict(uuid="proj-1", user_id="user-1", project_name="demo", display_name="Demo")
    values.update(overrides)
    return Project(**values)


def make_endpoint(**overrides) -> Endpoint:
    values = dict(
        uuid="ep-1",
        project_id="proj-1",
        endpoint_name="classify",
        display_name="Classify",
        llm_key_id="key-1",
        endpoint_type=EndpointType.STRUCTURED_IN_STRUCTURED_OUT,
        http_method=HttpMethod.POST,
        output_schema={
            "type": "object",
            "properties": {
                "label": {"type": "string", "enum": ["spam", "ham"]},
                "score": {"type": "number", "minimum": 0, "maximum": 1},
            },
            "required": ["label"],
        },
        instructions="Classify the message.",
    )
    values.update(overrides)
    return Endpoint(**values)


def make_key(**overrides) -> LlmApiKey:
    values = dict(
        uuid="key-1",
        user_id="user-1",
        key_name="main",
        provider="openai",
        encrypted_api_key="yek-terces",
        encryption_iv="00" * 16,
    )
    values.update(overrides)
    return LlmApiKey(**values)
