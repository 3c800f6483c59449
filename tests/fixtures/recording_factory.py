from __future__ import annotations

from shapeshyft.llm.factory import ProviderConfig
from shapeshyft.llm.mock import MockProvider


class RecordingProviderFactory:
    """Provider factory that always hands out the same MockProvider and remembers its inputs."""

    def __init__(self, provider: MockProvider):
        self.provider = provider
        self.calls: list[tuple[str, ProviderConfig]] = []

    def __call__(self, provider: str, config: ProviderConfig) -> MockProvider:
        self.calls.append((provider, config))
        return self.provider
