from functools import lru_cache, partial
from typing import Optional

from sqlalchemy.orm import Session

from shapeshyft.config import Settings, settings
from shapeshyft.domain.analytics.repository import AnalyticsRepository
from shapeshyft.domain.keys.repository import KeyRepository
from shapeshyft.domain.projects.repository import EndpointRepository
from shapeshyft.llm.factory import create_provider
from shapeshyft.runtime.orchestrator import EndpointOrchestrator, ProviderFactory
from shapeshyft.security.encryption import ApiKeyCipher


class Container:
    """Process-wide collaborators. Repositories are per request, built from the session."""

    def __init__(self, config: Settings):
        self._cipher = ApiKeyCipher(config.encryption_key) if config.encryption_key else None
        self._provider_factory = partial(
            create_provider,
            timeout=config.llm_request_timeout_seconds,
            server_timeout=config.llm_server_timeout_seconds,
        )

    @property
    def cipher(self) -> Optional[ApiKeyCipher]:
        return self._cipher

    @property
    def provider_factory(self) -> ProviderFactory:
        return self._provider_factory

    def orchestrator(self, db: Session) -> EndpointOrchestrator:
        return EndpointOrchestrator(
            endpoints=EndpointRepository(db),
            keys=KeyRepository(db),
            analytics=AnalyticsRepository(db),
            cipher=self._cipher,
            provider_factory=self._provider_factory,
        )


@lru_cache
def get_container():
    return Container(settings)
