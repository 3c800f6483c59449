# ============================================================
# Business/domain entities
# ============================================================
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class LlmApiKey:
    """A stored provider credential. Key material only ever exists encrypted."""

    uuid: str
    user_id: str
    key_name: str
    provider: str
    encrypted_api_key: Optional[str] = None
    encryption_iv: Optional[str] = None
    endpoint_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def has_api_key(self) -> bool:
        return bool(self.encrypted_api_key and self.encryption_iv)

    def public_view(self) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "user_id": self.user_id,
            "key_name": self.key_name,
            "provider": self.provider,
            "endpoint_url": self.endpoint_url,
            "has_api_key": self.has_api_key,
            "is_active": self.is_active,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
