# ============================================================
# DB access layer
# ============================================================
from typing import Any, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.orm import Session

from shapeshyft.domain.keys.entities import LlmApiKey
from shapeshyft.infrastructure.db.utils import new_uuid, utc_now


def _to_key(row: Any) -> LlmApiKey:
    data = dict(row)
    data["is_active"] = bool(data["is_active"])
    return LlmApiKey(**data)


class KeyRepositoryProtocol(Protocol):
    def get_active(self, key_uuid: str) -> Optional[LlmApiKey]:
        """Return the key only if it exists and is active."""
        ...


class KeyRepository(KeyRepositoryProtocol):
    _UPDATABLE = ("key_name", "encrypted_api_key", "encryption_iv", "endpoint_url", "is_active")

    def __init__(self, db: Session):
        self.db = db

    def get_active(self, key_uuid: str) -> Optional[LlmApiKey]:
        row = self.db.execute(
            text("SELECT * FROM llm_api_keys WHERE uuid = :uuid AND is_active = :active"),
            {"uuid": key_uuid, "active": True},
        ).mappings().first()
        return _to_key(row) if row else None

    def get_for_user(self, user_id: str, key_uuid: str) -> Optional[LlmApiKey]:
        row = self.db.execute(
            text("SELECT * FROM llm_api_keys WHERE uuid = :uuid AND user_id = :user_id"),
            {"uuid": key_uuid, "user_id": user_id},
        ).mappings().first()
        return _to_key(row) if row else None

    def list_for_user(self, user_id: str) -> list[LlmApiKey]:
        result = self.db.execute(
            text("SELECT * FROM llm_api_keys WHERE user_id = :user_id ORDER BY created_at"),
            {"user_id": user_id},
        )
        return [_to_key(row) for row in result.mappings()]

    def create(
            self,
            user_id: str,
            key_name: str,
            provider: str,
            encrypted_api_key: Optional[str] = None,
            encryption_iv: Optional[str] = None,
            endpoint_url: Optional[str] = None,
    ) -> LlmApiKey:
        now = utc_now()
        params = {
            "uuid": new_uuid(),
            "user_id": user_id,
            "key_name": key_name,
            "provider": provider,
            "encrypted_api_key": encrypted_api_key,
            "encryption_iv": encryption_iv,
            "endpoint_url": endpoint_url,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        self.db.execute(
            text("""
                INSERT INTO llm_api_keys (
                    uuid, user_id, key_name, provider, encrypted_api_key,
                    encryption_iv, endpoint_url, is_active, created_at, updated_at
                ) VALUES (
                    :uuid, :user_id, :key_name, :provider, :encrypted_api_key,
                    :encryption_iv, :endpoint_url, :is_active, :created_at, :updated_at
                )
            """),
            params,
        )
        self.db.commit()
        return self.get_for_user(user_id, params["uuid"])

    def update(self, user_id: str, key_uuid: str, changes: dict[str, Any]) -> Optional[LlmApiKey]:
        fields = {k: v for k, v in changes.items() if k in self._UPDATABLE}
        if fields:
            assignments = ", ".join(f"{name} = :{name}" for name in fields)
            self.db.execute(
                text(f"""
                    UPDATE llm_api_keys
                    SET {assignments}, updated_at = :updated_at
                    WHERE uuid = :uuid AND user_id = :user_id
                """),
                {**fields, "updated_at": utc_now(), "uuid": key_uuid, "user_id": user_id},
            )
            self.db.commit()
        return self.get_for_user(user_id, key_uuid)

    def is_in_use(self, key_uuid: str) -> bool:
        count = self.db.execute(
            text("SELECT COUNT(*) FROM endpoints WHERE llm_key_id = :uuid"),
            {"uuid": key_uuid},
        ).scalar_one()
        return int(count) > 0

    def delete(self, user_id: str, key_uuid: str) -> bool:
        result = self.db.execute(
            text("DELETE FROM llm_api_keys WHERE uuid = :uuid AND user_id = :user_id"),
            {"uuid": key_uuid, "user_id": user_id},
        )
        self.db.commit()
        return result.rowcount > 0
