# ============================================================
# DB access layer
# ============================================================
from typing import Optional, Protocol

from sqlalchemy import text
from sqlalchemy.orm import Session

from shapeshyft.core.errors import ConflictError
from shapeshyft.domain.users.entities import User, default_organization_path
from shapeshyft.infrastructure.db.utils import new_uuid, utc_now


class UserRepositoryProtocol(Protocol):
    def get(self, user_uuid: str) -> Optional[User]:
        ...

    def get_by_subject(self, subject: str) -> Optional[User]:
        ...

    def get_or_create(self, subject: str, email: Optional[str] = None) -> User:
        """Return the user for `subject`, provisioning one on first access."""
        ...

    def update_settings(
            self,
            user_uuid: str,
            organization_name: Optional[str] = None,
            organization_path: Optional[str] = None,
    ) -> User:
        ...


class UserRepository(UserRepositoryProtocol):
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_uuid: str) -> Optional[User]:
        row = self.db.execute(
            text("SELECT * FROM users WHERE uuid = :uuid"),
            {"uuid": user_uuid},
        ).mappings().first()
        return User(**row) if row else None

    def get_by_subject(self, subject: str) -> Optional[User]:
        row = self.db.execute(
            text("SELECT * FROM users WHERE subject = :subject"),
            {"subject": subject},
        ).mappings().first()
        return User(**row) if row else None

    def _path_taken(self, organization_path: str, exclude_uuid: Optional[str] = None) -> bool:
        query = "SELECT COUNT(*) FROM users WHERE organization_path = :path"
        params = {"path": organization_path}
        if exclude_uuid:
            query += " AND uuid != :uuid"
            params["uuid"] = exclude_uuid
        return int(self.db.execute(text(query), params).scalar_one()) > 0

    def get_or_create(self, subject: str, email: Optional[str] = None) -> User:
        existing = self.get_by_subject(subject)
        if existing:
            return existing

        base_path = default_organization_path(subject)
        path = base_path
        suffix = 1
        while self._path_taken(path):
            suffix += 1
            path = f"{base_path}_{suffix}"

        now = utc_now()
        params = {
            "uuid": new_uuid(),
            "subject": subject,
            "email": email,
            "organization_path": path,
            "created_at": now,
            "updated_at": now,
        }
        self.db.execute(
            text("""
                INSERT INTO users (uuid, subject, email, organization_path, created_at, updated_at)
                VALUES (:uuid, :subject, :email, :organization_path, :created_at, :updated_at)
            """),
            params,
        )
        self.db.commit()
        return self.get(params["uuid"])

    def update_settings(
            self,
            user_uuid: str,
            organization_name: Optional[str] = None,
            organization_path: Optional[str] = None,
    ) -> User:
        assignments: list[str] = ["updated_at = :updated_at"]
        params: dict[str, object] = {"uuid": user_uuid, "updated_at": utc_now()}

        if organization_name is not None:
            assignments.append("organization_name = :organization_name")
            params["organization_name"] = organization_name

        if organization_path is not None:
            if self._path_taken(organization_path, exclude_uuid=user_uuid):
                raise ConflictError("Organization path is already in use")
            assignments.append("organization_path = :organization_path")
            params["organization_path"] = organization_path

        self.db.execute(
            text(f"UPDATE users SET {', '.join(assignments)} WHERE uuid = :uuid"),
            params,
        )
        self.db.commit()
        return self.get(user_uuid)
