# ============================================================
# DB access layer
# ============================================================
from typing import Any, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.orm import Session

from shapeshyft.domain.projects.entities import Endpoint, EndpointType, HttpMethod, Project
from shapeshyft.infrastructure.db.utils import dump_json, load_json, new_uuid, utc_now


def _to_project(row: Any) -> Project:
    data = dict(row)
    data["is_active"] = bool(data["is_active"])
    return Project(**data)


def _to_endpoint(row: Any) -> Endpoint:
    data = dict(row)
    data["is_active"] = bool(data["is_active"])
    data["endpoint_type"] = EndpointType(data["endpoint_type"])
    data["http_method"] = HttpMethod(data["http_method"])
    data["input_schema"] = load_json(data["input_schema"])
    data["output_schema"] = load_json(data["output_schema"])
    return Endpoint(**data)


class EndpointLookupProtocol(Protocol):
    """Read side used when a public endpoint is executed."""

    def find_active_project(self, organization_path: str, project_name: str) -> Optional[Project]:
        ...

    def find_active_endpoint(self, project_id: str, endpoint_name: str) -> Optional[Endpoint]:
        ...


class ProjectRepository:
    _UPDATABLE = ("project_name", "display_name", "description", "is_active")

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: str) -> list[Project]:
        result = self.db.execute(
            text("SELECT * FROM projects WHERE user_id = :user_id ORDER BY created_at"),
            {"user_id": user_id},
        )
        return [_to_project(row) for row in result.mappings()]

    def get_for_user(self, user_id: str, project_uuid: str) -> Optional[Project]:
        row = self.db.execute(
            text("SELECT * FROM projects WHERE uuid = :uuid AND user_id = :user_id"),
            {"uuid": project_uuid, "user_id": user_id},
        ).mappings().first()
        return _to_project(row) if row else None

    def name_taken(self, user_id: str, project_name: str, exclude_uuid: Optional[str] = None) -> bool:
        query = "SELECT COUNT(*) FROM projects WHERE user_id = :user_id AND project_name = :name"
        params = {"user_id": user_id, "name": project_name}
        if exclude_uuid:
            query += " AND uuid != :uuid"
            params["uuid"] = exclude_uuid
        return int(self.db.execute(text(query), params).scalar_one()) > 0

    def create(
            self,
            user_id: str,
            project_name: str,
            display_name: str,
            description: Optional[str] = None,
    ) -> Project:
        now = utc_now()
        params = {
            "uuid": new_uuid(),
            "user_id": user_id,
            "project_name": project_name,
            "display_name": display_name,
            "description": description,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        self.db.execute(
            text("""
                INSERT INTO projects (
                    uuid, user_id, project_name, display_name, description,
                    is_active, created_at, updated_at
                ) VALUES (
                    :uuid, :user_id, :project_name, :display_name, :description,
                    :is_active, :created_at, :updated_at
                )
            """),
            params,
        )
        self.db.commit()
        return self.get_for_user(user_id, params["uuid"])

    def update(self, user_id: str, project_uuid: str, changes: dict[str, Any]) -> Optional[Project]:
        fields = {k: v for k, v in changes.items() if k in self._UPDATABLE}
        if fields:
            assignments = ", ".join(f"{name} = :{name}" for name in fields)
            self.db.execute(
                text(f"""
                    UPDATE projects
                    SET {assignments}, updated_at = :updated_at
                    WHERE uuid = :uuid AND user_id = :user_id
                """),
                {**fields, "updated_at": utc_now(), "uuid": project_uuid, "user_id": user_id},
            )
            self.db.commit()
        return self.get_for_user(user_id, project_uuid)

    def delete(self, user_id: str, project_uuid: str) -> bool:
        # SQLite does not enforce ON DELETE CASCADE without a pragma.
        self.db.execute(
            text("""
                DELETE FROM usage_analytics WHERE endpoint_id IN (
                    SELECT uuid FROM endpoints WHERE project_id = :uuid
                )
            """),
            {"uuid": project_uuid},
        )
        self.db.execute(text("DELETE FROM endpoints WHERE project_id = :uuid"), {"uuid": project_uuid})
        result = self.db.execute(
            text("DELETE FROM projects WHERE uuid = :uuid AND user_id = :user_id"),
            {"uuid": project_uuid, "user_id": user_id},
        )
        self.db.commit()
        return result.rowcount > 0


class EndpointRepository(EndpointLookupProtocol):
    _UPDATABLE = (
        "endpoint_name", "display_name", "endpoint_type", "http_method", "llm_key_id",
        "input_schema", "output_schema", "instructions", "context", "is_active",
    )
    _JSON_FIELDS = ("input_schema", "output_schema")

    def __init__(self, db: Session):
        self.db = db

    def find_active_project(self, organization_path: str, project_name: str) -> Optional[Project]:
        row = self.db.execute(
            text("""
                SELECT p.*
                FROM projects p
                JOIN users u ON u.uuid = p.user_id
                WHERE u.organization_path = :organization_path
                  AND p.project_name = :project_name
                  AND p.is_active = :active
            """),
            {"organization_path": organization_path, "project_name": project_name, "active": True},
        ).mappings().first()
        return _to_project(row) if row else None

    def find_active_endpoint(self, project_id: str, endpoint_name: str) -> Optional[Endpoint]:
        row = self.db.execute(
            text("""
                SELECT * FROM endpoints
                WHERE project_id = :project_id
                  AND endpoint_name = :endpoint_name
                  AND is_active = :active
            """),
            {"project_id": project_id, "endpoint_name": endpoint_name, "active": True},
        ).mappings().first()
        return _to_endpoint(row) if row else None

    def list_for_project(self, project_id: str) -> list[Endpoint]:
        result = self.db.execute(
            text("SELECT * FROM endpoints WHERE project_id = :project_id ORDER BY created_at"),
            {"project_id": project_id},
        )
        return [_to_endpoint(row) for row in result.mappings()]

    def list_ids_for_user(self, user_id: str) -> dict[str, tuple[str, str]]:
        """endpoint uuid -> (endpoint_name, project_id) for every endpoint the user owns."""
        result = self.db.execute(
            text("""
                SELECT e.uuid, e.endpoint_name, e.project_id
                FROM endpoints e
                JOIN projects p ON p.uuid = e.project_id
                WHERE p.user_id = :user_id
            """),
            {"user_id": user_id},
        )
        return {row.uuid: (row.endpoint_name, row.project_id) for row in result}

    def get(self, project_id: str, endpoint_uuid: str) -> Optional[Endpoint]:
        row = self.db.execute(
            text("SELECT * FROM endpoints WHERE uuid = :uuid AND project_id = :project_id"),
            {"uuid": endpoint_uuid, "project_id": project_id},
        ).mappings().first()
        return _to_endpoint(row) if row else None

    def name_taken(self, project_id: str, endpoint_name: str, exclude_uuid: Optional[str] = None) -> bool:
        query = "SELECT COUNT(*) FROM endpoints WHERE project_id = :project_id AND endpoint_name = :name"
        params = {"project_id": project_id, "name": endpoint_name}
        if exclude_uuid:
            query += " AND uuid != :uuid"
            params["uuid"] = exclude_uuid
        return int(self.db.execute(text(query), params).scalar_one()) > 0

    def create(self, project_id: str, values: dict[str, Any]) -> Endpoint:
        now = utc_now()
        params = {
            "uuid": new_uuid(),
            "project_id": project_id,
            "endpoint_name": values["endpoint_name"],
            "display_name": values["display_name"],
            "endpoint_type": values.get("endpoint_type", EndpointType.STRUCTURED_IN_STRUCTURED_OUT.value),
            "http_method": values.get("http_method", HttpMethod.POST.value),
            "llm_key_id": values["llm_key_id"],
            "input_schema": dump_json(values.get("input_schema")),
            "output_schema": dump_json(values.get("output_schema")),
            "instructions": values.get("instructions"),
            "context": values.get("context"),
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        self.db.execute(
            text("""
                INSERT INTO endpoints (
                    uuid, project_id, endpoint_name, display_name, endpoint_type,
                    http_method, llm_key_id, input_schema, output_schema,
                    instructions, context, is_active, created_at, updated_at
                ) VALUES (
                    :uuid, :project_id, :endpoint_name, :display_name, :endpoint_type,
                    :http_method, :llm_key_id, :input_schema, :output_schema,
                    :instructions, :context, :is_active, :created_at, :updated_at
                )
            """),
            params,
        )
        self.db.commit()
        return self.get(project_id, params["uuid"])

    def update(self, project_id: str, endpoint_uuid: str, changes: dict[str, Any]) -> Optional[Endpoint]:
        fields = {k: v for k, v in changes.items() if k in self._UPDATABLE}
        for name in self._JSON_FIELDS:
            if name in fields:
                fields[name] = dump_json(fields[name])
        if fields:
            assignments = ", ".join(f"{name} = :{name}" for name in fields)
            self.db.execute(
                text(f"""
                    UPDATE endpoints
                    SET {assignments}, updated_at = :updated_at
                    WHERE uuid = :uuid AND project_id = :project_id
                """),
                {**fields, "updated_at": utc_now(), "uuid": endpoint_uuid, "project_id": project_id},
            )
            self.db.commit()
        return self.get(project_id, endpoint_uuid)

    def delete(self, project_id: str, endpoint_uuid: str) -> bool:
        self.db.execute(
            text("DELETE FROM usage_analytics WHERE endpoint_id = :uuid"),
            {"uuid": endpoint_uuid},
        )
        result = self.db.execute(
            text("DELETE FROM endpoints WHERE uuid = :uuid AND project_id = :project_id"),
            {"uuid": endpoint_uuid, "project_id": project_id},
        )
        self.db.commit()
        return result.rowcount > 0
