from __future__ import annotations

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shapeshyft.api.core.container import Container, get_container
from shapeshyft.app.main import app
from shapeshyft.config import Settings
from shapeshyft.infrastructure.db.connection import get_db, init_db
from shapeshyft.llm.mock import MockProvider
from shapeshyft.security.auth import StaticTokenVerifier, get_token_verifier

from tests.fixtures.recording_factory import RecordingProviderFactory

AUTH = {"Authorization": "Bearer tok"}
OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {"sentiment": {"type": "string", "enum": ["positive", "negative"]}},
    "required": ["sentiment"],
}


@pytest.fixture
def factory():
    """Wire the app to an in-memory database, a static token and a mock provider."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    recording = RecordingProviderFactory(MockProvider(output={"sentiment": "positive"}, model="gpt-4o-mini"))
    container = Container(Settings(encryption_key="ab" * 32))
    container._provider_factory = recording

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_token_verifier] = lambda: StaticTokenVerifier({"tok": "user_abc", "other": "user_xyz"})
    app.dependency_overrides[get_container] = lambda: container
    yield recording
    app.dependency_overrides.clear()
    engine.dispose()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


async def _provision(client: httpx.AsyncClient, endpoint_type: str = "structured_in_structured_out") -> dict:
    key = await client.post(
        "/api/v1/users/user_abc/keys",
        json={"key_name": "main", "provider": "openai", "api_key": "sk-test-123"},
        headers=AUTH,
    )
    assert key.status_code == 201
    assert "sk-test" not in key.text

    project = await client.post(
        "/api/v1/users/user_abc/projects",
        json={"project_name": "reviews", "display_name": "Reviews"},
        headers=AUTH,
    )
    assert project.status_code == 201
    project_id = project.json()["data"]["uuid"]

    endpoint = await client.post(
        f"/api/v1/users/user_abc/projects/{project_id}/endpoints",
        json={
            "endpoint_name": "sentiment",
            "display_name": "Sentiment",
            "endpoint_type": endpoint_type,
            "llm_key_id": key.json()["data"]["uuid"],
            "output_schema": OUTPUT_SCHEMA,
            "instructions": "Classify the review sentiment.",
        },
        headers=AUTH,
    )
    assert endpoint.status_code == 201

    settings = await client.get("/api/v1/users/user_abc/settings", headers=AUTH)
    return {
        "project_id": project_id,
        "endpoint_id": endpoint.json()["data"]["uuid"],
        "organization_path": settings.json()["data"]["organization_path"],
    }


@pytest.mark.asyncio
async def test_execute_endpoint_end_to_end(factory) -> None:
    async with _client() as client:
        # Arrange
        ids = await _provision(client)
        assert ids["organization_path"] == "user_abc"

        # Act
        resp = await client.post(
            f"/api/v1/ai/{ids['organization_path']}/reviews/sentiment",
            json={"review": "Loved it"},
        )

        # Assert
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["output"] == {"sentiment": "positive"}
        assert body["data"]["usage"]["tokens_input"] > 0

        _, config = factory.calls[0]
        assert config.api_key == "sk-test-123"

        report = await client.get("/api/v1/users/user_abc/analytics", headers=AUTH)
        aggregate = report.json()["data"]["aggregate"]
        assert aggregate["total_requests"] == 1
        assert aggregate["successful_requests"] == 1
        assert report.json()["data"]["by_endpoint"][0]["endpoint_name"] == "sentiment"


@pytest.mark.asyncio
async def test_payload_only_endpoint_records_nothing(factory) -> None:
    async with _client() as client:
        ids = await _provision(client, endpoint_type="structured_in_api_out")

        resp = await client.post(f"/api/v1/ai/{ids['organization_path']}/reviews/sentiment", json={"review": "Meh"})

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["provider"] == "openai"
        assert data["endpoint_hint"] == "https://api.openai.com/v1/chat/completions"
        assert factory.provider.requests == []

        report = await client.get("/api/v1/users/user_abc/analytics", headers=AUTH)
        assert report.json()["data"]["aggregate"]["total_requests"] == 0


@pytest.mark.asyncio
async def test_execute_errors_use_failure_envelope(factory) -> None:
    async with _client() as client:
        ids = await _provision(client)
        base = f"/api/v1/ai/{ids['organization_path']}/reviews"

        wrong_verb = await client.get(f"{base}/sentiment")
        missing = await client.post(f"{base}/nope", json={})
        bad_body = await client.post(f"{base}/sentiment", content=b"{oops", headers={"content-type": "application/json"})

    assert wrong_verb.status_code == 405
    assert wrong_verb.json() == {"success": False, "error": "Method GET not allowed. Use POST"}
    assert missing.status_code == 404
    assert missing.json()["error"] == "Endpoint not found"
    assert bad_body.status_code == 400
    assert factory.calls == []


@pytest.mark.asyncio
async def test_preview_prompt_route(factory) -> None:
    async with _client() as client:
        ids = await _provision(client)

        resp = await client.post(
            f"/api/v1/ai/{ids['organization_path']}/reviews/sentiment/prompt",
            json={"review": "Loved it"},
        )

    prompt = resp.json()["data"]["prompt"]
    assert "## Task\nClassify the review sentiment." in prompt
    assert '- review: "Loved it"' in prompt
    assert factory.calls == []


@pytest.mark.asyncio
async def test_owner_checks(factory) -> None:
    async with _client() as client:
        no_token = await client.get("/api/v1/users/user_abc/projects")
        bad_token = await client.get("/api/v1/users/user_abc/projects", headers={"Authorization": "Bearer nope"})
        other_user = await client.get("/api/v1/users/user_xyz/projects", headers=AUTH)

    assert no_token.status_code == 401
    assert bad_token.status_code == 401
    assert other_user.status_code == 403
    assert other_user.json() == {"success": False, "error": "You can only access your own resources"}


@pytest.mark.asyncio
async def test_key_in_use_cannot_be_deleted(factory) -> None:
    async with _client() as client:
        await _provision(client)
        keys = await client.get("/api/v1/users/user_abc/keys", headers=AUTH)
        key = keys.json()["data"][0]

        resp = await client.delete(f"/api/v1/users/user_abc/keys/{key['uuid']}", headers=AUTH)

    assert key["has_api_key"] is True
    assert "encrypted_api_key" not in key
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_validation_failures_are_400(factory) -> None:
    async with _client() as client:
        bad_name = await client.post(
            "/api/v1/users/user_abc/projects",
            json={"project_name": "Not Valid", "display_name": "X"},
            headers=AUTH,
        )
        missing_key = await client.post(
            "/api/v1/users/user_abc/keys",
            json={"key_name": "k", "provider": "anthropic"},
            headers=AUTH,
        )
        bad_schema = await client.post(
            "/api/v1/users/user_abc/helpers/prompt",
            json={"input_data": {"a": 1}, "output_schema": {"properties": "not-an-object"}},
            headers=AUTH,
        )

    assert bad_name.status_code == 400
    assert missing_key.status_code == 400
    assert bad_schema.status_code == 400
    assert bad_name.json()["success"] is False


@pytest.mark.asyncio
async def test_settings_path_conflict(factory) -> None:
    async with _client() as client:
        await client.get("/api/v1/users/user_xyz/settings", headers={"Authorization": "Bearer other"})

        taken = await client.put(
            "/api/v1/users/user_abc/settings",
            json={"organization_path": "user_xyz"},
            headers=AUTH,
        )
        moved = await client.put(
            "/api/v1/users/user_abc/settings",
            json={"organization_path": "acme_labs", "organization_name": "Acme Labs"},
            headers=AUTH,
        )

    assert taken.status_code == 409
    assert moved.json()["data"]["organization_path"] == "acme_labs"
    assert moved.json()["data"]["organization_name"] == "Acme Labs"


@pytest.mark.asyncio
async def test_request_helper_builds_payload_without_calling_provider(factory) -> None:
    async with _client() as client:
        resp = await client.post(
            "/api/v1/users/user_abc/helpers/request",
            json={
                "prompt": "Summarize this",
                "provider": "openai",
                "output_schema": OUTPUT_SCHEMA,
                "provider_config": {"api_key": "sk-x"},
            },
            headers=AUTH,
        )

    assert resp.status_code == 200
    assert set(resp.json()["data"]) == {"api_payload", "endpoint_url", "provider"}
    assert factory.provider.requests == []
