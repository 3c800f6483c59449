from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from shapeshyft.api.dependencies import (
    get_authorized_user,
    get_endpoint_repo,
    get_key_repo,
    get_project_repo,
    ok,
)
from shapeshyft.api.schemas import EndpointCreate, EndpointUpdate
from shapeshyft.core.errors import ConflictError, InputValidationError
from shapeshyft.domain.keys.repository import KeyRepository
from shapeshyft.domain.projects.entities import Project
from shapeshyft.domain.projects.repository import EndpointRepository, ProjectRepository
from shapeshyft.domain.users.entities import User

router = APIRouter(prefix="/users/{user_id}/projects/{project_id}/endpoints", tags=["Endpoints"])


def get_owned_project(
    project_id: str,
    user: User = Depends(get_authorized_user),
    projects: ProjectRepository = Depends(get_project_repo),
) -> Project:
    project = projects.get_for_user(user.uuid, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


def _check_key(keys: KeyRepository, user: User, key_id: str) -> None:
    if not keys.get_for_user(user.uuid, key_id):
        raise InputValidationError("LLM key not found")


@router.get("")
async def list_endpoints(
    project: Project = Depends(get_owned_project),
    endpoints: EndpointRepository = Depends(get_endpoint_repo),
):
    return ok([asdict(endpoint) for endpoint in endpoints.list_for_project(project.uuid)])


@router.post("", status_code=201)
async def create_endpoint(
    payload: EndpointCreate,
    user: User = Depends(get_authorized_user),
    project: Project = Depends(get_owned_project),
    endpoints: EndpointRepository = Depends(get_endpoint_repo),
    keys: KeyRepository = Depends(get_key_repo),
):
    _check_key(keys, user, payload.llm_key_id)
    if endpoints.name_taken(project.uuid, payload.endpoint_name):
        raise ConflictError("Endpoint name already exists in this project")

    endpoint = endpoints.create(project.uuid, payload.model_dump(mode="json"))
    return ok(asdict(endpoint))


@router.get("/{endpoint_id}")
async def get_endpoint(
    endpoint_id: str,
    project: Project = Depends(get_owned_project),
    endpoints: EndpointRepository = Depends(get_endpoint_repo),
):
    endpoint = endpoints.get(project.uuid, endpoint_id)
    if not endpoint:
        raise HTTPException(status_code=404, detail="Endpoint not found")
    return ok(asdict(endpoint))


@router.put("/{endpoint_id}")
async def update_endpoint(
    endpoint_id: str,
    payload: EndpointUpdate,
    user: User = Depends(get_authorized_user),
    project: Project = Depends(get_owned_project),
    endpoints: EndpointRepository = Depends(get_endpoint_repo),
    keys: KeyRepository = Depends(get_key_repo),
):
    if not endpoints.get(project.uuid, endpoint_id):
        raise HTTPException(status_code=404, detail="Endpoint not found")

    changes = payload.model_dump(mode="json", exclude_unset=True)
    if changes.get("llm_key_id"):
        _check_key(keys, user, changes["llm_key_id"])
    if changes.get("endpoint_name") and endpoints.name_taken(
        project.uuid, changes["endpoint_name"], exclude_uuid=endpoint_id
    ):
        raise ConflictError("Endpoint name already exists in this project")

    return ok(asdict(endpoints.update(project.uuid, endpoint_id, changes)))


@router.delete("/{endpoint_id}")
async def delete_endpoint(
    endpoint_id: str,
    project: Project = Depends(get_owned_project),
    endpoints: EndpointRepository = Depends(get_endpoint_repo),
):
    if not endpoints.delete(project.uuid, endpoint_id):
        raise HTTPException(status_code=404, detail="Endpoint not found")
    return ok({"deleted": True})
