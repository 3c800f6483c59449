from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException

from shapeshyft.api.dependencies import get_authorized_user, get_project_repo, ok
from shapeshyft.api.schemas import ProjectCreate, ProjectUpdate
from shapeshyft.core.errors import ConflictError
from shapeshyft.domain.projects.repository import ProjectRepository
from shapeshyft.domain.users.entities import User

router = APIRouter(prefix="/users/{user_id}/projects", tags=["Projects"])


@router.get("")
async def list_projects(
    user: User = Depends(get_authorized_user),
    projects: ProjectRepository = Depends(get_project_repo),
):
    return ok([asdict(project) for project in projects.list_for_user(user.uuid)])


@router.post("", status_code=201)
async def create_project(
    payload: ProjectCreate,
    user: User = Depends(get_authorized_user),
    projects: ProjectRepository = Depends(get_project_repo),
):
    if projects.name_taken(user.uuid, payload.project_name):
        raise ConflictError("Project name already exists")
    project = projects.create(
        user_id=user.uuid,
        project_name=payload.project_name,
        display_name=payload.display_name,
        description=payload.description,
    )
    return ok(asdict(project))


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    user: User = Depends(get_authorized_user),
    projects: ProjectRepository = Depends(get_project_repo),
):
    project = projects.get_for_user(user.uuid, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return ok(asdict(project))


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    user: User = Depends(get_authorized_user),
    projects: ProjectRepository = Depends(get_project_repo),
):
    if not projects.get_for_user(user.uuid, project_id):
        raise HTTPException(status_code=404, detail="Project not found")

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("project_name") and projects.name_taken(user.uuid, changes["project_name"], exclude_uuid=project_id):
        raise ConflictError("Project name already exists")

    return ok(asdict(projects.update(user.uuid, project_id, changes)))


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user: User = Depends(get_authorized_user),
    projects: ProjectRepository = Depends(get_project_repo),
):
    if not projects.delete(user.uuid, project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    return ok({"deleted": True})
