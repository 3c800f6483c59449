from typing import Any

from fastapi import APIRouter, Body, Depends, Path, Request
from sqlalchemy.orm import Session

from shapeshyft.api.core.container import get_container
from shapeshyft.api.dependencies import ok
from shapeshyft.api.schemas import ORGANIZATION_PATH_REGEX, RESOURCE_NAME_REGEX
from shapeshyft.infrastructure.db.connection import get_db
from shapeshyft.runtime.orchestrator import EndpointOrchestrator, ExecutionRequest

router = APIRouter(prefix="/ai", tags=["AI"])

ENDPOINT_PATH = "/{organization_path}/{project_name}/{endpoint_name}"


def get_orchestrator(
    db: Session = Depends(get_db),
    container=Depends(get_container),
) -> EndpointOrchestrator:
    return container.orchestrator(db)


async def _execute(
    request: Request,
    organization_path: str,
    project_name: str,
    endpoint_name: str,
    orchestrator: EndpointOrchestrator,
):
    result = await orchestrator.execute(
        ExecutionRequest(
            organization_path=organization_path,
            project_name=project_name,
            endpoint_name=endpoint_name,
            method=request.method,
            query_params=dict(request.query_params),
            body=await request.body(),
        )
    )
    return ok(result)


@router.get(
    ENDPOINT_PATH,
    summary="Execute an endpoint (GET)",
    description="Input is taken from the query string",
)
async def execute_get(
    request: Request,
    organization_path: str = Path(..., max_length=255, pattern=ORGANIZATION_PATH_REGEX),
    project_name: str = Path(..., max_length=255, pattern=RESOURCE_NAME_REGEX),
    endpoint_name: str = Path(..., max_length=255, pattern=RESOURCE_NAME_REGEX),
    orchestrator: EndpointOrchestrator = Depends(get_orchestrator),
):
    return await _execute(request, organization_path, project_name, endpoint_name, orchestrator)


@router.post(
    ENDPOINT_PATH,
    summary="Execute an endpoint (POST)",
    description="Input is the JSON request body",
)
async def execute_post(
    request: Request,
    organization_path: str = Path(..., max_length=255, pattern=ORGANIZATION_PATH_REGEX),
    project_name: str = Path(..., max_length=255, pattern=RESOURCE_NAME_REGEX),
    endpoint_name: str = Path(..., max_length=255, pattern=RESOURCE_NAME_REGEX),
    orchestrator: EndpointOrchestrator = Depends(get_orchestrator),
):
    return await _execute(request, organization_path, project_name, endpoint_name, orchestrator)


@router.post(
    ENDPOINT_PATH + "/prompt",
    summary="Preview an endpoint's prompt",
    description="Renders the prompt for the given input without calling any provider",
)
async def preview_prompt(
    organization_path: str = Path(..., max_length=255, pattern=ORGANIZATION_PATH_REGEX),
    project_name: str = Path(..., max_length=255, pattern=RESOURCE_NAME_REGEX),
    endpoint_name: str = Path(..., max_length=255, pattern=RESOURCE_NAME_REGEX),
    input_data: Any = Body(default=None),
    orchestrator: EndpointOrchestrator = Depends(get_orchestrator),
):
    return ok(orchestrator.preview_prompt(organization_path, project_name, endpoint_name, input_data))
