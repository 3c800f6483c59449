"""ShapeShyft HTTP service.

Users define endpoints: a JSON Schema for the output, free-text instructions,
and a bound LLM credential. Each endpoint is then callable at

    /api/v1/ai/{organization_path}/{project_name}/{endpoint_name}

and either returns structured output from the model or a ready-to-send
provider payload, depending on the endpoint type.

Every response uses one envelope:
- {"success": true, "data": ...}
- {"success": false, "error": "..."}
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shapeshyft.api.routes import register_routes
from shapeshyft.config import settings
from shapeshyft.core.errors import ShapeshyftError
from shapeshyft.infrastructure.db.connection import engine, init_db
from shapeshyft.observability.logging import setup_logging

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "AI",
        "description": "Public execution of user-defined endpoints"
    },
    {
        "name": "LLM Keys",
        "description": "Provider credentials, stored encrypted"
    },
    {
        "name": "Projects",
        "description": "Groups of endpoints under one organization"
    },
    {
        "name": "Endpoints",
        "description": "Endpoint definitions: schema, instructions, key binding"
    },
    {
        "name": "Helpers",
        "description": "Stateless prompt and payload construction"
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.service_name, settings.log_level)
    init_db(engine)
    yield


def _failure(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShapeshyftError)
    async def handle_shapeshyft_error(request: Request, exc: ShapeshyftError):
        if exc.status_code >= 500:
            logger.error("Request failed: %s", exc, extra={"_extra": {"path": request.url.path}})
        return _failure(exc.status_code, str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _failure(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        messages = []
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ()))
            messages.append(f"{location}: {error.get('msg')}")
        return _failure(400, "; ".join(messages) or "Invalid request")


app = FastAPI(
    title='ShapeShyft',
    version='0.1.0',
    description='Schema-driven LLM endpoints',
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Register all API routes
register_routes(app)
