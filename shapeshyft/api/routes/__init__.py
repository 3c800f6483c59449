from fastapi import FastAPI

from .ai import router as ai_router
from .analytics import router as analytics_router
from .endpoints import router as endpoints_router
from .helpers import router as helpers_router
from .keys import router as keys_router
from .projects import router as projects_router
from .settings import router as settings_router


def register_routes(app: FastAPI):
    app.include_router(ai_router, prefix="/api/v1")
    app.include_router(keys_router, prefix="/api/v1")
    app.include_router(projects_router, prefix="/api/v1")
    app.include_router(endpoints_router, prefix="/api/v1")
    app.include_router(settings_router, prefix="/api/v1")
    app.include_router(analytics_router, prefix="/api/v1")
    app.include_router(helpers_router, prefix="/api/v1")
