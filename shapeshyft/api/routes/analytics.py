from typing import Annotated

from fastapi import APIRouter, Depends, Query

from shapeshyft.api.dependencies import (
    get_analytics_repo,
    get_authorized_user,
    get_endpoint_repo,
    ok,
)
from shapeshyft.api.schemas import AnalyticsQuery
from shapeshyft.domain.analytics.entities import AnalyticsFilters
from shapeshyft.domain.analytics.repository import AnalyticsRepository
from shapeshyft.domain.projects.repository import EndpointRepository
from shapeshyft.domain.users.entities import User

router = APIRouter(prefix="/users/{user_id}/analytics", tags=["Analytics"])


@router.get(
    "",
    summary="Usage report",
    description="Totals and per-endpoint usage across the caller's projects",
)
async def get_analytics(
    query: Annotated[AnalyticsQuery, Query()],
    user: User = Depends(get_authorized_user),
    endpoints: EndpointRepository = Depends(get_endpoint_repo),
    analytics: AnalyticsRepository = Depends(get_analytics_repo),
):
    report = analytics.summarize(
        endpoints.list_ids_for_user(user.uuid),
        AnalyticsFilters(**query.model_dump()),
    )
    return ok(report.to_dict())
