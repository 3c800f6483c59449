from dataclasses import asdict

from fastapi import APIRouter, Depends

from shapeshyft.api.dependencies import get_authorized_user, get_user_repo, ok
from shapeshyft.api.schemas import SettingsUpdate
from shapeshyft.domain.users.entities import User
from shapeshyft.domain.users.repository import UserRepository

router = APIRouter(prefix="/users/{user_id}/settings", tags=["Settings"])


def _settings_view(user: User) -> dict:
    data = asdict(user)
    return {
        key: data[key]
        for key in ("organization_name", "organization_path", "email", "display_name")
    }


@router.get("")
async def get_settings(user: User = Depends(get_authorized_user)):
    return ok(_settings_view(user))


@router.put("")
async def update_settings(
    payload: SettingsUpdate,
    user: User = Depends(get_authorized_user),
    users: UserRepository = Depends(get_user_repo),
):
    """Rename the organization or move its public path segment."""
    updated = users.update_settings(
        user.uuid,
        organization_name=payload.organization_name,
        organization_path=payload.organization_path,
    )
    return ok(_settings_view(updated))
