from fastapi import APIRouter, Depends, HTTPException

from shapeshyft.api.core.container import get_container
from shapeshyft.api.dependencies import get_authorized_user, get_key_repo, ok
from shapeshyft.api.schemas import KeyCreate, KeyUpdate
from shapeshyft.core.errors import ConflictError, CredentialUnavailableError
from shapeshyft.domain.keys.repository import KeyRepository
from shapeshyft.domain.users.entities import User

router = APIRouter(prefix="/users/{user_id}/keys", tags=["LLM Keys"])


def _encrypt(container, api_key: str) -> tuple[str, str]:
    if container.cipher is None:
        raise CredentialUnavailableError("Encryption key is not configured")
    return container.cipher.encrypt(api_key)


@router.get("")
async def list_keys(
    user: User = Depends(get_authorized_user),
    keys: KeyRepository = Depends(get_key_repo),
):
    """List the caller's keys. Key material is never returned."""
    return ok([key.public_view() for key in keys.list_for_user(user.uuid)])


@router.post("", status_code=201)
async def create_key(
    payload: KeyCreate,
    user: User = Depends(get_authorized_user),
    keys: KeyRepository = Depends(get_key_repo),
    container=Depends(get_container),
):
    encrypted, iv = (None, None)
    if payload.api_key:
        encrypted, iv = _encrypt(container, payload.api_key)

    key = keys.create(
        user_id=user.uuid,
        key_name=payload.key_name,
        provider=payload.provider.value,
        encrypted_api_key=encrypted,
        encryption_iv=iv,
        endpoint_url=str(payload.endpoint_url) if payload.endpoint_url else None,
    )
    return ok(key.public_view())


@router.get("/{key_id}")
async def get_key(
    key_id: str,
    user: User = Depends(get_authorized_user),
    keys: KeyRepository = Depends(get_key_repo),
):
    key = keys.get_for_user(user.uuid, key_id)
    if not key:
        raise HTTPException(status_code=404, detail="Key not found")
    return ok(key.public_view())


@router.put("/{key_id}")
async def update_key(
    key_id: str,
    payload: KeyUpdate,
    user: User = Depends(get_authorized_user),
    keys: KeyRepository = Depends(get_key_repo),
    container=Depends(get_container),
):
    if not keys.get_for_user(user.uuid, key_id):
        raise HTTPException(status_code=404, detail="Key not found")

    changes = payload.model_dump(exclude_unset=True, exclude={"api_key"})
    if "endpoint_url" in changes and changes["endpoint_url"] is not None:
        changes["endpoint_url"] = str(changes["endpoint_url"])
    if payload.api_key:
        changes["encrypted_api_key"], changes["encryption_iv"] = _encrypt(container, payload.api_key)

    return ok(keys.update(user.uuid, key_id, changes).public_view())


@router.delete("/{key_id}")
async def delete_key(
    key_id: str,
    user: User = Depends(get_authorized_user),
    keys: KeyRepository = Depends(get_key_repo),
):
    if not keys.get_for_user(user.uuid, key_id):
        raise HTTPException(status_code=404, detail="Key not found")
    if keys.is_in_use(key_id):
        raise ConflictError("Key is used by one or more endpoints")
    keys.delete(user.uuid, key_id)
    return ok({"deleted": True})
