"""Dashboard endpoints for managing the caller's API keys.

Every query is scoped by the authenticated user's ID, so a key belonging to
someone else behaves exactly like a missing key.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError, PyMongoError

from app import errors
from app.config import get_settings
from app.dependencies import get_credential_store
from app.models.api_key import ApiKey
from app.security import get_current_user_id
from app.services.api_keys import generate_api_key
from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api-keys", tags=["api-keys"])


class CreateApiKeyRequest(BaseModel):
    name: str | None = None
    key: str | None = None


class UpdateApiKeyRequest(BaseModel):
    name: str | None = None
    key: str | None = None


def _render(api_key: ApiKey) -> dict:
    return api_key.model_dump(mode="json")


def _store_failure(action: str, exc: PyMongoError) -> errors.InternalError:
    logger.error("Failed to %s API key: %s", action, exc, exc_info=True)
    return errors.InternalError(error=f"Failed to {action} API key", details=str(exc))


@router.get("")
def list_api_keys(
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
) -> dict:
    """List the caller's API keys, newest first."""
    try:
        keys = store.list_api_keys(user_id)
    except PyMongoError as exc:
        raise _store_failure("fetch", exc) from exc
    return {"success": True, "data": [_render(k) for k in keys]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_api_key(
    request: CreateApiKeyRequest,
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
) -> dict:
    """Create an API key, generating the secret unless one is supplied."""
    settings = get_settings()

    if not request.name or not request.name.strip():
        raise errors.ValidationError(
            error="Name is required and must be a non-empty string"
        )

    key = request.key.strip() if request.key else ""
    api_key = ApiKey(
        user_id=user_id,
        name=request.name.strip(),
        key=key or generate_api_key(settings.app.api_key_prefix),
        usage=0,
        rate_limit=settings.app.default_rate_limit,
    )

    try:
        store.insert_api_key(api_key)
    except DuplicateKeyError as exc:
        raise errors.ConflictError(error="API key value already in use") from exc
    except PyMongoError as exc:
        raise _store_failure("create", exc) from exc

    return {"success": True, "data": _render(api_key)}


@router.get("/{key_id}")
def get_api_key(
    key_id: str,
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
) -> dict:
    """Fetch one of the caller's API keys."""
    try:
        api_key = store.get_api_key(user_id, key_id)
    except PyMongoError as exc:
        raise _store_failure("fetch", exc) from exc

    if api_key is None:
        raise errors.NotFoundError(error="API key not found")
    return {"success": True, "data": _render(api_key)}


@router.put("/{key_id}")
def update_api_key(
    key_id: str,
    request: UpdateApiKeyRequest,
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
) -> dict:
    """Rename a key or replace its secret value."""
    fields: dict = {}
    if request.name is not None:
        if not request.name.strip():
            raise errors.ValidationError(error="Name must be a non-empty string")
        fields["name"] = request.name.strip()
    if request.key is not None:
        if not request.key.strip():
            raise errors.ValidationError(error="Key must be a non-empty string")
        fields["key"] = request.key.strip()

    if not fields:
        raise errors.ValidationError(error="No fields to update")
    fields["updatedAt"] = datetime.now(timezone.utc)

    try:
        api_key = store.update_api_key(user_id, key_id, fields)
    except DuplicateKeyError as exc:
        raise errors.ConflictError(error="API key value already in use") from exc
    except PyMongoError as exc:
        raise _store_failure("update", exc) from exc

    if api_key is None:
        raise errors.NotFoundError(error="API key not found")
    return {"success": True, "data": _render(api_key)}


@router.delete("/{key_id}")
def delete_api_key(
    key_id: str,
    user_id: str = Depends(get_current_user_id),
    store: CredentialStore = Depends(get_credential_store),
) -> dict:
    """Delete one of the caller's API keys."""
    try:
        deleted = store.delete_api_key(user_id, key_id)
    except PyMongoError as exc:
        raise _store_failure("delete", exc) from exc

    if not deleted:
        raise errors.NotFoundError(error="API key not found")

    logger.info("Deleted API key %s for user %s", key_id, user_id)
    return {"success": True, "message": "API key deleted successfully"}
