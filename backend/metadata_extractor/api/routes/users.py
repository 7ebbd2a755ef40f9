"""User administration and usage log endpoints"""
from fastapi import APIRouter, Depends
from typing import List, Optional
import logging
from ...db import UsageStore
from ...models.usage import User, UsageLog, UserCreateRequest, UserUpdateRequest, CurrentUserRequest
from ...exceptions import MetadataExtractorError
from ..dependencies import get_usage_store
from ..errors import to_http_exception

logger = logging.getLogger(__name__)
router = APIRouter(tags=["users"])


@router.get("/users", response_model=List[User])
async def list_users(usage_store: UsageStore = Depends(get_usage_store)):
    return usage_store.list_users()


@router.get("/users/current", response_model=Optional[User])
async def get_current_user(usage_store: UsageStore = Depends(get_usage_store)):
    """The user whose token budget gates extraction"""
    return usage_store.current_user()


@router.put("/users/current", response_model=User)
async def set_current_user(
    request: CurrentUserRequest,
    usage_store: UsageStore = Depends(get_usage_store)
):
    """Switch the logged-in user (mock login)"""
    try:
        user = usage_store.set_current_user(request.user_id)
        logger.info(f"Current user is now {user.email}")
        return user
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.post("/users", response_model=User)
async def add_user(
    request: UserCreateRequest,
    usage_store: UsageStore = Depends(get_usage_store)
):
    try:
        return usage_store.add_user(request.email, request.role, request.token_cap)
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.put("/users/{user_id}", response_model=User)
async def update_user(
    user_id: int,
    request: UserUpdateRequest,
    usage_store: UsageStore = Depends(get_usage_store)
):
    """Change a user's email, role, token cap, usage or status"""
    try:
        return usage_store.update_user(user_id, **request.model_dump())
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.delete("/users/{user_id}")
async def delete_user(user_id: int, usage_store: UsageStore = Depends(get_usage_store)):
    try:
        usage_store.delete_user(user_id)
        return {"message": f"User with ID {user_id} deleted.", "user_id": user_id}
    except MetadataExtractorError as e:
        raise to_http_exception(e)


@router.get("/usage/logs", response_model=List[UsageLog])
async def list_usage_logs(
    user_id: Optional[int] = None,
    usage_store: UsageStore = Depends(get_usage_store)
):
    """Usage logs, newest first, optionally for one user"""
    return usage_store.list_logs(user_id)
