"""Shared FastAPI dependencies."""

from typing import AsyncIterator

from beanie import PydanticObjectId
from fastapi import Depends, Header

from pocketa.core.exceptions import ForbiddenError, UnauthorizedError
from pocketa.core.security import extract_bearer_token, verify_token
from pocketa.db.init import open_store
from pocketa.db.store import RecordStore


async def get_store() -> AsyncIterator[RecordStore]:
    """Dependency: one store handle per request, released however the handler exits."""
    async with open_store() as store:
        yield store


def get_current_user_id(authorization: str | None = Header(default=None)) -> PydanticObjectId:
    """Dependency: resolve the bearer token to a user id. Never touches the store."""
    return verify_token(extract_bearer_token(authorization))


async def require_admin(
    user_id: PydanticObjectId = Depends(get_current_user_id),
    store: RecordStore = Depends(get_store),
) -> PydanticObjectId:
    """Dependency: require the token's user to exist with role admin."""
    user = await store.get_user(user_id)
    if not user:
        raise UnauthorizedError("Invalid token")
    if user.role != "admin":
        raise ForbiddenError("Admin only")
    return user_id
