"""
Foundation API Backend — Auth Dependencies
============================================

What:  FastAPI dependencies that expose the signed-in user to routes.

    optional_session → UserEntity | None   (anonymous allowed)
    require_session  → UserEntity          (401 UNAUTHORIZED otherwise)

Example:
    @router.post("/products")
    async def create(user: UserEntity = Depends(require_session)): ...

    @admin_controller(AccountEntity, guards=[require_session])
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import UnauthorizedError
from app.models.auth import UserEntity
from app.services.session_service import session_service


async def optional_session(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[UserEntity]:
    context = await session_service.resolve(request, db)
    return context.user if context is not None else None


async def require_session(
    user: Optional[UserEntity] = Depends(optional_session),
) -> UserEntity:
    if user is None:
        raise UnauthorizedError("Authentication required")
    return user
