"""
Foundation API Backend — Auth Entity Admin Controllers
========================================================

What:  Admin CRUD for the auth tables, all behind require_session.

    /admin/user          AdminUsersController (explicit schemas, verify-email)
    /admin/account       generated
    /admin/session       generated
    /admin/verification  generated

Importing this module registers the four entities with the admin registry,
so it must be imported before AdminModule.for_root() runs.
"""

import logging

from fastapi import APIRouter, Depends

from app.admin import BaseAdminController, admin_controller, create_admin_controller
from app.dependencies.auth import require_session
from app.models.auth import AccountEntity, SessionEntity, UserEntity, VerificationEntity
from app.schemas.user import CreateUser, UpdateUser, UserResponse

logger = logging.getLogger(__name__)

AUTH_ADMIN_TAG = "Admin: Auth"


@admin_controller(
    UserEntity,
    guards=[require_session],
    tag=AUTH_ADMIN_TAG,
    create_schema=CreateUser,
    update_schema=UpdateUser,
    response_schema=UserResponse,
)
class AdminUsersController(BaseAdminController[UserEntity]):
    @classmethod
    def extra_routes(cls, router: APIRouter, provide) -> None:
        @router.post(
            "/{entity_id}/verify-email",
            response_model=UserResponse,
            summary="Mark a user's email as verified",
        )
        async def verify_email(entity_id: str, controller: BaseAdminController = Depends(provide)):
            return await controller.verify_email(entity_id)

    async def verify_email(self, entity_id: str) -> UserEntity:
        user = await self.find_entity_by_id(entity_id)
        user.email_verified = True
        user = await self.repository.save(user)
        logger.info("Email verified by admin for user %s", entity_id)
        return user


AdminAccountController = create_admin_controller(
    AccountEntity, guards=[require_session], tag=AUTH_ADMIN_TAG
)
AdminSessionController = create_admin_controller(
    SessionEntity, guards=[require_session], tag=AUTH_ADMIN_TAG
)
AdminVerificationController = create_admin_controller(
    VerificationEntity, guards=[require_session], tag=AUTH_ADMIN_TAG
)

ADMIN_CONTROLLERS = [
    AdminUsersController,
    AdminAccountController,
    AdminSessionController,
    AdminVerificationController,
]
