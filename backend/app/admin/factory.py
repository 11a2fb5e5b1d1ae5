"""
Foundation API Backend — Admin Controller Factory
===================================================

What:  Builds a ready-to-mount admin controller class for an entity that
       needs nothing beyond the standard CRUD routes.

Example:
    AdminAccountController = create_admin_controller(AccountEntity)
    app.include_router(AdminAccountController.router)
"""

from typing import Any, Type

from app.admin.base import BaseAdminController
from app.admin.decorator import admin_controller


def create_admin_controller(entity: type, **options: Any) -> Type[BaseAdminController]:
    """
    Returns a new BaseAdminController subclass named Admin{EntityName}Controller,
    already decorated with @admin_controller(entity, **options). The entity
    is registered as a side effect.
    """
    cls = type(f"Admin{entity.__name__}Controller", (BaseAdminController,), {})
    return admin_controller(entity, **options)(cls)
