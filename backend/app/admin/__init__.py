"""
Foundation API Backend — Admin CRUD Package
=============================================

What:  Declarative admin CRUD for SQLAlchemy entities.

Pieces:
    - registry.py:   process-wide set of entities with admin controllers
    - repository.py: per-request persistence access for one entity
    - base.py:       BaseAdminController (list/get/create/update/delete)
    - decorator.py:  @admin_controller: registration, metadata, router
    - factory.py:    create_admin_controller() for plain CRUD
    - discovery.py:  finds controllers mounted on the running app
    - module.py:     AdminModule: binds repositories, startup check
"""

from app.admin.base import AdminListQuery, AdminListResponse, BaseAdminController
from app.admin.decorator import AdminControllerMetadata, admin_controller, get_admin_metadata
from app.admin.discovery import AdminDiscoveryService
from app.admin.factory import create_admin_controller
from app.admin.module import AdminModule
from app.admin.registry import AdminEntityRegistry, admin_registry

__all__ = [
    "AdminControllerMetadata",
    "AdminDiscoveryService",
    "AdminEntityRegistry",
    "AdminListQuery",
    "AdminListResponse",
    "AdminModule",
    "BaseAdminController",
    "admin_controller",
    "admin_registry",
    "create_admin_controller",
    "get_admin_metadata",
]
