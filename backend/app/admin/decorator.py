"""
Foundation API Backend — @admin_controller
============================================

What:  Declares a class as the admin CRUD controller of one entity.
How:   At decoration time (module import):
         1. registers the entity with the admin registry
         2. records AdminControllerMetadata for the class
         3. builds `cls.router`: an APIRouter mounted at /admin/{resource}
            with the five CRUD routes, guard dependencies and the OpenAPI tag
         4. marks every generated endpoint with the controller class so
            AdminDiscoveryService can find it on the running app
Who:   Applied to BaseAdminController subclasses; used by
       create_admin_controller() for the generated case.

Example:
    @admin_controller(UserEntity, create_schema=CreateUser, update_schema=UpdateUser)
    class AdminUsersController(BaseAdminController[UserEntity]):
        @classmethod
        def extra_routes(cls, router, provide):
            ...

    app.include_router(AdminUsersController.router)

Request schemas:
    Controllers pass explicit pydantic models for create/update. Without
    them, models are generated from the mapped columns (id and audit
    columns excluded; update fields all optional).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Literal, Optional, Sequence, Type, Union

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ConfigDict, Field, create_model
from sqlalchemy import String, inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from app.admin.base import (
    AdminDeleteResponse,
    AdminListQuery,
    AdminListResponse,
    BaseAdminController,
    admin_list_query,
)
from app.admin.registry import AdminEntityRegistry, admin_registry
from app.database import get_db_session
from app.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

# Attribute set on generated endpoint functions; read by discovery
ADMIN_CONTROLLER_ATTR = "__admin_controller__"

DEFAULT_TAG = "Admin"

# Columns the client never writes
READ_ONLY_COLUMNS = frozenset({"id", "created_at", "updated_at", "deleted_at"})

Guard = Callable[..., Any]


@dataclass(frozen=True)
class AdminControllerMetadata:
    entity: type
    resource: str
    # Options exactly as passed to @admin_controller (guards, tag, resource)
    options: Dict[str, Any] = field(default_factory=dict)


_metadata: Dict[type, AdminControllerMetadata] = {}


def get_admin_metadata(controller: Any) -> Optional[AdminControllerMetadata]:
    """Metadata recorded for `controller`, or None if it is not an admin controller."""
    if not isinstance(controller, type):
        return None
    return _metadata.get(controller)


def resource_name(entity: type) -> str:
    """UserEntity → "user"; classes without the suffix are just lowercased."""
    name = entity.__name__
    if name.endswith("Entity") and len(name) > len("Entity"):
        name = name[: -len("Entity")]
    return name.lower()


# ── Schema Generation ─────────────────────────────────────────────────────


def _column_fields(entity: type, *, partial: bool, exclude: frozenset) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for attr in sa_inspect(entity).column_attrs:
        if attr.key in exclude:
            continue
        column = attr.columns[0]
        try:
            python_type: Any = column.type.python_type
        except NotImplementedError:
            python_type = Any

        constraints: Dict[str, Any] = {}
        if isinstance(column.type, String) and column.type.length:
            constraints["max_length"] = column.type.length

        required = (
            not partial
            and not column.nullable
            and column.default is None
            and column.server_default is None
        )
        annotation = Optional[python_type] if column.nullable else python_type
        default = ... if required else None
        fields[attr.key] = (annotation, Field(default, **constraints))
    return fields


def build_entity_schemas(entity: type) -> Dict[str, Type[BaseModel]]:
    """Create, Update and Response pydantic models derived from the mapper."""
    base = entity.__name__
    if base.endswith("Entity") and len(base) > len("Entity"):
        base = base[: -len("Entity")]
    create = create_model(
        f"{base}Create", **_column_fields(entity, partial=False, exclude=READ_ONLY_COLUMNS)
    )
    update = create_model(
        f"{base}Update", **_column_fields(entity, partial=True, exclude=READ_ONLY_COLUMNS)
    )
    response_fields = {}
    for attr in sa_inspect(entity).column_attrs:
        column = attr.columns[0]
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            python_type = Any
        response_fields[attr.key] = (
            Optional[python_type] if column.nullable else python_type,
            None if column.nullable else ...,
        )
    response = create_model(
        f"{base}Response", __config__=ConfigDict(from_attributes=True), **response_fields
    )
    return {"create": create, "update": update, "response": response}


# ── Router Construction ───────────────────────────────────────────────────

_ERROR_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Not signed in", "model": ErrorResponse},
    404: {"description": "Entity not found", "model": ErrorResponse},
}


def _build_router(
    cls: type,
    metadata: AdminControllerMetadata,
    guards: Sequence[Guard],
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    response_schema: Type[BaseModel],
) -> APIRouter:
    entity = metadata.entity
    router = APIRouter(
        prefix=f"/admin/{metadata.resource}",
        tags=[metadata.options.get("tag") or DEFAULT_TAG],
        dependencies=[Depends(guard) for guard in guards],
        responses=_ERROR_RESPONSES,
    )

    def provide(request: Request, db: AsyncSession = Depends(get_db_session)) -> BaseAdminController:
        module = getattr(request.app.state, "admin_module", None)
        if module is None:
            raise RuntimeError("AdminModule is not installed on this application")
        return cls(module.repository(entity, db))

    # Custom routes first so fixed paths win over /{entity_id}
    cls.extra_routes(router, provide)

    @router.get(
        "",
        response_model=AdminListResponse[response_schema],
        summary=f"List {metadata.resource} records",
        description="Paginated list. Supports sort / order and a flat JSON `filter`.",
    )
    async def list_entities(
        query: AdminListQuery = Depends(admin_list_query),
        controller: BaseAdminController = Depends(provide),
    ):
        return await controller.find_all(query)

    @router.get(
        "/{entity_id}",
        response_model=response_schema,
        summary=f"Get one {metadata.resource} record",
    )
    async def get_entity(entity_id: str, controller: BaseAdminController = Depends(provide)):
        return await controller.find_one(entity_id)

    @router.post(
        "",
        response_model=response_schema,
        status_code=status.HTTP_201_CREATED,
        summary=f"Create a {metadata.resource} record",
    )
    async def create_entity(
        payload: create_schema,  # type: ignore[valid-type]
        controller: BaseAdminController = Depends(provide),
    ):
        return await controller.create(payload)

    @router.put(
        "/{entity_id}",
        response_model=response_schema,
        summary=f"Update a {metadata.resource} record",
        description="Partial update: only the provided fields change.",
    )
    async def update_entity(
        entity_id: str,
        payload: update_schema,  # type: ignore[valid-type]
        controller: BaseAdminController = Depends(provide),
    ):
        return await controller.update(entity_id, payload)

    @router.delete(
        "/{entity_id}",
        response_model=AdminDeleteResponse,
        summary=f"Delete a {metadata.resource} record",
    )
    async def delete_entity(entity_id: str, controller: BaseAdminController = Depends(provide)):
        return await controller.remove(entity_id)

    for route in router.routes:
        endpoint = getattr(route, "endpoint", None)
        if endpoint is not None:
            setattr(endpoint, ADMIN_CONTROLLER_ATTR, cls)

    return router


# ── Decorator ─────────────────────────────────────────────────────────────


def admin_controller(
    entity: type,
    *,
    guards: Union[Sequence[Guard], Literal[False], None] = None,
    tag: Optional[str] = None,
    resource: Optional[str] = None,
    create_schema: Optional[Type[BaseModel]] = None,
    update_schema: Optional[Type[BaseModel]] = None,
    response_schema: Optional[Type[BaseModel]] = None,
    registry: AdminEntityRegistry = admin_registry,
) -> Callable[[type], type]:
    """
    Args:
        entity:   Mapped SQLAlchemy class the controller manages.
        guards:   FastAPI dependencies run before every route (e.g.
                  require_session). None or False applies none.
        tag:      OpenAPI tag (default "Admin").
        resource: Path segment (default: entity name minus "Entity", lowercased).
        create_schema / update_schema / response_schema:
                  Explicit request/response models; generated when omitted.
        registry: Registry to record the entity in (tests pass their own).
    """
    options: Dict[str, Any] = {}
    if guards is not None:
        options["guards"] = guards
    if tag is not None:
        options["tag"] = tag
    if resource is not None:
        options["resource"] = resource

    def decorate(cls: type) -> type:
        if not (isinstance(cls, type) and issubclass(cls, BaseAdminController)):
            raise TypeError("@admin_controller can only decorate BaseAdminController subclasses")

        registry.register(entity)

        metadata = AdminControllerMetadata(
            entity=entity,
            resource=resource or resource_name(entity),
            options=options,
        )
        _metadata[cls] = metadata

        active_guards: Sequence[Guard] = list(guards) if guards else []

        generated = build_entity_schemas(entity)
        cls.router = _build_router(
            cls,
            metadata,
            active_guards,
            create_schema or generated["create"],
            update_schema or generated["update"],
            response_schema or generated["response"],
        )
        logger.debug(
            "Admin controller %s → /admin/%s", cls.__name__, metadata.resource,
            extra={"entity": entity.__name__, "resource": metadata.resource},
        )
        return cls

    return decorate
