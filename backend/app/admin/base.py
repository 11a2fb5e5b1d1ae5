"""
Foundation API Backend — Base Admin Controller
================================================

What:  Generic CRUD over one entity type: list (paginated, sortable,
       filterable), get, create, update, delete.
How:   Stateless per request; works against a Repository injected by the
       @admin_controller dependency. Request shapes are validated by the
       pydantic schemas the decorator wires in, so the methods here receive
       already-validated data.
Who:   Subclassed by @admin_controller classes and by create_admin_controller().

List query language (compatible with Refine / React Admin):
    GET /admin/{resource}?page=2&perPage=20&sort=email&order=DESC
                          &filter={"email_verified": true}

    - sort must name a real column, otherwise 400 VALIDATION_ERROR
    - filter must be a JSON object whose values are string / number /
      boolean / null, keyed by real columns; nested objects are rejected
      before anything reaches the query.

Update semantics:
    PUT merges the provided fields onto the stored row (partial update).
    Omitted fields keep their stored values.
"""

import json
import logging
from typing import Any, Callable, ClassVar, Dict, Generic, List, Literal, Mapping, Optional, TypeVar, Union

from fastapi import APIRouter, Query
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictFloat, StrictInt, StrictStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.admin.repository import Repository
from app.exceptions import BadRequestError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Flat object of scalars; StrictBool first so true/false are not read as 1/0
_FLAT_FILTER = TypeAdapter(
    Dict[str, Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]]
)


# ══════════════════════════════════════════════════════════════════════════
# Query / Response Shapes
# ══════════════════════════════════════════════════════════════════════════


class AdminListQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=10, ge=1, le=100, alias="perPage")
    sort: Optional[str] = None
    order: Literal["ASC", "DESC"] = "ASC"
    filter: Optional[str] = None


def admin_list_query(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    per_page: int = Query(default=10, ge=1, le=100, alias="perPage", description="Page size (max 100)"),
    sort: Optional[str] = Query(default=None, description="Column to sort by"),
    order: Literal["ASC", "DESC"] = Query(default="ASC", description="Sort direction"),
    filter: Optional[str] = Query(
        default=None,
        description='Flat JSON object of equality conditions, e.g. {"email_verified": true}',
    ),
) -> AdminListQuery:
    """FastAPI dependency collecting the list query parameters."""
    return AdminListQuery(page=page, per_page=per_page, sort=sort, order=order, filter=filter)


class AdminListResponse(BaseModel, Generic[T]):
    """`total` counts every row matching the filter, not just this page."""

    model_config = ConfigDict(populate_by_name=True)

    data: List[T]
    total: int
    page: int
    per_page: int = Field(alias="perPage")


class AdminDeleteResponse(BaseModel):
    id: str


# ══════════════════════════════════════════════════════════════════════════
# Controller
# ══════════════════════════════════════════════════════════════════════════


def _payload(data: Union[BaseModel, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


class BaseAdminController(Generic[T]):
    """
    CRUD handlers for one entity type.

    Subclass it (with @admin_controller) to add endpoints or to supply
    explicit create/update schemas; use create_admin_controller() otherwise.
    """

    # Set by @admin_controller
    router: ClassVar[Optional[APIRouter]] = None

    def __init__(self, repository: Repository[T]):
        self.repository = repository

    @classmethod
    def extra_routes(cls, router: APIRouter, provide: Callable[..., "BaseAdminController"]) -> None:
        """
        Hook for subclass-specific endpoints, registered before the CRUD routes.
        `provide` is the dependency that yields a controller bound to the request.
        """

    async def find_all(self, query: AdminListQuery) -> Dict[str, Any]:
        skip = (query.page - 1) * query.per_page

        order = None
        if query.sort:
            if query.sort not in self.repository.columns:
                raise ValidationError(f"Invalid sort field: {query.sort}.", field="sort")
            order = [(query.sort, query.order)]

        where = self._parse_filter(query.filter) if query.filter else None

        data, total = await self.repository.find_and_count(
            skip=skip,
            take=query.per_page,
            order=order,
            where=where,
        )
        return {"data": data, "total": total, "page": query.page, "perPage": query.per_page}

    def _parse_filter(self, raw: str) -> Dict[str, Any]:
        try:
            parsed = json.loads(raw)
        except ValueError:
            raise BadRequestError("Invalid JSON in filter parameter")

        try:
            conditions = _FLAT_FILTER.validate_python(parsed)
        except PydanticValidationError:
            raise BadRequestError("Filter must be a flat object with scalar values")

        columns = self.repository.columns
        where: Dict[str, Any] = {}
        for field, value in conditions.items():
            if field not in columns:
                raise BadRequestError(f"Invalid filter field: {field}.", context={"field": field})
            try:
                where[field] = self.repository.coerce_value(field, value)
            except ValueError:
                raise BadRequestError(
                    f"Invalid value for filter field: {field}.", context={"field": field}
                )
        return where

    async def find_entity_by_id(self, entity_id: str) -> T:
        key = self.repository.coerce_id(entity_id)
        entity = await self.repository.find_one(key) if key is not None else None
        if entity is None:
            raise NotFoundError(
                resource=self.repository.entity.__name__,
                resource_id=entity_id,
                message=f"Entity with ID {entity_id} not found",
            )
        return entity

    async def find_one(self, entity_id: str) -> T:
        return await self.find_entity_by_id(entity_id)

    async def create(self, data: Union[BaseModel, Mapping[str, Any]]) -> T:
        entity = self.repository.create(_payload(data))
        return await self.repository.save(entity)

    async def update(self, entity_id: str, data: Union[BaseModel, Mapping[str, Any]]) -> T:
        entity = await self.find_entity_by_id(entity_id)
        for field, value in _payload(data).items():
            setattr(entity, field, value)
        return await self.repository.save(entity)

    async def remove(self, entity_id: str) -> Dict[str, str]:
        key = self.repository.coerce_id(entity_id)
        affected = await self.repository.delete(key) if key is not None else 0
        if affected == 0:
            raise NotFoundError(
                resource=self.repository.entity.__name__,
                resource_id=entity_id,
                message=f"Entity with ID {entity_id} not found",
            )
        logger.info("Deleted %s %s", self.repository.entity.__name__, entity_id)
        return {"id": entity_id}
