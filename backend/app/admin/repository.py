"""
Foundation API Backend — Generic Entity Repository
====================================================

What:  Per-entity persistence access used by admin controllers:
       create / find_one / find_and_count / save / delete.
How:   Thin wrapper over an AsyncSession and SQLAlchemy 2.0 select/delete
       statements. Column names come from the mapper, never from the request.
Who:   Built per request by AdminModule.repository(entity, session).

Soft delete:
    Entities with a `deleted_at` column hide rows where it is set from
    find_one and find_and_count. delete() is a hard delete.
"""

from functools import lru_cache
from typing import Any, Dict, Generic, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import TypeAdapter
from sqlalchemy import ColumnElement, delete, func, inspect as sa_inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

SOFT_DELETE_COLUMN = "deleted_at"


@lru_cache(maxsize=None)
def _adapter(python_type: type) -> TypeAdapter:
    return TypeAdapter(python_type)


class Repository(Generic[T]):
    def __init__(self, entity: Type[T], session: AsyncSession):
        self.entity = entity
        self.session = session
        self._mapper = sa_inspect(entity)

    # ── Metadata ──────────────────────────────────────────────────────────

    @property
    def columns(self) -> List[str]:
        """Attribute names of every mapped column, in declaration order."""
        return [attr.key for attr in self._mapper.column_attrs]

    @property
    def primary_key(self) -> str:
        return self._mapper.get_property_by_column(self._mapper.primary_key[0]).key

    def _python_type(self, field: str) -> Optional[type]:
        column = self._mapper.column_attrs[field].columns[0]
        try:
            return column.type.python_type
        except NotImplementedError:
            return None

    def coerce_value(self, field: str, value: Any) -> Any:
        """
        Converts a JSON scalar to the column's Python type ("true" → True,
        "5" → 5, UUID and datetime strings to their objects).

        Raises:
            ValueError: the value cannot represent the column's type
                (pydantic's ValidationError is a ValueError).
        """
        if value is None:
            return value
        python_type = self._python_type(field)
        if python_type is None:
            return value
        return _adapter(python_type).validate_python(value)

    def coerce_id(self, raw_id: Any) -> Optional[Any]:
        """Primary-key value for `raw_id`, or None when it cannot be one."""
        try:
            return self.coerce_value(self.primary_key, raw_id)
        except ValueError:
            return None

    def _attribute(self, field: str) -> Any:
        return getattr(self.entity, field)

    def _not_deleted(self) -> List[ColumnElement[bool]]:
        if SOFT_DELETE_COLUMN in self._mapper.column_attrs:
            return [self._attribute(SOFT_DELETE_COLUMN).is_(None)]
        return []

    # ── Operations ────────────────────────────────────────────────────────

    def create(self, data: Mapping[str, Any]) -> T:
        """Instantiates (without persisting) an entity from a mapping of fields."""
        return self.entity(**dict(data))

    async def find_one(self, entity_id: Any) -> Optional[T]:
        stmt = select(self.entity).where(
            self._attribute(self.primary_key) == entity_id, *self._not_deleted()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_and_count(
        self,
        *,
        skip: int = 0,
        take: Optional[int] = None,
        order: Optional[Sequence[Tuple[str, str]]] = None,
        where: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[T], int]:
        """
        One page of rows plus the count of all rows matching `where`.

        Args:
            skip:  Rows to skip (offset).
            take:  Page size (limit); None = no limit.
            order: (column, "ASC" | "DESC") pairs, already validated.
            where: column → scalar equality conditions, already validated.
        """
        conditions = self._not_deleted()
        for field, value in (where or {}).items():
            attribute = self._attribute(field)
            conditions.append(attribute.is_(None) if value is None else attribute == value)

        stmt = select(self.entity).where(*conditions)
        for field, direction in order or ():
            attribute = self._attribute(field)
            stmt = stmt.order_by(attribute.desc() if direction == "DESC" else attribute.asc())
        stmt = stmt.offset(skip)
        if take is not None:
            stmt = stmt.limit(take)

        count_stmt = select(func.count()).select_from(self.entity).where(*conditions)

        rows = (await self.session.execute(stmt)).scalars().all()
        total = (await self.session.execute(count_stmt)).scalar_one()
        return list(rows), int(total)

    async def save(self, instance: T) -> T:
        """
        Persists `instance` and reloads server-generated columns.

        Constraint violations surface here (at flush), inside the request
        handler, so the exception filter can classify them.
        """
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, entity_id: Any) -> int:
        """Hard-deletes by primary key; returns the number of affected rows."""
        stmt = delete(self.entity).where(self._attribute(self.primary_key) == entity_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
