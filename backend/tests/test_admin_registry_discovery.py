"""
Foundation API Backend — Admin Registry, Decorator and Discovery Tests
========================================================================

What:  Tests for the declarative half of the admin framework: the entity
       registry, @admin_controller metadata and router generation,
       create_admin_controller(), discovery and the AdminModule startup check.
How:   Test entities live on their own DeclarativeBase and register into a
       private AdminEntityRegistry, so the application's registry is untouched.

What we test:
    ✅ Registry identity semantics and snapshot copies
    ✅ Decorator records metadata and builds the five CRUD routes
    ✅ Generated request schemas exclude read-only columns
    ✅ Factory-built controller names and registration
    ✅ Discovery only reports mounted controllers
    ✅ AdminModule warns (or refuses to start) on a registry/discovery mismatch
    ✅ Repository converts filter values to the column type
"""

import logging
import uuid
from typing import Optional
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.admin import (
    AdminDiscoveryService,
    AdminEntityRegistry,
    AdminModule,
    BaseAdminController,
    admin_controller,
    create_admin_controller,
    get_admin_metadata,
)
from app.admin.base import AdminListQuery
from app.admin.decorator import ADMIN_CONTROLLER_ATTR, build_entity_schemas, resource_name
from app.admin.repository import Repository
from app.exceptions import BadRequestError
from app.models.base import AuditableMixin, UUIDPrimaryKeyMixin


class _TestBase(DeclarativeBase):
    pass


class WidgetEntity(UUIDPrimaryKeyMixin, AuditableMixin, _TestBase):
    __tablename__ = "widget"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    colour: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)


class GadgetEntity(UUIDPrimaryKeyMixin, _TestBase):
    __tablename__ = "gadget"

    label: Mapped[str] = mapped_column(String(50), nullable=False)


class Sprocket(UUIDPrimaryKeyMixin, _TestBase):
    __tablename__ = "sprocket"

    teeth: Mapped[int] = mapped_column(nullable=False)


def _route_keys(router):
    return {(method, route.path) for route in router.routes for method in route.methods}


class TestAdminEntityRegistry:
    def setup_method(self):
        self.registry = AdminEntityRegistry()

    def test_register_is_idempotent(self):
        self.registry.register(WidgetEntity)
        self.registry.register(WidgetEntity)
        assert self.registry.count() == 1
        assert self.registry.has(WidgetEntity)

    def test_preserves_insertion_order(self):
        self.registry.register(GadgetEntity)
        self.registry.register(WidgetEntity)
        assert self.registry.get_all() == [GadgetEntity, WidgetEntity]

    def test_same_name_different_class_are_distinct(self):
        Impostor = type("WidgetEntity", (), {})
        self.registry.register(WidgetEntity)
        self.registry.register(Impostor)
        assert self.registry.count() == 2
        assert not AdminEntityRegistry().has(Impostor)

    def test_get_all_is_a_snapshot(self):
        self.registry.register(WidgetEntity)
        snapshot = self.registry.get_all()
        self.registry.register(GadgetEntity)
        assert snapshot == [WidgetEntity]


class TestAdminControllerDecorator:
    def setup_method(self):
        self.registry = AdminEntityRegistry()

    def test_decorator_registers_and_records_metadata(self):
        @admin_controller(WidgetEntity, tag="Widgets", registry=self.registry)
        class WidgetController(BaseAdminController[WidgetEntity]):
            pass

        metadata = get_admin_metadata(WidgetController)
        assert self.registry.has(WidgetEntity)
        assert metadata.entity is WidgetEntity
        assert metadata.resource == "widget"
        assert metadata.options == {"tag": "Widgets"}

    def test_router_has_five_crud_routes(self):
        @admin_controller(WidgetEntity, registry=self.registry)
        class WidgetController(BaseAdminController[WidgetEntity]):
            pass

        assert _route_keys(WidgetController.router) == {
            ("GET", "/admin/widget"),
            ("GET", "/admin/widget/{entity_id}"),
            ("POST", "/admin/widget"),
            ("PUT", "/admin/widget/{entity_id}"),
            ("DELETE", "/admin/widget/{entity_id}"),
        }
        for route in WidgetController.router.routes:
            assert getattr(route.endpoint, ADMIN_CONTROLLER_ATTR) is WidgetController

    def test_extra_routes_come_before_crud_routes(self):
        @admin_controller(WidgetEntity, resource="widgets", registry=self.registry)
        class WidgetController(BaseAdminController[WidgetEntity]):
            @classmethod
            def extra_routes(cls, router, provide):
                @router.get("/stats")
                async def stats():
                    return {}

        paths = [route.path for route in WidgetController.router.routes]
        assert paths[0] == "/admin/widgets/stats"
        assert paths.index("/admin/widgets/stats") < paths.index("/admin/widgets/{entity_id}")

    def test_guards_are_router_dependencies(self):
        async def guard():
            return None

        @admin_controller(WidgetEntity, guards=[guard], registry=self.registry)
        class Guarded(BaseAdminController[WidgetEntity]):
            pass

        @admin_controller(GadgetEntity, guards=False, registry=self.registry)
        class Open(BaseAdminController[GadgetEntity]):
            pass

        assert [d.dependency for d in Guarded.router.dependencies] == [guard]
        assert Open.router.dependencies == []
        assert get_admin_metadata(Open).options == {"guards": False}

    def test_rejects_non_controller_classes(self):
        with pytest.raises(TypeError):
            @admin_controller(WidgetEntity, registry=self.registry)
            class NotAController:
                pass

    def test_metadata_absent_for_plain_classes(self):
        assert get_admin_metadata(object) is None
        assert get_admin_metadata("not a class") is None


class TestGeneratedSchemas:
    def test_resource_name_strips_entity_suffix(self):
        assert resource_name(WidgetEntity) == "widget"
        assert resource_name(Sprocket) == "sprocket"

    def test_create_schema_excludes_read_only_columns(self):
        schemas = build_entity_schemas(WidgetEntity)
        create_fields = schemas["create"].model_fields
        assert set(create_fields) == {"name", "colour"}
        assert create_fields["name"].is_required()
        assert not create_fields["colour"].is_required()
        assert schemas["create"].__name__ == "WidgetCreate"

    def test_update_schema_is_all_optional(self):
        update = build_entity_schemas(WidgetEntity)["update"]
        assert not any(field.is_required() for field in update.model_fields.values())
        assert update().model_dump(exclude_unset=True) == {}

    def test_string_length_is_enforced(self):
        create = build_entity_schemas(WidgetEntity)["create"]
        with pytest.raises(PydanticValidationError):
            create(name="x" * 51)

    def test_response_schema_includes_every_column(self):
        response = build_entity_schemas(WidgetEntity)["response"]
        assert {"id", "name", "colour", "created_at", "updated_at", "deleted_at"} <= set(
            response.model_fields
        )


class TestCreateAdminController:
    def test_factory_builds_named_subclass(self):
        registry = AdminEntityRegistry()
        controller = create_admin_controller(Sprocket, registry=registry)
        assert controller.__name__ == "AdminSprocketController"
        assert issubclass(controller, BaseAdminController)
        assert registry.get_all() == [Sprocket]
        assert get_admin_metadata(controller).resource == "sprocket"


class TestDiscoveryAndModule:
    def setup_method(self):
        self.registry = AdminEntityRegistry()
        self.widgets = create_admin_controller(WidgetEntity, registry=self.registry)
        self.gadgets = create_admin_controller(GadgetEntity, registry=self.registry)

    def _app(self, *controllers):
        app = FastAPI()
        for controller in controllers:
            app.include_router(controller.router)
        return app

    def test_discovers_mounted_controllers_only(self):
        discovery = AdminDiscoveryService(self._app(self.widgets))
        assert discovery.get_entities() == [WidgetEntity]
        assert discovery.get_controllers() == [self.widgets]
        assert discovery.has_entity(WidgetEntity)
        assert not discovery.has_entity(GadgetEntity)
        assert discovery.count() == 1

    def test_controllers_with_metadata(self):
        discovery = AdminDiscoveryService(self._app(self.widgets, self.gadgets))
        found = discovery.get_all_controllers_with_metadata()
        assert [(d.entity, d.resource) for d in found] == [
            (WidgetEntity, "widget"),
            (GadgetEntity, "gadget"),
        ]
        assert discovery.get_controller_metadata(self.gadgets).entity is GadgetEntity

    def test_discovery_is_not_cached(self):
        app = self._app(self.widgets)
        discovery = AdminDiscoveryService(app)
        assert discovery.count() == 1
        app.include_router(self.gadgets.router)
        assert discovery.count() == 2

    def test_module_binds_registry_snapshot(self):
        module = AdminModule.for_root(self.registry)
        assert module.entities == [WidgetEntity, GadgetEntity]
        with pytest.raises(LookupError):
            module.repository(Sprocket, session=None)

    def test_startup_with_everything_mounted(self, caplog):
        module = AdminModule.for_root(self.registry)
        discovery = AdminDiscoveryService(self._app(self.widgets, self.gadgets))
        with caplog.at_level(logging.INFO, logger="app.admin"):
            module.on_startup(discovery)
        messages = [record.getMessage() for record in caplog.records]
        assert any(m.startswith("Admin controllers discovered: 2 entities") for m in messages)
        assert "AdminModule initialized" in messages
        assert not any("mismatch" in m for m in messages)

    def test_startup_mismatch_warns(self, caplog):
        module = AdminModule.for_root(self.registry)
        discovery = AdminDiscoveryService(self._app(self.widgets))
        with caplog.at_level(logging.WARNING, logger="app.admin"):
            module.on_startup(discovery)
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "Entity count mismatch between discovery and registry" in warnings[0].getMessage()
        assert "GadgetEntity" in warnings[0].getMessage()

    def test_startup_mismatch_can_be_fatal(self):
        module = AdminModule.for_root(self.registry)
        discovery = AdminDiscoveryService(self._app(self.widgets))
        with pytest.raises(RuntimeError, match="Entity count mismatch"):
            module.on_startup(discovery, fail_on_mismatch=True)


class TestRepositoryValueCoercion:
    """Filter values are converted to the column's Python type."""

    def setup_method(self):
        self.repo = Repository(Sprocket, session=MagicMock())

    def test_integer_column_accepts_numeric_string(self):
        assert self.repo.coerce_value("teeth", "5") == 5
        assert self.repo.coerce_value("teeth", 12) == 12

    @pytest.mark.parametrize("value", ["many", 1.5])
    def test_integer_column_rejects_other_values(self, value):
        with pytest.raises(ValueError):
            self.repo.coerce_value("teeth", value)

    def test_uuid_column(self):
        raw = "6f1c3a52-8a4e-4d8b-9d5f-2a4f0b7c1e11"
        assert self.repo.coerce_value("id", raw) == uuid.UUID(raw)
        assert self.repo.coerce_id("not-a-uuid") is None

    def test_none_passes_through(self):
        assert self.repo.coerce_value("teeth", None) is None

    @pytest.mark.asyncio
    async def test_controller_rejects_bad_integer_filter(self):
        controller = BaseAdminController(self.repo)
        with pytest.raises(BadRequestError, match="Invalid value for filter field: teeth."):
            await controller.find_all(AdminListQuery(filter='{"teeth": "many"}'))
