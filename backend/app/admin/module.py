"""
Foundation API Backend — Admin Module
=======================================

What:  Binds the registered entities to per-request repositories and checks,
       at startup, that every registered entity has a mounted controller.
How:   `AdminModule.for_root()` takes one registry snapshot while the app is
       being built (after all route modules are imported). The snapshot is
       stored on `app.state.admin_module`; controllers ask it for repositories.
When:  Built in create_app(); `on_startup()` runs from the lifespan.

Registry vs discovery mismatch:
    Registered but not discovered means a controller class was declared
    (and imported) but its router was never included. Logged as a warning,
    or fatal when ADMIN_FAIL_ON_DISCOVERY_MISMATCH is set.
"""

import logging
from typing import List, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.admin.discovery import AdminDiscoveryService
from app.admin.registry import AdminEntityRegistry, admin_registry
from app.admin.repository import Repository

logger = logging.getLogger(__name__)


class AdminModule:
    def __init__(self, entities: Sequence[type]):
        self._entities = tuple(entities)

    @classmethod
    def for_root(cls, registry: AdminEntityRegistry = admin_registry) -> "AdminModule":
        """Snapshot of the registry at call time; later registrations are not bound."""
        module = cls(registry.get_all())
        logger.debug(
            "AdminModule bound %d entities: %s",
            len(module.entities),
            ", ".join(e.__name__ for e in module.entities),
        )
        return module

    @property
    def entities(self) -> List[type]:
        return list(self._entities)

    def repository(self, entity: type, session: AsyncSession) -> Repository:
        """
        Raises:
            LookupError: `entity` was not in the registry snapshot.
        """
        if not any(bound is entity for bound in self._entities):
            raise LookupError(f"{entity.__name__} is not registered with AdminModule")
        return Repository(entity, session)

    def on_startup(self, discovery: AdminDiscoveryService, fail_on_mismatch: bool = False) -> None:
        discovered = discovery.count()
        if discovered != len(self._entities):
            missing = [
                e.__name__ for e in self._entities if not discovery.has_entity(e)
            ]
            message = "AdminModule: Entity count mismatch between discovery and registry"
            if fail_on_mismatch:
                raise RuntimeError(
                    f"{message} (registry={len(self._entities)}, discovered={discovered}, "
                    f"unmounted={missing})"
                )
            logger.warning(
                "%s: registry=%d discovered=%d unmounted=%s",
                message,
                len(self._entities),
                discovered,
                missing,
                extra={
                    "registry_count": len(self._entities),
                    "discovery_count": discovered,
                },
            )

        discovery.log_discovery_summary()
        logger.info("AdminModule initialized")
