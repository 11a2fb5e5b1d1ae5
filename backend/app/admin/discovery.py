"""
Foundation API Backend — Admin Controller Discovery
=====================================================

What:  Finds the admin controllers actually mounted on a FastAPI app and the
       entities they manage.
How:   Walks `app.routes` and reads the controller class that
       @admin_controller attached to each generated endpoint. Nothing is
       cached: every call reflects the routes as they are now.
Who:   AdminModule.on_startup (consistency check); the admin UI can use the
       same data to list resources.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI

from app.admin.decorator import ADMIN_CONTROLLER_ATTR, AdminControllerMetadata, get_admin_metadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiscoveredController:
    controller: type
    entity: type
    resource: str
    options: Dict[str, Any]


class AdminDiscoveryService:
    def __init__(self, app: FastAPI):
        self.app = app

    def _discover(self) -> Tuple[List[type], List[type]]:
        entities: Dict[int, type] = {}
        controllers: Dict[int, type] = {}

        for route in self.app.routes:
            endpoint = getattr(route, "endpoint", None)
            controller = getattr(endpoint, ADMIN_CONTROLLER_ATTR, None)
            if controller is None or id(controller) in controllers:
                continue
            metadata = get_admin_metadata(controller)
            if metadata is None:
                continue

            controllers[id(controller)] = controller
            entities.setdefault(id(metadata.entity), metadata.entity)
            logger.debug(
                "Discovered admin controller: %s for entity %s",
                controller.__name__,
                metadata.entity.__name__,
            )

        return list(entities.values()), list(controllers.values())

    def get_entities(self) -> List[type]:
        """Distinct entity classes with a mounted admin controller."""
        return self._discover()[0]

    def get_controllers(self) -> List[type]:
        return self._discover()[1]

    def get_controller_metadata(self, controller: Any) -> Optional[AdminControllerMetadata]:
        return get_admin_metadata(controller)

    def get_all_controllers_with_metadata(self) -> List[DiscoveredController]:
        result = []
        for controller in self.get_controllers():
            metadata = get_admin_metadata(controller)
            if metadata is None:
                continue
            result.append(
                DiscoveredController(
                    controller=controller,
                    entity=metadata.entity,
                    resource=metadata.resource,
                    options=dict(metadata.options),
                )
            )
        return result

    def has_entity(self, entity: type) -> bool:
        return any(found is entity for found in self.get_entities())

    def count(self) -> int:
        return len(self.get_entities())

    def log_discovery_summary(self) -> None:
        entities, controllers = self._discover()
        logger.info(
            "Admin controllers discovered: %d entities (%s), %d controllers (%s)",
            len(entities),
            ", ".join(e.__name__ for e in entities),
            len(controllers),
            ", ".join(c.__name__ for c in controllers),
            extra={
                "entity_count": len(entities),
                "controller_count": len(controllers),
                "entities": [e.__name__ for e in entities],
                "controllers": [c.__name__ for c in controllers],
            },
        )
