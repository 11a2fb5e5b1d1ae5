"""
Foundation API Backend — Admin Entity Registry
================================================

What:  Process-wide, ordered collection of entity classes that have an admin
       controller.
How:   @admin_controller calls `register()` at import time; `AdminModule.for_root()`
       reads one `get_all()` snapshot during app construction and binds a
       repository per entity.
When:  Written while route modules are imported, read once in create_app().

Registry vs discovery:
    The registry is filled before the application object exists, so the
    admin module can bind repositories up front. AdminDiscoveryService scans
    the finished application afterwards. Comparing the two catches a
    controller that was declared but never mounted.
"""

from typing import Dict, List


class AdminEntityRegistry:
    """
    Identity-keyed, insertion-ordered set of entity classes.

    Two distinct classes with the same __name__ are two entries; registering
    the same class twice is a no-op.
    """

    def __init__(self) -> None:
        self._entities: Dict[int, type] = {}

    def register(self, entity: type) -> None:
        self._entities.setdefault(id(entity), entity)

    def get_all(self) -> List[type]:
        """Snapshot copy; later registrations do not change it."""
        return list(self._entities.values())

    def has(self, entity: type) -> bool:
        return self._entities.get(id(entity)) is entity

    def count(self) -> int:
        return len(self._entities)


admin_registry = AdminEntityRegistry()
