"""
Process-wide practice session registry.
"""
from clozedrill.core.database import engine
from clozedrill.services.practice_service import SessionRegistry
from clozedrill.services.store_service import PracticeStore

_registry = None


def get_registry() -> SessionRegistry:
    """Dependency for getting the live session registry."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry(PracticeStore(engine))
    return _registry
