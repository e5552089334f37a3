"""
Unit of work selection for the configured storage backend.
"""

from typing import Optional

from app.config import get_settings
from app.domain.repositories.unit_of_work import UnitOfWork
from app.infrastructure.db.database import SessionLocal
from app.infrastructure.repositories.in_memory import InMemoryStore, InMemoryUnitOfWork
from app.infrastructure.repositories.unit_of_work import SQLAlchemyUnitOfWork


_memory_store: Optional[InMemoryStore] = None


def get_memory_store() -> InMemoryStore:
    """Process-wide in-memory store."""
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryStore()
    return _memory_store


def reset_memory_store() -> InMemoryStore:
    """Replace the in-memory store with an empty one."""
    global _memory_store
    _memory_store = InMemoryStore()
    return _memory_store


def get_unit_of_work() -> UnitOfWork:
    """
    Dependency returning a fresh unit of work for the configured backend.
    """
    if get_settings().storage_backend == "memory":
        return InMemoryUnitOfWork(get_memory_store())

    return SQLAlchemyUnitOfWork(SessionLocal)
