"""
Shared test configuration.
The environment is set before the application package is imported.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""

import pytest

from app.infrastructure.auth.password_hasher import BcryptPasswordHasher
from app.infrastructure.repositories.in_memory import InMemoryStore, InMemoryUnitOfWork


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def uow_factory(store):
    return lambda: InMemoryUnitOfWork(store)


@pytest.fixture
def hasher():
    return BcryptPasswordHasher(rounds=4)
