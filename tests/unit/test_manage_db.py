"""
Unit tests for the manage_db reconcile command.
"""

import asyncio

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import manage_db
from app.infrastructure.db import Base
from app.infrastructure.repositories.unit_of_work import SQLAlchemyUnitOfWork
from tests.factories import create_user


@pytest.fixture
def session_factory(monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    monkeypatch.setattr(manage_db, "SessionLocal", factory)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def run_reconcile(monkeypatch, user_id):
    monkeypatch.setattr("sys.argv", ["manage_db.py", "reconcile", str(user_id)])
    with pytest.raises(SystemExit) as exc_info:
        manage_db.main()
    return exc_info.value.code


class TestReconcileCommand:

    def test_consistent_wallet(self, monkeypatch, capsys, session_factory):
        user = asyncio.run(create_user(lambda: SQLAlchemyUnitOfWork(session_factory), "alice", balance=500))

        assert run_reconcile(monkeypatch, user.id) == 0
        assert '"consistent": true' in capsys.readouterr().out

    def test_unknown_user(self, monkeypatch, capsys, session_factory):
        """Test a missing user exits with a message instead of a traceback."""
        assert run_reconcile(monkeypatch, 999) == 2
        assert "User with id 999 not found" in capsys.readouterr().out

    def test_invalid_user_id(self, monkeypatch, capsys):
        assert run_reconcile(monkeypatch, "abc") == 2
        assert "Usage" in capsys.readouterr().out
