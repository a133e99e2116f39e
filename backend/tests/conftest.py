"""
Configuration partagée pour tous les tests.
Override les dépendances get_db et get_current_user pour éviter toute
connexion réelle à PostgreSQL.
"""

import uuid
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.database import get_db
from app.dependencies import get_current_user
from app.main import app
from app.models.user import User


def make_async_db() -> MagicMock:
    """Session asynchrone mockée : les méthodes attendues (await) sont des AsyncMock."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = []

    db = MagicMock()
    db.execute = AsyncMock(return_value=result)
    db.scalar = AsyncMock(return_value=0)
    db.get = AsyncMock(return_value=None)
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    return db


@pytest.fixture
def mock_db():
    return make_async_db()


@pytest.fixture
def current_user():
    user = MagicMock(spec=User)
    user.id = uuid.uuid4()
    user.email = "prof@ecole.be"
    user.created_at = datetime.now()
    return user


@pytest.fixture
def client(mock_db, current_user):
    """Client HTTP de test connecté, avec la BDD mockée."""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: current_user
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(mock_db):
    """Client HTTP de test sans session."""
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
