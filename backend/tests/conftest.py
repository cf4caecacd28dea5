# tests/conftest.py

import os

# Settings are read at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("AI_BACKEND_URL", "http://ai-core.test")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import pytest
from datetime import datetime, timezone
from uuid import uuid4
from unittest.mock import Mock, MagicMock, AsyncMock

from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.dml import Insert

from enybot.auth import hash_password
from enybot.models import User, UserRole, Lead, LeadStatus, Escalation


def make_result(value=None, values=None):
    """Stand-in for the object returned by `await db.execute(...)`."""
    result = Mock()
    result.scalar_one_or_none = Mock(return_value=value)
    result.scalars = Mock(return_value=Mock(all=Mock(return_value=list(values or []))))
    return result


def fill_defaults(obj):
    """Mimic what a flush + refresh would populate."""
    now = datetime.now(timezone.utc)
    if getattr(obj, "id", None) is None:
        obj.id = uuid4()
    for attr in ("created_at", "updated_at"):
        if hasattr(obj, attr) and getattr(obj, attr) is None:
            setattr(obj, attr, now)


@pytest.fixture
def mock_db():
    """Mock async database session"""
    db = Mock(spec=AsyncSession)
    db.execute = AsyncMock(return_value=make_result())
    db.add = Mock(side_effect=fill_defaults)
    db.add_all = Mock(side_effect=lambda objs: [fill_defaults(o) for o in objs])
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock(side_effect=fill_defaults)
    db.delete = AsyncMock()
    return db


@pytest.fixture
def mock_cache():
    """Mock Redis cache - always misses unless told otherwise"""
    cache = MagicMock()
    cache.get_json = AsyncMock(return_value=None)
    cache.set_json = AsyncMock()
    cache.delete = AsyncMock()
    return cache


def added(db, model):
    """Objects of `model` passed to db.add."""
    return [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], model)]


def inserted(db, model):
    """Bound parameters of INSERT statements executed against `model`'s table."""
    return [
        c.args[0].compile(dialect=postgresql.dialect()).params
        for c in db.execute.await_args_list
        if isinstance(c.args[0], Insert) and c.args[0].table.name == model.__table__.name
    ]


@pytest.fixture
def sample_user():
    return User(
        id=uuid4(),
        username="tester",
        email="user@example.com",
        phone="+2348000000009",
        role=UserRole.USER.value,
        password_hash=hash_password("secret1"),
        created_at=datetime.now(timezone.utc),
        updated_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def sample_admin():
    return User(
        id=uuid4(),
        username="admin",
        email="admin@example.com",
        role=UserRole.ADMIN.value,
        password_hash=hash_password("admin123"),
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def sample_lead():
    return Lead(
        id=uuid4(),
        email="prospect@example.com",
        query="Interested in enrolling for CBAP",
        status=LeadStatus.NEW.value,
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def sample_escalation():
    return Escalation(
        id=uuid4(),
        query="How do I enroll in CBAP?",
        user_email="user@example.com",
        confidence=0.2,
        reason="low confidence",
        context_used=[],
        extra_metadata={},
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def db_result():
    """Factory for execute() results"""
    return make_result


@pytest.fixture
def added_objects():
    """Collector for objects added to the mock session"""
    return added


@pytest.fixture
def inserted_rows():
    """Collector for INSERT parameters sent through the mock session"""
    return inserted
