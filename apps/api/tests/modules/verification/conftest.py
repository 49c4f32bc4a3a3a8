"""
Fixtures for verification tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def mock_redis():
    """In-memory stand-in for the GET/SET/DEL subset the code store uses."""
    store: dict[str, str] = {}

    async def _set(key, value, ex=None):
        store[key] = value
        return True

    async def _get(key):
        return store.get(key)

    async def _delete(*keys):
        removed = 0
        for key in keys:
            if store.pop(key, None) is not None:
                removed += 1
        return removed

    redis = AsyncMock()
    redis.store = store
    redis.set = AsyncMock(side_effect=_set)
    redis.get = AsyncMock(side_effect=_get)
    redis.delete = AsyncMock(side_effect=_delete)
    return redis
