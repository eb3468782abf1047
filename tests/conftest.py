"""
Test configuration and fixtures
"""

from typing import List
from unittest.mock import AsyncMock, MagicMock

import mongomock
import pytest
from pydantic import Field

from mongorepo.core.config import MongoSettings
from mongorepo.models.entity import MongoEntity
from mongorepo.repositories.generic_repo import MongoRepository


class Person(MongoEntity):
    __collection__ = "people"

    name: str
    age: int = 0
    tags: List[str] = Field(default_factory=list)


class Gadget(MongoEntity):
    label: str = ""


class FakeCursor:
    """Stands in for a motor cursor: async iteration plus to_list()."""

    def __init__(self, documents):
        self.documents = list(documents)
        self.to_list = AsyncMock(return_value=self.documents)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for document in self.documents:
            yield document


@pytest.fixture
def settings():
    return MongoSettings(
        connection_string="mongodb://localhost:27017",
        database_name="test_db",
        verify_connection=False,
    )


@pytest.fixture
def mongo_client():
    """In-memory MongoDB client."""
    return mongomock.MongoClient()


@pytest.fixture
def people_repo(settings, mongo_client):
    return MongoRepository(settings, Person, client=mongo_client)


@pytest.fixture
def motor_collection():
    """Mock motor collection; coroutine methods are AsyncMocks."""
    collection = MagicMock()
    for name in (
        "find_one",
        "insert_one",
        "insert_many",
        "update_one",
        "update_many",
        "find_one_and_replace",
        "find_one_and_delete",
        "delete_one",
        "delete_many",
    ):
        setattr(collection, name, AsyncMock())
    return collection


@pytest.fixture
def motor_client(motor_collection):
    client = MagicMock()
    client.__getitem__.return_value.__getitem__.return_value = motor_collection
    client.admin.command = AsyncMock(return_value={"ok": 1})
    return client
