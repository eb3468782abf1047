import logging
from datetime import timezone
from typing import Optional, Type

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import MongoClient

from mongorepo.core.config import MongoSettings

logger = logging.getLogger(__name__)

_settings: Optional[MongoSettings] = None
_client: Optional[AsyncIOMotorClient] = None


def create_client(settings: MongoSettings) -> MongoClient:
    logger.info(f"Opening MongoDB client for {settings.sanitized_uri()}")
    return MongoClient(
        settings.connection_string,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
        tz_aware=True,
        tzinfo=timezone.utc,
    )


def create_async_client(settings: MongoSettings) -> AsyncIOMotorClient:
    logger.info(f"Opening async MongoDB client for {settings.sanitized_uri()}")
    return AsyncIOMotorClient(
        settings.connection_string,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
        tz_aware=True,
        tzinfo=timezone.utc,
    )


def verify_connection(client: MongoClient) -> None:
    """Ping the server. Driver errors (e.g. ServerSelectionTimeoutError) propagate."""
    client.admin.command("ping")


async def verify_connection_async(client: AsyncIOMotorClient) -> None:
    await client.admin.command("ping")


def get_settings() -> MongoSettings:
    global _settings
    if _settings is None:
        _settings = MongoSettings.from_env()
    return _settings


def get_async_client() -> AsyncIOMotorClient:
    """Process-wide motor client used by the FastAPI dependencies."""
    global _client
    if _client is None:
        _client = create_async_client(get_settings())
    return _client


def close_async_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


async def get_db() -> AsyncIOMotorDatabase:
    return get_async_client()[get_settings().database_name]


def get_repository(entity_type: Type, collection_name: Optional[str] = None):
    """
    Build a FastAPI dependency yielding an AsyncMongoRepository for ``entity_type``.

    Usage:
        @router.get("/people/{person_id}")
        async def read_person(person_id: str, repo=Depends(get_repository(Person))):
            return await repo.find_by_id(person_id)
    """
    from mongorepo.repositories.async_generic_repo import AsyncMongoRepository

    async def dependency(client: AsyncIOMotorClient = Depends(get_async_client)) -> AsyncMongoRepository:
        return AsyncMongoRepository(
            get_settings(),
            entity_type,
            collection_name=collection_name,
            client=client,
        )

    return dependency
