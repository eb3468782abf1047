"""
Repository package initialization.

This package contains the blocking and asyncio generic repositories and
the MongoDB translator they share.
"""

from mongorepo.repositories.async_generic_repo import AsyncMongoRepository
from mongorepo.repositories.base_repo import Page
from mongorepo.repositories.generic_repo import MongoRepository

__all__ = ["MongoRepository", "AsyncMongoRepository", "Page"]
