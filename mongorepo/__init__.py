"""
Generic repository abstraction over MongoDB.

Exposes one parametric repository type, in blocking and asyncio flavours,
for any entity carrying an identifier and a creation timestamp.
"""

from mongorepo.core.config import MongoSettings
from mongorepo.models.entity import MongoEntity
from mongorepo.models.query import Everything, Field, Projection
from mongorepo.models.update import Update, UpdateOptions
from mongorepo.repositories import AsyncMongoRepository, MongoRepository, Page

__all__ = [
    "MongoSettings",
    "MongoEntity",
    "Field",
    "Everything",
    "Projection",
    "Update",
    "UpdateOptions",
    "MongoRepository",
    "AsyncMongoRepository",
    "Page",
]
