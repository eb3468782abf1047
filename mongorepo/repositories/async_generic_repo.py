"""
Asyncio generic repository backed by motor.

Same operations and semantics as MongoRepository; every call suspends the
caller while the MongoDB round-trip is outstanding.
"""

import logging
from typing import AsyncIterator, Iterable, List, Optional, Type

from motor.motor_asyncio import AsyncIOMotorClient

from mongorepo.core.config import MongoSettings
from mongorepo.deps.db import create_async_client, verify_connection_async
from mongorepo.models.update import UpdateOptions
from mongorepo.repositories.base_repo import (
    BaseRepository,
    Page,
    TEntity,
    build_page_pipeline,
)
from mongorepo.repositories.translator import (
    FilterLike,
    ProjectionLike,
    UpdateLike,
    parse_object_id,
    translate_filter,
    translate_projection,
    translate_update,
    translate_update_options,
)

logger = logging.getLogger(__name__)


class AsyncMongoRepository(BaseRepository[TEntity]):
    """
    Asyncio counterpart of MongoRepository.

    The constructor cannot await, so it never contacts the server; use
    ``await AsyncMongoRepository.open(...)`` to construct with a connection check.
    """

    def __init__(
        self,
        settings: MongoSettings,
        entity_type: Type[TEntity],
        collection_name: Optional[str] = None,
        client: Optional[AsyncIOMotorClient] = None,
    ):
        super().__init__(settings, entity_type, collection_name)
        self._bind(client if client is not None else create_async_client(settings))

    @classmethod
    async def open(
        cls,
        settings: MongoSettings,
        entity_type: Type[TEntity],
        collection_name: Optional[str] = None,
        client: Optional[AsyncIOMotorClient] = None,
    ) -> "AsyncMongoRepository[TEntity]":
        repository = cls(settings, entity_type, collection_name=collection_name, client=client)
        if settings.verify_connection:
            try:
                await verify_connection_async(repository._client)
            except BaseException:
                if client is None:
                    repository._client.close()
                raise
        return repository

    # Reads

    async def read_all(self) -> List[TEntity]:
        documents = await self._collection.find({}).to_list(length=None)
        return [self._to_entity(document) for document in documents]

    async def iter_all(self) -> AsyncIterator[TEntity]:
        async for document in self._collection.find({}):
            yield self._to_entity(document)

    async def paginate(
        self,
        page_index: int,
        page_size: int,
        sort_by: str,
        filter: FilterLike = None,
    ) -> Page:
        pipeline = build_page_pipeline(page_index, page_size, sort_by, filter)
        logger.debug(f"Paginating {self.collection_name}: {pipeline}")
        results = await self._collection.aggregate(pipeline).to_list(length=None)
        return self._unpack_page(results, page_size)

    async def filter_by(self, filter: FilterLike, projection: ProjectionLike = None) -> AsyncIterator:
        cursor = self._collection.find(translate_filter(filter), translate_projection(projection))
        async for document in cursor:
            yield self._to_projected(document, projection)

    async def find_one(self, filter: FilterLike, projection: ProjectionLike = None):
        document = await self._collection.find_one(
            translate_filter(filter), translate_projection(projection)
        )
        return self._to_projected(document, projection)

    async def find_by_id(self, id: str) -> Optional[TEntity]:
        document = await self._collection.find_one({"_id": parse_object_id(id)})
        return self._to_entity(document)

    # Writes

    async def insert_one(self, entity: TEntity) -> None:
        result = await self._collection.insert_one(entity.to_document())
        entity.id = str(result.inserted_id)
        logger.debug(f"Inserted {entity.id} into {self.collection_name}")

    async def insert_many(self, entities: Iterable[TEntity]) -> None:
        entities = list(entities)
        if not entities:
            return
        result = await self._collection.insert_many([entity.to_document() for entity in entities])
        for entity, inserted_id in zip(entities, result.inserted_ids):
            entity.id = str(inserted_id)
        logger.debug(f"Inserted {len(entities)} documents into {self.collection_name}")

    async def update_one(
        self,
        filter: FilterLike,
        update: UpdateLike,
        options: Optional[UpdateOptions] = None,
    ) -> None:
        await self._collection.update_one(
            translate_filter(filter),
            translate_update(update),
            **translate_update_options(options),
        )

    async def update_many(
        self,
        filter: FilterLike,
        update: UpdateLike,
        options: Optional[UpdateOptions] = None,
    ) -> None:
        await self._collection.update_many(
            translate_filter(filter),
            translate_update(update),
            **translate_update_options(options),
        )

    async def replace_one(self, entity: TEntity) -> Optional[TEntity]:
        document = entity.to_document()
        previous = await self._collection.find_one_and_replace({"_id": document.get("_id")}, document)
        return self._to_entity(previous)

    # Deletes

    async def find_one_and_delete(self, filter: FilterLike) -> Optional[TEntity]:
        document = await self._collection.find_one_and_delete(translate_filter(filter))
        return self._to_entity(document)

    async def delete_one(self, filter: FilterLike) -> None:
        await self._collection.delete_one(translate_filter(filter))

    async def delete_many(self, filter: FilterLike) -> None:
        result = await self._collection.delete_many(translate_filter(filter))
        logger.debug(f"Deleted {result.deleted_count} documents from {self.collection_name}")

    async def delete_by_id(self, id: str) -> Optional[TEntity]:
        document = await self._collection.find_one_and_delete({"_id": parse_object_id(id)})
        return self._to_entity(document)
