"""
Blocking generic repository backed by pymongo.

Every method issues exactly one request against the bound collection and
returns its result; driver errors propagate unchanged.
"""

import logging
from typing import Iterable, Iterator, List, Optional, Type

from pymongo import MongoClient

from mongorepo.core.config import MongoSettings
from mongorepo.deps.db import create_client, verify_connection
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


class MongoRepository(BaseRepository[TEntity]):
    """
    CRUD, filtering, projection and pagination over one collection.

    Args:
        settings: Connection string and database name
        entity_type: MongoEntity subclass stored in the collection
        collection_name: Optional override of the entity's collection name
        client: Optional existing MongoClient to reuse
    """

    def __init__(
        self,
        settings: MongoSettings,
        entity_type: Type[TEntity],
        collection_name: Optional[str] = None,
        client: Optional[MongoClient] = None,
    ):
        super().__init__(settings, entity_type, collection_name)
        owns_client = client is None
        if owns_client:
            client = create_client(settings)
        if settings.verify_connection:
            try:
                verify_connection(client)
            except BaseException:
                if owns_client:
                    client.close()
                raise
        self._bind(client)

    # Reads

    def read_all(self) -> List[TEntity]:
        return list(self.iter_all())

    def iter_all(self) -> Iterator[TEntity]:
        cursor = self._collection.find({})
        return (self._to_entity(document) for document in cursor)

    def paginate(
        self,
        page_index: int,
        page_size: int,
        sort_by: str,
        filter: FilterLike = None,
    ) -> Page:
        """
        Return one page of documents sorted ascending by ``sort_by``.

        Args:
            page_index: Zero-based page number
            page_size: Documents per page
            sort_by: Field to sort on
            filter: Optional filter restricting the paginated set

        Returns:
            Page(total_pages, items); items is empty past the last page
        """
        pipeline = build_page_pipeline(page_index, page_size, sort_by, filter)
        logger.debug(f"Paginating {self.collection_name}: {pipeline}")
        results = list(self._collection.aggregate(pipeline))
        return self._unpack_page(results, page_size)

    def filter_by(self, filter: FilterLike, projection: ProjectionLike = None) -> Iterator:
        cursor = self._collection.find(translate_filter(filter), translate_projection(projection))
        return (self._to_projected(document, projection) for document in cursor)

    def find_one(self, filter: FilterLike, projection: ProjectionLike = None):
        document = self._collection.find_one(
            translate_filter(filter), translate_projection(projection)
        )
        return self._to_projected(document, projection)

    def find_by_id(self, id: str) -> Optional[TEntity]:
        document = self._collection.find_one({"_id": parse_object_id(id)})
        return self._to_entity(document)

    # Writes

    def insert_one(self, entity: TEntity) -> None:
        result = self._collection.insert_one(entity.to_document())
        entity.id = str(result.inserted_id)
        logger.debug(f"Inserted {entity.id} into {self.collection_name}")

    def insert_many(self, entities: Iterable[TEntity]) -> None:
        entities = list(entities)
        if not entities:
            return
        result = self._collection.insert_many([entity.to_document() for entity in entities])
        for entity, inserted_id in zip(entities, result.inserted_ids):
            entity.id = str(inserted_id)
        logger.debug(f"Inserted {len(entities)} documents into {self.collection_name}")

    def update_one(
        self,
        filter: FilterLike,
        update: UpdateLike,
        options: Optional[UpdateOptions] = None,
    ) -> None:
        self._collection.update_one(
            translate_filter(filter),
            translate_update(update),
            **translate_update_options(options),
        )

    def update_many(
        self,
        filter: FilterLike,
        update: UpdateLike,
        options: Optional[UpdateOptions] = None,
    ) -> None:
        self._collection.update_many(
            translate_filter(filter),
            translate_update(update),
            **translate_update_options(options),
        )

    def replace_one(self, entity: TEntity) -> Optional[TEntity]:
        """
        Replace the stored document whose id matches ``entity.id``.

        Returns:
            The document as it was before replacement, or None if no document matched
        """
        document = entity.to_document()
        previous = self._collection.find_one_and_replace({"_id": document.get("_id")}, document)
        return self._to_entity(previous)

    # Deletes

    def find_one_and_delete(self, filter: FilterLike) -> Optional[TEntity]:
        return self._to_entity(self._collection.find_one_and_delete(translate_filter(filter)))

    def delete_one(self, filter: FilterLike) -> None:
        self._collection.delete_one(translate_filter(filter))

    def delete_many(self, filter: FilterLike) -> None:
        result = self._collection.delete_many(translate_filter(filter))
        logger.debug(f"Deleted {result.deleted_count} documents from {self.collection_name}")

    def delete_by_id(self, id: str) -> Optional[TEntity]:
        document = self._collection.find_one_and_delete({"_id": parse_object_id(id)})
        return self._to_entity(document)
