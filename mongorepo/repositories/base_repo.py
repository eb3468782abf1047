"""
Base repository class shared by the blocking and asyncio repositories.

This module contains everything that does not depend on how the driver is
called: collection binding, document/entity conversion, and the
aggregation pipeline used for pagination.
"""

import logging
import math
from typing import Any, Dict, Generic, List, NamedTuple, Optional, Type, TypeVar

from pydantic import BaseModel

from mongorepo.core.config import MongoSettings
from mongorepo.models.entity import MongoEntity
from mongorepo.repositories.translator import (
    ID_FIELD,
    FilterLike,
    ProjectionLike,
    translate_filter,
    translate_sort_key,
)

logger = logging.getLogger(__name__)

TEntity = TypeVar("TEntity", bound=MongoEntity)

COUNT_FACET = "count"
DATA_FACET = "data"


class Page(NamedTuple):
    total_pages: int
    items: List[Any]


def resolve_collection_name(entity_type: Type[MongoEntity], override: Optional[str] = None) -> str:
    """
    Collection bound to an entity type.

    An explicit override wins, then the type's own ``collection_name()``
    (its ``__collection__`` or, failing that, its class name).
    """
    if override:
        return override
    return entity_type.collection_name()


def build_page_pipeline(
    page_index: int,
    page_size: int,
    sort_by: str,
    filter: FilterLike = None,
) -> List[Dict[str, Any]]:
    """
    Aggregation returning the total match count and one sorted page in a single round-trip.

    Args:
        page_index: Zero-based page number
        page_size: Documents per page (not validated)
        sort_by: Field to sort ascending on
        filter: Optional filter restricting the paginated set

    Returns:
        Pipeline with an optional $match followed by a $facet stage
    """
    pipeline: List[Dict[str, Any]] = []
    query = translate_filter(filter)
    if query:
        pipeline.append({"$match": query})
    pipeline.append(
        {
            "$facet": {
                COUNT_FACET: [{"$count": "count"}],
                DATA_FACET: [
                    {"$sort": sort_stage(sort_by)},
                    {"$skip": page_index * page_size},
                    {"$limit": page_size},
                ],
            }
        }
    )
    return pipeline


def sort_stage(sort_by: str) -> Dict[str, int]:
    """Ascending on the key, ties broken by _id so pages never overlap."""
    key = translate_sort_key(sort_by)
    if key == ID_FIELD:
        return {ID_FIELD: 1}
    return {key: 1, ID_FIELD: 1}


def total_pages_for(count: int, page_size: int) -> int:
    return math.ceil(count / page_size)


class BaseRepository(Generic[TEntity]):
    """
    Collection binding and conversions common to all generic repositories.

    Subclasses open the driver client and implement the operations.
    """

    def __init__(
        self,
        settings: MongoSettings,
        entity_type: Type[TEntity],
        collection_name: Optional[str] = None,
    ):
        self.settings = settings
        self.entity_type = entity_type
        self._collection_name = resolve_collection_name(entity_type, collection_name)

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def collection(self):
        """The bound driver collection, for queries the repository does not cover."""
        return self._collection

    def _bind(self, client) -> None:
        self._client = client
        self._database = client[self.settings.database_name]
        self._collection = self._database[self._collection_name]
        logger.info(
            f"Bound {self.entity_type.__name__} to collection "
            f"'{self.settings.database_name}.{self._collection_name}' "
            f"on {self.settings.sanitized_uri()}"
        )

    def _to_entity(self, document: Optional[Dict[str, Any]]) -> Optional[TEntity]:
        if document is None:
            return None
        return self.entity_type.from_document(document)

    def _to_projected(self, document: Optional[Dict[str, Any]], projection: ProjectionLike):
        if document is None:
            return None
        if projection is None:
            return self.entity_type.from_document(document)
        if isinstance(projection, type) and issubclass(projection, BaseModel):
            return projection.model_validate(document)
        return document

    def _unpack_page(self, results: List[Dict[str, Any]], page_size: int) -> Page:
        facets = results[0] if results else {}
        counts = facets.get(COUNT_FACET) or []
        count = counts[0]["count"] if counts else 0
        items = [self._to_entity(document) for document in facets.get(DATA_FACET, [])]
        return Page(total_pages_for(count, page_size), items)
