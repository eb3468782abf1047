"""
Entity contract for documents stored through the generic repository.

Every stored type carries a store-assigned identifier and a creation
timestamp. Anything else on the entity is opaque to the repository.
"""

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MongoEntity(BaseModel):
    """
    Base class for all repository-managed documents.

    Subclasses may set ``__collection__`` to bind to a collection other than
    their own class name.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    __collection__: ClassVar[Optional[str]] = None

    id: Optional[str] = Field(default=None, alias="_id")
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_object_id(cls, value: Any) -> Any:
        if isinstance(value, ObjectId):
            return str(value)
        return value

    @classmethod
    def collection_name(cls) -> str:
        return cls.__collection__ or cls.__name__

    @classmethod
    def from_document(cls, document: Dict[str, Any]):
        return cls.model_validate(document)

    def to_document(self) -> Dict[str, Any]:
        """
        Serialize to a BSON-ready dict.

        ``_id`` is only present when the entity already has an identifier,
        so the driver assigns one on insert otherwise.
        """
        document = self.model_dump(exclude={"id"})
        if self.id is not None:
            document["_id"] = ObjectId(self.id)
        return document
