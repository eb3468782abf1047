"""
MongoDB translation of the store-neutral query, projection and update models.

Raw MongoDB documents (plain dicts) are passed through unchanged so callers
can always fall back to the native query language.
"""

from typing import Any, Dict, Optional, Union

from bson import ObjectId
from pydantic import BaseModel

from mongorepo.models.query import (
    And,
    Comparison,
    Everything,
    Filter,
    Not,
    Operator,
    Or,
    Projection,
)
from mongorepo.models.update import Update, UpdateOp, UpdateOptions


ID_FIELD = "_id"

_COMPARISON_OPERATORS = {
    Operator.EQ: "$eq",
    Operator.NE: "$ne",
    Operator.GT: "$gt",
    Operator.GTE: "$gte",
    Operator.LT: "$lt",
    Operator.LTE: "$lte",
    Operator.IN: "$in",
    Operator.NOT_IN: "$nin",
    Operator.EXISTS: "$exists",
    Operator.REGEX: "$regex",
}

_UPDATE_OPERATORS = {
    UpdateOp.SET: "$set",
    UpdateOp.UNSET: "$unset",
    UpdateOp.INC: "$inc",
    UpdateOp.MUL: "$mul",
    UpdateOp.MIN: "$min",
    UpdateOp.MAX: "$max",
    UpdateOp.RENAME: "$rename",
    UpdateOp.PUSH: "$push",
    UpdateOp.ADD_TO_SET: "$addToSet",
    UpdateOp.PULL: "$pull",
    UpdateOp.CURRENT_DATE: "$currentDate",
}

FilterLike = Union[Filter, Dict[str, Any], None]
ProjectionLike = Union[Projection, Dict[str, Any], type, None]
UpdateLike = Union[Update, Dict[str, Any]]


def parse_object_id(value: Union[str, ObjectId]) -> ObjectId:
    """
    Convert the caller-facing string identifier to an ObjectId.

    Raises:
        bson.errors.InvalidId: if the string is not a valid ObjectId encoding
    """
    if isinstance(value, ObjectId):
        return value
    return ObjectId(value)


def storage_field(name: str) -> str:
    return ID_FIELD if name == "id" else name


def _id_value(value: Any) -> Any:
    if isinstance(value, str):
        return parse_object_id(value)
    if isinstance(value, (list, tuple)):
        return [_id_value(item) for item in value]
    return value


def translate_filter(filter: FilterLike) -> Dict[str, Any]:
    """Translate a filter tree (or raw dict, or None for all) to a MongoDB query."""
    if filter is None:
        return {}
    if isinstance(filter, dict):
        return filter
    if isinstance(filter, Everything):
        return {}
    if isinstance(filter, Comparison):
        name = storage_field(filter.field)
        value = filter.value
        if name == ID_FIELD and filter.op not in (Operator.EXISTS, Operator.REGEX):
            value = _id_value(value)
        if isinstance(value, tuple):
            value = list(value)
        return {name: {_COMPARISON_OPERATORS[filter.op]: value}}
    if isinstance(filter, And):
        return {"$and": [translate_filter(clause) for clause in filter.clauses]}
    if isinstance(filter, Or):
        return {"$or": [translate_filter(clause) for clause in filter.clauses]}
    if isinstance(filter, Not):
        return {"$nor": [translate_filter(filter.clause)]}
    raise TypeError(f"Unsupported filter type: {type(filter).__name__}")


def translate_projection(projection: ProjectionLike) -> Optional[Dict[str, Any]]:
    """
    Translate a projection to a MongoDB projection document.

    A pydantic model class projects onto that model's fields (by alias
    where one is declared).
    """
    if projection is None:
        return None
    if isinstance(projection, dict):
        return projection
    if isinstance(projection, Projection):
        fields = {storage_field(name): 1 for name in projection.include}
        fields.update({storage_field(name): 0 for name in projection.exclude})
        return fields
    if isinstance(projection, type) and issubclass(projection, BaseModel):
        return {
            storage_field(info.alias or name): 1
            for name, info in projection.model_fields.items()
        }
    raise TypeError(f"Unsupported projection type: {type(projection).__name__}")


def translate_update(update: UpdateLike) -> Dict[str, Any]:
    """Group an Update's field operations by MongoDB update operator."""
    if isinstance(update, dict):
        return update
    if not isinstance(update, Update):
        raise TypeError(f"Unsupported update type: {type(update).__name__}")

    document: Dict[str, Dict[str, Any]] = {}
    for operation in update.operations:
        operator = _UPDATE_OPERATORS[operation.op]
        value = "" if operation.op == UpdateOp.UNSET else operation.value
        document.setdefault(operator, {})[storage_field(operation.field)] = value
    return document


def translate_update_options(options: Optional[UpdateOptions]) -> Dict[str, Any]:
    """Keyword arguments for pymongo/motor update_one and update_many."""
    if options is None:
        return {}
    kwargs: Dict[str, Any] = {"upsert": options.upsert}
    if options.array_filters is not None:
        kwargs["array_filters"] = list(options.array_filters)
    if options.hint is not None:
        kwargs["hint"] = options.hint
    return kwargs


def translate_sort_key(sort_by: str) -> str:
    return storage_field(sort_by)
