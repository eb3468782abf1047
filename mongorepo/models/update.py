"""
Store-neutral update specifications.

An ``Update`` is an ordered list of field operations. It is built fluently
and translated to a MongoDB update document by the repository.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple


class UpdateOp(str, Enum):
    SET = "set"
    UNSET = "unset"
    INC = "inc"
    MUL = "mul"
    MIN = "min"
    MAX = "max"
    RENAME = "rename"
    PUSH = "push"
    ADD_TO_SET = "add_to_set"
    PULL = "pull"
    CURRENT_DATE = "current_date"


@dataclass(frozen=True)
class FieldOperation:
    op: UpdateOp
    field: str
    value: Any = None


class Update:
    """
    Fluent builder of field operations.

    Example:
        Update().set("status", "active").inc("logins", 1).push("tags", "new")
    """

    def __init__(self, operations: Optional[List[FieldOperation]] = None):
        self.operations: List[FieldOperation] = list(operations or [])

    def _add(self, op: UpdateOp, field: str, value: Any = None) -> "Update":
        self.operations.append(FieldOperation(op, field, value))
        return self

    def set(self, field: str, value: Any) -> "Update":
        return self._add(UpdateOp.SET, field, value)

    def unset(self, field: str) -> "Update":
        return self._add(UpdateOp.UNSET, field)

    def inc(self, field: str, amount: Any = 1) -> "Update":
        return self._add(UpdateOp.INC, field, amount)

    def mul(self, field: str, factor: Any) -> "Update":
        return self._add(UpdateOp.MUL, field, factor)

    def min(self, field: str, value: Any) -> "Update":
        return self._add(UpdateOp.MIN, field, value)

    def max(self, field: str, value: Any) -> "Update":
        return self._add(UpdateOp.MAX, field, value)

    def rename(self, field: str, new_name: str) -> "Update":
        return self._add(UpdateOp.RENAME, field, new_name)

    def push(self, field: str, value: Any) -> "Update":
        return self._add(UpdateOp.PUSH, field, value)

    def add_to_set(self, field: str, value: Any) -> "Update":
        return self._add(UpdateOp.ADD_TO_SET, field, value)

    def pull(self, field: str, value: Any) -> "Update":
        return self._add(UpdateOp.PULL, field, value)

    def current_date(self, field: str) -> "Update":
        return self._add(UpdateOp.CURRENT_DATE, field, True)

    def __len__(self) -> int:
        return len(self.operations)

    def __repr__(self) -> str:
        return f"Update({self.operations!r})"


@dataclass(frozen=True)
class UpdateOptions:
    upsert: bool = False
    array_filters: Optional[Tuple[dict, ...]] = None
    hint: Optional[Any] = None
