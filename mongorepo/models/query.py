"""
Store-neutral filter and projection descriptions.

Filters are small immutable trees built from ``Field`` comparisons and
combined with ``&``, ``|`` and ``~``. They carry no MongoDB syntax; the
repository translates them at the driver boundary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Tuple


class Operator(str, Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "not_in"
    EXISTS = "exists"
    REGEX = "regex"


class Filter:
    """Base class for filter nodes."""

    def __and__(self, other: "Filter") -> "And":
        return And((self, other))

    def __or__(self, other: "Filter") -> "Or":
        return Or((self, other))

    def __invert__(self) -> "Not":
        return Not(self)


@dataclass(frozen=True)
class Everything(Filter):
    pass


@dataclass(frozen=True)
class Comparison(Filter):
    field: str
    op: Operator
    value: Any = None


@dataclass(frozen=True)
class And(Filter):
    clauses: Tuple[Filter, ...]


@dataclass(frozen=True)
class Or(Filter):
    clauses: Tuple[Filter, ...]


@dataclass(frozen=True)
class Not(Filter):
    clause: Filter


class Field:
    """
    Entry point for building comparisons on one document field.

    Example:
        (Field("age").gte(18) & Field("name").regex("^A")) | Field("vip").eq(True)
    """

    def __init__(self, name: str):
        self.name = name

    def eq(self, value: Any) -> Comparison:
        return Comparison(self.name, Operator.EQ, value)

    def ne(self, value: Any) -> Comparison:
        return Comparison(self.name, Operator.NE, value)

    def gt(self, value: Any) -> Comparison:
        return Comparison(self.name, Operator.GT, value)

    def gte(self, value: Any) -> Comparison:
        return Comparison(self.name, Operator.GTE, value)

    def lt(self, value: Any) -> Comparison:
        return Comparison(self.name, Operator.LT, value)

    def lte(self, value: Any) -> Comparison:
        return Comparison(self.name, Operator.LTE, value)

    def is_in(self, values) -> Comparison:
        return Comparison(self.name, Operator.IN, tuple(values))

    def not_in(self, values) -> Comparison:
        return Comparison(self.name, Operator.NOT_IN, tuple(values))

    def exists(self, present: bool = True) -> Comparison:
        return Comparison(self.name, Operator.EXISTS, present)

    def regex(self, pattern: str) -> Comparison:
        return Comparison(self.name, Operator.REGEX, pattern)


@dataclass(frozen=True)
class Projection:
    """Field selection applied to every matched document."""

    include: Tuple[str, ...] = field(default_factory=tuple)
    exclude: Tuple[str, ...] = field(default_factory=tuple)
