"""Universal filter AST.

Filters are expressed once as a small tree of ``Condition``, ``And`` and
``Or`` nodes, then translated to native syntax by each adapter.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Union


class FilterOperator(str, Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NIN = "nin"
    CONTAINS = "contains"  # substring, or element of a list field
    EXISTS = "exists"  # value is a bool


@dataclass(frozen=True)
class Condition:
    field: str
    op: FilterOperator
    value: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "op", FilterOperator(self.op))
        if isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))


@dataclass(frozen=True)
class And:
    conditions: tuple["UniversalFilter", ...]

    def __init__(self, conditions: Iterable["UniversalFilter"]):
        object.__setattr__(self, "conditions", tuple(conditions))


@dataclass(frozen=True)
class Or:
    conditions: tuple["UniversalFilter", ...]

    def __init__(self, conditions: Iterable["UniversalFilter"]):
        object.__setattr__(self, "conditions", tuple(conditions))


UniversalFilter = Union[Condition, And, Or]

# Shorthand: {"region": "ny", "year__gte": 2023}
ShorthandFilter = dict[str, Any]
