"""Per-backend compilers from the universal filter AST to native filters.

Each translator recurses on ``And``/``Or`` nodes and maps ``Condition``
operators through a fixed table. Operators missing from the table raise
``UnsupportedOperatorError``. Values a backend cannot store raise
``UnsupportedFilterError``.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..exceptions import UnsupportedFilterError, UnsupportedOperatorError
from .types import And, Condition, FilterOperator, Or, UniversalFilter


class NativeFilterTranslator(ABC):
    """Base class for backend filter translators."""

    backend: str = "base"
    operators: dict[FilterOperator, str] = {}

    @classmethod
    def translate(cls, filter: UniversalFilter) -> Any:
        return cls._translate(filter)

    @classmethod
    def _translate(cls, filter: UniversalFilter) -> Any:
        if isinstance(filter, And):
            return cls._and([cls._translate(c) for c in filter.conditions])
        if isinstance(filter, Or):
            return cls._or([cls._translate(c) for c in filter.conditions])
        return cls._condition(filter)

    @classmethod
    def native_operator(cls, op: FilterOperator) -> str:
        try:
            return cls.operators[op]
        except KeyError:
            raise UnsupportedOperatorError(op.value, cls.backend) from None

    @classmethod
    @abstractmethod
    def _condition(cls, condition: Condition) -> Any:
        ...

    @classmethod
    @abstractmethod
    def _and(cls, children: list[Any]) -> Any:
        ...

    @classmethod
    @abstractmethod
    def _or(cls, children: list[Any]) -> Any:
        ...


def _plain(value: Any) -> Any:
    return list(value) if isinstance(value, tuple) else value


def _require_value(condition: Condition, backend: str) -> None:
    if condition.value is None:
        raise UnsupportedFilterError(f"null value for '{condition.field}'", backend)


class ChromaFilterTranslator(NativeFilterTranslator):
    """Chroma ``where`` clauses: ``{field: {"$op": value}}``, ``$and``/``$or``.

    Chroma rejects compounds with fewer than two children, so single-child
    compounds collapse to the child.
    """

    backend = "chroma"
    operators = {
        FilterOperator.EQ: "$eq",
        FilterOperator.NE: "$ne",
        FilterOperator.GT: "$gt",
        FilterOperator.GTE: "$gte",
        FilterOperator.LT: "$lt",
        FilterOperator.LTE: "$lte",
        FilterOperator.IN: "$in",
        FilterOperator.NIN: "$nin",
    }

    @classmethod
    def _condition(cls, condition: Condition) -> dict[str, Any]:
        native = cls.native_operator(condition.op)
        _require_value(condition, cls.backend)
        if condition.op in (FilterOperator.IN, FilterOperator.NIN):
            if not condition.value:
                raise UnsupportedFilterError(f"empty list for '{condition.op.value}' on '{condition.field}'", cls.backend)
            if len({type(v) for v in condition.value}) > 1:
                raise UnsupportedFilterError(f"mixed value types for '{condition.op.value}' on '{condition.field}'", cls.backend)
        return {condition.field: {native: _plain(condition.value)}}

    @classmethod
    def _and(cls, children: list[Any]) -> dict[str, Any]:
        return children[0] if len(children) == 1 else {"$and": children}

    @classmethod
    def _or(cls, children: list[Any]) -> dict[str, Any]:
        return children[0] if len(children) == 1 else {"$or": children}


class PineconeFilterTranslator(NativeFilterTranslator):
    """Pinecone metadata filters (MongoDB-style operators)."""

    backend = "pinecone"
    operators = {
        FilterOperator.EQ: "$eq",
        FilterOperator.NE: "$ne",
        FilterOperator.GT: "$gt",
        FilterOperator.GTE: "$gte",
        FilterOperator.LT: "$lt",
        FilterOperator.LTE: "$lte",
        FilterOperator.IN: "$in",
        FilterOperator.NIN: "$nin",
        FilterOperator.EXISTS: "$exists",
    }

    @classmethod
    def _condition(cls, condition: Condition) -> dict[str, Any]:
        native = cls.native_operator(condition.op)
        _require_value(condition, cls.backend)
        return {condition.field: {native: _plain(condition.value)}}

    @classmethod
    def _and(cls, children: list[Any]) -> dict[str, Any]:
        return {"$and": children}

    @classmethod
    def _or(cls, children: list[Any]) -> dict[str, Any]:
        return {"$or": children}


class TurbopufferFilterTranslator(NativeFilterTranslator):
    """Turbopuffer filter arrays: ``[field, "Eq", value]``, ``["And", [...]]``."""

    backend = "turbopuffer"
    operators = {
        FilterOperator.EQ: "Eq",
        FilterOperator.NE: "NotEq",
        FilterOperator.GT: "Gt",
        FilterOperator.GTE: "Gte",
        FilterOperator.LT: "Lt",
        FilterOperator.LTE: "Lte",
        FilterOperator.IN: "In",
        FilterOperator.NIN: "NotIn",
        FilterOperator.CONTAINS: "Glob",
        FilterOperator.EXISTS: "NotEq",
    }

    @classmethod
    def _condition(cls, condition: Condition) -> list[Any]:
        native = cls.native_operator(condition.op)
        if condition.op is FilterOperator.EXISTS:
            return [condition.field, native if condition.value else "Eq", None]
        if condition.op is FilterOperator.CONTAINS:
            return [condition.field, native, f"*{_escape_glob(str(condition.value))}*"]
        return [condition.field, native, _plain(condition.value)]

    @classmethod
    def _and(cls, children: list[Any]) -> list[Any]:
        return ["And", children]

    @classmethod
    def _or(cls, children: list[Any]) -> list[Any]:
        return ["Or", children]


def _escape_glob(value: str) -> str:
    return "".join(f"[{ch}]" if ch in "*?[" else ch for ch in value)


class QdrantFilterTranslator(NativeFilterTranslator):
    """Qdrant ``models.Filter`` trees (must / should / must_not)."""

    backend = "qdrant"
    operators = {
        FilterOperator.EQ: "match_value",
        FilterOperator.NE: "match_value",
        FilterOperator.GT: "gt",
        FilterOperator.GTE: "gte",
        FilterOperator.LT: "lt",
        FilterOperator.LTE: "lte",
        FilterOperator.IN: "match_any",
        FilterOperator.NIN: "match_any",
        FilterOperator.CONTAINS: "match_text",
        FilterOperator.EXISTS: "is_empty",
    }

    @classmethod
    def translate(cls, filter: UniversalFilter) -> Any:
        from qdrant_client import models

        native = cls._translate(filter)
        if isinstance(native, models.Filter):
            return native
        return models.Filter(must=[native])

    @classmethod
    def _condition(cls, condition: Condition) -> Any:
        from qdrant_client import models

        native = cls.native_operator(condition.op)
        field, value = condition.field, _plain(condition.value)
        if native == "match_value":
            clause = cls._exact(field, value)
            if condition.op is FilterOperator.NE:
                return models.Filter(must_not=[clause])
            return clause
        if native == "match_any":
            if not isinstance(value, list):
                raise UnsupportedFilterError(f"'{condition.op.value}' on '{field}' needs a list", cls.backend)
            clauses = cls._any_of(field, value)
            if condition.op is FilterOperator.NIN:
                return models.Filter(must_not=clauses)
            return clauses[0] if len(clauses) == 1 else models.Filter(should=clauses)
        if native == "match_text":
            return models.FieldCondition(key=field, match=models.MatchText(text=str(value)))
        if native == "is_empty":
            clause = models.IsEmptyCondition(is_empty=models.PayloadField(key=field))
            return models.Filter(must_not=[clause]) if value else clause
        return models.FieldCondition(key=field, range=models.Range(**{native: value}))

    @classmethod
    def _exact(cls, field: str, value: Any) -> Any:
        """Exact match. Qdrant matches only bool, int and str, so floats become a closed range."""
        from qdrant_client import models

        if isinstance(value, float):
            return models.FieldCondition(key=field, range=models.Range(gte=value, lte=value))
        if isinstance(value, (bool, int, str)):
            return models.FieldCondition(key=field, match=models.MatchValue(value=value))
        raise UnsupportedFilterError(f"{type(value).__name__} value for '{field}'", cls.backend)

    @classmethod
    def _any_of(cls, field: str, values: list[Any]) -> list[Any]:
        """Clauses of which at least one matches a value in ``values``.

        ``MatchAny`` takes a list of only str or only int, so strings and
        integers get one clause each and other values match individually.
        """
        from qdrant_client import models

        if not values:
            return [models.FieldCondition(key=field, match=models.MatchAny(any=[]))]
        strings = [v for v in values if isinstance(v, str)]
        ints = [v for v in values if isinstance(v, int) and not isinstance(v, bool)]
        clauses = [
            models.FieldCondition(key=field, match=models.MatchAny(any=group))
            for group in (strings, ints)
            if group
        ]
        clauses.extend(
            cls._exact(field, v) for v in values if isinstance(v, bool) or not isinstance(v, (str, int))
        )
        return clauses

    @classmethod
    def _and(cls, children: list[Any]) -> Any:
        from qdrant_client import models

        return models.Filter(must=children)

    @classmethod
    def _or(cls, children: list[Any]) -> Any:
        from qdrant_client import models

        return models.Filter(should=children)
