"""Filter normalization, validation and direct evaluation."""

from typing import Any, Mapping, Optional, Union

from ..exceptions import InvalidFilterError
from .types import And, Condition, FilterOperator, Or, ShorthandFilter, UniversalFilter

VALID_OPERATORS = {op.value for op in FilterOperator}
_LIST_OPERATORS = (FilterOperator.IN, FilterOperator.NIN)
_MISSING = object()


class FilterTranslator:
    """Converts user filter input to the universal AST and validates it."""

    @classmethod
    def normalize(
        cls, filter_input: Union[UniversalFilter, ShorthandFilter, None]
    ) -> Optional[UniversalFilter]:
        """Normalize any filter input to a ``UniversalFilter``.

        Handles:
        - AST nodes (returned as-is)
        - standard dicts: ``{"field", "op", "value"}``, ``{"and": [...]}``, ``{"or": [...]}``
        - shorthand dicts: ``{"region": "ny", "year__gte": 2023}``

        Raises:
            InvalidFilterError: If the input cannot be interpreted
        """
        if filter_input is None:
            return None
        if isinstance(filter_input, (Condition, And, Or)):
            return filter_input
        if not isinstance(filter_input, Mapping):
            raise InvalidFilterError(f"Unsupported filter type: {type(filter_input).__name__}")
        if set(filter_input) == {"and"}:
            return And(cls.normalize(c) for c in cls._children(filter_input["and"], "and"))
        if set(filter_input) == {"or"}:
            return Or(cls.normalize(c) for c in cls._children(filter_input["or"], "or"))
        if set(filter_input) == {"field", "op", "value"}:
            return Condition(
                field=filter_input["field"],
                op=cls._operator(filter_input["op"]),
                value=filter_input["value"],
            )
        return cls._from_shorthand(filter_input)

    @classmethod
    def validate(cls, filter: UniversalFilter) -> None:
        """Check structure and operators. Raises InvalidFilterError."""
        if isinstance(filter, (And, Or)):
            if not filter.conditions:
                raise InvalidFilterError("Compound filter must have at least one condition")
            for child in filter.conditions:
                cls.validate(child)
            return
        if not isinstance(filter, Condition):
            raise InvalidFilterError(f"Unsupported filter node: {type(filter).__name__}")
        if not filter.field or not isinstance(filter.field, str):
            raise InvalidFilterError("Filter field must be a non-empty string")
        if filter.op in _LIST_OPERATORS and not isinstance(filter.value, (list, tuple)):
            raise InvalidFilterError(f"Operator '{filter.op.value}' requires a list value")
        if filter.op is FilterOperator.EXISTS and not isinstance(filter.value, bool):
            raise InvalidFilterError("Operator 'exists' requires a boolean value")

    @classmethod
    def prepare(
        cls, filter_input: Union[UniversalFilter, ShorthandFilter, None]
    ) -> Optional[UniversalFilter]:
        """Normalize then validate; used by adapters before translation."""
        filter = cls.normalize(filter_input)
        if filter is not None:
            cls.validate(filter)
        return filter

    @staticmethod
    def is_compound(filter: UniversalFilter) -> bool:
        return isinstance(filter, (And, Or))

    @staticmethod
    def _children(value: Any, key: str) -> list:
        if not isinstance(value, (list, tuple)):
            raise InvalidFilterError(f"'{key}' must be a list of filters")
        return list(value)

    @staticmethod
    def _operator(op: Any) -> FilterOperator:
        try:
            return FilterOperator(op)
        except ValueError:
            raise InvalidFilterError(f"Invalid filter operator: {op}") from None

    @classmethod
    def _from_shorthand(cls, shorthand: ShorthandFilter) -> UniversalFilter:
        if not shorthand:
            raise InvalidFilterError("Cannot convert empty shorthand filter")
        conditions = []
        for key, value in shorthand.items():
            field, sep, suffix = key.rpartition("__")
            # "__h_theme" has no operator suffix; "__h_theme__in" does
            if sep and field and not field.endswith("_") and suffix:
                op = cls._operator(suffix)
            else:
                field, op = key, FilterOperator.EQ
            conditions.append(Condition(field=field, op=op, value=value))
        if len(conditions) == 1:
            return conditions[0]
        return And(conditions)


def _compare(actual: Any, expected: Any, op: FilterOperator) -> bool:
    try:
        if op is FilterOperator.GT:
            return actual > expected
        if op is FilterOperator.GTE:
            return actual >= expected
        if op is FilterOperator.LT:
            return actual < expected
        return actual <= expected
    except TypeError:
        return False


def _evaluate_condition(condition: Condition, metadata: Mapping[str, Any]) -> bool:
    actual = metadata.get(condition.field, _MISSING)
    if actual is None:
        actual = _MISSING
    op, expected = condition.op, condition.value

    if op is FilterOperator.EXISTS:
        return (actual is not _MISSING) == expected
    if op is FilterOperator.NE:
        return not _evaluate_condition(Condition(condition.field, FilterOperator.EQ, expected), metadata)
    if op is FilterOperator.NIN:
        return not _evaluate_condition(Condition(condition.field, FilterOperator.IN, expected), metadata)
    if actual is _MISSING:
        return False
    if op is FilterOperator.EQ:
        if isinstance(actual, (list, tuple)):
            return expected in actual
        return actual == expected
    if op is FilterOperator.IN:
        if isinstance(actual, (list, tuple)):
            return any(v in expected for v in actual)
        return actual in expected
    if op is FilterOperator.CONTAINS:
        if isinstance(actual, str):
            return isinstance(expected, str) and expected in actual
        if isinstance(actual, (list, tuple)):
            return expected in actual
        return False
    return _compare(actual, expected, op)


def matches(filter: Optional[UniversalFilter], metadata: Mapping[str, Any]) -> bool:
    """Evaluate a universal filter directly against a metadata mapping.

    Missing and null fields never satisfy eq/in/range/contains conditions and
    always satisfy ne/nin.
    """
    if filter is None:
        return True
    if isinstance(filter, And):
        return all(matches(child, metadata) for child in filter.conditions)
    if isinstance(filter, Or):
        return any(matches(child, metadata) for child in filter.conditions)
    return _evaluate_condition(filter, metadata)
