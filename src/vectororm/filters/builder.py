"""Helpers for composing filters."""

from typing import Any, Optional, Union

from .translator import FilterTranslator
from .types import And, Condition, FilterOperator, Or, ShorthandFilter, UniversalFilter


class FilterBuilder:
    """Combine optional filters into one.

    Example:
        ```python
        f = FilterBuilder.combine(
            FilterBuilder.eq("__v_partition", "legal"),
            None,
            {"year__gte": 2023},
        )
        # And(Condition(__v_partition eq legal), Condition(year gte 2023))
        ```
    """

    @staticmethod
    def eq(field: str, value: Any) -> Condition:
        return Condition(field=field, op=FilterOperator.EQ, value=value)

    @staticmethod
    def combine(
        *filters: Union[UniversalFilter, ShorthandFilter, None],
    ) -> Optional[UniversalFilter]:
        """AND together all non-empty filters; None when nothing is left."""
        parts = [FilterTranslator.normalize(f) for f in filters if f]
        if not parts:
            return None
        if len(parts) == 1:
            return parts[0]
        return And(parts)

    @staticmethod
    def any_of(*filters: Union[UniversalFilter, ShorthandFilter, None]) -> Optional[UniversalFilter]:
        """OR together all non-empty filters."""
        parts = [FilterTranslator.normalize(f) for f in filters if f]
        if not parts:
            return None
        if len(parts) == 1:
            return parts[0]
        return Or(parts)
