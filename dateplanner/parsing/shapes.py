"""Shape predicates: cheap structural checks applied to extracted values."""

from __future__ import annotations

from typing import Any, Callable

ShapePredicate = Callable[[Any], bool]


def is_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_nonempty_array(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def has_nonempty_array(field: str) -> ShapePredicate:
    def _check(value: Any) -> bool:
        return isinstance(value, dict) and is_nonempty_array(value.get(field))

    _check.__name__ = f"has_nonempty_array[{field}]"
    return _check


def has_object(field: str) -> ShapePredicate:
    def _check(value: Any) -> bool:
        return isinstance(value, dict) and isinstance(value.get(field), dict)

    _check.__name__ = f"has_object[{field}]"
    return _check


def array_or_field(field: str) -> ShapePredicate:
    """Accept a bare non-empty array or an object wrapping one under ``field``."""
    wrapped = has_nonempty_array(field)

    def _check(value: Any) -> bool:
        return is_nonempty_array(value) or wrapped(value)

    _check.__name__ = f"array_or_field[{field}]"
    return _check


def all_of(*predicates: ShapePredicate) -> ShapePredicate:
    def _check(value: Any) -> bool:
        return all(p(value) for p in predicates)

    return _check


def any_value(value: Any) -> bool:
    return isinstance(value, (dict, list))


__all__ = [
    "ShapePredicate",
    "all_of",
    "any_value",
    "array_or_field",
    "has_nonempty_array",
    "has_object",
    "is_nonempty_array",
    "is_object",
]
