"""Attribute condition attached to a permission (field / operator / value).

A condition narrows a permission to entities whose attributes satisfy it.
Evaluation never raises: a missing field or an incomparable value makes the
condition false.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from app.domain.enums import ConditionOperator

_MISSING = object()


def resolve_field(entity: Mapping[str, Any] | None, path: str) -> Any:
    """Return the value at a dotted path in entity, or _MISSING."""
    if entity is None:
        return _MISSING
    current: Any = entity
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _contains(actual: Any, expected: Any) -> bool:
    if isinstance(actual, str):
        return isinstance(expected, str) and expected in actual
    if isinstance(actual, (list, tuple, set, frozenset)):
        return expected in actual
    return False


_COLLECTION_TYPES = (list, tuple, set, frozenset)
_MEMBERSHIP_OPERATORS = frozenset({ConditionOperator.IN, ConditionOperator.NOT_IN})


def _member(actual: Any, expected: Any) -> bool:
    return isinstance(expected, _COLLECTION_TYPES) and actual in expected


def _not_member(actual: Any, expected: Any) -> bool:
    # A malformed value list denies rather than matching every entity.
    return isinstance(expected, _COLLECTION_TYPES) and actual not in expected


_COMPARATORS: dict[ConditionOperator, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQ: lambda a, e: a == e,
    ConditionOperator.NE: lambda a, e: a != e,
    ConditionOperator.GT: lambda a, e: a > e,
    ConditionOperator.GTE: lambda a, e: a >= e,
    ConditionOperator.LT: lambda a, e: a < e,
    ConditionOperator.LTE: lambda a, e: a <= e,
    ConditionOperator.IN: _member,
    ConditionOperator.NOT_IN: _not_member,
    ConditionOperator.CONTAINS: _contains,
}


def validate_condition_value(operator: ConditionOperator, value: Any) -> None:
    """Raise ValueError when value cannot be used with operator."""
    if operator in _MEMBERSHIP_OPERATORS and not isinstance(value, _COLLECTION_TYPES):
        raise ValueError(f"Condition operator '{operator.value}' requires a list value")


@dataclass(frozen=True)
class PermissionCondition:
    """Value object for one field/operator/value rule.

    Fields may be dotted paths (e.g. 'property.owner_id'). The EXISTS
    operator takes a boolean value: true requires the field, false
    requires its absence.
    """

    field: str
    operator: ConditionOperator
    value: Any = None

    def __post_init__(self) -> None:
        if not self.field or not self.field.strip():
            raise ValueError("Condition field must be a non-empty string")
        if not isinstance(self.operator, ConditionOperator):
            object.__setattr__(self, "operator", ConditionOperator(self.operator))
        validate_condition_value(self.operator, self.value)

    def evaluate(self, entity: Mapping[str, Any] | None) -> bool:
        """Return True if entity satisfies this condition."""
        actual = resolve_field(entity, self.field)
        if self.operator is ConditionOperator.EXISTS:
            return (actual is not _MISSING) == bool(self.value)
        if actual is _MISSING:
            return False
        try:
            return bool(_COMPARATORS[self.operator](actual, self.value))
        except TypeError:
            return False

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator.value, "value": self.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PermissionCondition:
        return cls(
            field=data["field"],
            operator=ConditionOperator(data["operator"]),
            value=data.get("value"),
        )
