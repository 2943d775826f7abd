"""State-transition tables for ledger entity status fields."""

from enum import Enum
from typing import Mapping, TypeVar

from parcel_ledger.domain.exceptions import IllegalTransitionException

S = TypeVar("S", bound=Enum)


def can_transition(table: Mapping[S, frozenset], current: S, target: S) -> bool:
    return target in table.get(current, frozenset())


def ensure_transition(
    table: Mapping[S, frozenset],
    entity: str,
    current: S,
    target: S,
) -> S:
    """
    Validate a status change against a transition table.

    Returns:
        The target status

    Raises:
        IllegalTransitionException: If the change is not in the table
    """
    if not can_transition(table, current, target):
        raise IllegalTransitionException(entity, current.value, target.value)
    return target


def sources_of(table: Mapping[S, frozenset], target: S) -> frozenset:
    """All statuses from which target is reachable in one step."""
    return frozenset(source for source, targets in table.items() if target in targets)
