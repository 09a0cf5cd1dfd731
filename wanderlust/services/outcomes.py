"""
Discriminated results for booking and listing operations.

Expected conditions (missing entity, wrong owner, not enough rooms, ...) are
returned as an Outcome instead of raised, so callers can tell an inventory
conflict apart from a permission problem without catching exceptions.
Truly unexpected failures (store down, broken invariants) still raise.
"""

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class OutcomeKind(str, enum.Enum):
    OK = "ok"
    # Informational: the requested state already holds, nothing changed
    ALREADY_CONFIRMED = "already_confirmed"
    ALREADY_REJECTED = "already_rejected"
    # Errors
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    INSUFFICIENT_INVENTORY = "insufficient_inventory"
    INVALID_RANGE = "invalid_range"
    ALREADY_TERMINAL = "already_terminal"
    BLOCKED = "blocked"


INFORMATIONAL_KINDS = frozenset({OutcomeKind.ALREADY_CONFIRMED, OutcomeKind.ALREADY_REJECTED})


class InventoryConsistencyError(Exception):
    """Raised when a room release would push a listing past its capacity."""


@dataclass(frozen=True)
class Outcome(Generic[T]):
    kind: OutcomeKind
    value: Optional[T] = None
    entity: Optional[str] = None
    entity_id: Optional[int] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        """True for success and for informational no-ops."""
        return self.kind is OutcomeKind.OK or self.kind in INFORMATIONAL_KINDS

    @property
    def is_error(self) -> bool:
        return not self.ok

    @property
    def changed(self) -> bool:
        return self.kind is OutcomeKind.OK

    @classmethod
    def success(cls, value: T, message: str = "") -> "Outcome[T]":
        return cls(OutcomeKind.OK, value=value, message=message)

    @classmethod
    def info(cls, kind: OutcomeKind, value: T, message: str) -> "Outcome[T]":
        return cls(kind, value=value, message=message)

    @classmethod
    def failure(
        cls,
        kind: OutcomeKind,
        entity: str,
        entity_id: Optional[int],
        message: str,
    ) -> "Outcome[T]":
        return cls(kind, entity=entity, entity_id=entity_id, message=message)

    @classmethod
    def not_found(cls, entity: str, entity_id: int) -> "Outcome[T]":
        return cls.failure(
            OutcomeKind.NOT_FOUND, entity, entity_id, f"{entity.capitalize()} {entity_id} not found"
        )

    @classmethod
    def forbidden(cls, entity: str, entity_id: int, message: str) -> "Outcome[T]":
        return cls.failure(OutcomeKind.FORBIDDEN, entity, entity_id, message)
