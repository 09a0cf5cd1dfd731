"""
Translate service Outcomes into HTTP responses, in one place.
"""

from typing import TypeVar

from fastapi import HTTPException, status

from wanderlust.services.outcomes import Outcome, OutcomeKind

T = TypeVar("T")

STATUS_BY_KIND = {
    OutcomeKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    OutcomeKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    OutcomeKind.INSUFFICIENT_INVENTORY: status.HTTP_409_CONFLICT,
    OutcomeKind.ALREADY_TERMINAL: status.HTTP_409_CONFLICT,
    OutcomeKind.BLOCKED: status.HTTP_409_CONFLICT,
    OutcomeKind.INVALID_RANGE: status.HTTP_400_BAD_REQUEST,
}


def unwrap(outcome: Outcome[T]) -> T:
    """Return the outcome's value, or raise the matching HTTPException."""
    if outcome.ok:
        return outcome.value

    raise HTTPException(
        status_code=STATUS_BY_KIND.get(outcome.kind, status.HTTP_400_BAD_REQUEST),
        detail={
            "kind": outcome.kind.value,
            "entity": outcome.entity,
            "entity_id": outcome.entity_id,
            "message": outcome.message,
        },
    )
