from __future__ import annotations

from typing import Mapping

from quotedesk.models.domain import QuoteStatus
from quotedesk.services.errors import InvalidTransition

S = QuoteStatus

TRANSITIONS: Mapping[QuoteStatus, frozenset[QuoteStatus]] = {
    S.pending: frozenset({S.quoted, S.cancelled, S.expired}),
    # quoted -> quoted is a re-quote (the seller revises the response).
    S.quoted: frozenset({S.quoted, S.accepted, S.rejected, S.cancelled, S.expired}),
    S.accepted: frozenset(),
    S.rejected: frozenset(),
    S.cancelled: frozenset(),
    S.expired: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)

# Statuses a seller response has produced at some point.
RESPONDED_STATUSES = frozenset({S.quoted, S.accepted, S.rejected, S.expired})

RESPONDABLE_STATUSES = frozenset({S.pending, S.quoted})

# Targets accepted by the status endpoint; `quoted` is only reachable via respond.
STATUS_ACTION_TARGETS = frozenset({S.accepted, S.rejected, S.cancelled, S.expired})


def is_terminal(status: QuoteStatus) -> bool:
    return status in TERMINAL_STATUSES


def allowed_targets(status: QuoteStatus) -> frozenset[QuoteStatus]:
    return TRANSITIONS.get(status, frozenset())


def can_transition(current: QuoteStatus, target: QuoteStatus) -> bool:
    return target in allowed_targets(current)


def is_noop(current: QuoteStatus, target: QuoteStatus) -> bool:
    """Status updates to the current value succeed without side effects.

    Not used for respond: quoted -> quoted there is a real re-quote.
    """

    return current == target


def ensure_transition(current: QuoteStatus, target: QuoteStatus) -> None:
    """Raise InvalidTransition unless ``current -> target`` is an edge of the table."""

    if can_transition(current, target):
        return

    if current == S.pending and target in {S.accepted, S.rejected}:
        raise InvalidTransition(
            current.value,
            target.value,
            detail="Quote has not been responded to yet",
        )
    raise InvalidTransition(current.value, target.value)
