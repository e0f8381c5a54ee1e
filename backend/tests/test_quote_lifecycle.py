import pytest

from quotedesk.models.domain import QuoteStatus
from quotedesk.services.errors import InvalidTransition
from quotedesk.services.quote_lifecycle import (
    RESPONDED_STATUSES,
    TERMINAL_STATUSES,
    TRANSITIONS,
    allowed_targets,
    can_transition,
    ensure_transition,
    is_noop,
    is_terminal,
)

S = QuoteStatus


def test_terminal_statuses_have_no_outgoing_edges():
    assert TERMINAL_STATUSES == {S.accepted, S.rejected, S.cancelled, S.expired}
    for status in TERMINAL_STATUSES:
        assert allowed_targets(status) == frozenset()
        assert is_terminal(status)
    assert not is_terminal(S.pending)
    assert not is_terminal(S.quoted)


def test_every_status_is_in_the_table():
    assert set(TRANSITIONS) == set(QuoteStatus)


@pytest.mark.parametrize(
    "current,target",
    [
        (S.pending, S.quoted),
        (S.pending, S.cancelled),
        (S.pending, S.expired),
        (S.quoted, S.quoted),
        (S.quoted, S.accepted),
        (S.quoted, S.rejected),
        (S.quoted, S.cancelled),
        (S.quoted, S.expired),
    ],
)
def test_allowed_edges(current, target):
    assert can_transition(current, target)
    ensure_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (S.accepted, S.cancelled),
        (S.rejected, S.quoted),
        (S.cancelled, S.pending),
        (S.expired, S.quoted),
        (S.quoted, S.pending),
        (S.pending, S.pending),
    ],
)
def test_disallowed_edges_name_both_states(current, target):
    with pytest.raises(InvalidTransition) as exc:
        ensure_transition(current, target)
    assert exc.value.from_status == current.value
    assert exc.value.to_status == target.value
    assert current.value in exc.value.detail
    assert target.value in exc.value.detail


@pytest.mark.parametrize("target", [S.accepted, S.rejected])
def test_pending_cannot_be_decided_before_a_response(target):
    with pytest.raises(InvalidTransition) as exc:
        ensure_transition(S.pending, target)
    assert exc.value.detail == "Quote has not been responded to yet"
    assert exc.value.code == "INVALID_TRANSITION"
    assert exc.value.status_code == 400


def test_same_status_is_a_noop():
    assert is_noop(S.accepted, S.accepted)
    assert not is_noop(S.quoted, S.accepted)


def test_responded_statuses_exclude_pending_and_cancelled():
    assert S.pending not in RESPONDED_STATUSES
    assert S.cancelled not in RESPONDED_STATUSES
    assert {S.quoted, S.accepted, S.rejected, S.expired} == RESPONDED_STATUSES
