"""Authorization rules for quotes.

Every decision is a lookup in ACCESS_RULES, keyed by the action (viewing, or
the status the actor wants the quote to reach) and answered by the set of
relationships allowed to perform it. Responding is the `quoted` target.
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping, Protocol

from quotedesk.models.domain import QuoteStatus
from quotedesk.services.errors import Forbidden
from quotedesk.services.identity import Principal


class Relationship(str, Enum):
    buyer = "buyer"
    seller = "seller"
    admin = "admin"


class QuoteParties(Protocol):
    buyer_id: str
    seller_id: str


VIEW = "view"

R = Relationship
S = QuoteStatus

ACCESS_RULES: Mapping[str | QuoteStatus, frozenset[Relationship]] = {
    VIEW: frozenset({R.buyer, R.seller, R.admin}),
    S.quoted: frozenset({R.seller, R.admin}),
    S.accepted: frozenset({R.buyer}),
    S.rejected: frozenset({R.buyer}),
    S.cancelled: frozenset({R.buyer}),
    S.expired: frozenset({R.seller, R.admin}),
}

_DENIED_MESSAGES: Mapping[str | QuoteStatus, str] = {
    VIEW: "You are not allowed to view this quote",
    S.quoted: "Only the seller can respond to this quote",
    S.accepted: "Only the buyer can perform this action",
    S.rejected: "Only the buyer can perform this action",
    S.cancelled: "Only the buyer can perform this action",
    S.expired: "Only the seller or admin can expire this quote",
}


def relationships(quote: QuoteParties, principal: Principal | None) -> frozenset[Relationship]:
    if principal is None or not principal.id:
        return frozenset()
    found: set[Relationship] = set()
    if principal.is_admin:
        found.add(R.admin)
    if str(quote.buyer_id) == str(principal.id):
        found.add(R.buyer)
    if str(quote.seller_id) == str(principal.id):
        found.add(R.seller)
    return frozenset(found)


def is_allowed(
    quote: QuoteParties, principal: Principal | None, action: str | QuoteStatus
) -> bool:
    allowed = ACCESS_RULES.get(action)
    if not allowed:
        return False
    return bool(allowed & relationships(quote, principal))


def authorize(quote: QuoteParties, principal: Principal | None, action: str | QuoteStatus) -> None:
    if not is_allowed(quote, principal, action):
        raise Forbidden(_DENIED_MESSAGES.get(action, "Action not allowed for this quote"))


def can_view(quote: QuoteParties, principal: Principal | None) -> bool:
    return is_allowed(quote, principal, VIEW)
