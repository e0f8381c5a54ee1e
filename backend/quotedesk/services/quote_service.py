"""Quote negotiation workflow.

QuoteService orchestrates every mutation in the same order: load the quote,
authorize the actor, validate the lifecycle edge, apply a compare-and-swap
update plus one history entry in a single transaction, commit, then notify the
counter-party on a best-effort basis.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from quotedesk import models
from quotedesk.config import settings
from quotedesk.core.clock import to_naive_utc, utcnow
from quotedesk.models.domain import ContactSnapshot, QuoteStatus
from quotedesk.schemas.quotes import QuoteCreate, QuoteRespond
from quotedesk.services import quote_access
from quotedesk.services.catalog import CatalogLookup, SqlCatalogLookup
from quotedesk.services.errors import (
    Forbidden,
    InvalidArgument,
    InvalidState,
    NotFound,
    QuoteConflict,
    Unauthenticated,
)
from quotedesk.services.identity import Principal
from quotedesk.services.notifications import (
    NotificationDispatcher,
    NotificationMessage,
    NullNotificationDispatcher,
    notify_safely,
)
from quotedesk.services.quote_history import append_history
from quotedesk.services.quote_lifecycle import (
    RESPONDABLE_STATUSES,
    RESPONDED_STATUSES,
    STATUS_ACTION_TARGETS,
    TRANSITIONS,
    can_transition,
    ensure_transition,
    is_noop,
)
from quotedesk.services.quote_repository import QuoteQuery, QuoteRepository

logger = logging.getLogger("quotedesk.quotes")

SEARCH_MAX_LENGTH = 120


class QuoteListMode(str, Enum):
    asked = "asked"
    received = "received"
    incoming = "incoming"


@dataclass(frozen=True)
class QuotePage:
    items: list[models.Quote]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


def _parse_id(value, field: str) -> str:
    try:
        return str(uuid.UUID(str(value).strip()))
    except (TypeError, ValueError):
        raise InvalidArgument(f"{field} is not a valid id", field=field) from None


def _parse_status(value) -> QuoteStatus:
    if isinstance(value, QuoteStatus):
        return value
    try:
        return QuoteStatus(str(value).strip().lower())
    except ValueError:
        raise InvalidArgument(f"Unknown quote status: {value}", field="status") from None


def _parse_mode(value) -> QuoteListMode:
    if value is None or value == "":
        return QuoteListMode.asked
    if isinstance(value, QuoteListMode):
        return value
    try:
        return QuoteListMode(str(value).strip().lower())
    except ValueError:
        raise InvalidArgument(f"Unknown list mode: {value}", field="mode") from None


def _sources_for(target: QuoteStatus) -> frozenset[QuoteStatus]:
    return frozenset(s for s in TRANSITIONS if can_transition(s, target))


class QuoteService:
    def __init__(
        self,
        db: Session,
        *,
        catalog: CatalogLookup | None = None,
        notifier: NotificationDispatcher | None = None,
    ):
        self.db = db
        self.repo = QuoteRepository(db)
        self.catalog = catalog or SqlCatalogLookup(db)
        self.notifier = notifier or NullNotificationDispatcher()

    # ---- helpers ---------------------------------------------------------

    @staticmethod
    def _require_principal(principal: Principal | None) -> Principal:
        if principal is None or not principal.id:
            raise Unauthenticated("Authentication required")
        return principal

    def _load(self, quote_id, *, for_display: bool = False) -> models.Quote:
        qid = _parse_id(quote_id, "quote_id")
        quote = self.repo.get(qid, for_display=for_display)
        if quote is None:
            raise NotFound("Quote not found", quote_id=qid)
        return quote

    def _reload(self, quote_id: str) -> models.Quote:
        return self._load(quote_id, for_display=True)

    def _apply(
        self,
        *,
        quote: models.Quote,
        principal: Principal,
        target: QuoteStatus,
        values: dict,
        action: str,
        note: Optional[str],
    ) -> None:
        """CAS the quote row and append history; commit or roll back both."""

        now = utcnow()
        quote_id = quote.id
        expected_version = quote.version
        status_from = quote.status
        try:
            result = self.repo.compare_and_set(
                quote_id=quote_id,
                expected_version=expected_version,
                allowed_from=_sources_for(target),
                values=values,
                now=now,
            )
            if not result.updated:
                self.db.rollback()
                logger.warning(
                    "quote.conflict",
                    extra={
                        "quote_id": quote_id,
                        "expected_version": expected_version,
                        "status_from": status_from.value,
                        "status_to": target.value,
                        "actor_id": principal.id,
                    },
                )
                raise QuoteConflict(
                    "Quote was modified by another request; reload and retry",
                    quote_id=quote_id,
                )

            append_history(
                db=self.db,
                quote_id=quote_id,
                actor_id=principal.id,
                action=action,
                status_from=status_from,
                status_to=target,
                note=note,
                now=now,
            )
            self.db.commit()
        except QuoteConflict:
            raise
        except Exception:
            self.db.rollback()
            raise

    # ---- operations ------------------------------------------------------

    def create_quote(self, principal: Principal | None, payload: QuoteCreate) -> models.Quote:
        principal = self._require_principal(principal)

        product_id = _parse_id(payload.product_id, "product_id")
        variant_id = _parse_id(payload.variant_id, "variant_id") if payload.variant_id else None

        product = self.catalog.get_product(product_id)
        if product is None:
            raise NotFound("Product not found", product_id=product_id)
        if not product.owner_user_id or not product.owner_company_id:
            raise InvalidArgument("Product seller metadata is incomplete", product_id=product_id)

        if str(product.owner_user_id) == str(principal.id) or (
            principal.active_company_id
            and str(principal.active_company_id) == str(product.owner_company_id)
        ):
            raise Forbidden("You cannot request a quote for your own product")

        if variant_id is not None:
            if self.catalog.get_variant(variant_id, product_id=product_id) is None:
                raise NotFound("Variant not found for this product", variant_id=variant_id)

        contact = payload.buyer_contact
        now = utcnow()
        quote = models.Quote(
            id=str(uuid.uuid4()),
            product_id=product_id,
            variant_id=variant_id,
            buyer_id=principal.id,
            buyer_company_id=principal.active_company_id,
            seller_id=product.owner_user_id,
            seller_company_id=product.owner_company_id,
            quantity=payload.quantity,
            target_price=payload.target_price,
            currency=payload.currency or settings.default_currency,
            requirements=payload.requirements,
            required_by=to_naive_utc(payload.required_by),
            buyer_contact=ContactSnapshot(
                name=contact.name if contact else None,
                phone=contact.phone if contact else None,
                email=str(contact.email) if contact and contact.email else None,
            ),
            status=QuoteStatus.pending,
            version=1,
            created_at=now,
            updated_at=now,
        )

        try:
            self.repo.add(quote)
            self.db.flush()
            append_history(
                db=self.db,
                quote_id=quote.id,
                actor_id=principal.id,
                action="requested",
                status_from=None,
                status_to=QuoteStatus.pending,
                now=now,
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        quote_id = quote.id
        seller_id = product.owner_user_id
        logger.info(
            "quote.created",
            extra={
                "quote_id": quote_id,
                "product_id": product_id,
                "buyer_id": principal.id,
                "seller_id": seller_id,
            },
        )

        notify_safely(
            self.notifier,
            NotificationMessage(
                user_id=seller_id,
                title="New quote request",
                body=f"A buyer requested a quote for {product.name}.",
                event_key="quote.requested",
                data={"quote_id": quote_id, "product_id": product_id},
            ),
        )
        return self._reload(quote_id)

    def list_quotes(
        self,
        principal: Principal | None,
        *,
        mode=None,
        status=None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> QuotePage:
        principal = self._require_principal(principal)
        list_mode = _parse_mode(mode)
        wanted = _parse_status(status) if status not in (None, "") else None

        term = (search or "").strip()
        if len(term) > SEARCH_MAX_LENGTH:
            raise InvalidArgument(
                f"search must be at most {SEARCH_MAX_LENGTH} characters", field="search"
            )

        max_limit = settings.quotes_list_max_limit
        page_limit = settings.quotes_list_default_limit if limit is None else int(limit)
        page_limit = max(1, min(page_limit, max_limit))
        page_offset = max(0, int(offset or 0))

        query = QuoteQuery(statuses=frozenset({wanted}) if wanted else None)
        if list_mode == QuoteListMode.incoming:
            query.seller_id = principal.id
        else:
            query.buyer_id = principal.id

        if list_mode == QuoteListMode.received:
            if wanted is None:
                query.statuses = RESPONDED_STATUSES
            elif wanted not in RESPONDED_STATUSES:
                allowed = ", ".join(sorted(s.value for s in RESPONDED_STATUSES))
                raise InvalidArgument(
                    f"status must be one of {allowed} for received quotes", field="status"
                )

        if term:
            query.search = term
            query.search_product_ids = self.catalog.search_product_ids(
                term, limit=settings.quote_search_product_limit
            )

        items, total = self.repo.find(query, limit=page_limit, offset=page_offset)
        return QuotePage(items=items, total=total, limit=page_limit, offset=page_offset)

    def get_quote(self, principal: Principal | None, quote_id) -> models.Quote:
        principal = self._require_principal(principal)
        quote = self._load(quote_id, for_display=True)
        quote_access.authorize(quote, principal, quote_access.VIEW)
        return quote

    def respond_to_quote(
        self, principal: Principal | None, quote_id, payload: QuoteRespond
    ) -> models.Quote:
        principal = self._require_principal(principal)
        quote = self._load(quote_id)
        quote_access.authorize(quote, principal, QuoteStatus.quoted)

        current = quote.status
        if current not in RESPONDABLE_STATUSES:
            raise InvalidState(
                f"Cannot respond to a quote that is {current.value}", status=current.value
            )
        ensure_transition(current, QuoteStatus.quoted)

        now = utcnow()
        self._apply(
            quote=quote,
            principal=principal,
            target=QuoteStatus.quoted,
            values={
                "response_unit_price": payload.unit_price,
                "response_currency": (payload.currency or settings.default_currency).upper(),
                "response_min_order_qty": payload.min_order_qty,
                "response_lead_time_days": payload.lead_time_days,
                "response_valid_until": to_naive_utc(payload.valid_until),
                "response_notes": payload.notes,
                "responded_at": now,
                "responded_by_id": principal.id,
                "status": QuoteStatus.quoted,
            },
            action="response_updated" if current == QuoteStatus.quoted else "responded",
            note=payload.notes,
        )

        quote_id = quote.id
        buyer_id = quote.buyer_id
        logger.info(
            "quote.responded",
            extra={
                "quote_id": quote_id,
                "seller_id": principal.id,
                "status_from": current.value,
                "unit_price": payload.unit_price,
            },
        )
        notify_safely(
            self.notifier,
            NotificationMessage(
                user_id=buyer_id,
                title="Quote received",
                body="A seller has responded to your quote request.",
                event_key="quote.responded",
                data={"quote_id": quote_id, "status": QuoteStatus.quoted.value},
            ),
        )
        return self._reload(quote_id)

    def update_quote_status(
        self,
        principal: Principal | None,
        quote_id,
        status,
        note: Optional[str] = None,
    ) -> models.Quote:
        principal = self._require_principal(principal)
        target = _parse_status(status)
        quote = self._load(quote_id)

        if target not in STATUS_ACTION_TARGETS:
            allowed = ", ".join(sorted(s.value for s in STATUS_ACTION_TARGETS))
            raise InvalidArgument(f"status must be one of {allowed}", field="status")

        quote_access.authorize(quote, principal, target)

        current = quote.status
        if is_noop(current, target):
            return self._reload(quote.id)
        ensure_transition(current, target)

        self._apply(
            quote=quote,
            principal=principal,
            target=target,
            values={"status": target},
            action=f"status_{target.value}",
            note=note,
        )

        quote_id = quote.id
        buyer_id = quote.buyer_id
        seller_id = quote.seller_id
        logger.info(
            "quote.status_changed",
            extra={
                "quote_id": quote_id,
                "actor_id": principal.id,
                "status_from": current.value,
                "status_to": target.value,
            },
        )

        counterparty_id = seller_id if str(principal.id) == str(buyer_id) else buyer_id
        notify_safely(
            self.notifier,
            NotificationMessage(
                user_id=counterparty_id,
                title="Quote status updated",
                body=f"Quote status changed to {target.value}.",
                event_key="quote.status.changed",
                data={"quote_id": quote_id, "status": target.value},
            ),
        )
        return self._reload(quote_id)
