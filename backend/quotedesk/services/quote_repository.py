from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from quotedesk import models
from quotedesk.core.clock import utcnow
from quotedesk.models.domain import QuoteStatus
from quotedesk.services.catalog import escape_like


@dataclass(frozen=True)
class TransitionResult:
    updated: bool
    rowcount: int


@dataclass
class QuoteQuery:
    buyer_id: str | None = None
    seller_id: str | None = None
    statuses: frozenset[QuoteStatus] | None = None
    search: str | None = None
    search_product_ids: list[str] = field(default_factory=list)


def _display_options():
    return (
        joinedload(models.Quote.product),
        joinedload(models.Quote.variant),
        joinedload(models.Quote.buyer),
        joinedload(models.Quote.seller),
        joinedload(models.Quote.buyer_company),
        joinedload(models.Quote.seller_company),
        joinedload(models.Quote.responded_by),
        selectinload(models.Quote.history),
    )


class QuoteRepository:
    def __init__(self, db: Session):
        self.db = db

    def _live(self) -> Query:
        return self.db.query(models.Quote).filter(models.Quote.deleted_at.is_(None))

    def get(self, quote_id: str, *, for_display: bool = False) -> models.Quote | None:
        q = self._live().filter(models.Quote.id == quote_id)
        if for_display:
            q = q.options(*_display_options())
        return q.first()

    def add(self, quote: models.Quote) -> models.Quote:
        self.db.add(quote)
        return quote

    def find(self, query: QuoteQuery, *, limit: int, offset: int) -> tuple[list[models.Quote], int]:
        q = self._live()

        if query.buyer_id is not None:
            q = q.filter(models.Quote.buyer_id == query.buyer_id)
        if query.seller_id is not None:
            q = q.filter(models.Quote.seller_id == query.seller_id)
        if query.statuses is not None:
            q = q.filter(models.Quote.status.in_(set(query.statuses)))

        term = (query.search or "").strip()
        if term:
            pattern = f"%{escape_like(term)}%"
            clauses = [
                models.Quote.requirements.ilike(pattern, escape="\\"),
                models.Quote.response_notes.ilike(pattern, escape="\\"),
            ]
            if query.search_product_ids:
                clauses.append(models.Quote.product_id.in_(query.search_product_ids))
            q = q.filter(or_(*clauses))

        total = q.order_by(None).count()
        items = (
            q.options(*_display_options())
            .order_by(
                models.Quote.updated_at.desc(),
                models.Quote.created_at.desc(),
                models.Quote.id.desc(),
            )
            .offset(int(offset))
            .limit(int(limit))
            .all()
        )
        return items, int(total)

    def compare_and_set(
        self,
        *,
        quote_id: str,
        expected_version: int,
        allowed_from: Iterable[QuoteStatus],
        values: dict[str, Any],
        now: datetime | None = None,
    ) -> TransitionResult:
        """Apply an update guarded by version and current status.

        Runs a single conditional UPDATE:

            UPDATE quotes
            SET ..., version = version + 1, updated_at = :now
            WHERE id = :quote_id AND version = :expected_version
              AND status IN (:allowed_from) AND deleted_at IS NULL

        A zero rowcount means another writer got there first (or the quote is
        no longer in an allowed status). Callers control commit/rollback.
        """

        update_values: dict[str, Any] = dict(values)
        update_values["version"] = models.Quote.version + 1
        update_values["updated_at"] = now or utcnow()

        rowcount = (
            self.db.query(models.Quote)
            .filter(models.Quote.id == quote_id)
            .filter(models.Quote.version == int(expected_version))
            .filter(models.Quote.status.in_(set(allowed_from)))
            .filter(models.Quote.deleted_at.is_(None))
            .update(update_values, synchronize_session=False)
        )
        return TransitionResult(updated=rowcount > 0, rowcount=int(rowcount or 0))
