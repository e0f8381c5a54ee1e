from __future__ import annotations

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from quotedesk import models
from quotedesk.core.clock import utcnow
from quotedesk.models.domain import QuoteStatus

NOTE_MAX_LENGTH = 500


def _last_entry_at(db: Session, quote_id: str) -> datetime | None:
    return (
        db.query(func.max(models.QuoteHistoryEntry.created_at))
        .filter(models.QuoteHistoryEntry.quote_id == quote_id)
        .scalar()
    )


def append_history(
    *,
    db: Session,
    quote_id: str,
    actor_id: str | None,
    action: str,
    status_from: QuoteStatus | None,
    status_to: QuoteStatus | None,
    note: str | None = None,
    now: datetime | None = None,
) -> models.QuoteHistoryEntry:
    """Stage one history entry in the caller's transaction.

    No authorization happens here; callers validate the action first and
    control commit/rollback. Timestamps never go backwards within a quote.
    """

    at = now or utcnow()
    last_at = _last_entry_at(db, quote_id)
    if last_at is not None and last_at > at:
        at = last_at

    entry = models.QuoteHistoryEntry(
        quote_id=quote_id,
        actor_id=actor_id,
        action=action,
        status_from=status_from,
        status_to=status_to,
        note=(note[:NOTE_MAX_LENGTH] if note else None),
        created_at=at,
    )
    db.add(entry)
    return entry
