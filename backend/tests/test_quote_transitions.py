import pytest

from quotedesk import models
from quotedesk.database import SessionLocal
from quotedesk.models.domain import QuoteStatus
from quotedesk.schemas.quotes import QuoteCreate, QuoteRespond
from quotedesk.services.errors import QuoteConflict
from quotedesk.services.quote_repository import QuoteRepository
from quotedesk.services.quote_service import QuoteService


def _seed_quote(db, market):
    service = QuoteService(db)
    return service.create_quote(
        market.buyer_principal,
        QuoteCreate(product_id=market.product.id, quantity=5, requirements="Sheets"),
    )


def test_compare_and_set_only_updates_matching_version_and_status(db_session, market):
    quote = _seed_quote(db_session, market)
    repo = QuoteRepository(db_session)

    stale = repo.compare_and_set(
        quote_id=quote.id,
        expected_version=99,
        allowed_from={QuoteStatus.pending},
        values={"status": QuoteStatus.cancelled},
    )
    assert not stale.updated
    assert stale.rowcount == 0

    wrong_status = repo.compare_and_set(
        quote_id=quote.id,
        expected_version=1,
        allowed_from={QuoteStatus.quoted},
        values={"status": QuoteStatus.accepted},
    )
    assert not wrong_status.updated
    db_session.rollback()

    ok = repo.compare_and_set(
        quote_id=quote.id,
        expected_version=1,
        allowed_from={QuoteStatus.pending},
        values={"status": QuoteStatus.cancelled},
    )
    assert ok.updated
    db_session.commit()

    db_session.expire_all()
    stored = db_session.get(models.Quote, quote.id)
    assert stored.status == QuoteStatus.cancelled
    assert stored.version == 2


def test_stale_writer_gets_conflict_and_changes_nothing(db_session, market):
    quote = _seed_quote(db_session, market)
    quote_id = quote.id

    # Writer A loads the quote and keeps its (soon stale) copy in the identity map.
    session_a = SessionLocal()
    session_b = SessionLocal()
    try:
        service_a = QuoteService(session_a)
        seen = service_a.get_quote(market.seller_principal, quote_id)
        assert seen.version == 1

        # Writer B responds first.
        QuoteService(session_b).respond_to_quote(
            market.seller_principal, quote_id, QuoteRespond(unit_price=172)
        )

        with pytest.raises(QuoteConflict) as exc:
            service_a.respond_to_quote(
                market.seller_principal, quote_id, QuoteRespond(unit_price=150)
            )
        assert exc.value.status_code == 409
        assert exc.value.code == "CONFLICT"
    finally:
        session_a.close()
        session_b.close()

    db_session.expire_all()
    stored = db_session.get(models.Quote, quote_id)
    assert stored.version == 2
    assert stored.response_unit_price == 172
    assert [h.action for h in stored.history] == ["requested", "responded"]


def test_conflict_is_reported_over_http(client, act_as, market, notifications, db_session, monkeypatch):
    quote = _seed_quote(db_session, market)

    def _lose_race(self, **kwargs):
        from quotedesk.services.quote_repository import TransitionResult

        return TransitionResult(updated=False, rowcount=0)

    monkeypatch.setattr(QuoteRepository, "compare_and_set", _lose_race)

    act_as(market.buyer_principal)
    r = client.patch(f"/api/quotes/{quote.id}/status", json={"status": "cancelled"})
    assert r.status_code == 409
    assert r.json()["code"] == "CONFLICT"
    assert notifications.messages == []
