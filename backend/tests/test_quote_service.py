import uuid

import pytest

from quotedesk import models
from quotedesk.models.domain import QuoteStatus
from quotedesk.schemas.quotes import ContactSnapshotIn, QuoteCreate, QuoteRespond
from quotedesk.services.errors import (
    Forbidden,
    InvalidArgument,
    InvalidState,
    InvalidTransition,
    NotFound,
    Unauthenticated,
)
from quotedesk.services.quote_service import QuoteListMode, QuoteService

from conftest import RecordingDispatcher


@pytest.fixture
def recorder():
    return RecordingDispatcher()


@pytest.fixture
def service(db_session, recorder):
    return QuoteService(db_session, notifier=recorder)


def _request(market, **overrides):
    data = {
        "product_id": market.product.id,
        "quantity": 10,
        "target_price": 175,
        "requirements": "Need galvanised sheets, 0.8 mm, mill test certificate",
    }
    data.update(overrides)
    return QuoteCreate(**data)


def _history_count(db, quote_id):
    return db.query(models.QuoteHistoryEntry).filter_by(quote_id=quote_id).count()


def test_create_quote_starts_pending_with_one_history_entry(service, market, recorder, db_session):
    quote = service.create_quote(
        market.buyer_principal,
        _request(
            market,
            variant_id=market.variant.id,
            currency="inr",
            buyer_contact=ContactSnapshotIn(name="Ravi", phone="+91 98 0000 0000", email="ravi@example.com"),
        ),
    )

    assert quote.status == QuoteStatus.pending
    assert quote.version == 1
    assert quote.buyer_id == market.buyer.id
    assert quote.buyer_company_id == market.traders.id
    assert quote.seller_id == market.seller.id
    assert quote.seller_company_id == market.mill.id
    assert quote.currency == "INR"
    assert quote.buyer_contact.name == "Ravi"
    assert quote.buyer_contact.email == "ravi@example.com"
    assert not quote.has_response

    assert len(quote.history) == 1
    entry = quote.history[0]
    assert entry.action == "requested"
    assert entry.actor_id == market.buyer.id
    assert entry.status_from is None
    assert entry.status_to == QuoteStatus.pending

    [message] = recorder.messages
    assert message.user_id == market.seller.id
    assert message.event_key == "quote.requested"
    assert message.title == "New quote request"
    assert market.product.name in message.body
    assert message.data == {"quote_id": quote.id, "product_id": market.product.id}


def test_create_defaults_currency(service, market):
    quote = service.create_quote(market.buyer_principal, _request(market))
    assert quote.currency == "INR"


def test_create_requires_a_principal(service, market):
    with pytest.raises(Unauthenticated):
        service.create_quote(None, _request(market))


def test_create_rejects_malformed_product_id(service, market):
    with pytest.raises(InvalidArgument):
        service.create_quote(market.buyer_principal, _request(market, product_id="not-an-id"))


def test_create_unknown_or_deleted_product_is_not_found(service, market):
    with pytest.raises(NotFound):
        service.create_quote(market.buyer_principal, _request(market, product_id=str(uuid.uuid4())))
    with pytest.raises(NotFound):
        service.create_quote(
            market.buyer_principal, _request(market, product_id=market.deleted_product.id)
        )


def test_create_product_without_owner_is_invalid(service, market):
    with pytest.raises(InvalidArgument) as exc:
        service.create_quote(
            market.buyer_principal, _request(market, product_id=market.orphan_product.id)
        )
    assert "seller metadata" in exc.value.detail


def test_self_dealing_by_owner_is_forbidden(service, market, db_session, recorder):
    with pytest.raises(Forbidden):
        service.create_quote(market.seller_principal, _request(market))
    assert db_session.query(models.Quote).count() == 0
    assert recorder.messages == []


def test_self_dealing_by_same_company_is_forbidden(service, market, db_session):
    with pytest.raises(Forbidden):
        service.create_quote(market.colleague_principal, _request(market))
    assert db_session.query(models.Quote).count() == 0
    assert db_session.query(models.QuoteHistoryEntry).count() == 0


def test_variant_must_belong_to_product(service, market, db_session):
    with pytest.raises(NotFound):
        service.create_quote(
            market.buyer_principal, _request(market, variant_id=market.foreign_variant.id)
        )
    with pytest.raises(NotFound):
        service.create_quote(market.buyer_principal, _request(market, variant_id=str(uuid.uuid4())))
    assert db_session.query(models.Quote).count() == 0


def test_respond_moves_pending_to_quoted(service, market, recorder):
    quote = service.create_quote(market.buyer_principal, _request(market))
    recorder.messages.clear()

    quote = service.respond_to_quote(
        market.seller_principal,
        quote.id,
        QuoteRespond(unit_price=172, lead_time_days=7, notes="Ex-works Mumbai"),
    )

    assert quote.status == QuoteStatus.quoted
    assert quote.version == 2
    assert quote.response_unit_price == 172
    assert quote.response_currency == "INR"
    assert quote.response_lead_time_days == 7
    assert quote.response_min_order_qty is None
    assert quote.responded_by_id == market.seller.id
    assert quote.responded_at is not None
    assert [h.action for h in quote.history] == ["requested", "responded"]
    assert quote.history[-1].note == "Ex-works Mumbai"
    assert quote.history[-1].status_from == QuoteStatus.pending
    assert quote.history[-1].status_to == QuoteStatus.quoted

    [message] = recorder.messages
    assert message.user_id == market.buyer.id
    assert message.event_key == "quote.responded"
    assert message.title == "Quote received"


def test_requote_overwrites_response_and_records_update(service, market):
    quote = service.create_quote(market.buyer_principal, _request(market))
    service.respond_to_quote(
        market.seller_principal,
        quote.id,
        QuoteRespond(unit_price=172, min_order_qty=5, notes="first"),
    )
    quote = service.respond_to_quote(
        market.admin_principal, quote.id, QuoteRespond(unit_price=168, currency="usd")
    )

    assert quote.status == QuoteStatus.quoted
    assert quote.response_unit_price == 168
    assert quote.response_currency == "USD"
    # Unset optionals are cleared rather than kept from the earlier response.
    assert quote.response_min_order_qty is None
    assert quote.response_notes is None
    assert quote.responded_by_id == market.admin.id
    assert [h.action for h in quote.history] == ["requested", "responded", "response_updated"]


def test_buyer_cannot_respond(service, market):
    quote = service.create_quote(market.buyer_principal, _request(market))
    with pytest.raises(Forbidden):
        service.respond_to_quote(market.buyer_principal, quote.id, QuoteRespond(unit_price=1))


def test_respond_after_decision_is_invalid_state(service, market, db_session):
    quote = service.create_quote(market.buyer_principal, _request(market))
    service.respond_to_quote(market.seller_principal, quote.id, QuoteRespond(unit_price=172))
    service.update_quote_status(market.buyer_principal, quote.id, QuoteStatus.accepted)

    with pytest.raises(InvalidState):
        service.respond_to_quote(market.seller_principal, quote.id, QuoteRespond(unit_price=150))
    assert _history_count(db_session, quote.id) == 3


def test_accept_then_accept_again_is_idempotent(service, market, recorder, db_session):
    quote = service.create_quote(market.buyer_principal, _request(market))
    service.respond_to_quote(market.seller_principal, quote.id, QuoteRespond(unit_price=172))
    recorder.messages.clear()

    accepted = service.update_quote_status(
        market.buyer_principal, quote.id, "accepted", note="Go ahead"
    )
    assert accepted.status == QuoteStatus.accepted
    assert accepted.history[-1].action == "status_accepted"
    assert accepted.history[-1].note == "Go ahead"
    version = accepted.version

    again = service.update_quote_status(market.buyer_principal, quote.id, QuoteStatus.accepted)
    assert again.status == QuoteStatus.accepted
    assert again.version == version
    assert _history_count(db_session, quote.id) == 3

    # Only the first call notifies, and it goes to the seller.
    [message] = recorder.messages
    assert message.user_id == market.seller.id
    assert message.event_key == "quote.status.changed"
    assert message.data["status"] == "accepted"


def test_accept_on_pending_is_invalid_transition(service, market, db_session):
    quote = service.create_quote(market.buyer_principal, _request(market))
    with pytest.raises(InvalidTransition) as exc:
        service.update_quote_status(market.buyer_principal, quote.id, QuoteStatus.accepted)
    assert exc.value.detail == "Quote has not been responded to yet"

    db_session.expire_all()
    stored = db_session.get(models.Quote, quote.id)
    assert stored.status == QuoteStatus.pending
    assert _history_count(db_session, quote.id) == 1


def test_terminal_quote_cannot_move(service, market):
    quote = service.create_quote(market.buyer_principal, _request(market))
    service.update_quote_status(market.buyer_principal, quote.id, QuoteStatus.cancelled)
    with pytest.raises(InvalidTransition):
        service.update_quote_status(market.seller_principal, quote.id, QuoteStatus.expired)


def test_only_buyer_decides(service, market):
    quote = service.create_quote(market.buyer_principal, _request(market))
    service.respond_to_quote(market.seller_principal, quote.id, QuoteRespond(unit_price=172))
    for target in (QuoteStatus.accepted, QuoteStatus.rejected, QuoteStatus.cancelled):
        with pytest.raises(Forbidden):
            service.update_quote_status(market.seller_principal, quote.id, target)
        with pytest.raises(Forbidden):
            service.update_quote_status(market.admin_principal, quote.id, target)


def test_seller_or_admin_expire_and_buyer_is_notified(service, market, recorder):
    quote = service.create_quote(market.buyer_principal, _request(market))
    with pytest.raises(Forbidden):
        service.update_quote_status(market.buyer_principal, quote.id, QuoteStatus.expired)

    recorder.messages.clear()
    expired = service.update_quote_status(market.admin_principal, quote.id, QuoteStatus.expired)
    assert expired.status == QuoteStatus.expired
    assert [m.user_id for m in recorder.messages] == [market.buyer.id]


@pytest.mark.parametrize("target", ["pending", "quoted", "bogus"])
def test_status_endpoint_targets_are_restricted(service, market, target):
    quote = service.create_quote(market.buyer_principal, _request(market))
    with pytest.raises(InvalidArgument):
        service.update_quote_status(market.buyer_principal, quote.id, target)


def test_get_quote_checks_relationship(service, market):
    quote = service.create_quote(market.buyer_principal, _request(market))
    assert service.get_quote(market.seller_principal, quote.id).id == quote.id
    assert service.get_quote(market.admin_principal, quote.id).id == quote.id
    with pytest.raises(Forbidden):
        service.get_quote(market.outsider_principal, quote.id)
    with pytest.raises(NotFound):
        service.get_quote(market.buyer_principal, str(uuid.uuid4()))
    with pytest.raises(InvalidArgument):
        service.get_quote(market.buyer_principal, "42")


def test_soft_deleted_quote_is_not_found(service, market, db_session):
    quote = service.create_quote(market.buyer_principal, _request(market))
    stored = db_session.get(models.Quote, quote.id)
    stored.deleted_at = stored.created_at
    db_session.commit()

    with pytest.raises(NotFound):
        service.get_quote(market.buyer_principal, quote.id)
    assert service.list_quotes(market.buyer_principal).total == 0


def test_list_modes(service, market):
    first = service.create_quote(market.buyer_principal, _request(market))
    second = service.create_quote(
        market.buyer_principal, _request(market, product_id=market.other_product.id)
    )
    service.respond_to_quote(market.seller_principal, second.id, QuoteRespond(unit_price=64000))

    asked = service.list_quotes(market.buyer_principal)
    assert {q.id for q in asked.items} == {first.id, second.id}
    # Most recently updated first.
    assert asked.items[0].id == second.id

    received = service.list_quotes(market.buyer_principal, mode=QuoteListMode.received)
    assert [q.id for q in received.items] == [second.id]

    incoming = service.list_quotes(market.seller_principal, mode="incoming")
    assert incoming.total == 2
    assert service.list_quotes(market.seller_principal).total == 0

    quoted_only = service.list_quotes(market.seller_principal, mode="incoming", status="quoted")
    assert [q.id for q in quoted_only.items] == [second.id]


def test_received_with_pending_status_is_invalid(service, market):
    with pytest.raises(InvalidArgument):
        service.list_quotes(market.buyer_principal, mode="received", status="pending")


def test_list_rejects_unknown_status_mode_and_long_search(service, market):
    with pytest.raises(InvalidArgument):
        service.list_quotes(market.buyer_principal, status="archived")
    with pytest.raises(InvalidArgument):
        service.list_quotes(market.buyer_principal, mode="outgoing")
    with pytest.raises(InvalidArgument):
        service.list_quotes(market.buyer_principal, search="x" * 121)


def test_list_pagination(service, market):
    for _ in range(3):
        service.create_quote(market.buyer_principal, _request(market))

    page = service.list_quotes(market.seller_principal, mode="incoming", limit=1)
    assert len(page.items) == 1
    assert page.total == 3
    assert page.has_more

    last = service.list_quotes(market.seller_principal, mode="incoming", limit=2, offset=2)
    assert len(last.items) == 1
    assert not last.has_more

    clamped = service.list_quotes(market.seller_principal, mode="incoming", limit=1000)
    assert clamped.limit == 100


def test_search_matches_requirements_notes_and_product_names(service, market):
    by_requirements = service.create_quote(
        market.buyer_principal, _request(market, requirements="Need 100% zinc coating")
    )
    by_product = service.create_quote(
        market.buyer_principal,
        _request(market, product_id=market.other_product.id, requirements="Standard grade"),
    )
    by_notes = service.create_quote(
        market.buyer_principal, _request(market, requirements="Anything")
    )
    service.respond_to_quote(
        market.seller_principal, by_notes.id, QuoteRespond(unit_price=170, notes="Zinc-free offer")
    )

    zinc = service.list_quotes(market.buyer_principal, search="ZINC")
    assert {q.id for q in zinc.items} == {by_requirements.id, by_notes.id}

    coil = service.list_quotes(market.buyer_principal, search="rolled coil")
    assert [q.id for q in coil.items] == [by_product.id]

    sku = service.list_quotes(market.buyer_principal, search="crc-10")
    assert [q.id for q in sku.items] == [by_product.id]

    # LIKE wildcards are matched literally.
    percent = service.list_quotes(market.buyer_principal, search="100%")
    assert [q.id for q in percent.items] == [by_requirements.id]
