# ruff: noqa: B008

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from quotedesk.api.deps import get_current_principal, get_quote_service
from quotedesk.schemas import (
    PaginationRead,
    QuoteCreate,
    QuoteEnvelope,
    QuoteListRead,
    QuoteRead,
    QuoteRespond,
    QuoteStatusUpdate,
)
from quotedesk.services.identity import Principal
from quotedesk.services.quote_service import QuoteListMode, QuoteService

router = APIRouter(prefix="/quotes", tags=["quotes"])

_PRINCIPAL_DEP = Depends(get_current_principal)
_SERVICE_DEP = Depends(get_quote_service)


@router.post("", response_model=QuoteEnvelope, status_code=status.HTTP_201_CREATED)
def create_quote(
    payload: QuoteCreate,
    principal: Principal = _PRINCIPAL_DEP,
    service: QuoteService = _SERVICE_DEP,
):
    quote = service.create_quote(principal, payload)
    return QuoteEnvelope(quote=QuoteRead.from_model(quote))


@router.get("", response_model=QuoteListRead)
def list_quotes(
    mode: QuoteListMode = Query(QuoteListMode.asked),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=120),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    principal: Principal = _PRINCIPAL_DEP,
    service: QuoteService = _SERVICE_DEP,
):
    page = service.list_quotes(
        principal,
        mode=mode,
        status=status_filter,
        search=search,
        limit=limit,
        offset=offset,
    )
    return QuoteListRead(
        quotes=[QuoteRead.from_model(q) for q in page.items],
        pagination=PaginationRead(
            total=page.total,
            limit=page.limit,
            offset=page.offset,
            has_more=page.has_more,
        ),
    )


@router.get("/{quote_id}", response_model=QuoteEnvelope)
def get_quote(
    quote_id: str,
    principal: Principal = _PRINCIPAL_DEP,
    service: QuoteService = _SERVICE_DEP,
):
    quote = service.get_quote(principal, quote_id)
    return QuoteEnvelope(quote=QuoteRead.from_model(quote))


@router.patch("/{quote_id}/respond", response_model=QuoteEnvelope)
def respond_to_quote(
    quote_id: str,
    payload: QuoteRespond,
    principal: Principal = _PRINCIPAL_DEP,
    service: QuoteService = _SERVICE_DEP,
):
    quote = service.respond_to_quote(principal, quote_id, payload)
    return QuoteEnvelope(quote=QuoteRead.from_model(quote))


@router.patch("/{quote_id}/status", response_model=QuoteEnvelope)
def update_quote_status(
    quote_id: str,
    payload: QuoteStatusUpdate,
    principal: Principal = _PRINCIPAL_DEP,
    service: QuoteService = _SERVICE_DEP,
):
    quote = service.update_quote_status(principal, quote_id, payload.status, note=payload.note)
    return QuoteEnvelope(quote=QuoteRead.from_model(quote))
