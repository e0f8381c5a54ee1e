import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from quotedesk.models.domain import Quote, QuoteStatus
from quotedesk.services.quote_lifecycle import is_terminal

_CURRENCY_RE = re.compile(r"^[A-Z]{3,5}$")


def _clean_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip().upper()
    if not s:
        return None
    if not _CURRENCY_RE.match(s):
        raise ValueError("currency must be a 3-5 letter code")
    return s


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


class ContactSnapshotIn(BaseModel):
    name: Optional[str] = Field(None, max_length=120)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None

    @field_validator("name", "phone", "email", mode="before")
    @classmethod
    def clean_blank(cls, v):
        return _blank_to_none(v)


class QuoteCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    product_id: str = Field(..., min_length=1, max_length=64)
    variant_id: Optional[str] = Field(None, max_length=64)
    quantity: float = Field(..., gt=0)
    target_price: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, max_length=10)
    requirements: str = Field(..., min_length=1, max_length=2000)
    required_by: Optional[datetime] = None
    buyer_contact: Optional[ContactSnapshotIn] = None

    @field_validator("variant_id", mode="before")
    @classmethod
    def clean_variant_id(cls, v):
        return _blank_to_none(v)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        return _clean_currency(v)


class QuoteRespond(BaseModel):
    unit_price: float = Field(..., ge=0)
    currency: Optional[str] = Field(None, max_length=10)
    min_order_qty: Optional[float] = Field(None, gt=0)
    lead_time_days: Optional[int] = Field(None, ge=0)
    valid_until: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: Optional[str]) -> Optional[str]:
        return _clean_currency(v)

    @field_validator("notes", mode="before")
    @classmethod
    def clean_notes(cls, v):
        return _blank_to_none(v)


class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus
    note: Optional[str] = Field(None, max_length=500)

    @field_validator("note", mode="before")
    @classmethod
    def clean_note(cls, v):
        return _blank_to_none(v)


class ProductSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    sku: Optional[str] = None
    price_amount: Optional[float] = None
    price_currency: Optional[str] = None


class VariantSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str


class PartySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class CompanySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: str
    phone: Optional[str] = None


class ContactSnapshotRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class QuoteRequestRead(BaseModel):
    quantity: float
    target_price: Optional[float] = None
    currency: str
    requirements: str
    required_by: Optional[datetime] = None
    buyer_contact: Optional[ContactSnapshotRead] = None


class QuoteResponseRead(BaseModel):
    unit_price: Optional[float] = None
    currency: Optional[str] = None
    min_order_qty: Optional[float] = None
    lead_time_days: Optional[int] = None
    valid_until: Optional[datetime] = None
    notes: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by: Optional[PartySummary] = None


class QuoteHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: Optional[str] = None
    action: str
    status_from: Optional[QuoteStatus] = None
    status_to: Optional[QuoteStatus] = None
    note: Optional[str] = None
    created_at: datetime


class QuoteRead(BaseModel):
    id: str
    product: Optional[ProductSummary] = None
    variant: Optional[VariantSummary] = None
    buyer: Optional[PartySummary] = None
    seller: Optional[PartySummary] = None
    buyer_company: Optional[CompanySummary] = None
    seller_company: Optional[CompanySummary] = None
    request: QuoteRequestRead
    response: Optional[QuoteResponseRead] = None
    status: QuoteStatus
    is_terminal: bool
    version: int
    history: List[QuoteHistoryRead] = []
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, quote: Quote) -> "QuoteRead":
        contact = quote.buyer_contact
        response = None
        if quote.has_response:
            response = QuoteResponseRead(
                unit_price=quote.response_unit_price,
                currency=quote.response_currency,
                min_order_qty=quote.response_min_order_qty,
                lead_time_days=quote.response_lead_time_days,
                valid_until=quote.response_valid_until,
                notes=quote.response_notes,
                responded_at=quote.responded_at,
                responded_by=(
                    PartySummary.model_validate(quote.responded_by) if quote.responded_by else None
                ),
            )

        return cls(
            id=quote.id,
            product=ProductSummary.model_validate(quote.product) if quote.product else None,
            variant=VariantSummary.model_validate(quote.variant) if quote.variant else None,
            buyer=PartySummary.model_validate(quote.buyer) if quote.buyer else None,
            seller=PartySummary.model_validate(quote.seller) if quote.seller else None,
            buyer_company=(
                CompanySummary.model_validate(quote.buyer_company) if quote.buyer_company else None
            ),
            seller_company=(
                CompanySummary.model_validate(quote.seller_company)
                if quote.seller_company
                else None
            ),
            request=QuoteRequestRead(
                quantity=quote.quantity,
                target_price=quote.target_price,
                currency=quote.currency,
                requirements=quote.requirements,
                required_by=quote.required_by,
                buyer_contact=(
                    ContactSnapshotRead.model_validate(contact)
                    if contact is not None and not contact.is_empty()
                    else None
                ),
            ),
            response=response,
            status=quote.status,
            is_terminal=is_terminal(quote.status),
            version=quote.version,
            history=[QuoteHistoryRead.model_validate(h) for h in quote.history],
            created_at=quote.created_at,
            updated_at=quote.updated_at,
        )


class QuoteEnvelope(BaseModel):
    quote: QuoteRead


class PaginationRead(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class QuoteListRead(BaseModel):
    quotes: List[QuoteRead]
    pagination: PaginationRead
