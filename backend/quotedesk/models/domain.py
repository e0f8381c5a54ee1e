# ruff: noqa: E501
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship, validates

from quotedesk.core.clock import utcnow
from quotedesk.database import Base


def _uuid_str() -> str:
    return str(uuid.uuid4())


class RoleName(PyEnum):
    buyer = "buyer"
    seller = "seller"
    admin = "admin"


class QuoteStatus(PyEnum):
    pending = "pending"
    quoted = "quoted"
    accepted = "accepted"
    rejected = "rejected"
    cancelled = "cancelled"
    expired = "expired"


@dataclass
class ContactSnapshot:
    """Buyer contact details captured when the quote is requested."""

    name: str | None = None
    phone: str | None = None
    email: str | None = None

    def is_empty(self) -> bool:
        return not (self.name or self.phone or self.email)


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50))
    # Stored as VARCHAR rather than a native enum.
    role: Mapped[RoleName] = mapped_column(
        Enum(RoleName, native_enum=False), default=RoleName.buyer, nullable=False
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    sku: Mapped[str | None] = mapped_column(String(64), index=True)
    price_amount: Mapped[float | None] = mapped_column(Float)
    price_currency: Mapped[str | None] = mapped_column(String(5))
    # Owner references; a product without both cannot be quoted.
    company_id: Mapped[str | None] = mapped_column(ForeignKey("companies.id"), index=True)
    created_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime)

    company = relationship("Company", viewonly=True)
    created_by = relationship("User", viewonly=True)
    variants = relationship("ProductVariant", back_populates="product")


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime)

    product = relationship("Product", back_populates="variants")


class Quote(Base):
    __tablename__ = "quotes"

    __table_args__ = (
        Index("ix_quotes_buyer_status_updated", "buyer_id", "status", "updated_at"),
        Index("ix_quotes_seller_status_updated", "seller_id", "status", "updated_at"),
        Index("ix_quotes_seller_company_status_updated", "seller_company_id", "status", "updated_at"),
        Index("ix_quotes_product_created", "product_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid_str)
    product_id: Mapped[str] = mapped_column(ForeignKey("products.id"), nullable=False, index=True)
    variant_id: Mapped[str | None] = mapped_column(ForeignKey("product_variants.id"))
    buyer_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    buyer_company_id: Mapped[str | None] = mapped_column(ForeignKey("companies.id"))
    seller_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    seller_company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"), nullable=False)

    # Request
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    target_price: Mapped[float | None] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(5), nullable=False, default="INR")
    requirements: Mapped[str] = mapped_column(Text, nullable=False)
    required_by: Mapped[datetime | None] = mapped_column(DateTime)
    buyer_contact: Mapped[ContactSnapshot] = composite(
        mapped_column("buyer_contact_name", String(120), nullable=True),
        mapped_column("buyer_contact_phone", String(50), nullable=True),
        mapped_column("buyer_contact_email", String(200), nullable=True),
    )

    # Response (set once the seller has quoted)
    response_unit_price: Mapped[float | None] = mapped_column(Float)
    response_currency: Mapped[str | None] = mapped_column(String(5))
    response_min_order_qty: Mapped[float | None] = mapped_column(Float)
    response_lead_time_days: Mapped[int | None] = mapped_column(Integer)
    response_valid_until: Mapped[datetime | None] = mapped_column(DateTime)
    response_notes: Mapped[str | None] = mapped_column(Text)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime)
    responded_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"))

    status: Mapped[QuoteStatus] = mapped_column(
        Enum(QuoteStatus, native_enum=False),
        default=QuoteStatus.pending,
        nullable=False,
        index=True,
    )
    # Compare-and-swap token; every conditional update bumps it.
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime)

    product = relationship("Product", viewonly=True)
    variant = relationship("ProductVariant", viewonly=True)
    buyer = relationship("User", foreign_keys=[buyer_id], viewonly=True)
    seller = relationship("User", foreign_keys=[seller_id], viewonly=True)
    buyer_company = relationship("Company", foreign_keys=[buyer_company_id], viewonly=True)
    seller_company = relationship("Company", foreign_keys=[seller_company_id], viewonly=True)
    responded_by = relationship("User", foreign_keys=[responded_by_id], viewonly=True)
    history = relationship(
        "QuoteHistoryEntry",
        back_populates="quote",
        order_by="QuoteHistoryEntry.id",
        cascade="save-update, merge",
        lazy="selectin",
    )

    @property
    def has_response(self) -> bool:
        return self.responded_at is not None

    @validates("currency", "response_currency")
    def _normalize_currency(self, _key, value: str | None):
        if value is None:
            return None
        return str(value).strip().upper()


class QuoteHistoryEntry(Base):
    __tablename__ = "quote_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    quote_id: Mapped[str] = mapped_column(ForeignKey("quotes.id"), nullable=False, index=True)
    actor_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"))
    action: Mapped[str] = mapped_column(String(60), nullable=False)
    status_from: Mapped[QuoteStatus | None] = mapped_column(Enum(QuoteStatus, native_enum=False))
    status_to: Mapped[QuoteStatus | None] = mapped_column(Enum(QuoteStatus, native_enum=False))
    note: Mapped[str | None] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    quote = relationship("Quote", back_populates="history")


@event.listens_for(QuoteHistoryEntry, "before_update")
def _history_before_update(_mapper, _connection, target: QuoteHistoryEntry):
    raise ValueError(f"Quote history entry {target.id} is append-only")


@event.listens_for(QuoteHistoryEntry, "before_delete")
def _history_before_delete(_mapper, _connection, target: QuoteHistoryEntry):
    raise ValueError(f"Quote history entry {target.id} is append-only")


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    topic: Mapped[str] = mapped_column(String(32), nullable=False, default="quotes")
    event_key: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime)
