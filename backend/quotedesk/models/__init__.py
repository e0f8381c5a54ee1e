from quotedesk.models.domain import (
    Company,
    ContactSnapshot,
    Notification,
    Product,
    ProductVariant,
    Quote,
    QuoteHistoryEntry,
    QuoteStatus,
    RoleName,
    User,
)

__all__ = [
    "Company",
    "ContactSnapshot",
    "Notification",
    "Product",
    "ProductVariant",
    "Quote",
    "QuoteHistoryEntry",
    "QuoteStatus",
    "RoleName",
    "User",
]
