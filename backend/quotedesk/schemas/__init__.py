from quotedesk.schemas.quotes import (
    CompanySummary,
    ContactSnapshotIn,
    PaginationRead,
    PartySummary,
    ProductSummary,
    QuoteCreate,
    QuoteEnvelope,
    QuoteHistoryRead,
    QuoteListRead,
    QuoteRead,
    QuoteRequestRead,
    QuoteRespond,
    QuoteResponseRead,
    QuoteStatusUpdate,
    VariantSummary,
)

__all__ = [
    "CompanySummary",
    "ContactSnapshotIn",
    "PaginationRead",
    "PartySummary",
    "ProductSummary",
    "QuoteCreate",
    "QuoteEnvelope",
    "QuoteHistoryRead",
    "QuoteListRead",
    "QuoteRead",
    "QuoteRequestRead",
    "QuoteRespond",
    "QuoteResponseRead",
    "QuoteStatusUpdate",
    "VariantSummary",
]
