from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import or_
from sqlalchemy.orm import Session

from quotedesk import models


@dataclass(frozen=True)
class ProductRef:
    id: str
    name: str
    owner_user_id: str | None
    owner_company_id: str | None


@dataclass(frozen=True)
class VariantRef:
    id: str
    product_id: str


class CatalogLookup(Protocol):
    def get_product(self, product_id: str) -> ProductRef | None: ...

    def get_variant(self, variant_id: str, *, product_id: str) -> VariantRef | None: ...

    def search_product_ids(self, term: str, *, limit: int) -> list[str]: ...


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlCatalogLookup:
    """Catalog reads against the shared products/product_variants tables.

    Soft-deleted rows are invisible to every lookup.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: str) -> ProductRef | None:
        product = (
            self.db.query(models.Product)
            .filter(models.Product.id == product_id)
            .filter(models.Product.deleted_at.is_(None))
            .first()
        )
        if product is None:
            return None
        return ProductRef(
            id=product.id,
            name=product.name,
            owner_user_id=product.created_by_id,
            owner_company_id=product.company_id,
        )

    def get_variant(self, variant_id: str, *, product_id: str) -> VariantRef | None:
        variant = (
            self.db.query(models.ProductVariant)
            .filter(models.ProductVariant.id == variant_id)
            .filter(models.ProductVariant.product_id == product_id)
            .filter(models.ProductVariant.deleted_at.is_(None))
            .first()
        )
        if variant is None:
            return None
        return VariantRef(id=variant.id, product_id=variant.product_id)

    def search_product_ids(self, term: str, *, limit: int) -> list[str]:
        pattern = f"%{escape_like(term)}%"
        rows = (
            self.db.query(models.Product.id)
            .filter(models.Product.deleted_at.is_(None))
            .filter(
                or_(
                    models.Product.name.ilike(pattern, escape="\\"),
                    models.Product.sku.ilike(pattern, escape="\\"),
                )
            )
            .limit(int(limit))
            .all()
        )
        return [r[0] for r in rows]
