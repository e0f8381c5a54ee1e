from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sqlalchemy.orm import Session

# Ensure "quotedesk" is importable when running as a script (python scripts/seed_demo_catalog.py)
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quotedesk import models
from quotedesk.database import Base, SessionLocal, engine


def ensure_company(db: Session, *, display_name: str, phone: str | None) -> models.Company:
    company = db.query(models.Company).filter(models.Company.display_name == display_name).first()
    if company:
        return company
    company = models.Company(display_name=display_name, phone=phone)
    db.add(company)
    db.flush()
    return company


def ensure_user(
    db: Session,
    *,
    email: str,
    display_name: str,
    role: models.RoleName,
) -> tuple[models.User, bool]:
    user = db.query(models.User).filter(models.User.email == email).first()
    created = False
    if not user:
        user = models.User(email=email, display_name=display_name, role=role, active=True)
        db.add(user)
        created = True
    else:
        user.display_name = display_name
        user.role = role
        user.active = True
    db.flush()
    return user, created


def ensure_product(
    db: Session,
    *,
    name: str,
    sku: str,
    price: float,
    company: models.Company,
    owner: models.User,
    variants: list[str],
) -> models.Product:
    product = db.query(models.Product).filter(models.Product.sku == sku).first()
    if not product:
        product = models.Product(
            name=name,
            sku=sku,
            price_amount=price,
            price_currency="INR",
            company_id=company.id,
            created_by_id=owner.id,
        )
        db.add(product)
        db.flush()
    existing = {v.title for v in product.variants}
    for title in variants:
        if title not in existing:
            db.add(models.ProductVariant(product_id=product.id, title=title))
    db.flush()
    return product


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a demo catalog (companies, users, products).")
    parser.add_argument("--domain", default="quotedesk.local", help="Email domain (default: quotedesk.local)")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables with metadata.create_all (local SQLite only)",
    )
    args = parser.parse_args()

    domain = str(args.domain).strip().lstrip("@") or "quotedesk.local"

    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        mill = ensure_company(db, display_name="Shakti Steel Mills", phone="+91 22 5555 0101")
        traders = ensure_company(db, display_name="Coastal Traders", phone="+91 44 5555 0202")

        seller, seller_created = ensure_user(
            db, email=f"seller@{domain}", display_name="Seller", role=models.RoleName.seller
        )
        buyer, buyer_created = ensure_user(
            db, email=f"buyer@{domain}", display_name="Buyer", role=models.RoleName.buyer
        )
        admin, admin_created = ensure_user(
            db, email=f"admin@{domain}", display_name="Admin", role=models.RoleName.admin
        )

        products = [
            ensure_product(
                db,
                name="Galvanised steel sheet",
                sku="GSS-08",
                price=172.0,
                company=mill,
                owner=seller,
                variants=["0.8 mm", "1.2 mm"],
            ),
            ensure_product(
                db,
                name="Cold rolled coil",
                sku="CRC-10",
                price=64500.0,
                company=mill,
                owner=seller,
                variants=[],
            ),
        ]

        db.commit()

        print("Seed catalog OK:")
        for user, created in ((seller, seller_created), (buyer, buyer_created), (admin, admin_created)):
            print(f"- {user.email} ({user.role.value}) id={user.id} [{'created' if created else 'updated'}]")
        print(f"- seller company: {mill.display_name} id={mill.id}")
        print(f"- buyer company: {traders.display_name} id={traders.id}")
        for p in products:
            print(f"- product {p.sku}: {p.name} id={p.id}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
