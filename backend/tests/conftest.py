import os

# CRITICAL: Set environment variables BEFORE any quotedesk imports.
# These must be set before quotedesk.config.settings is loaded.
os.environ["SECRET_KEY"] = "test-secret-key-1234567890"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["API_V1_STR"] = "/api"  # Ensure /api prefix is used in tests
os.environ["NOTIFICATIONS_ENABLED"] = "true"

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from quotedesk import models  # noqa: E402
from quotedesk.api import deps  # noqa: E402
from quotedesk.core.clock import utcnow  # noqa: E402
from quotedesk.database import Base, SessionLocal, engine  # noqa: E402
from quotedesk.main import app  # noqa: E402
from quotedesk.services.identity import Principal  # noqa: E402


class RecordingDispatcher:
    """Notification double that keeps every message it was asked to send."""

    def __init__(self):
        self.messages = []

    def dispatch(self, message):
        self.messages.append(message)

    def for_user(self, user_id):
        return [m for m in self.messages if m.user_id == user_id]


class FailingDispatcher:
    def dispatch(self, message):
        raise RuntimeError("notification backend unavailable")


@pytest.fixture(scope="function", autouse=True)
def setup_test_database():
    """Fresh schema and dependency overrides for every test."""

    original_overrides = dict(app.dependency_overrides)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    yield

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def notifications():
    recorder = RecordingDispatcher()
    app.dependency_overrides[deps.get_notification_dispatcher] = lambda: recorder
    return recorder


@pytest.fixture
def act_as():
    """Install a principal for API calls: ``act_as(market.buyer_principal)``."""

    def _install(principal: Principal):
        app.dependency_overrides[deps.get_current_principal] = lambda: principal
        return principal

    return _install


def _user(db, *, email, name, role):
    user = models.User(email=email, display_name=name, role=role, active=True)
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def market(db_session):
    """A small marketplace: one selling company with products, one buying company."""

    db = db_session
    mill = models.Company(display_name="Shakti Steel Mills", phone="+91 22 5555 0101")
    traders = models.Company(display_name="Coastal Traders", phone="+91 44 5555 0202")
    db.add_all([mill, traders])
    db.flush()

    seller = _user(db, email="seller@test.com", name="Seller", role=models.RoleName.seller)
    colleague = _user(db, email="colleague@test.com", name="Colleague", role=models.RoleName.seller)
    buyer = _user(db, email="buyer@test.com", name="Buyer", role=models.RoleName.buyer)
    outsider = _user(db, email="outsider@test.com", name="Outsider", role=models.RoleName.buyer)
    admin = _user(db, email="admin@test.com", name="Admin", role=models.RoleName.admin)

    product = models.Product(
        name="Galvanised steel sheet",
        sku="GSS-08",
        price_amount=180.0,
        price_currency="INR",
        company_id=mill.id,
        created_by_id=seller.id,
    )
    other_product = models.Product(
        name="Cold rolled coil",
        sku="CRC-10",
        price_amount=64500.0,
        price_currency="INR",
        company_id=mill.id,
        created_by_id=seller.id,
    )
    orphan_product = models.Product(name="Unowned pipe", sku="UNO-1", company_id=None, created_by_id=None)
    deleted_product = models.Product(
        name="Retired wire",
        sku="RW-1",
        company_id=mill.id,
        created_by_id=seller.id,
        deleted_at=utcnow(),
    )
    db.add_all([product, other_product, orphan_product, deleted_product])
    db.flush()

    variant = models.ProductVariant(product_id=product.id, title="0.8 mm")
    foreign_variant = models.ProductVariant(product_id=other_product.id, title="1.0 mm")
    db.add_all([variant, foreign_variant])
    db.commit()

    return SimpleNamespace(
        mill=mill,
        traders=traders,
        seller=seller,
        colleague=colleague,
        buyer=buyer,
        outsider=outsider,
        admin=admin,
        product=product,
        other_product=other_product,
        orphan_product=orphan_product,
        deleted_product=deleted_product,
        variant=variant,
        foreign_variant=foreign_variant,
        buyer_principal=Principal(
            id=buyer.id, role=models.RoleName.buyer, active_company_id=traders.id
        ),
        seller_principal=Principal(
            id=seller.id, role=models.RoleName.seller, active_company_id=mill.id
        ),
        colleague_principal=Principal(
            id=colleague.id, role=models.RoleName.seller, active_company_id=mill.id
        ),
        outsider_principal=Principal(id=outsider.id, role=models.RoleName.buyer),
        admin_principal=Principal(id=admin.id, role=models.RoleName.admin),
    )
