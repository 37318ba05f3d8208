"""Pytest configuration and shared fixtures.

Settings are read once and cached, so the environment is prepared before
anything from happytails is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("LOG_DIR", None)

from datetime import timedelta  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from happytails.core.auth import create_access_token  # noqa: E402
from happytails.core.errors import PaymentError  # noqa: E402
from happytails.core.money import utcnow  # noqa: E402
from happytails.database import engine, get_session  # noqa: E402
from happytails.main import app  # noqa: E402
from happytails.models.event import Event  # noqa: E402
from happytails.models.product import Product, ProductVariant  # noqa: E402
from happytails.models.user import User  # noqa: E402
from happytails.services.payment_service import (  # noqa: E402
    PaymentGateway,
    PaymentReceipt,
    get_payment_gateway,
)


class ApprovingGateway(PaymentGateway):
    """Records every charge and approves it."""

    def __init__(self):
        self.charges: list[float] = []

    async def charge(self, card, amount):
        self.charges.append(amount)
        return PaymentReceipt(
            transaction_id=f"test_{len(self.charges)}",
            amount=amount,
            last_four=card.last_four,
        )


class DecliningGateway(PaymentGateway):
    def __init__(self):
        self.charges: list[float] = []

    async def charge(self, card, amount):
        self.charges.append(amount)
        raise PaymentError("Card declined")


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def session():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as db:
        yield db
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def approving_gateway() -> ApprovingGateway:
    return ApprovingGateway()


@pytest.fixture
def declining_gateway() -> DecliningGateway:
    return DecliningGateway()


@pytest.fixture
def client(session, approving_gateway):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_payment_gateway] = lambda: approving_gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def seed(session):
    """
    Minimal marketplace:
      - admin, customer (complete profile), vendor, event manager
      - product with variants M/Red (499, stock 5), M/Blue, L/Red (on sale)
      - upcoming event (2500 per ticket, 10 seats) and a past event
    """
    admin = User(email="admin@happytails.test", name="Admin", role="admin")
    customer = User(
        email="priya@happytails.test",
        name="Priya",
        role="customer",
        phone="9876543210",
        address="12, MG Road, Hyderabad - 500001",
    )
    vendor = User(
        email="store@happytails.test",
        name="Ravi",
        role="vendor",
        phone="9876500000",
        store_name="Paws Corner",
        store_location="Banjara Hills",
    )
    manager = User(
        email="events@happytails.test",
        name="Meera",
        role="event_manager",
        organization="Pet Fest India",
    )
    session.add_all([admin, customer, vendor, manager])
    session.commit()

    product = Product(
        vendor_id=vendor.id,
        name="Reflective Dog Collar",
        description="Nylon collar with reflective stitching",
        category="Dog",
        product_type="Collar",
        brand="Happy Tails",
        sku="COL",
    )
    session.add(product)
    session.commit()

    variants = [
        ProductVariant(product_id=product.id, size="M", color="Red",
                       regular_price=499, stock_quantity=5, sku="COL-M-RED", position=0),
        ProductVariant(product_id=product.id, size="M", color="Blue",
                       regular_price=499, stock_quantity=2, sku="COL-M-BLU", position=1),
        ProductVariant(product_id=product.id, size="L", color="Red",
                       regular_price=699, sale_price=599, stock_quantity=8,
                       sku="COL-L-RED", position=2),
    ]
    session.add_all(variants)

    now = utcnow()
    event = Event(
        manager_id=manager.id,
        title="Doggy Day Out",
        description="Agility games and a pet parade",
        category="Dog",
        venue="Necklace Road Grounds",
        location="Hyderabad",
        starts_at=now + timedelta(days=10),
        ticket_price=2500,
        total_tickets=10,
    )
    past_event = Event(
        manager_id=manager.id,
        title="Cat Café Meetup",
        description="Afternoon with rescued cats",
        category="Cat",
        venue="Whiskers Café",
        location="Hyderabad",
        starts_at=now - timedelta(days=10),
        ticket_price=500,
        total_tickets=20,
        status="completed",
    )
    session.add_all([event, past_event])
    session.commit()

    for obj in (admin, customer, vendor, manager, product, event, past_event, *variants):
        session.refresh(obj)

    return SimpleNamespace(
        admin=admin,
        customer=customer,
        vendor=vendor,
        manager=manager,
        product=product,
        variants=variants,
        event=event,
        past_event=past_event,
    )


def _bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def admin_headers(seed) -> dict[str, str]:
    return _bearer(seed.admin)


@pytest.fixture
def customer_headers(seed) -> dict[str, str]:
    return _bearer(seed.customer)
