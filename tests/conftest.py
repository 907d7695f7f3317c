"""
Pytest fixtures shared by the service and API tests.
Every test gets its own in-memory SQLite database and fake Redis.
"""
import os
from decimal import Decimal
from unittest.mock import MagicMock

# settings are read at import time, these have to be in place first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")
os.environ.setdefault("SEED_DEMO_DATA", "false")
os.environ.setdefault("ENFORCE_STATUS_TRANSITIONS", "true")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.api import create_app
from app.api.routers.orders import (
    get_lock_service,
    get_notification_service,
    get_payment_service,
)
from app.data import models  # noqa: F401
from app.data.database import Base, get_db, make_engine
from app.data.models import (
    ProductModel,
    ProductCategoryModel,
    ProductImageModel,
    UserModel,
)
from app.domain.schemas import Address, CheckoutIn
from app.data.models.order import PaymentMethod
from app.services.lock_service import LockService
from app.services.notification_service import NotificationService
from app.services.order_service import OrderService
from app.services.payment_service import PaymentService


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_client():
    client = fakeredis.FakeRedis(decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def lock_service(redis_client):
    return LockService(client=redis_client)


@pytest.fixture
def notifier():
    """Stands in for the Celery-backed notifier; records dispatches."""
    mock = MagicMock(spec=NotificationService)
    mock.send_order_confirmation.return_value = True
    return mock


@pytest.fixture
def payment_service():
    return PaymentService(timeout=2)


@pytest.fixture
def order_service(db, lock_service, payment_service, notifier):
    return OrderService(
        db,
        lock_service=lock_service,
        payment_service=payment_service,
        notification_service=notifier,
    )


@pytest.fixture
def user(db):
    u = UserModel(id=1, name="Jan Kowalski", email="jan@example.com")
    db.add(u)
    db.commit()
    return u


@pytest.fixture
def make_product(db):
    def _make(
        name="Kettlebell 16kg",
        price="50.00",
        discount_price=None,
        inventory=10,
        active=True,
        categories=(),
        image_url=None,
    ):
        product = ProductModel(
            name=name,
            description=f"{name} description",
            price=Decimal(price),
            discount_price=Decimal(discount_price) if discount_price is not None else None,
            inventory_count=inventory,
            is_active=active,
        )
        db.add(product)
        db.flush()
        for category in categories:
            db.add(ProductCategoryModel(product_id=product.id, name=category))
        if image_url:
            db.add(ProductImageModel(product_id=product.id, image_url=image_url, is_main=True))
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def address():
    return Address(
        first_name="Jan",
        last_name="Kowalski",
        street="Main St 1",
        city="Springfield",
        state="IL",
        zip_code="62701",
        country="US",
    )


@pytest.fixture
def checkout_request(address):
    def _make(country="US", **overrides):
        data = {
            "payment_method": PaymentMethod.CASH_ON_DELIVERY,
            "shipping_address": address.model_copy(update={"country": country}),
        }
        data.update(overrides)
        return CheckoutIn(**data)

    return _make


@pytest.fixture
def client(session_factory, lock_service, notifier):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_notification_service] = lambda: notifier
    app.dependency_overrides[get_payment_service] = lambda: PaymentService(timeout=2)

    with TestClient(app) as c:
        yield c
