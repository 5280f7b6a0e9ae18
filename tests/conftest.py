import logging
from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from ordercoupons.db.session import get_session
from ordercoupons.main import app
from ordercoupons.models import (
    Order,
    OrderItem,
    OrderCoupon,
    OrderItemCoupon,
    OrderItemCouponPurchasable,
    Product,
)
from ordercoupons.services.eligibility import CouponEvaluator

NOW = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture(name="session")
def session_fixture():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def evaluator():
    return CouponEvaluator(clock=lambda: NOW)


@pytest.fixture
def app_logs(caplog):
    """caplog wired to the package logger, which doesn't propagate to root."""
    package_logger = logging.getLogger("ordercoupons")
    package_logger.addHandler(caplog.handler)
    yield caplog
    package_logger.removeHandler(caplog.handler)


@pytest.fixture
def product(session: Session) -> Product:
    product = Product(name="Linen Shirt", slug="linen-shirt", selling_price=Decimal("50.00"))
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


@pytest.fixture
def other_product(session: Session) -> Product:
    product = Product(name="Canvas Tote", slug="canvas-tote", selling_price=Decimal("30.00"))
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def make_order(session: Session, lines) -> Order:
    """Persist an order with one line per (product, quantity) pair."""
    order = Order(items=[
        OrderItem(
            purchasable_class=product.purchasable_class,
            purchasable_id=product.id,
            title=product.name,
            quantity=quantity,
            unit_price=product.selling_price,
        )
        for product, quantity in lines
    ])
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


def make_order_coupon(session: Session, code: str, **fields) -> OrderCoupon:
    fields.setdefault("title", code.title())
    coupon = OrderCoupon(code=code, **fields)
    session.add(coupon)
    session.commit()
    session.refresh(coupon)
    return coupon


def make_item_coupon(session: Session, code: str, products=(), **fields) -> OrderItemCoupon:
    fields.setdefault("title", code.title())
    coupon = OrderItemCoupon(code=code, **fields)
    for product in products:
        coupon.purchasables.append(OrderItemCouponPurchasable(
            purchasable_class=product.purchasable_class,
            purchasable_id=product.id,
        ))
    session.add(coupon)
    session.commit()
    session.refresh(coupon)
    return coupon
