import hashlib
import hmac
import json
from decimal import Decimal

import pytest
from sqlmodel import select

from ordercoupons.core.config import settings
from ordercoupons.models import OrderCoupon, Payment

API = "/api/v1"


def sign(body: str) -> str:
    return hmac.new(settings.RAZORPAY_WEBHOOK_SECRET.encode(), body.encode(), hashlib.sha256).hexdigest()


def capture_event(order_id: int, payment_id: str = "pay_123", amount: int = 10000) -> str:
    return json.dumps({
        "event": "payment.captured",
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "order_id": "order_rzp_1",
                    "amount": amount,
                    "currency": "INR",
                    "notes": {"internal_order_id": str(order_id)},
                }
            }
        }
    })


@pytest.fixture
def checkout(client, product, other_product):
    """An order for two shirts and a tote, plus one coupon of each kind."""
    resp = client.post(f"{API}/coupons/item-coupons", json={
        "title": "Shirt sale",
        "code": "shirts",
        "percentage": "0.25",
        "min_quantity": 2,
        "purchasables": [{"purchasable_id": product.id}],
    })
    assert resp.status_code == 201
    resp = client.post(f"{API}/coupons/order-coupons", json={
        "title": "Ten off",
        "code": "TENOFF",
        "amount": "10.00",
        "min_sub_total": "50.00",
        "limit_uses": True,
        "remaining_uses": 3,
    })
    assert resp.status_code == 201

    resp = client.post(f"{API}/orders/", json={
        "items": [
            {"product_id": product.id, "quantity": 2},
            {"product_id": other_product.id, "quantity": 1},
        ],
        "customer_email": "buyer@example.com",
        "add_ons": [{"title": "Shipping", "amount": "5.00"}],
    })
    assert resp.status_code == 201
    return resp.json()


def test_create_coupon_normalizes_code(client, checkout):
    resp = client.get(f"{API}/coupons/Shirts")

    assert resp.status_code == 200
    data = resp.json()
    assert data["code"] == "SHIRTS"
    assert data["kind"] == "item"
    assert data["display_value"] == "25% off"
    assert data["min_quantity"] == 2


def test_create_coupon_rejects_invalid_definition(client):
    resp = client.post(f"{API}/coupons/order-coupons", json={
        "code": "BROKEN",
        "amount": "5.00",
        "percentage": "0.5",
    })

    assert resp.status_code == 400
    assert [error["reason"] for error in resp.json()["detail"]] == ["AMOUNT_PERCENTAGE_BOTH_SET"]


def test_create_coupon_rejects_duplicate_code(client, checkout):
    resp = client.post(f"{API}/coupons/order-coupons", json={"code": "shirts", "amount": "5.00"})

    assert resp.status_code == 400
    assert resp.json()["detail"][0]["reason"] == "CODE_DUPLICATE"


def test_unknown_coupon_code(client, checkout):
    resp = client.post(f"{API}/orders/{checkout['id']}/coupons", json={"code": "NOPE"})

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Invalid coupon code"


def test_new_order_totals(checkout):
    assert checkout["order_number"] == f"OC{checkout['id']:06d}"
    assert checkout["payment_status"] == "unpaid"
    assert checkout["has_coupons"] is False
    assert Decimal(checkout["items_sub_total"]) == Decimal("130.00")
    assert Decimal(checkout["total"]) == Decimal("135.00")


def test_apply_item_coupon(client, checkout):
    resp = client.post(f"{API}/orders/{checkout['id']}/coupons", json={"code": "shirts"})

    assert resp.status_code == 200
    order = resp.json()
    shirts, tote = order["items"]
    assert shirts["coupons"] == ["SHIRTS"]
    assert Decimal(shirts["discount"]) == Decimal("-25.00")
    assert tote["coupons"] == []
    assert Decimal(order["sub_total"]) == Decimal("105.00")
    assert Decimal(order["total"]) == Decimal("110.00")


def test_coupons_must_stack(client, checkout):
    order_id = checkout["id"]
    client.post(f"{API}/orders/{order_id}/coupons", json={"code": "SHIRTS"})

    eligibility = client.get(f"{API}/orders/{order_id}/coupons/TENOFF/eligibility").json()
    assert eligibility["valid"] is False
    assert [error["reason"] for error in eligibility["errors"]] == ["NOT_STACKABLE"]

    resp = client.post(f"{API}/orders/{order_id}/coupons", json={"code": "TENOFF"})
    assert resp.status_code == 400
    assert resp.json()["detail"][0]["reason"] == "NOT_STACKABLE"

    stack = client.post(f"{API}/coupons/stacks", json={"code": "TENOFF", "other_code": "SHIRTS"}).json()
    assert stack["stacks_with"] is True
    assert stack["reverse"] is True

    resp = client.post(f"{API}/orders/{order_id}/coupons", json={"code": "TENOFF"})
    assert resp.status_code == 200
    order = resp.json()
    assert order["coupons"] == ["TENOFF"]
    assert Decimal(order["item_discount"]) == Decimal("-25.00")
    assert Decimal(order["order_discount"]) == Decimal("-10.00")
    assert Decimal(order["total"]) == Decimal("100.00")


def test_clear_coupons(client, checkout):
    order_id = checkout["id"]
    client.post(f"{API}/orders/{order_id}/coupons", json={"code": "TENOFF"})

    resp = client.delete(f"{API}/orders/{order_id}/coupons")

    assert resp.status_code == 200
    order = resp.json()
    assert order["has_coupons"] is False
    assert order["coupons"] == []
    assert Decimal(order["total"]) == Decimal("135.00")


def test_ineligible_coupon_is_not_applied(client, product):
    client.post(f"{API}/coupons/item-coupons", json={
        "code": "BULK",
        "amount": "5.00",
        "min_quantity": 5,
        "purchasables": [{"purchasable_id": product.id}],
    })
    order = client.post(f"{API}/orders/", json={"items": [{"product_id": product.id, "quantity": 1}]}).json()

    resp = client.post(f"{API}/orders/{order['id']}/coupons", json={"code": "BULK"})

    assert resp.status_code == 400
    assert resp.json()["detail"][0]["reason"] == "NO_MATCHED_ITEMS"
    assert client.get(f"{API}/orders/{order['id']}").json()["has_coupons"] is False


def test_payment_capture_counts_coupon_use_once(client, session, checkout):
    order_id = checkout["id"]
    client.post(f"{API}/orders/{order_id}/coupons", json={"code": "TENOFF"})
    body = capture_event(order_id)

    for _ in range(2):
        resp = client.post(f"{API}/payment/webhook", content=body,
                           headers={"X-Razorpay-Signature": sign(body), "Content-Type": "application/json"})
        assert resp.json() == {"status": "ok"}

    coupon = session.exec(select(OrderCoupon).where(OrderCoupon.code == "TENOFF")).one()
    session.refresh(coupon)
    assert coupon.remaining_uses == 2

    payments = session.exec(select(Payment)).all()
    assert len(payments) == 1
    assert payments[0].amount == Decimal("100.00")
    assert client.get(f"{API}/orders/{order_id}").json()["payment_status"] == "paid"


def test_webhook_rejects_bad_signature(client, checkout):
    body = capture_event(checkout["id"])

    resp = client.post(f"{API}/payment/webhook", content=body, headers={"X-Razorpay-Signature": "0" * 64})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid signature"


def test_webhook_requires_signature(client, checkout):
    resp = client.post(f"{API}/payment/webhook", content=capture_event(checkout["id"]))

    assert resp.status_code == 400


def test_webhook_ignores_other_events(client):
    body = json.dumps({"event": "payment.failed", "payload": {}})

    resp = client.post(f"{API}/payment/webhook", content=body, headers={"X-Razorpay-Signature": sign(body)})

    assert resp.json() == {"status": "ignored"}
