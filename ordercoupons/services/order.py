from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from sqlmodel import Session, select
from fastapi import HTTPException
from ordercoupons.core.logger import get_logger
from ordercoupons.models.order import Order, OrderItem, OrderAddOn, PaymentStatus
from ordercoupons.models.payment import Payment, PaymentMethod, PaymentStatus as CapturedStatus
from ordercoupons.models.product import Product
from ordercoupons.services.usage import UsageService

logger = get_logger("order")

class OrderService:
    def __init__(self, session: Session):
        self.session = session

    def create_order(self, items_data: List[dict], customer_email: Optional[str] = None,
                     add_ons: Optional[List[dict]] = None) -> Order:
        order_items = []

        for item in items_data:
            product = self.session.get(Product, item["product_id"])
            if not product:
                raise HTTPException(status_code=404, detail=f"Product {item['product_id']} not found")

            if not product.is_active:
                raise HTTPException(status_code=400, detail=f"Product {product.name} is not available")

            if item["quantity"] < 1:
                raise HTTPException(status_code=400, detail="Quantity must be at least 1")

            order_items.append(OrderItem(
                purchasable_class=product.purchasable_class,
                purchasable_id=product.id,
                title=product.name,
                quantity=item["quantity"],
                unit_price=product.selling_price
            ))

        order = Order(
            customer_email=customer_email,
            items=order_items,
            add_ons=[OrderAddOn(title=a["title"], amount=Decimal(str(a["amount"]))) for a in add_ons or []],
            created_at=datetime.utcnow(),
            updated_at=datetime.utcnow()
        )
        self.session.add(order)
        self.session.commit()
        self.session.refresh(order)

        order.order_number = f"OC{order.id:06d}"
        self.session.add(order)
        self.session.commit()
        self.session.refresh(order)

        logger.info("Created order %s with %d item(s)", order.order_number, len(order_items))
        return order

    def get_order_by_id(self, order_id: int) -> Order:
        order = self.session.get(Order, order_id)
        if not order:
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    def payment_captured(self, order: Order, payment_id: str, amount: Decimal,
                         currency: Optional[str] = None, razorpay_order_id: Optional[str] = None) -> Payment:
        """
        Record a captured payment and count coupon uses for the order.

        Gateways redeliver capture events, so this runs any number of times
        for the same payment; both the payment row and the coupon use
        counting are idempotent.
        """
        payment_record = self.session.exec(
            select(Payment).where(Payment.payment_id == payment_id)
        ).first()

        if payment_record is None:
            payment_record = Payment(
                order_id=order.id,
                payment_id=payment_id,
                razorpay_order_id=razorpay_order_id,
                amount=amount,
                currency=currency,
                payment_method=PaymentMethod.RAZORPAY,
                payment_status=CapturedStatus.CAPTURED
            )
        else:
            logger.info("Payment %s already recorded, handling redelivered capture", payment_id)
            payment_record.payment_status = CapturedStatus.CAPTURED
            payment_record.updated_at = datetime.utcnow()

        order.payment_status = PaymentStatus.PAID
        order.updated_at = datetime.utcnow()
        self.session.add(payment_record)
        self.session.add(order)
        self.session.commit()
        self.session.refresh(payment_record)

        # Coupon bookkeeping must never fail the capture itself
        try:
            UsageService(self.session).on_payment_captured(order)
        except Exception:
            self.session.rollback()
            logger.exception("Failed to record coupon uses for order %s", order.id)

        return payment_record
