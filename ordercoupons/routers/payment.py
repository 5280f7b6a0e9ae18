import razorpay
from razorpay.errors import SignatureVerificationError
import json
from decimal import Decimal
from fastapi import APIRouter, Request, HTTPException, Depends, Header
from ordercoupons.core.config import settings
from ordercoupons.core.logger import get_logger
from ordercoupons.db.session import get_session
from sqlmodel import Session, select
from ordercoupons.models.order import Order
from ordercoupons.models.payment import Payment
from ordercoupons.services.order import OrderService

router = APIRouter()
logger = get_logger("payment")

client = razorpay.Client(auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET))

def get_order_service(session: Session = Depends(get_session)) -> OrderService:
    return OrderService(session)

@router.post("/webhook")
async def payment_webhook(
    request: Request,
    x_razorpay_signature: str = Header(None),
    service: OrderService = Depends(get_order_service)
):
    if not x_razorpay_signature:
        raise HTTPException(status_code=400, detail="Missing signature")

    body = await request.body()
    try:
        client.utility.verify_webhook_signature(
            body.decode(),
            x_razorpay_signature,
            settings.RAZORPAY_WEBHOOK_SECRET
        )
    except SignatureVerificationError:
        logger.warning("Rejected payment webhook with invalid signature")
        raise HTTPException(status_code=400, detail="Invalid signature")

    event = json.loads(body)

    # Only captures count coupon uses; other events are acknowledged and ignored
    if event.get('event') != 'payment.captured':
        return {"status": "ignored"}

    payment_entity = event['payload']['payment']['entity']
    logger.info("Payment captured: %s", payment_entity['id'])

    # Get order ID from notes (preferred)
    notes = payment_entity.get('notes') or {}
    internal_order_id = notes.get('internal_order_id')

    order = None
    if internal_order_id:
        order = service.session.get(Order, int(internal_order_id))
    else:
        # Fallback: resolve order using razorpay order id
        razorpay_order_id = payment_entity.get('order_id')
        if razorpay_order_id:
            payment_record = service.session.exec(
                select(Payment).where(Payment.razorpay_order_id == razorpay_order_id)
            ).first()
            if payment_record:
                order = service.session.get(Order, payment_record.order_id)

    if not order:
        logger.warning("No order found for captured payment %s", payment_entity['id'])
        return {"status": "ok"}

    # Razorpay amounts are in the smallest currency unit (paise)
    amount = Decimal(payment_entity.get('amount') or 0) / 100
    service.payment_captured(
        order,
        payment_id=payment_entity['id'],
        amount=amount,
        currency=payment_entity.get('currency'),
        razorpay_order_id=payment_entity.get('order_id')
    )

    return {"status": "ok"}
