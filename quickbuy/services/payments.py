from sqlalchemy import select

from models.order import Order
from models.payment import Payment
from quickbuy.services.checkout import PAYMENT_PENDING


class NotFoundError(Exception):
    pass


class ValidationError(Exception):
    pass


def owned_order(session, buyer_id: int, order_id) -> Order:
    order = session.get(Order, order_id) if order_id else None
    if order is None or order.buyer_id != buyer_id:
        raise NotFoundError("Sorry, the order you are trying to view could not be found.")
    return order


def order_payment(session, order: Order, payment_id=None) -> Payment:
    stmt = select(Payment).where(Payment.order_id == order.id)
    if payment_id is not None:
        stmt = stmt.where(Payment.id == payment_id)
    payment = session.execute(stmt.order_by(Payment.id.desc())).scalars().first()
    if payment is None:
        raise NotFoundError("Payment details not found for the provided ID.")
    return payment


def _settle(session, buyer_id: int, payment_id: int, payment_status: str, status: str) -> Payment:
    payment = session.execute(
        select(Payment).where(Payment.id == payment_id).with_for_update()
    ).scalar_one_or_none()
    if payment is None or payment.buyer_id != buyer_id:
        raise NotFoundError("Payment details not found for the provided ID.")
    if payment.payment_status != PAYMENT_PENDING:
        raise ValidationError(f"Payment already {payment.payment_status.lower()}")
    payment.payment_status = payment_status
    payment.status = status
    return payment


def complete_payment(session, buyer_id: int, payment_id: int) -> Payment:
    """Record a successful gateway return. Does NOT commit."""
    return _settle(session, buyer_id, payment_id, "Paid", "Completed")


def cancel_payment(session, buyer_id: int, payment_id: int) -> Payment:
    """Record a cancelled gateway return. Does NOT commit."""
    return _settle(session, buyer_id, payment_id, "Cancelled", "Cancelled")
