"""Checkout: turn a buyer's cart into an order, its lines and a pending payment.

Everything between reading the cart and clearing it happens in one database
transaction. Business failures (empty cart, short stock) and infrastructure
failures both roll the whole unit back; callers receive a
:class:`CheckoutSuccess` or a :class:`CheckoutFailure` and decide how to
present it.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError
from sqlalchemy import delete, select, update

from models.cart import CartLine
from models.order import Order, OrderItem
from models.payment import Payment
from models.product import Product
from quickbuy.schemas.checkout import CheckoutRequest, PaymentMethod
from quickbuy.services.courier import (
    DEFAULT_ORIGIN_ADDRESS,
    DEFAULT_RATE_PER_KM,
    Geocoder,
    courier_cost,
    lookup_coordinates,
)
from quickbuy.telemetry import get_tracer
from quickbuy.utils.db import transactional

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

MISSING_DETAILS_MESSAGE = (
    "Please provide all required checkout details (delivery address and payment method)."
)
INVALID_METHOD_MESSAGE = "Invalid payment method selected."
EMPTY_CART_MESSAGE = "Your cart is empty. Cannot proceed with payment."
GENERIC_FAILURE_MESSAGE = "An error occurred during checkout. Please try again."

PAYMENT_PENDING = "Pending"
PAYMENT_INITIATED = "Initiated"


class FailureReason(str, Enum):
    INVALID = "invalid"
    EMPTY_CART = "empty_cart"
    STOCK = "stock"
    ERROR = "error"


class CheckoutError(Exception):
    reason = FailureReason.ERROR


class CheckoutValidationError(CheckoutError):
    reason = FailureReason.INVALID


class EmptyCartError(CheckoutError):
    reason = FailureReason.EMPTY_CART


class InsufficientStockError(CheckoutError):
    reason = FailureReason.STOCK

    def __init__(self, shortfalls: List[str]):
        self.shortfalls = shortfalls
        super().__init__(
            "Sorry, some items in your cart are now out of stock or have insufficient quantity: "
            + ", ".join(shortfalls)
            + ". Please review your cart."
        )


class StockConflictError(InsufficientStockError):
    """Stock changed between the check and the decrement."""

    def __init__(self, product_name: str):
        super().__init__([f"{product_name} (stock changed during checkout)"])


@dataclass(frozen=True)
class CheckoutContext:
    buyer_id: int
    session: Any


@dataclass(frozen=True)
class CheckoutSuccess:
    order_id: int
    payment_id: int
    method: PaymentMethod
    subtotal: Decimal
    courier_cost: Decimal
    total: Decimal
    duplicate: bool = False


@dataclass(frozen=True)
class CheckoutFailure:
    reason: FailureReason
    message: str


CheckoutResult = Union[CheckoutSuccess, CheckoutFailure]


def parse_checkout_request(data: Dict[str, Any]) -> CheckoutRequest:
    """Validate submitted checkout fields.

    Missing details are reported before an unknown payment method, so an
    empty method reads as missing rather than invalid.
    """
    try:
        return CheckoutRequest(**data)
    except ValidationError as ve:
        fields = {e["loc"][0] for e in ve.errors() if e.get("loc")}
        method_given = bool(str(data.get("payment_method") or "").strip())
        if fields - {"payment_method"} or not method_given:
            raise CheckoutValidationError(MISSING_DETAILS_MESSAGE)
        raise CheckoutValidationError(INVALID_METHOD_MESSAGE)


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _load_cart(session, buyer_id: int) -> List[Tuple[CartLine, Product]]:
    stmt = (
        select(CartLine, Product)
        .join(Product, CartLine.product_id == Product.id)
        .where(CartLine.buyer_id == buyer_id)
        .order_by(CartLine.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return [(row[0], row[1]) for row in session.execute(stmt).all()]


def _check_stock(lines: List[Tuple[CartLine, Product]]) -> None:
    shortfalls = [
        f"{product.name} (only {product.quantity} available, {line.quantity} needed)"
        for line, product in lines
        if line.quantity > product.quantity
    ]
    if shortfalls:
        raise InsufficientStockError(shortfalls)


def _decrement_stock(session, product: Product, quantity: int) -> None:
    result = session.execute(
        update(Product)
        .where(Product.id == product.id, Product.quantity >= quantity)
        .values(quantity=Product.quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StockConflictError(product.name)


def _existing_checkout(session, buyer_id: int, token: str) -> Optional[CheckoutSuccess]:
    order = session.execute(
        select(Order).where(Order.buyer_id == buyer_id, Order.checkout_token == token)
    ).scalar_one_or_none()
    if order is None:
        return None
    payment = session.execute(
        select(Payment).where(Payment.order_id == order.id).order_by(Payment.id)
    ).scalars().first()
    if payment is None:
        return None
    return CheckoutSuccess(
        order_id=order.id,
        payment_id=payment.id,
        method=PaymentMethod(payment.payment_method),
        subtotal=_money(payment.cart_amount),
        courier_cost=_money(payment.courier_cost),
        total=_money(payment.total_amount),
        duplicate=True,
    )


def _resubmission(session, buyer_id: int, token: Optional[str]) -> Optional[CheckoutSuccess]:
    if not token:
        return None
    previous = _existing_checkout(session, buyer_id, token)
    if previous is not None:
        logger.info(
            "Duplicate checkout submission for buyer %s, reusing order %s",
            buyer_id,
            previous.order_id,
        )
    return previous


def place_order(
    ctx: CheckoutContext,
    req: CheckoutRequest,
    *,
    origin_address: str = DEFAULT_ORIGIN_ADDRESS,
    rate_per_km=DEFAULT_RATE_PER_KM,
    geocoder: Geocoder = lookup_coordinates,
) -> CheckoutResult:
    """Convert the buyer's cart into an order with a pending payment.

    Never raises; every failure comes back as a :class:`CheckoutFailure`.
    """
    with get_tracer().start_as_current_span("checkout.place_order") as span:
        span.set_attribute("quickbuy.buyer_id", ctx.buyer_id)
        span.set_attribute("quickbuy.payment_method", req.payment_method.value)
        result = _place_order(ctx, req, origin_address, rate_per_km, geocoder)
        if isinstance(result, CheckoutSuccess):
            span.set_attribute("quickbuy.order_id", result.order_id)
            span.set_attribute("quickbuy.outcome", "duplicate" if result.duplicate else "success")
        else:
            span.set_attribute("quickbuy.outcome", result.reason.value)
        return result


def _place_order(ctx, req, origin_address, rate_per_km, geocoder) -> CheckoutResult:
    session = ctx.session
    try:
        with transactional("Checkout failed", session=session, expected=(CheckoutError,)):
            courier = courier_cost(req.delivery_address, origin_address, rate_per_km, geocoder)
            previous = _resubmission(session, ctx.buyer_id, req.checkout_token)
            if previous is not None:
                return previous

            lines = _load_cart(session, ctx.buyer_id)
            if not lines:
                # A concurrent submit with the same token may have committed
                # while this one waited on the cart locks.
                previous = _resubmission(session, ctx.buyer_id, req.checkout_token)
                if previous is not None:
                    return previous
                raise EmptyCartError(EMPTY_CART_MESSAGE)
            _check_stock(lines)

            subtotal = _money(sum(
                (Decimal(str(line.price_at_add)) * line.quantity for line, _ in lines),
                Decimal("0"),
            ))
            if _money(req.amount) != subtotal:
                logger.warning(
                    "Submitted amount %s differs from cart subtotal %s for buyer %s",
                    req.amount,
                    subtotal,
                    ctx.buyer_id,
                )
            total = subtotal + courier

            order = Order(
                buyer_id=ctx.buyer_id,
                total_amount=total,
                delivery_address=req.delivery_address,
                courier_cost=courier,
                checkout_token=req.checkout_token,
            )
            session.add(order)
            session.flush()

            for line, product in lines:
                session.add(
                    OrderItem(
                        order_id=order.id,
                        product_id=product.id,
                        quantity=line.quantity,
                        price_at_purchase=line.price_at_add,
                    )
                )
                _decrement_stock(session, product, line.quantity)

            payment = Payment(
                order_id=order.id,
                buyer_id=ctx.buyer_id,
                delivery_address=req.delivery_address,
                payment_method=req.payment_method.value,
                cart_amount=subtotal,
                courier_cost=courier,
                total_amount=total,
                payment_status=PAYMENT_PENDING,
                status=PAYMENT_INITIATED,
            )
            session.add(payment)
            session.flush()

            session.execute(
                delete(CartLine)
                .where(CartLine.buyer_id == ctx.buyer_id)
                .execution_options(synchronize_session=False)
            )
            order_id, payment_id = order.id, payment.id
    except CheckoutError as e:
        logger.warning("Checkout rejected for buyer %s: %s", ctx.buyer_id, e)
        return CheckoutFailure(e.reason, str(e))
    except Exception:
        return CheckoutFailure(FailureReason.ERROR, GENERIC_FAILURE_MESSAGE)

    logger.info({
        "event": "checkout_completed",
        "buyer_id": ctx.buyer_id,
        "order_id": order_id,
        "payment_id": payment_id,
        "payment_method": req.payment_method.value,
        "total_amount": str(total),
    })
    return CheckoutSuccess(
        order_id=order_id,
        payment_id=payment_id,
        method=req.payment_method,
        subtotal=subtotal,
        courier_cost=courier,
        total=total,
    )


def cancel_checkout(ctx: CheckoutContext) -> int:
    """Empty the buyer's cart. Returns the number of lines removed."""
    with transactional("Failed to cancel checkout", session=ctx.session):
        result = ctx.session.execute(
            delete(CartLine)
            .where(CartLine.buyer_id == ctx.buyer_id)
            .execution_options(synchronize_session=False)
        )
    return result.rowcount or 0


def confirmation_target(success: CheckoutSuccess) -> Tuple[str, Dict[str, int]]:
    """Endpoint and query arguments of the page that continues this payment."""
    if success.method is PaymentMethod.INSTANT_EFT:
        return "payments.instant_eft", {"order_id": success.order_id, "payment_id": success.payment_id}
    if success.method is PaymentMethod.COD:
        return "payments.cod", {"order_id": success.order_id}
    if success.method is PaymentMethod.PAYFAST:
        return "payments.payfast", {"order_id": success.order_id, "payment_id": success.payment_id}
    raise ValueError(f"Unknown payment method: {success.method}")
