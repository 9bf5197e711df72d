import logging
from flask import request, redirect, url_for, flash, current_app
from flask_limiter.util import get_remote_address
from extensions import limiter
from models import db
from quickbuy.metrics import record_checkout
from quickbuy.services.checkout import (
    CheckoutContext,
    CheckoutFailure,
    CheckoutValidationError,
    FailureReason,
    cancel_checkout,
    confirmation_target,
    parse_checkout_request,
    place_order,
)
from quickbuy.tasks.notifications import send_order_confirmation_task
from quickbuy.utils import request_payload, role_required
from . import buyer_bp

CANCELLED_MESSAGE = "Your order has been cancelled and items removed from your cart."
CANCEL_FAILED_MESSAGE = (
    "Failed to cancel order and clear cart due to a system error. "
    "Please try again or contact support."
)


def _to_cart():
    return redirect(url_for("buyer.view_cart"), code=303)


def _notify(order_id: int, payment_method: str) -> None:
    try:
        if current_app.config.get("TESTING"):
            send_order_confirmation_task(order_id, payment_method)
        else:
            send_order_confirmation_task.delay(order_id, payment_method)
    except Exception:
        logging.exception("Failed to queue confirmation for order %s", order_id)


@buyer_bp.route("/checkout", methods=["POST"])
@role_required("buyer:checkout")
@limiter.limit(
    lambda: current_app.config["CHECKOUT_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many checkout attempts from this IP",
)
def checkout():
    """
    Proceed with or cancel checkout of the current cart
    ---
    tags: [Buyer]
    consumes: [application/x-www-form-urlencoded, application/json]
    parameters:
      - {name: payment_action, in: formData, type: string, enum: [proceed, cancel]}
      - {name: delivery_address, in: formData, type: string}
      - {name: payment_method, in: formData, type: string, enum: [instant_eft, cod, payfast]}
      - {name: amount, in: formData, type: number}
      - {name: checkout_token, in: formData, type: string, required: false}
    responses:
      303: {description: Redirect to the payment confirmation page, the cart or the catalog}
    """
    data = request_payload()
    action = data.get("payment_action")
    ctx = CheckoutContext(buyer_id=request.user.id, session=db.session)

    if action == "cancel":
        try:
            removed = cancel_checkout(ctx)
        except Exception:
            flash(CANCEL_FAILED_MESSAGE, "error")
            return _to_cart()
        current_app.logger.info("Checkout cancelled by buyer %s, %s cart lines removed", ctx.buyer_id, removed)
        flash(CANCELLED_MESSAGE, "success")
        return redirect(url_for("catalog.list_products"), code=303)

    if action != "proceed":
        return _to_cart()

    try:
        checkout_request = parse_checkout_request(data)
    except CheckoutValidationError as e:
        current_app.logger.info("Checkout input rejected for buyer %s: %s", ctx.buyer_id, e)
        record_checkout(FailureReason.INVALID.value, data.get("payment_method"))
        flash(str(e), "payment_error")
        return _to_cart()

    cfg = current_app.config
    result = place_order(
        ctx,
        checkout_request,
        origin_address=cfg["BUSINESS_ADDRESS"],
        rate_per_km=cfg["COURIER_RATE_PER_KM"],
    )
    method = checkout_request.payment_method.value

    if isinstance(result, CheckoutFailure):
        record_checkout(result.reason.value, method)
        category = "stock_error" if result.reason is FailureReason.STOCK else "payment_error"
        flash(result.message, category)
        return _to_cart()

    if result.duplicate:
        record_checkout("duplicate", method)
    else:
        record_checkout("success", method)
        _notify(result.order_id, method)

    endpoint, params = confirmation_target(result)
    return redirect(url_for(endpoint, **params), code=303)
