from flask import Blueprint, request, jsonify, current_app
from models import db
from quickbuy.services.payments import (
    NotFoundError,
    ValidationError,
    owned_order,
    order_payment,
    complete_payment,
    cancel_payment,
)
from quickbuy.utils import auth_required, role_required, transactional, error, internal_error_response
from quickbuy.version import API_PREFIX

payments_bp = Blueprint("payments", __name__, url_prefix=f"{API_PREFIX}/payments")


@payments_bp.before_request
@auth_required
@role_required("buyer:confirm_payment")
def _enforce_buyer_scope():
    """Ensure the requester is a buyer allowed to follow up payments."""
    return None


def _lookup():
    order = owned_order(db.session, request.user.id, request.args.get("order_id", type=int))
    payment = order_payment(db.session, order, request.args.get("payment_id", type=int))
    return order, payment


def _amounts(payment):
    return {
        "subtotal": float(payment.cart_amount),
        "courier_cost": float(payment.courier_cost),
        "total_amount": float(payment.total_amount),
    }


@payments_bp.route("/instant-eft", methods=["GET"])
def instant_eft():
    """
    Banking details for an Instant EFT payment
    ---
    tags: [Payments]
    parameters:
      - {name: order_id, in: query, type: integer, required: true}
      - {name: payment_id, in: query, type: integer, required: true}
    responses:
      200: {description: Amounts due and banking details}
      404: {description: Order or payment not found}
    """
    try:
        order, payment = _lookup()
    except NotFoundError as e:
        return error(str(e), status=404)
    cfg = current_app.config
    return jsonify({
        "status": "success",
        "order_id": order.id,
        "payment": payment.to_dict(),
        **_amounts(payment),
        "bank_details": {
            "bank": cfg["EFT_BANK_NAME"],
            "account_name": cfg["EFT_ACCOUNT_NAME"],
            "account_number": cfg["EFT_ACCOUNT_NUMBER"],
            "branch_code": cfg["EFT_BRANCH_CODE"],
            "reference": f"QB-{order.id}",
        },
    }), 200


@payments_bp.route("/cod", methods=["GET"])
def cod():
    """
    Cash on delivery order summary
    ---
    tags: [Payments]
    parameters:
      - {name: order_id, in: query, type: integer, required: true}
    responses:
      200: {description: Order lines and amount due on delivery}
      404: {description: Order not found}
    """
    try:
        order, payment = _lookup()
    except NotFoundError as e:
        return error(str(e), status=404)
    return jsonify({
        "status": "success",
        "order": order.to_dict(),
        "payment": payment.to_dict(),
        "amount_due": float(payment.total_amount),
    }), 200


@payments_bp.route("/payfast", methods=["GET"])
def payfast():
    """
    Card gateway hand-off summary
    ---
    tags: [Payments]
    parameters:
      - {name: order_id, in: query, type: integer, required: true}
      - {name: payment_id, in: query, type: integer, required: true}
    responses:
      200: {description: Amounts to be charged by the gateway}
      404: {description: Order or payment not found}
    """
    try:
        order, payment = _lookup()
    except NotFoundError as e:
        return error(str(e), status=404)
    return jsonify({
        "status": "success",
        "order_id": order.id,
        "payment_id": payment.id,
        **_amounts(payment),
    }), 200


def _settle(action, payment_id, message):
    try:
        with transactional("Failed to update payment", expected=(NotFoundError, ValidationError)):
            payment = action(db.session, request.user.id, payment_id)
    except NotFoundError as e:
        return error(str(e), status=404)
    except ValidationError as e:
        return error(str(e), status=409)
    except Exception:
        return internal_error_response()
    return jsonify({"status": "success", "message": message, "payment": payment.to_dict()}), 200


@payments_bp.route("/<int:payment_id>/complete", methods=["POST"])
def complete(payment_id):
    return _settle(complete_payment, payment_id, "Payment completed")


@payments_bp.route("/<int:payment_id>/cancel", methods=["POST"])
def cancel(payment_id):
    return _settle(cancel_payment, payment_id, "Payment cancelled")
