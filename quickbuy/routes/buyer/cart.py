import uuid
from flask import request, jsonify, get_flashed_messages
from models import db
from quickbuy.schemas.cart import AddToCartRequest, UpdateCartRequest, RemoveFromCartRequest
from quickbuy.services.cart import (
    ValidationError,
    NotFoundError,
    add_to_cart,
    update_quantity,
    remove_line,
    cart_summary,
)
from quickbuy.utils import transactional, error, internal_error_response, validate_schema, role_required
from . import buyer_bp


@buyer_bp.route("/cart/add", methods=["POST"])
@role_required("buyer:manage_cart")
@validate_schema(AddToCartRequest)
def add_item():
    data: AddToCartRequest = request.validated_data
    try:
        with transactional("Failed to add to cart", expected=(ValidationError, NotFoundError)):
            message = add_to_cart(db.session, request.user.id, data.product_id, data.quantity)
    except NotFoundError as e:
        return error(str(e), status=404)
    except ValidationError as e:
        return error(str(e), status=400)
    except Exception:
        return internal_error_response()
    return jsonify({"status": "success", "message": message}), 200


@buyer_bp.route("/cart/update", methods=["POST"])
@role_required("buyer:manage_cart")
@validate_schema(UpdateCartRequest)
def update_item():
    data: UpdateCartRequest = request.validated_data
    try:
        with transactional("Failed to update cart quantity", expected=(ValidationError, NotFoundError)):
            update_quantity(db.session, request.user.id, data.product_id, data.quantity)
    except NotFoundError as e:
        return error(str(e), status=404)
    except ValidationError as e:
        return error(str(e), status=400)
    except Exception:
        return internal_error_response()
    return jsonify({"status": "success", "message": "Cart quantity updated"}), 200


@buyer_bp.route("/cart/remove", methods=["POST"])
@role_required("buyer:manage_cart")
@validate_schema(RemoveFromCartRequest)
def remove_item():
    data: RemoveFromCartRequest = request.validated_data
    try:
        with transactional("Failed to remove cart item", expected=(NotFoundError,)):
            remove_line(db.session, request.user.id, data.product_id)
    except NotFoundError as e:
        return error(str(e), status=404)
    except Exception:
        return internal_error_response()
    return jsonify({"status": "success", "message": "Item removed"}), 200


@buyer_bp.route("/cart/view", methods=["GET"])
@role_required("buyer:manage_cart")
def view_cart():
    """
    Cart contents with pending checkout messages
    ---
    tags: [Buyer]
    responses:
      200: {description: Cart lines, total and a fresh checkout token}
    """
    summary = cart_summary(db.session, request.user.id)
    messages = [
        {"category": category, "message": message}
        for category, message in get_flashed_messages(with_categories=True)
    ]
    return jsonify({
        "status": "success",
        "cart": summary["cart"],
        "total_amount": summary["total_amount"],
        "checkout_token": uuid.uuid4().hex,
        "messages": messages,
    }), 200
