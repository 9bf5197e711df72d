from flask import request, jsonify, current_app
from models import db
from quickbuy.services.orders import purchase_history, receipt
from quickbuy.utils import error, role_required
from . import buyer_bp


@buyer_bp.route("/orders", methods=["GET"])
@role_required("buyer:view_orders")
def list_orders():
    sort = "asc" if request.args.get("sort") == "asc" else "desc"
    orders = purchase_history(db.session, request.user.id, sort)
    return jsonify({"status": "success", "sort": sort, "orders": orders}), 200


@buyer_bp.route("/orders/<int:order_id>/receipt", methods=["GET"])
@role_required("buyer:view_orders")
def order_receipt(order_id):
    cfg = current_app.config
    company = {
        "name": cfg["COMPANY_NAME"],
        "number": cfg["COMPANY_NUMBER"],
        "address": cfg["COMPANY_ADDRESS"],
    }
    data = receipt(db.session, request.user.id, order_id, company)
    if data is None:
        return error("Order not found or you do not have permission to view this receipt.", status=404)
    return jsonify({"status": "success", "receipt": data}), 200
