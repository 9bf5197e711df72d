from flask import Blueprint, request
from sqlalchemy import select
from models import db
from models.product import Product
from quickbuy.utils import ok
from quickbuy.version import API_PREFIX

catalog_bp = Blueprint("catalog", __name__, url_prefix=f"{API_PREFIX}/catalog")


@catalog_bp.route("/products", methods=["GET"])
def list_products():
    """
    Products currently in stock
    ---
    tags: [Catalog]
    parameters:
      - {name: category, in: query, type: string, required: false}
    responses:
      200: {description: Product list}
    """
    stmt = select(Product).where(Product.quantity > 0).order_by(Product.id)
    category = request.args.get("category")
    if category:
        stmt = stmt.where(Product.category == category)
    products = db.session.execute(stmt).scalars().all()
    return ok({"products": [p.to_dict() for p in products]})
