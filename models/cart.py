from models import db, BIGINT
from datetime import datetime


class CartLine(db.Model):
    __tablename__ = "cart"
    __table_args__ = (
        db.UniqueConstraint("buyer_id", "product_id", name="uq_cart_buyer_product"),
    )

    id = db.Column(BIGINT, primary_key=True)
    buyer_id = db.Column(BIGINT, db.ForeignKey("user.id"), nullable=False, index=True)
    product_id = db.Column(BIGINT, db.ForeignKey("product.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    price_at_add = db.Column(db.Numeric(10, 2), nullable=False)  # price snapshot when added
    added_at = db.Column(db.DateTime, default=datetime.utcnow)

    product = db.relationship("Product")
