from sqlalchemy import Column, String, Numeric, Text, DateTime, Integer, ForeignKey
from sqlalchemy.sql import func
from models import db, BIGINT


class Order(db.Model):
    __tablename__ = "orders"
    __table_args__ = (
        db.UniqueConstraint("buyer_id", "checkout_token", name="uq_orders_buyer_checkout_token"),
    )
    id = Column(BIGINT, primary_key=True)
    buyer_id = Column(BIGINT, ForeignKey("user.id"), nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False)  # cart subtotal + courier cost
    delivery_address = Column(Text, nullable=False)
    courier_cost = Column(Numeric(10, 2), nullable=False, default=0)
    order_date = Column(DateTime, default=func.now())
    checkout_token = Column(String(64), nullable=True)

    items = db.relationship("OrderItem", backref="order", cascade="all, delete-orphan", lazy=True)
    payments = db.relationship("Payment", backref="order", lazy=True)

    def to_dict(self):
        return {
            "order_id": self.id,
            "order_date": self.order_date.isoformat() if self.order_date else None,
            "delivery_address": self.delivery_address,
            "total_amount": float(self.total_amount),
            "courier_cost": float(self.courier_cost),
            "items": [oi.to_dict() for oi in self.items],
        }


class OrderItem(db.Model):
    __tablename__ = "order_items"
    id = Column(BIGINT, primary_key=True)
    order_id = Column(BIGINT, ForeignKey("orders.id"), nullable=False)
    product_id = Column(BIGINT, ForeignKey("product.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    price_at_purchase = Column(Numeric(10, 2), nullable=False)

    product = db.relationship("Product")

    @property
    def subtotal(self):
        return self.price_at_purchase * self.quantity

    def to_dict(self):
        return {
            "product_id": self.product_id,
            "name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "price_at_purchase": float(self.price_at_purchase),
            "subtotal": float(self.subtotal),
        }
