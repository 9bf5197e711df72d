from sqlalchemy import Column, String, Numeric, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from models import db, BIGINT


class Payment(db.Model):
    __tablename__ = "payments"
    id = Column(BIGINT, primary_key=True)
    order_id = Column(BIGINT, ForeignKey("orders.id"), nullable=False, index=True)
    buyer_id = Column(BIGINT, ForeignKey("user.id"), nullable=False)
    delivery_address = Column(Text, nullable=False)
    payment_method = Column(String(20), nullable=False)  # instant_eft, cod, payfast
    cart_amount = Column(Numeric(10, 2), nullable=False)
    courier_cost = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(String(20), nullable=False, default="Pending")  # Pending, Paid, Cancelled
    status = Column(String(20), nullable=False, default="Initiated")  # Initiated, Completed, Cancelled
    payment_date = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "payment_id": self.id,
            "order_id": self.order_id,
            "payment_method": self.payment_method,
            "cart_amount": float(self.cart_amount),
            "courier_cost": float(self.courier_cost),
            "total_amount": float(self.total_amount),
            "payment_status": self.payment_status,
            "status": self.status,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
        }
