from sqlalchemy import select

from models.order import Order


def purchase_history(session, buyer_id: int, sort: str = "desc"):
    ordering = Order.id.asc() if sort == "asc" else Order.id.desc()
    orders = session.execute(
        select(Order).where(Order.buyer_id == buyer_id).order_by(ordering, Order.order_date.desc())
    ).scalars().all()
    return [order.to_dict() for order in orders]


def receipt(session, buyer_id: int, order_id: int, company: dict):
    order = session.execute(
        select(Order).where(Order.id == order_id, Order.buyer_id == buyer_id)
    ).scalar_one_or_none()
    if order is None:
        return None
    data = order.to_dict()
    data["subtotal"] = float(order.total_amount - order.courier_cost)
    for line, oi in zip(data["items"], order.items):
        seller = oi.product.seller if oi.product else None
        line["seller_name"] = seller.username if seller else None
    data["company"] = company
    return data
