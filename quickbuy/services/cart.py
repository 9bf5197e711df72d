from decimal import Decimal
from typing import List

from sqlalchemy import select

from models.cart import CartLine
from models.product import Product


class ValidationError(Exception):
    pass


class NotFoundError(Exception):
    pass


def _locked_product(session, product_id: int) -> Product:
    product = session.execute(
        select(Product).where(Product.id == product_id).with_for_update()
    ).scalar_one_or_none()
    if product is None:
        raise NotFoundError("Product does not exist.")
    return product


def _cart_line(session, buyer_id: int, product_id: int, lock: bool = False):
    stmt = select(CartLine).where(CartLine.buyer_id == buyer_id, CartLine.product_id == product_id)
    if lock:
        stmt = stmt.with_for_update()
    return session.execute(stmt).scalar_one_or_none()


def add_to_cart(session, buyer_id: int, product_id: int, quantity: int = 1) -> str:
    """Add ``quantity`` units to the cart, refreshing the stored price.

    Stock is only checked here, never reserved; checkout re-checks it.
    Does NOT commit.
    """
    product = _locked_product(session, product_id)
    line = _cart_line(session, buyer_id, product_id, lock=True)
    if line:
        new_qty = line.quantity + quantity
        if new_qty > product.quantity:
            raise ValidationError(
                f"Sorry, only {product.quantity} of '{product.name}' are currently in stock. "
                f"Adding {quantity} would result in {new_qty} in your cart."
            )
        line.quantity = new_qty
        line.price_at_add = product.price
        return f"'{product.name}' quantity updated to {new_qty} in your cart."
    if quantity > product.quantity:
        raise ValidationError(
            f"Sorry, only {product.quantity} of '{product.name}' are currently in stock. "
            f"You are trying to add {quantity}."
        )
    session.add(CartLine(buyer_id=buyer_id, product_id=product.id, quantity=quantity, price_at_add=product.price))
    return f"'{product.name}' added to your cart."


def update_quantity(session, buyer_id: int, product_id: int, quantity: int) -> None:
    """Set a line's quantity; zero or less removes the line. Does NOT commit."""
    product = session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found.")
    line = _cart_line(session, buyer_id, product_id)
    if line is None:
        raise NotFoundError("Item not found in cart")
    if quantity <= 0:
        session.delete(line)
        return
    if quantity > product.quantity:
        raise ValidationError(f"Sorry, only {product.quantity} of '{product.name}' are currently in stock.")
    line.quantity = quantity


def remove_line(session, buyer_id: int, product_id: int) -> None:
    line = _cart_line(session, buyer_id, product_id)
    if line is None:
        raise NotFoundError("Item not found in cart")
    session.delete(line)


def cart_summary(session, buyer_id: int) -> dict:
    rows = session.execute(
        select(CartLine, Product)
        .join(Product, CartLine.product_id == Product.id)
        .where(CartLine.buyer_id == buyer_id)
        .order_by(CartLine.id)
    ).all()
    lines: List[dict] = []
    total = Decimal("0.00")
    for line, product in rows:
        subtotal = Decimal(str(line.price_at_add)) * line.quantity
        total += subtotal
        lines.append({
            "product_id": product.id,
            "name": product.name,
            "price_at_add": float(line.price_at_add),
            "quantity": line.quantity,
            "stock_quantity": product.quantity,
            "subtotal": float(subtotal),
        })
    return {"cart": lines, "total_amount": float(total)}
