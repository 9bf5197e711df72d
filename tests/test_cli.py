from models import db
from models.product import Product
from models.user import User


def test_create_user_and_seed_product(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "create-user", "sipho", "--role", "seller", "--password", "pw123",
    ])
    assert result.exit_code == 0, result.output
    assert "Created seller sipho" in result.output

    result = runner.invoke(args=[
        "seed-product", "Rooibos", "--price", "45.50", "--stock", "12",
        "--seller", "sipho", "--category", "Tea",
    ])
    assert result.exit_code == 0, result.output

    seller = db.session.query(User).filter_by(username="sipho").one()
    assert seller.check_password("pw123")
    product = db.session.query(Product).filter_by(name="Rooibos").one()
    assert product.seller_id == seller.id
    assert product.quantity == 12
    assert str(product.price) == "45.50"


def test_create_user_rejects_duplicate(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["create-user", "lebo", "--password", "pw"])
    result = runner.invoke(args=["create-user", "lebo", "--password", "pw"])
    assert result.exit_code != 0
    assert "already exists" in result.output


def test_seed_product_requires_known_seller(app):
    result = app.test_cli_runner().invoke(args=[
        "seed-product", "Tea", "--price", "1", "--seller", "ghost",
    ])
    assert result.exit_code != 0
    assert "Unknown seller ghost" in result.output
