from urllib.parse import urlparse, parse_qs

from models import db
from models.cart import CartLine
from models.order import Order
from models.payment import Payment
from models.product import Product
from conftest import API

CHECKOUT = f"{API}/buyer/checkout"


def form(**overrides):
    data = {
        "payment_action": "proceed",
        "delivery_address": "5 Adderley St, Cape Town",
        "payment_method": "cod",
        "amount": "100.00",
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


def cart_messages(client, hdr):
    return client.get(f"{API}/buyer/cart/view", headers=hdr).get_json()["messages"]


def test_checkout_requires_token(client):
    r = client.post(CHECKOUT, data=form())
    assert r.status_code == 401


def test_checkout_requires_buyer_role(client, login):
    hdr, _ = login("seller1", role="seller")
    r = client.post(CHECKOUT, data=form(), headers=hdr)
    assert r.status_code == 403


def test_cod_checkout_redirects_to_cod_page(app, client, login, seed_cart):
    hdr, uid = login()
    (pid,) = seed_cart([{"name": "X", "price": 50.0, "stock": 5, "qty": 2}])

    r = client.post(CHECKOUT, data=form(), headers=hdr)

    assert r.status_code == 303
    loc = urlparse(r.headers["Location"])
    assert loc.path == f"{API}/payments/cod"
    order_id = int(parse_qs(loc.query)["order_id"][0])
    assert "payment_id" not in parse_qs(loc.query)

    with app.app_context():
        order = db.session.get(Order, order_id)
        assert order.buyer_id == uid
        assert order.total_amount == order.courier_cost + 100
        assert db.session.get(Product, pid).quantity == 3
        assert CartLine.query.filter_by(buyer_id=uid).count() == 0

    page = client.get(r.headers["Location"], headers=hdr)
    assert page.status_code == 200
    body = page.get_json()
    assert body["order"]["order_id"] == order_id
    assert body["payment"]["payment_status"] == "Pending"


def test_instant_eft_redirect_carries_order_and_payment(app, client, login, seed_cart):
    hdr, uid = login()
    seed_cart([{"name": "X", "price": 10.0, "stock": 5, "qty": 1}])

    r = client.post(CHECKOUT, data=form(payment_method="instant_eft", amount="10"), headers=hdr)

    assert r.status_code == 303
    loc = urlparse(r.headers["Location"])
    assert loc.path == f"{API}/payments/instant-eft"
    qs = parse_qs(loc.query)
    with app.app_context():
        payment = db.session.get(Payment, int(qs["payment_id"][0]))
        assert payment.order_id == int(qs["order_id"][0])
        assert payment.payment_method == "instant_eft"


def test_payfast_redirect(client, login, seed_cart):
    hdr, _ = login()
    seed_cart([{"name": "X", "price": 10.0, "stock": 5, "qty": 1}])

    r = client.post(CHECKOUT, json=form(payment_method="payfast", amount="10"), headers=hdr)

    assert r.status_code == 303
    loc = urlparse(r.headers["Location"])
    assert loc.path == f"{API}/payments/payfast"
    assert set(parse_qs(loc.query)) == {"order_id", "payment_id"}


def test_invalid_method_is_flashed_without_writes(app, client, login, seed_cart):
    hdr, uid = login()
    (pid,) = seed_cart([{"name": "X", "price": 50.0, "stock": 5, "qty": 2}])

    r = client.post(CHECKOUT, data=form(payment_method="bogus"), headers=hdr)

    assert r.status_code == 303
    assert urlparse(r.headers["Location"]).path == f"{API}/buyer/cart/view"
    assert cart_messages(client, hdr) == [
        {"category": "payment_error", "message": "Invalid payment method selected."}
    ]
    with app.app_context():
        assert Order.query.count() == 0
        assert db.session.get(Product, pid).quantity == 5
        assert CartLine.query.filter_by(buyer_id=uid).count() == 1


def test_missing_address_is_flashed(client, login, seed_cart):
    hdr, _ = login()
    seed_cart([{"name": "X", "price": 50.0, "stock": 5, "qty": 2}])

    r = client.post(CHECKOUT, data=form(delivery_address=None), headers=hdr)

    assert r.status_code == 303
    messages = cart_messages(client, hdr)
    assert messages[0]["category"] == "payment_error"
    assert "delivery address and payment method" in messages[0]["message"]


def test_stock_shortfall_is_flashed_on_cart(app, client, login, seed_cart):
    hdr, uid = login()
    (pid,) = seed_cart([{"name": "Y", "price": 3.0, "stock": 2, "qty": 10}])

    r = client.post(CHECKOUT, data=form(amount="30"), headers=hdr)

    assert r.status_code == 303
    assert urlparse(r.headers["Location"]).path == f"{API}/buyer/cart/view"
    view = client.get(f"{API}/buyer/cart/view", headers=hdr).get_json()
    assert view["messages"][0]["category"] == "stock_error"
    assert "Y (only 2 available, 10 needed)" in view["messages"][0]["message"]
    assert len(view["cart"]) == 1
    # flashed messages are shown once
    assert cart_messages(client, hdr) == []
    with app.app_context():
        assert Order.query.count() == 0
        assert db.session.get(Product, pid).quantity == 2


def test_empty_cart_is_flashed(client, login):
    hdr, _ = login()
    r = client.post(CHECKOUT, data=form(), headers=hdr)
    assert r.status_code == 303
    assert cart_messages(client, hdr) == [
        {"category": "payment_error", "message": "Your cart is empty. Cannot proceed with payment."}
    ]


def test_cancel_clears_cart_and_redirects_to_catalog(app, client, login, seed_cart):
    hdr, uid = login()
    (pid,) = seed_cart([{"name": "X", "price": 50.0, "stock": 5, "qty": 2}])

    r = client.post(CHECKOUT, data={"payment_action": "cancel"}, headers=hdr)

    assert r.status_code == 303
    assert urlparse(r.headers["Location"]).path == f"{API}/catalog/products"
    with app.app_context():
        assert CartLine.query.filter_by(buyer_id=uid).count() == 0
        assert db.session.get(Product, pid).quantity == 5
        assert Order.query.count() == 0


def test_cancel_on_empty_cart_still_succeeds(client, login):
    hdr, _ = login()
    r = client.post(CHECKOUT, data={"payment_action": "cancel"}, headers=hdr)
    assert r.status_code == 303
    assert urlparse(r.headers["Location"]).path == f"{API}/catalog/products"
    assert cart_messages(client, hdr)[0]["category"] == "success"


def test_unknown_action_returns_to_cart(app, client, login, seed_cart):
    hdr, _ = login()
    seed_cart([{"name": "X", "price": 50.0, "stock": 5, "qty": 2}])

    for data in ({"payment_action": "later"}, {}):
        r = client.post(CHECKOUT, data=data, headers=hdr)
        assert r.status_code == 303
        assert urlparse(r.headers["Location"]).path == f"{API}/buyer/cart/view"
    with app.app_context():
        assert Order.query.count() == 0


def test_resubmitted_token_redirects_to_same_order(app, client, login, seed_cart):
    hdr, _ = login()
    seed_cart([{"name": "X", "price": 50.0, "stock": 5, "qty": 2}])
    token = client.get(f"{API}/buyer/cart/view", headers=hdr).get_json()["checkout_token"]

    first = client.post(CHECKOUT, data=form(checkout_token=token), headers=hdr)
    second = client.post(CHECKOUT, data=form(checkout_token=token), headers=hdr)

    assert first.status_code == second.status_code == 303
    assert first.headers["Location"] == second.headers["Location"]
    with app.app_context():
        assert Order.query.count() == 1


def test_buyers_only_touch_their_own_cart(app, client, login, seed_cart):
    hdr_a, uid_a = login("alice")
    login("bob")
    seed_cart([{"name": "X", "price": 50.0, "stock": 5, "qty": 2}], buyer="bob")

    r = client.post(CHECKOUT, data=form(), headers=hdr_a)

    assert r.status_code == 303
    assert urlparse(r.headers["Location"]).path == f"{API}/buyer/cart/view"
    with app.app_context():
        assert CartLine.query.count() == 1
        assert Order.query.count() == 0
