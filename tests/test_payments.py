from urllib.parse import urlparse, parse_qs

from conftest import API

PAYMENTS = f"{API}/payments"


def _checkout(client, hdr, seed_cart, method="instant_eft", buyer="buyer1"):
    seed_cart([{"name": "X", "price": 50.0, "stock": 5, "qty": 2}], buyer=buyer)
    r = client.post(f"{API}/buyer/checkout", data={
        "payment_action": "proceed",
        "delivery_address": "12 Main Rd, Stellenbosch",
        "payment_method": method,
        "amount": "100",
    }, headers=hdr)
    assert r.status_code == 303
    loc = urlparse(r.headers["Location"])
    return {k: int(v[0]) for k, v in parse_qs(loc.query).items()}


def test_instant_eft_page_shows_bank_details(client, login, seed_cart):
    hdr, _ = login()
    ids = _checkout(client, hdr, seed_cart)

    r = client.get(f"{PAYMENTS}/instant-eft", query_string=ids, headers=hdr)

    assert r.status_code == 200
    body = r.get_json()
    assert body["subtotal"] == 100.0
    assert body["total_amount"] == round(body["subtotal"] + body["courier_cost"], 2)
    assert body["bank_details"]["reference"] == f"QB-{ids['order_id']}"


def test_cod_page_amount_due(client, login, seed_cart):
    hdr, _ = login()
    ids = _checkout(client, hdr, seed_cart, method="cod")

    body = client.get(f"{PAYMENTS}/cod", query_string=ids, headers=hdr).get_json()

    assert body["order"]["items"][0]["name"] == "X"
    assert body["amount_due"] == body["order"]["total_amount"]


def test_other_buyers_cannot_see_payment(client, login, seed_cart):
    hdr, _ = login()
    ids = _checkout(client, hdr, seed_cart, method="payfast")
    other, _ = login("mallory")

    r = client.get(f"{PAYMENTS}/payfast", query_string=ids, headers=other)
    assert r.status_code == 404
    r = client.post(f"{PAYMENTS}/{ids['payment_id']}/complete", headers=other)
    assert r.status_code == 404


def test_missing_order_id_is_not_found(client, login):
    hdr, _ = login()
    assert client.get(f"{PAYMENTS}/cod", headers=hdr).status_code == 404


def test_complete_then_cancel_conflicts(client, login, seed_cart):
    hdr, _ = login()
    ids = _checkout(client, hdr, seed_cart, method="payfast")

    r = client.post(f"{PAYMENTS}/{ids['payment_id']}/complete", headers=hdr)
    assert r.status_code == 200
    assert r.get_json()["payment"]["payment_status"] == "Paid"
    assert r.get_json()["payment"]["status"] == "Completed"

    r = client.post(f"{PAYMENTS}/{ids['payment_id']}/cancel", headers=hdr)
    assert r.status_code == 409


def test_cancel_pending_payment(client, login, seed_cart):
    hdr, _ = login()
    ids = _checkout(client, hdr, seed_cart, method="payfast")

    r = client.post(f"{PAYMENTS}/{ids['payment_id']}/cancel", headers=hdr)
    assert r.status_code == 200
    assert r.get_json()["payment"]["payment_status"] == "Cancelled"


def test_payment_pages_require_buyer(client, login):
    hdr, _ = login("admin1", role="admin")
    assert client.get(f"{PAYMENTS}/cod", query_string={"order_id": 1}, headers=hdr).status_code == 403
    assert client.get(f"{PAYMENTS}/cod", query_string={"order_id": 1}).status_code == 401
