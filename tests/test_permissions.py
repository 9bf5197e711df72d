from quickbuy.auth import permissions
from quickbuy.auth.permissions import ROLE_SCOPES, role_has_scope
from conftest import API


def test_buyer_scopes():
    for action in ("manage_cart", "checkout", "view_orders", "confirm_payment"):
        assert role_has_scope("buyer", action)
    assert not role_has_scope("seller", "checkout")
    assert role_has_scope("admin", "anything")
    assert not role_has_scope("ghost", "checkout")


def test_buyer_routes_check_their_scope(client, login, monkeypatch):
    hdr, _ = login()
    monkeypatch.setitem(permissions.ROLE_SCOPES, "buyer", ROLE_SCOPES["buyer"] - {"checkout"})

    assert client.post(f"{API}/buyer/checkout", data={"payment_action": "cancel"}, headers=hdr).status_code == 403
    assert client.get(f"{API}/buyer/cart/view", headers=hdr).status_code == 200
    assert client.get(f"{API}/buyer/orders", headers=hdr).status_code == 200


def test_order_history_requires_view_scope(client, login, monkeypatch):
    hdr, _ = login()
    monkeypatch.setitem(permissions.ROLE_SCOPES, "buyer", {"manage_cart", "checkout"})

    assert client.get(f"{API}/buyer/orders", headers=hdr).status_code == 403
    assert client.get(f"{API}/buyer/orders/1/receipt", headers=hdr).status_code == 403
    assert client.get(f"{API}/buyer/cart/view", headers=hdr).status_code == 200
