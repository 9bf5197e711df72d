import logging

from quickbuy.tasks.notifications import send_order_confirmation_task


def test_confirmation_task_logs(caplog):
    caplog.set_level(logging.INFO)
    send_order_confirmation_task.apply(args=(12, "cod")).get()
    assert any("order 12 confirmed" in r.getMessage() for r in caplog.records)


def test_checkout_dispatches_confirmation(client, login, seed_cart, monkeypatch):
    from quickbuy.routes.buyer import checkout as checkout_routes
    sent = []
    monkeypatch.setattr(checkout_routes, "send_order_confirmation_task", lambda *a: sent.append(a))
    hdr, _ = login()
    seed_cart([{"name": "X", "price": 10.0, "stock": 1, "qty": 1}])

    client.post("/api/v1/buyer/checkout", data={
        "payment_action": "proceed",
        "delivery_address": "Wellington",
        "payment_method": "payfast",
        "amount": "10",
    }, headers=hdr)

    assert len(sent) == 1
    assert sent[0][1] == "payfast"
