from conftest import checkout_to_payment, login


def place_order(client, pid, sku="R1", size="7", payment_method="cod"):
    body = {"product_id": pid(sku)}
    if size:
        body["size"] = size
    client.post("/api/cart/items", json=body)
    checkout_to_payment(client)
    r = client.post("/api/checkout/place", json={"payment_method": payment_method})
    assert r.status_code == 201, r.json
    return r.json["order"]["id"]


def set_status(app, order_id, status):
    result = app.test_cli_runner().invoke(args=["set-order-status", str(order_id), status])
    assert result.exit_code == 0, result.output


def test_orders_require_login(client):
    r = client.get("/api/orders")
    assert r.status_code == 401
    assert r.json["error"]["code"] == "unauthorized"

    assert client.get("/api/orders/1").status_code == 401
    assert client.post("/api/orders/1/cancel").status_code == 401


def test_list_orders_newest_first(client, pid):
    login(client)
    first = place_order(client, pid)
    second = place_order(client, pid, sku="E1", size=None, payment_method="online")

    r = client.get("/api/orders")
    assert r.status_code == 200
    items = r.json["items"]
    assert [o["id"] for o in items] == [second, first]
    assert items[0]["status"] == "Pending Payment"
    assert items[0]["tracking_index"] == 0
    assert items[1]["status"] == "Processing"
    assert items[1]["tracking_index"] == 1


def test_guest_orders_show_up_after_login(client, pid):
    # matched by the email given at checkout
    order_id = place_order(client, pid)
    login(client)
    assert [o["id"] for o in client.get("/api/orders").json["items"]] == [order_id]


def test_order_detail(client, pid):
    login(client)
    order_id = place_order(client, pid)

    r = client.get(f"/api/orders/{order_id}")
    assert r.status_code == 200
    body = r.json
    assert body["customer_phone"] == "+919876543210"
    assert body["total_paise"] == 134900
    assert body["can_cancel"] is True
    assert body["can_return"] is False
    assert body["tracking_steps"] == ["Placed", "Processing", "Shipped", "Out for Delivery", "Delivered"]
    assert body["items"] == [
        {
            "product_id": pid("R1"),
            "name": "Twisted Silver Band",
            "image_url": body["items"][0]["image_url"],
            "quantity": 1,
            "price_at_purchase_paise": 129900,
            "size": "7",
        }
    ]


def test_someone_elses_order_is_hidden(client, pid):
    login(client)
    order_id = place_order(client, pid)
    client.post("/api/auth/logout")

    login(client, mobile="9123456780", name="Ravi K", email="ravi@example.com")
    assert client.get(f"/api/orders/{order_id}").status_code == 404
    assert client.post(f"/api/orders/{order_id}/cancel").status_code == 404
    assert client.get("/api/orders").json["items"] == []


def test_cancel_order(client, pid):
    login(client)
    order_id = place_order(client, pid)

    r = client.post(f"/api/orders/{order_id}/cancel")
    assert r.status_code == 200
    assert r.json["status"] == "Cancelled"
    assert r.json["tracking_index"] == -1
    assert r.json["can_cancel"] is False

    r = client.post(f"/api/orders/{order_id}/cancel")
    assert r.status_code == 409
    assert r.json["error"]["code"] == "conflict"


def test_shipped_order_cannot_be_cancelled(client, app, pid):
    login(client)
    order_id = place_order(client, pid)
    set_status(app, order_id, "Shipped")

    assert client.get(f"/api/orders/{order_id}").json["tracking_index"] == 2
    assert client.post(f"/api/orders/{order_id}/cancel").status_code == 409


def test_return_after_delivery(client, app, pid):
    login(client)
    order_id = place_order(client, pid)

    assert client.post(f"/api/orders/{order_id}/return").status_code == 409

    set_status(app, order_id, "Delivered")
    body = client.get(f"/api/orders/{order_id}").json
    assert body["tracking_index"] == 4
    assert body["can_return"] is True

    r = client.post(f"/api/orders/{order_id}/return")
    assert r.status_code == 200
    assert r.json["status"] == "Return Requested"
    assert r.json["tracking_index"] == -1


def test_set_order_status_rejects_unknown(app):
    result = app.test_cli_runner().invoke(args=["set-order-status", "999", "Delivered"])
    assert result.exit_code != 0
    assert "not found" in result.output

    result = app.test_cli_runner().invoke(args=["set-order-status", "1", "Lost"])
    assert result.exit_code != 0


def test_buy_again(client, pid):
    login(client)
    order_id = place_order(client, pid)
    assert client.get("/api/cart").json["count"] == 0

    r = client.post(f"/api/orders/{order_id}/items/{pid('R1')}/buy-again")
    assert r.status_code == 200
    assert r.json["count"] == 1
    assert r.json["items"][0]["size"] == "7"
    assert r.json["items"][0]["price_paise"] == 129900

    assert client.post(f"/api/orders/{order_id}/items/{pid('E1')}/buy-again").status_code == 404


def test_review_ordered_item(client, app, pid):
    login(client)
    order_id = place_order(client, pid)
    set_status(app, order_id, "Delivered")
    assert client.get(f"/api/orders/{order_id}").json["can_review"] is True

    r = client.post(
        f"/api/orders/{order_id}/items/{pid('R1')}/review",
        json={"rating": 5, "review_text": "Fits perfectly"},
    )
    assert r.status_code == 201
    assert r.json["review"]["rating"] == 5

    reviews = client.get(f"/api/products/{pid('R1')}/reviews").json["items"]
    assert [rv["review_text"] for rv in reviews] == ["Fits perfectly"]

    r = client.post(f"/api/orders/{order_id}/items/{pid('R1')}/review", json={"rating": 0})
    assert r.status_code == 400


def test_review_needs_a_delivered_order(client, app, pid):
    login(client)
    order_id = place_order(client, pid)
    url = f"/api/orders/{order_id}/items/{pid('R1')}/review"

    assert client.get(f"/api/orders/{order_id}").json["can_review"] is False
    r = client.post(url, json={"rating": 5})
    assert r.status_code == 409
    assert r.json["error"]["code"] == "conflict"

    client.post(f"/api/orders/{order_id}/cancel")
    assert client.post(url, json={"rating": 5}).status_code == 409

    assert client.get(f"/api/products/{pid('R1')}/reviews").json["items"] == []


def test_orders_are_paged(client, pid):
    login(client)
    ids = [place_order(client, pid, sku="E1", size=None) for _ in range(3)]

    r = client.get("/api/orders?limit=2")
    assert [o["id"] for o in r.json["items"]] == [ids[2], ids[1]]
    assert r.json["paging"] == {"limit": 2, "offset": 0, "total": 3}

    r = client.get("/api/orders?limit=2&offset=2")
    assert [o["id"] for o in r.json["items"]] == [ids[0]]

    r = client.get("/api/orders?limit=500&offset=-1")
    assert r.json["paging"] == {"limit": 60, "offset": 0, "total": 3}
