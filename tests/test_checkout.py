from urllib.parse import parse_qs, urlparse

from sarvaa.app.extensions import db
from sarvaa.app.models import Order, OrderItem

from conftest import checkout_to_payment, login


def test_checkout_needs_items(client):
    r = client.post("/api/checkout/start")
    assert r.status_code == 409
    assert r.json["error"]["code"] == "empty_cart"


def test_checkout_needs_start(client):
    r = client.post("/api/checkout/contact", json={"phone": "9876543210", "email": "a@b.in"})
    assert r.status_code == 409
    assert r.json["error"]["code"] == "checkout_not_started"


def test_contact_validation(client, pid):
    client.post("/api/cart/items", json={"product_id": pid("E1")})
    client.post("/api/checkout/start")

    assert client.post("/api/checkout/contact", json={"phone": "98765", "email": "a@b.in"}).status_code == 400
    assert client.post("/api/checkout/contact", json={"phone": "9876543210", "email": "ab.in"}).status_code == 400

    r = client.post("/api/checkout/contact", json={"phone": "(987) 654-3210", "email": "a@b.in"})
    assert r.status_code == 200
    assert r.json["step"] == 2
    assert r.json["contact"]["phone"] == "9876543210"


def test_steps_cannot_be_skipped(client, pid):
    client.post("/api/cart/items", json={"product_id": pid("E1")})
    client.post("/api/checkout/start")

    r = client.post("/api/checkout/shipping", json={"first_name": "Asha", "flat": "1", "pincode": "560001"})
    assert r.status_code == 409
    assert r.json["error"]["code"] == "invalid_step"

    assert client.post("/api/checkout/place").status_code == 409
    assert client.post("/api/checkout/step", json={"step": 3}).status_code == 409


def test_shipping_requires_name_flat_and_pincode(client, pid):
    client.post("/api/cart/items", json={"product_id": pid("E1")})
    client.post("/api/checkout/start")
    client.post("/api/checkout/contact", json={"phone": "9876543210", "email": "a@b.in"})

    r = client.post("/api/checkout/shipping", json={"first_name": "Asha", "street": "MG Road"})
    assert r.status_code == 400
    assert r.json["error"]["details"]["missing"] == ["flat", "pincode"]


def test_going_back_keeps_progress(client, pid):
    client.post("/api/cart/items", json={"product_id": pid("E1")})
    checkout_to_payment(client)

    r = client.post("/api/checkout/step", json={"step": 1})
    assert r.status_code == 200
    assert r.json["step"] == 1
    assert r.json["steps"][1]["completed"] is True

    # shipping details are still there, so payment can be reached again
    r = client.post("/api/checkout/step", json={"step": 3})
    assert r.json["step"] == 3


def test_summary_follows_payment_method(client, pid):
    client.post("/api/cart/items", json={"product_id": pid("E1")})
    checkout_to_payment(client)

    summary = client.get("/api/checkout").json["summary"]
    assert summary["cod_charge_paise"] == 0
    assert summary["total_paise"] == 99900 + 9900

    r = client.post("/api/checkout/payment", json={"payment_method": "cod"})
    assert r.json["summary"]["cod_charge_paise"] == 5000
    assert r.json["summary"]["total_paise"] == 99900 + 9900 + 5000

    assert client.post("/api/checkout/payment", json={"payment_method": "upi"}).status_code == 400


def test_place_cod_order_from_cart(client, app, pid):
    client.post("/api/cart/items", json={"product_id": pid("R1"), "size": "7"})
    client.post("/api/cart/items", json={"product_id": pid("E2"), "quantity": 2})
    checkout_to_payment(client, gift_message="Happy birthday!")

    r = client.post("/api/checkout/place", json={"payment_method": "cod"})
    assert r.status_code == 201
    order_id = r.json["order"]["id"]
    assert r.json["order"]["status"] == "Processing"
    assert r.json["order"]["total_paise"] == 289700 + 5000

    order = db.session.get(Order, order_id)
    assert order.customer_phone == "+919876543210"
    assert order.shipping_address["pincode"] == "560001"
    assert order.gift_message == "Happy birthday!"
    assert order.discount_paise == 110000
    assert order.shipping_fee_paise == 0
    assert order.cod_charge_paise == 5000
    assert order.user_id is None

    items = OrderItem.query.filter_by(order_id=order_id).order_by(OrderItem.id).all()
    assert [(i.quantity, i.price_at_purchase_paise, i.size) for i in items] == [
        (1, 129900, "7"),
        (2, 79900, "Standard"),
    ]

    # cart and checkout state are cleared
    assert client.get("/api/cart").json["count"] == 0
    assert client.get("/api/checkout").status_code == 409


def test_place_online_order_is_pending_payment(client, pid):
    login(client)
    client.post("/api/cart/items", json={"product_id": pid("N4")})
    checkout_to_payment(client)

    r = client.post("/api/checkout/place")
    assert r.status_code == 201
    assert r.json["order"]["status"] == "Pending Payment"

    order = db.session.get(Order, r.json["order"]["id"])
    assert order.user_id is not None
    assert order.gift_message is None


def test_gift_message_needs_opt_in(client, pid):
    client.post("/api/cart/items", json={"product_id": pid("N4")})
    client.post("/api/checkout/start")
    client.post("/api/checkout/contact", json={"phone": "9876543210", "email": "a@b.in"})
    r = client.post(
        "/api/checkout/shipping",
        json={"first_name": "Asha", "flat": "1", "pincode": "560001", "gift_message": "hi"},
    )
    assert r.json["gift_message"] is None


def test_direct_purchase_leaves_cart_alone(client, pid):
    client.post("/api/cart/items", json={"product_id": pid("E1")})
    checkout_to_payment(client, direct_purchase={"product_id": pid("R2"), "size": "8", "quantity": 2})

    checkout = client.get("/api/checkout").json
    assert checkout["direct_purchase"] is True
    assert [i["sku"] for i in checkout["items"]] == ["R2"]

    r = client.post("/api/checkout/place", json={"payment_method": "online"})
    assert r.status_code == 201

    cart = client.get("/api/cart").json
    assert [i["sku"] for i in cart["items"]] == ["E1"]


def test_direct_purchase_validates_size(client, pid):
    r = client.post("/api/checkout/start", json={"direct_purchase": {"product_id": pid("R2")}})
    assert r.status_code == 400


def test_cart_emptied_mid_checkout(client, pid):
    client.post("/api/cart/items", json={"product_id": pid("E1")})
    checkout_to_payment(client)
    client.delete("/api/cart")

    r = client.post("/api/checkout/place")
    assert r.status_code == 409
    assert r.json["error"]["code"] == "empty_cart"


def test_whatsapp_handoff(client, pid):
    client.post("/api/cart/items", json={"product_id": pid("R1"), "size": "7"})
    checkout_to_payment(client)

    r = client.post("/api/checkout/place", json={"payment_method": "cod"})
    handoff = r.json["handoff"]
    assert handoff["channel"] == "whatsapp"

    url = urlparse(handoff["url"])
    assert url.netloc == "wa.me"
    assert url.path == "/919812345678"

    text = parse_qs(url.query)["text"][0]
    assert text == handoff["message"]
    assert f"order #{r.json['order']['id']}" in text
    assert "Twisted Silver Band (Size 7) x 1: ₹1,299" in text
    assert "COD charge: ₹50" in text
    assert "Total: ₹1,349" in text
    assert "Payment: Cash on Delivery" in text
    assert "560001" in text
