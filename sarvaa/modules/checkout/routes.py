from __future__ import annotations

from typing import List

from flask import Blueprint, current_app, session

from sarvaa.app.extensions import db
from sarvaa.app.models import Order, OrderItem, STATUS_PENDING_PAYMENT, STATUS_PROCESSING
from sarvaa.app.common.errors import abort_json
from sarvaa.app.common.validation import get_json, int_field, require_fields, str_field
from sarvaa.modules.cart.pricing import PAYMENT_ONLINE, PricedLine, compute_totals, price_lines
from sarvaa.modules.cart.routes import resolve_size, sellable_product
from sarvaa.modules.cart.state import clear_cart, load_state
from sarvaa.modules.checkout.flow import CheckoutFlow, discard_flow, load_flow, save_flow, step_payload
from sarvaa.modules.checkout.handoff import order_message, whatsapp_link

bp = Blueprint("checkout", __name__)

PHONE_PREFIX = "+91"


def _require_flow() -> CheckoutFlow:
    flow = load_flow()
    if not flow:
        abort_json(409, "checkout_not_started", "Start checkout first")
    return flow


def _checkout_lines(flow: CheckoutFlow) -> List[PricedLine]:
    direct = flow.direct_line()
    lines = price_lines([direct] if direct else load_state().lines)
    if not lines:
        discard_flow()
        abort_json(409, "empty_cart", "Your cart is empty")
    return lines


def _checkout_response(flow: CheckoutFlow) -> dict:
    lines = _checkout_lines(flow)
    return {
        "step": flow.step,
        "steps": step_payload(flow),
        "direct_purchase": flow.is_direct,
        "contact": {"phone": flow.contact.phone, "email": flow.contact.email},
        "shipping": flow.shipping,
        "gift_message": flow.gift_message,
        "payment_method": flow.payment_method,
        "items": [l.to_dict() for l in lines],
        "summary": compute_totals(lines, flow.payment_method).to_dict(),
    }


@bp.post("/checkout/start")
def start_checkout():
    """POST /api/checkout/start

    Request JSON (optional):
      {"direct_purchase": {"product_id": 1, "size": "7", "quantity": 1}}
    Without a direct purchase the cart is checked out.
    """
    data = get_json(optional=True)
    direct = data.get("direct_purchase")
    flow = CheckoutFlow()

    if direct is not None:
        if not isinstance(direct, dict):
            abort_json(400, "validation_error", "direct_purchase must be an object")
        require_fields(direct, ["product_id"])
        product = sellable_product(int_field(direct, "product_id"))
        qty = int_field(direct, "quantity", default=1)
        if qty < 1:
            abort_json(400, "validation_error", "Quantity must be at least 1")
        flow.direct_purchase = {
            "product_id": product.id,
            "qty": qty,
            "size": resolve_size(product, str_field(direct, "size")),
        }

    payload = _checkout_response(flow)
    save_flow(flow)
    return payload, 201


@bp.get("/checkout")
def get_checkout():
    return _checkout_response(_require_flow()), 200


@bp.delete("/checkout")
def abandon_checkout():
    discard_flow()
    return {"message": "checkout_discarded"}, 200


@bp.post("/checkout/contact")
def submit_contact():
    flow = _require_flow()
    data = get_json()
    flow.submit_contact(data.get("phone"), data.get("email"))
    save_flow(flow)
    return _checkout_response(flow), 200


@bp.post("/checkout/shipping")
def submit_shipping():
    flow = _require_flow()
    flow.submit_shipping(get_json())
    save_flow(flow)
    return _checkout_response(flow), 200


@bp.post("/checkout/payment")
def choose_payment():
    flow = _require_flow()
    data = get_json()
    require_fields(data, ["payment_method"])
    flow.choose_payment(str_field(data, "payment_method"))
    save_flow(flow)
    return _checkout_response(flow), 200


@bp.post("/checkout/step")
def go_to_step():
    """Jump back to an already completed step to edit it."""
    flow = _require_flow()
    flow.go_to(int_field(get_json(), "step"))
    save_flow(flow)
    return _checkout_response(flow), 200


@bp.post("/checkout/place")
def place_order():
    """Checkout: session state -> order, then hand off to WhatsApp.

    Request JSON (optional): {"payment_method": "online" | "cod"}
    """
    flow = _require_flow()
    data = get_json(optional=True)
    if data.get("payment_method"):
        flow.choose_payment(str_field(data, "payment_method"))
    flow.ready_to_place()

    lines = _checkout_lines(flow)
    totals = compute_totals(lines, flow.payment_method)

    order = Order(
        user_id=session.get("user_id"),
        customer_phone=f"{PHONE_PREFIX}{flow.contact.phone}",
        customer_email=flow.contact.email,
        shipping_address=flow.shipping,
        gift_message=flow.gift_message,
        payment_method=flow.payment_method,
        status=STATUS_PENDING_PAYMENT if flow.payment_method == PAYMENT_ONLINE else STATUS_PROCESSING,
        subtotal_paise=totals.subtotal_paise,
        discount_paise=totals.discount_paise,
        shipping_fee_paise=totals.shipping_paise,
        cod_charge_paise=totals.cod_charge_paise,
        total_paise=totals.total_paise,
    )
    try:
        db.session.add(order)
        db.session.flush()
        for line in lines:
            db.session.add(
                OrderItem(
                    order_id=order.id,
                    product_id=line.product.id,
                    quantity=line.qty,
                    price_at_purchase_paise=line.product.price_paise,
                    size=line.size,
                )
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to place order")
        abort_json(500, "order_failed", "Failed to place order. Please try again.")

    if not flow.is_direct:
        clear_cart()
    discard_flow()

    current_app.logger.info(
        "order placed id=%s method=%s total_paise=%s items=%s",
        order.id, order.payment_method, order.total_paise, len(lines),
    )

    message = order_message(order, current_app.config["STORE_NAME"])
    return {
        "order": {
            "id": order.id,
            "status": order.status,
            "payment_method": order.payment_method,
            "total_paise": order.total_paise,
            "customer_email": order.customer_email,
        },
        "handoff": {
            "channel": "whatsapp",
            "url": whatsapp_link(current_app.config["WHATSAPP_NUMBER"], message),
            "message": message,
        },
    }, 201
