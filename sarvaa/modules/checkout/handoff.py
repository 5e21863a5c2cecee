"""WhatsApp handoff: the shopper confirms a placed order with the store over
chat, so we build a ``wa.me`` link carrying a pre-filled summary."""

from __future__ import annotations

from typing import List
from urllib.parse import quote

from sarvaa.app.models import Order
from sarvaa.modules.cart.pricing import PAYMENT_COD

WA_BASE_URL = "https://wa.me"


def format_inr(paise: int) -> str:
    """1299900 -> '₹12,999'; paise are shown only when present."""
    rupees, rem = divmod(int(paise), 100)
    text = f"₹{rupees:,}"
    if rem:
        text += f".{rem:02d}"
    return text


def order_message(order: Order, store_name: str) -> str:
    lines: List[str] = [f"Hi {store_name}! I'd like to confirm my order #{order.id}.", ""]
    for item in order.items:
        name = item.product.name if item.product else f"Product {item.product_id}"
        size = f" (Size {item.size})" if item.size and item.size != "Standard" else ""
        lines.append(f"- {name}{size} x {item.quantity}: {format_inr(item.price_at_purchase_paise * item.quantity)}")

    lines.append("")
    if order.discount_paise:
        lines.append(f"Discount: -{format_inr(order.discount_paise)}")
    lines.append(f"Shipping: {format_inr(order.shipping_fee_paise) if order.shipping_fee_paise else 'Free'}")
    if order.cod_charge_paise:
        lines.append(f"COD charge: {format_inr(order.cod_charge_paise)}")
    lines.append(f"Total: {format_inr(order.total_paise)}")
    lines.append("Payment: " + ("Cash on Delivery" if order.payment_method == PAYMENT_COD else "Online"))

    addr = order.shipping_address or {}
    name = " ".join(p for p in (addr.get("first_name"), addr.get("last_name")) if p)
    where = ", ".join(p for p in (addr.get("flat"), addr.get("street"), addr.get("city"), addr.get("state")) if p)
    lines.append(f"Deliver to: {name}, {where} - {addr.get('pincode', '')}")

    if order.gift_message:
        lines.append(f"Gift message: {order.gift_message}")
    return "\n".join(lines)


def whatsapp_link(number: str, message: str) -> str:
    return f"{WA_BASE_URL}/{number}?text={quote(message, safe='')}"
