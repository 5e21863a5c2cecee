from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import func

from sarvaa.app.extensions import db
from sarvaa.app.models import (
    Order,
    OrderItem,
    User,
    STATUS_CANCELLED,
    STATUS_DELIVERED,
    STATUS_PENDING_PAYMENT,
    STATUS_PLACED,
    STATUS_PROCESSING,
    STATUS_RETURN_REQUESTED,
)
from sarvaa.app.common.auth import login_required, require_user
from sarvaa.app.common.errors import abort_json, not_found
from sarvaa.app.common.validation import get_json, query_int
from sarvaa.modules.cart.routes import cart_response
from sarvaa.modules.cart.state import load_state, save_state
from sarvaa.modules.catalog.queries import get_active_product
from sarvaa.modules.catalog.routes import create_review, review_dict

bp = Blueprint("orders", __name__)

TRACKING_STEPS = ("Placed", "Processing", "Shipped", "Out for Delivery", "Delivered")

CANCELLABLE = (STATUS_PENDING_PAYMENT, STATUS_PLACED, STATUS_PROCESSING)
RETURNABLE = (STATUS_DELIVERED,)


def tracking_index(status: str | None) -> int:
    """Position of a status on the tracking bar, -1 when off it."""
    s = (status or "").lower()
    if "delivered" in s:
        return 4
    if "out for delivery" in s:
        return 3
    if "shipped" in s:
        return 2
    if "processing" in s:
        return 1
    if "placed" in s or "pending" in s or "new" in s:
        return 0
    return -1


def _own_order(user: User, order_id: int) -> Order:
    o = (
        Order.query.filter(Order.id == order_id)
        .filter(func.lower(Order.customer_email) == user.email.strip().lower())
        .first()
    )
    if not o:
        not_found("Order")
    return o


def _order_summary(o: Order) -> dict:
    return {
        "id": o.id,
        "status": o.status,
        "tracking_index": tracking_index(o.status),
        "payment_method": o.payment_method,
        "total_paise": o.total_paise,
        "created_at": o.created_at.isoformat(),
    }


def _order_detail(o: Order) -> dict:
    data = _order_summary(o)
    data.update(
        {
            "customer_phone": o.customer_phone,
            "customer_email": o.customer_email,
            "shipping_address": o.shipping_address,
            "gift_message": o.gift_message,
            "subtotal_paise": o.subtotal_paise,
            "discount_paise": o.discount_paise,
            "shipping_fee_paise": o.shipping_fee_paise,
            "cod_charge_paise": o.cod_charge_paise,
            "tracking_steps": list(TRACKING_STEPS),
            "can_cancel": o.status in CANCELLABLE,
            "can_return": o.status in RETURNABLE,
            "can_review": o.status == STATUS_DELIVERED,
            "items": [
                {
                    "product_id": i.product_id,
                    "name": i.product.name if i.product else None,
                    "image_url": i.product.image_url if i.product else None,
                    "quantity": i.quantity,
                    "price_at_purchase_paise": i.price_at_purchase_paise,
                    "size": i.size,
                }
                for i in OrderItem.query.filter_by(order_id=o.id).order_by(OrderItem.id.asc()).all()
            ],
        }
    )
    return data


def _transition(o: Order, allowed: tuple, new_status: str, message: str) -> Order:
    if o.status not in allowed:
        abort_json(409, "conflict", message, {"status": o.status})
    old = o.status
    o.status = new_status
    db.session.commit()
    current_app.logger.info("order %s status %s -> %s", o.id, old, new_status)
    return o


@bp.get("/orders")
@login_required
def list_orders():
    """GET /api/orders?limit=&offset= - Orders placed with the shopper's email, newest first."""
    user = require_user()
    limit = query_int("limit", current_app.config["DEFAULT_LIMIT"])
    limit = max(1, min(limit, current_app.config["MAX_LIMIT"]))
    offset = max(0, query_int("offset", 0))

    q = Order.query.filter(func.lower(Order.customer_email) == user.email.strip().lower())
    total = q.count()
    orders = q.order_by(Order.created_at.desc(), Order.id.desc()).limit(limit).offset(offset).all()
    return {
        "items": [_order_summary(o) for o in orders],
        "paging": {"limit": limit, "offset": offset, "total": total},
    }, 200


@bp.get("/orders/<int:order_id>")
@login_required
def get_order(order_id: int):
    return _order_detail(_own_order(require_user(), order_id)), 200


@bp.post("/orders/<int:order_id>/cancel")
@login_required
def cancel_order(order_id: int):
    o = _own_order(require_user(), order_id)
    _transition(o, CANCELLABLE, STATUS_CANCELLED, "This order can no longer be cancelled")
    return _order_detail(o), 200


@bp.post("/orders/<int:order_id>/return")
@login_required
def request_return(order_id: int):
    o = _own_order(require_user(), order_id)
    _transition(o, RETURNABLE, STATUS_RETURN_REQUESTED, "Only delivered orders can be returned")
    return _order_detail(o), 200


def _ordered_item(o: Order, product_id: int) -> OrderItem:
    item = OrderItem.query.filter_by(order_id=o.id, product_id=product_id).first()
    if not item:
        not_found("Order item")
    return item


@bp.post("/orders/<int:order_id>/items/<int:product_id>/buy-again")
@login_required
def buy_again(order_id: int, product_id: int):
    """Put an ordered piece back in the cart at today's price."""
    item = _ordered_item(_own_order(require_user(), order_id), product_id)
    if not get_active_product(item.product_id):
        abort_json(409, "conflict", "This product is no longer available")

    state = load_state()
    state.add(item.product_id, item.size or "Standard")
    save_state(state)
    return cart_response(state), 200


@bp.post("/orders/<int:order_id>/items/<int:product_id>/review")
@login_required
def review_item(order_id: int, product_id: int):
    user = require_user()
    o = _own_order(user, order_id)
    item = _ordered_item(o, product_id)
    if o.status != STATUS_DELIVERED:
        abort_json(409, "conflict", "Only delivered items can be reviewed", {"status": o.status})
    review = create_review(item.product_id, user.email, get_json())
    return {"review": review_dict(review)}, 201
