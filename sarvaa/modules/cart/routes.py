from __future__ import annotations

from flask import Blueprint, current_app

from sarvaa.app.models import Product
from sarvaa.app.common.validation import get_json, int_field, require_fields, str_field
from sarvaa.app.common.errors import abort_json, not_found
from sarvaa.modules.cart.pricing import compute_totals, price_lines
from sarvaa.modules.cart.state import DEFAULT_SIZE, ShopperState, load_state, save_state
from sarvaa.modules.catalog.queries import get_active_product, product_summary

bp = Blueprint("cart", __name__)


def resolve_size(product: Product, size: str) -> str:
    """Sized products (rings) need one of their sizes; the rest are Standard."""
    sizes = [str(s) for s in (product.sizes or [])]
    if sizes:
        if size not in sizes:
            abort_json(400, "validation_error", "Please select a size", {"sizes": sizes})
        return size
    return DEFAULT_SIZE


def sellable_product(product_id: int) -> Product:
    product = get_active_product(product_id)
    if not product:
        not_found("Product")
    return product


def cart_response(state: ShopperState) -> dict:
    lines = price_lines(state.lines)
    return {
        "items": [l.to_dict() for l in lines],
        # counts only lines still on sale, matching "items"
        "count": sum(l.qty for l in lines),
        "summary": compute_totals(lines).to_dict(),
    }


def wishlist_response(state: ShopperState) -> dict:
    items = []
    for pid in state.wishlist:
        p = get_active_product(pid)
        if p:
            items.append(product_summary(p))
    return {"items": items, "count": len(items)}


@bp.get("/cart")
def get_cart():
    return cart_response(load_state()), 200


@bp.post("/cart/items")
def add_to_cart():
    """POST /api/cart/items - {"product_id", "size"?, "quantity"?}"""
    data = get_json()
    require_fields(data, ["product_id"])

    product = sellable_product(int_field(data, "product_id"))
    qty = int_field(data, "quantity", default=1)
    if qty < 1:
        abort_json(400, "validation_error", "Quantity must be at least 1")
    size = resolve_size(product, str_field(data, "size"))

    state = load_state()
    line = state.add(product.id, size, qty)
    save_state(state)
    current_app.logger.info("cart add product=%s qty=%s size=%s", product.id, line.qty, line.size)
    return cart_response(state), 201


@bp.put("/cart/items/<int:product_id>")
def set_cart_item(product_id: int):
    """Replace the quantity of a line: {"quantity": n}"""
    data = get_json()
    qty = int_field(data, "quantity")
    if qty < 1:
        abort_json(400, "validation_error", "Quantity must be at least 1")

    state = load_state()
    if not state.set_qty(product_id, qty):
        not_found("Cart item")
    save_state(state)
    return cart_response(state), 200


@bp.patch("/cart/items/<int:product_id>")
def step_cart_item(product_id: int):
    """Step a line's quantity: {"delta": +1|-1}; never drops below 1."""
    data = get_json()
    delta = int_field(data, "delta")

    state = load_state()
    if not state.update_qty(product_id, delta):
        not_found("Cart item")
    save_state(state)
    return cart_response(state), 200


@bp.delete("/cart/items/<int:product_id>")
def remove_cart_item(product_id: int):
    state = load_state()
    if not state.remove(product_id):
        not_found("Cart item")
    save_state(state)
    return cart_response(state), 200


@bp.delete("/cart")
def clear_cart():
    state = load_state()
    state.clear()
    save_state(state)
    return cart_response(state), 200


# --- Wishlist ---
@bp.get("/wishlist")
def get_wishlist():
    return wishlist_response(load_state()), 200


@bp.post("/wishlist/toggle")
def toggle_wishlist():
    """Add the product if absent, remove it if present."""
    data = get_json()
    require_fields(data, ["product_id"])
    product = sellable_product(int_field(data, "product_id"))

    state = load_state()
    wished = state.toggle_wishlist(product.id)
    save_state(state)

    payload = wishlist_response(state)
    payload["wishlisted"] = wished
    return payload, 200


@bp.post("/wishlist/<int:product_id>/move-to-cart")
def move_to_cart(product_id: int):
    data = get_json(optional=True)
    state = load_state()
    if product_id not in state.wishlist:
        not_found("Wishlist item")

    product = sellable_product(product_id)
    size = resolve_size(product, str_field(data, "size"))
    state.move_to_cart(product.id, size)
    save_state(state)
    return {
        "cart": cart_response(state),
        "wishlist": wishlist_response(state),
    }, 200
