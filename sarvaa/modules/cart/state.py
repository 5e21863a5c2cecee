"""Cart and wishlist state kept in the shopper's session.

The session cookie is the only store, so writes are last-write-wins per
browser. Lines are keyed by product id; adding a product that is already in
the cart bumps its quantity and keeps the size chosen first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flask import session

CART_KEY = "cart"
WISHLIST_KEY = "wishlist"
DEFAULT_SIZE = "Standard"


@dataclass
class CartLine:
    product_id: int
    qty: int = 1
    size: str = DEFAULT_SIZE

    def to_dict(self) -> Dict[str, Any]:
        return {"product_id": self.product_id, "qty": self.qty, "size": self.size}


@dataclass
class ShopperState:
    lines: List[CartLine] = field(default_factory=list)
    wishlist: List[int] = field(default_factory=list)

    # --- cart ---
    def find(self, product_id: int) -> Optional[CartLine]:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def add(self, product_id: int, size: str = DEFAULT_SIZE, qty: int = 1) -> CartLine:
        line = self.find(product_id)
        if line:
            line.qty += qty
            return line
        line = CartLine(product_id=product_id, qty=qty, size=size or DEFAULT_SIZE)
        self.lines.append(line)
        return line

    def remove(self, product_id: int) -> bool:
        before = len(self.lines)
        self.lines = [l for l in self.lines if l.product_id != product_id]
        return len(self.lines) != before

    def update_qty(self, product_id: int, delta: int) -> Optional[CartLine]:
        line = self.find(product_id)
        if line:
            line.qty = max(1, line.qty + delta)
        return line

    def set_qty(self, product_id: int, qty: int) -> Optional[CartLine]:
        if qty < 1:
            raise ValueError("quantity must be at least 1")
        line = self.find(product_id)
        if line:
            line.qty = qty
        return line

    def clear(self) -> None:
        self.lines = []

    @property
    def count(self) -> int:
        return sum(l.qty for l in self.lines)

    # --- wishlist ---
    def toggle_wishlist(self, product_id: int) -> bool:
        """Returns True when the product is now wishlisted."""
        if product_id in self.wishlist:
            self.wishlist = [pid for pid in self.wishlist if pid != product_id]
            return False
        self.wishlist.append(product_id)
        return True

    def move_to_cart(self, product_id: int, size: str = DEFAULT_SIZE) -> CartLine:
        line = self.add(product_id, size)
        if product_id in self.wishlist:
            self.toggle_wishlist(product_id)
        return line

    @property
    def wishlist_count(self) -> int:
        return len(self.wishlist)

    # --- (de)serialization ---
    @classmethod
    def from_dict(cls, cart: Any, wishlist: Any) -> "ShopperState":
        lines: List[CartLine] = []
        for raw in cart or []:
            try:
                lines.append(
                    CartLine(
                        product_id=int(raw["product_id"]),
                        qty=max(1, int(raw.get("qty", 1))),
                        size=str(raw.get("size") or DEFAULT_SIZE),
                    )
                )
            except (KeyError, TypeError, ValueError):
                # skip tampered or stale entries
                continue
        wished: List[int] = []
        for raw in wishlist or []:
            try:
                pid = int(raw)
            except (TypeError, ValueError):
                continue
            if pid not in wished:
                wished.append(pid)
        return cls(lines=lines, wishlist=wished)


def load_state() -> ShopperState:
    return ShopperState.from_dict(session.get(CART_KEY), session.get(WISHLIST_KEY))


def save_state(state: ShopperState) -> None:
    session[CART_KEY] = [l.to_dict() for l in state.lines]
    session[WISHLIST_KEY] = list(state.wishlist)


def clear_cart() -> None:
    state = load_state()
    state.clear()
    save_state(state)
