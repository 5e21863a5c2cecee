from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from sarvaa.app.models import Product
from sarvaa.modules.cart.state import CartLine
from sarvaa.modules.catalog.queries import RUPEE, get_active_product

FREE_SHIPPING_ABOVE_PAISE = 999 * RUPEE
SHIPPING_FEE_PAISE = 99 * RUPEE
COD_CHARGE_PAISE = 50 * RUPEE

PAYMENT_ONLINE = "online"
PAYMENT_COD = "cod"
PAYMENT_METHODS = (PAYMENT_ONLINE, PAYMENT_COD)


@dataclass
class PricedLine:
    product: Product
    qty: int
    size: str

    @property
    def line_total_paise(self) -> int:
        return self.product.price_paise * self.qty

    @property
    def line_mrp_paise(self) -> int:
        return self.product.mrp_paise * self.qty

    def to_dict(self) -> dict:
        p = self.product
        return {
            "product_id": p.id,
            "sku": p.sku,
            "name": p.name,
            "image_url": p.image_url,
            "size": self.size,
            "qty": self.qty,
            "price_paise": p.price_paise,
            "original_price_paise": p.original_price_paise,
            "line_total_paise": self.line_total_paise,
        }


@dataclass
class Totals:
    subtotal_paise: int
    mrp_paise: int
    discount_paise: int
    shipping_paise: int
    cod_charge_paise: int
    total_paise: int

    def to_dict(self) -> dict:
        return {
            "subtotal_paise": self.subtotal_paise,
            "mrp_paise": self.mrp_paise,
            "discount_paise": self.discount_paise,
            "shipping_paise": self.shipping_paise,
            "cod_charge_paise": self.cod_charge_paise,
            "total_paise": self.total_paise,
        }


def price_lines(lines: Iterable[CartLine]) -> List[PricedLine]:
    """Price lines from the live catalog, skipping products no longer sold."""
    priced = []
    for line in lines:
        product = get_active_product(line.product_id)
        if product:
            priced.append(PricedLine(product=product, qty=line.qty, size=line.size))
    return priced


def compute_totals(lines: Iterable[PricedLine], payment_method: str | None = None) -> Totals:
    lines = list(lines)
    subtotal = sum(l.line_total_paise for l in lines)
    mrp = sum(l.line_mrp_paise for l in lines)
    # Nothing to ship for an empty cart
    shipping = 0 if not lines or subtotal > FREE_SHIPPING_ABOVE_PAISE else SHIPPING_FEE_PAISE
    cod = COD_CHARGE_PAISE if payment_method == PAYMENT_COD else 0
    return Totals(
        subtotal_paise=subtotal,
        mrp_paise=mrp,
        discount_paise=mrp - subtotal,
        shipping_paise=shipping,
        cod_charge_paise=cod,
        total_paise=subtotal + shipping + cod,
    )
