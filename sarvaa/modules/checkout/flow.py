"""Checkout step machine.

Contact -> Shipping -> Payment -> placed. Progress lives in the session so a
shopper can leave the page and come back; only steps already reached can be
revisited.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from flask import session

from sarvaa.app.common.errors import abort_json
from sarvaa.app.common.validation import digits_only
from sarvaa.modules.cart.pricing import PAYMENT_METHODS, PAYMENT_ONLINE
from sarvaa.modules.cart.state import CartLine

SESSION_KEY = "checkout"

STEP_CONTACT = 1
STEP_SHIPPING = 2
STEP_PAYMENT = 3
STEP_NAMES = {STEP_CONTACT: "contact", STEP_SHIPPING: "shipping", STEP_PAYMENT: "payment"}

SHIPPING_FIELDS = ("first_name", "last_name", "flat", "street", "pincode", "city", "state")
REQUIRED_SHIPPING_FIELDS = ("first_name", "flat", "pincode")


@dataclass
class Contact:
    phone: str = ""
    email: str = ""


@dataclass
class CheckoutFlow:
    step: int = STEP_CONTACT
    reached: int = STEP_CONTACT
    # Buy-now checkouts carry their own single line and leave the cart alone
    direct_purchase: Optional[Dict[str, Any]] = None
    contact: Contact = field(default_factory=Contact)
    shipping: Dict[str, str] = field(default_factory=dict)
    gift_message: Optional[str] = None
    payment_method: str = PAYMENT_ONLINE

    @property
    def is_direct(self) -> bool:
        return self.direct_purchase is not None

    def direct_line(self) -> Optional[CartLine]:
        if not self.direct_purchase:
            return None
        return CartLine(
            product_id=int(self.direct_purchase["product_id"]),
            qty=int(self.direct_purchase.get("qty", 1)),
            size=str(self.direct_purchase.get("size") or "Standard"),
        )

    def submit_contact(self, phone: Any, email: Any) -> None:
        phone = digits_only(phone)
        email = str(email or "").strip()
        if len(phone) != 10 or "@" not in email:
            abort_json(400, "validation_error", "Please enter a valid 10-digit phone number and email.")
        self.contact = Contact(phone=phone, email=email)
        self._advance(STEP_SHIPPING)

    def submit_shipping(self, data: Dict[str, Any]) -> None:
        self._require_reached(STEP_SHIPPING)
        shipping = {name: str(data.get(name) or "").strip() for name in SHIPPING_FIELDS}
        shipping["pincode"] = digits_only(shipping["pincode"])
        missing = [name for name in REQUIRED_SHIPPING_FIELDS if not shipping[name]]
        if missing:
            abort_json(400, "validation_error", "Please fill in all required shipping fields.", {"missing": missing})

        self.shipping = shipping
        message = str(data.get("gift_message") or "").strip()
        self.gift_message = message if data.get("include_gift_message") and message else None
        self._advance(STEP_PAYMENT)

    def choose_payment(self, method: str) -> None:
        self._require_reached(STEP_PAYMENT)
        if method not in PAYMENT_METHODS:
            abort_json(400, "validation_error", "Unknown payment method", {"allowed": list(PAYMENT_METHODS)})
        self.payment_method = method

    def go_to(self, step: int) -> None:
        if step not in STEP_NAMES or step > self.reached:
            abort_json(409, "invalid_step", "That checkout step is not available yet", {"reached": self.reached})
        self.step = step

    def ready_to_place(self) -> None:
        self._require_reached(STEP_PAYMENT)

    def _require_reached(self, step: int) -> None:
        if self.reached < step:
            abort_json(
                409,
                "invalid_step",
                f"Complete the {STEP_NAMES[self.reached]} step first",
                {"reached": self.reached},
            )

    def _advance(self, step: int) -> None:
        self.step = step
        self.reached = max(self.reached, step)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CheckoutFlow":
        raw = dict(raw)
        raw["contact"] = Contact(**(raw.get("contact") or {}))
        return cls(**raw)


def load_flow() -> Optional[CheckoutFlow]:
    raw = session.get(SESSION_KEY)
    if not raw:
        return None
    try:
        return CheckoutFlow.from_dict(raw)
    except TypeError:
        # Shape changed between deploys
        session.pop(SESSION_KEY, None)
        return None


def save_flow(flow: CheckoutFlow) -> None:
    session[SESSION_KEY] = flow.to_dict()


def discard_flow() -> None:
    session.pop(SESSION_KEY, None)


def step_payload(flow: CheckoutFlow) -> List[Dict[str, Any]]:
    return [
        {"step": n, "name": name, "active": flow.step == n, "completed": flow.reached > n}
        for n, name in STEP_NAMES.items()
    ]
