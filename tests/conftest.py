import os
import sys
from unittest import mock

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sarvaa.app.config import Config
from sarvaa.app.extensions import db
from sarvaa.app.factory import create_app
from sarvaa.app.models import Product


class TestConfig(Config):
    TESTING = True
    # Flask-SQLAlchemy keeps a single shared connection for in-memory SQLite
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECRET_KEY = "test-secret"
    WHATSAPP_NUMBER = "919812345678"
    STORE_NAME = "Sarvaa"
    OTP_RESEND_SECONDS = 30
    OTP_TTL_SECONDS = 300
    OTP_MAX_ATTEMPTS = 5
    DEFAULT_LIMIT = 24
    MAX_LIMIT = 60


@pytest.fixture()
def app():
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        # seed the catalog through the real CLI command
        result = app.test_cli_runner().invoke(args=["seed"])
        assert result.exit_code == 0, result.output

        yield app

        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture()
def pid(app):
    """Look up a seeded product id by SKU, e.g. pid("R1")."""

    def _pid(sku: str) -> int:
        return Product.query.filter_by(sku=sku).one().id

    return _pid


def login(client, mobile="9876543210", name="Asha Rao", email="asha@example.com", code="4321"):
    """Run the OTP sign-in; creates the account on first use."""
    with mock.patch("sarvaa.modules.auth.routes.new_otp_code", return_value=code):
        r = client.post("/api/auth/otp", json={"mobile": mobile})
    assert r.status_code == 200, r.json

    r = client.post("/api/auth/otp/verify", json={"otp": code})
    assert r.status_code == 200, r.json
    if r.json["step"] == "DETAILS":
        r = client.post("/api/auth/details", json={"name": name, "email": email, "gender": "female"})
        assert r.status_code == 201, r.json
    return r


def checkout_to_payment(client, email="asha@example.com", direct_purchase=None, gift_message=None):
    body = {"direct_purchase": direct_purchase} if direct_purchase else None
    r = client.post("/api/checkout/start", json=body) if body else client.post("/api/checkout/start")
    assert r.status_code == 201, r.json

    r = client.post("/api/checkout/contact", json={"phone": "98765 43210", "email": email})
    assert r.status_code == 200, r.json

    shipping = {
        "first_name": "Asha",
        "last_name": "Rao",
        "flat": "12B Lotus Residency",
        "street": "MG Road",
        "pincode": "560001",
        "city": "Bengaluru",
        "state": "Karnataka",
    }
    if gift_message:
        shipping.update({"include_gift_message": True, "gift_message": gift_message})
    r = client.post("/api/checkout/shipping", json=shipping)
    assert r.status_code == 200, r.json
    return r
