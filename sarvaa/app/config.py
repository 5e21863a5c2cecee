import os

from dotenv import load_dotenv

load_dotenv()


def _digits(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///sarvaa.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # Comma-separated list
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "8080"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Catalog paging defaults
    DEFAULT_LIMIT = int(os.getenv("DEFAULT_LIMIT", "24"))
    MAX_LIMIT = int(os.getenv("MAX_LIMIT", "60"))

    STORE_NAME = os.getenv("STORE_NAME", "Sarvaa")
    # Orders are confirmed over WhatsApp with this business number (country code included)
    WHATSAPP_NUMBER = _digits(os.getenv("WHATSAPP_NUMBER", "919999999999"))
    DELIVERY_ETA = os.getenv("DELIVERY_ETA", "Delivery in 3-5 business days")

    OTP_RESEND_SECONDS = int(os.getenv("OTP_RESEND_SECONDS", "30"))
    OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "300"))
    OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))
