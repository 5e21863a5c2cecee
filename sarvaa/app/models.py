from __future__ import annotations

from datetime import datetime
from sqlalchemy import UniqueConstraint, Index

from sarvaa.app.extensions import db


# Order lifecycle, in tracking order. Cancelled/Return Requested sit outside it.
STATUS_PENDING_PAYMENT = "Pending Payment"
STATUS_PLACED = "Placed"
STATUS_PROCESSING = "Processing"
STATUS_SHIPPED = "Shipped"
STATUS_OUT_FOR_DELIVERY = "Out for Delivery"
STATUS_DELIVERED = "Delivered"
STATUS_CANCELLED = "Cancelled"
STATUS_RETURN_REQUESTED = "Return Requested"

ORDER_STATUSES = (
    STATUS_PENDING_PAYMENT,
    STATUS_PLACED,
    STATUS_PROCESSING,
    STATUS_SHIPPED,
    STATUS_OUT_FOR_DELIVERY,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
    STATUS_RETURN_REQUESTED,
)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    mobile = db.Column(db.String(10), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, index=True)
    gender = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "mobile": self.mobile,
            "name": self.name,
            "email": self.email,
            "gender": self.gender,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class OtpChallenge(db.Model):
    """Pending sign-in code for a mobile; only an HMAC of the code is kept."""

    __tablename__ = "otp_challenges"

    id = db.Column(db.Integer, primary_key=True)
    mobile = db.Column(db.String(10), nullable=False, unique=True, index=True)
    code_digest = db.Column(db.String(64), nullable=False)
    failed_attempts = db.Column(db.Integer, nullable=False, default=0)
    issued_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    image_url = db.Column(db.String(1024), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    products = db.relationship("Product", back_populates="category")


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    sku = db.Column(db.String(64), nullable=False, unique=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    price_paise = db.Column(db.Integer, nullable=False)
    original_price_paise = db.Column(db.Integer, nullable=True)  # MRP when discounted
    image_url = db.Column(db.String(1024), nullable=True)
    gallery = db.Column(db.JSON, nullable=False, default=list)
    badge = db.Column(db.String(40), nullable=True)  # Best Seller | Trending | New
    rating = db.Column(db.Float, nullable=False, default=0.0)
    review_count = db.Column(db.Integer, nullable=False, default=0)
    material = db.Column(db.String(80), nullable=True)
    occasion = db.Column(db.String(80), nullable=True)
    sizes = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)
    category = db.relationship("Category", back_populates="products", lazy="joined")
    reviews = db.relationship("Review", back_populates="product", cascade="all, delete-orphan")

    @property
    def mrp_paise(self) -> int:
        return self.original_price_paise or self.price_paise

    @property
    def discount_percent(self) -> int | None:
        if not self.original_price_paise or self.original_price_paise <= self.price_paise:
            return None
        off = (self.original_price_paise - self.price_paise) / self.original_price_paise
        return int(round(off * 100))


class Review(db.Model):
    __tablename__ = "reviews"

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_email = db.Column(db.String(255), nullable=False)
    rating = db.Column(db.Integer, nullable=False)  # 1..5
    review_text = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    product = db.relationship("Product", back_populates="reviews")

    __table_args__ = (
        Index("ix_reviews_product_created", "product_id", "created_at"),
    )


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    customer_phone = db.Column(db.String(20), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False, index=True)
    shipping_address = db.Column(db.JSON, nullable=False)
    gift_message = db.Column(db.Text, nullable=True)

    payment_method = db.Column(db.String(20), nullable=False)  # online | cod
    status = db.Column(db.String(30), nullable=False, default=STATUS_PLACED)

    subtotal_paise = db.Column(db.Integer, nullable=False, default=0)
    discount_paise = db.Column(db.Integer, nullable=False, default=0)
    shipping_fee_paise = db.Column(db.Integer, nullable=False, default=0)
    cod_charge_paise = db.Column(db.Integer, nullable=False, default=0)
    total_paise = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    items = db.relationship("OrderItem", backref="order", lazy=True, cascade="all, delete-orphan")


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price_at_purchase_paise = db.Column(db.Integer, nullable=False)
    size = db.Column(db.String(20), nullable=True)

    product = db.relationship("Product", lazy="joined")

    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_item_order_product"),
    )


class HeroSlide(db.Model):
    __tablename__ = "hero_slides"

    id = db.Column(db.Integer, primary_key=True)
    image_url = db.Column(db.String(1024), nullable=False)
    overline = db.Column(db.String(80), nullable=True)
    title = db.Column(db.String(120), nullable=False)
    subtitle = db.Column(db.String(255), nullable=True)
    cta_text = db.Column(db.String(40), nullable=True)
    cta_link = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)


class CorporateInquiry(db.Model):
    __tablename__ = "corporate_inquiries"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
