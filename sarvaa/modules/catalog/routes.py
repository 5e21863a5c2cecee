from __future__ import annotations

from flask import Blueprint, current_app, request

from sarvaa.app.extensions import db
from sarvaa.app.models import Category, Review
from sarvaa.app.common.errors import abort_json, not_found
from sarvaa.app.common.validation import digits_only, get_json, int_field, query_int, str_field
from sarvaa.app.common.auth import require_user
from sarvaa.modules.catalog.queries import (
    ALL_SLUG,
    NEW_ARRIVALS_SLUG,
    ProductFilter,
    best_sellers,
    build_query,
    category_list,
    get_active_product,
    new_arrivals,
    product_detail,
    product_summary,
)

bp = Blueprint("catalog", __name__)


def filter_from_args(**overrides) -> ProductFilter:
    f = ProductFilter(
        category=(request.args.get("category") or "").strip(),
        q=(request.args.get("q") or "").strip(),
        price_bands=[v.strip() for v in request.args.getlist("price") if v.strip()],
        materials=[v.strip() for v in request.args.getlist("material") if v.strip()],
        occasions=[v.strip() for v in request.args.getlist("occasion") if v.strip()],
        sort=(request.args.get("sort") or "recommended").strip(),
    )
    for key, value in overrides.items():
        setattr(f, key, value)
    return f.validate()


def paged_products(f: ProductFilter) -> dict:
    limit = query_int("limit", current_app.config["DEFAULT_LIMIT"])
    offset = query_int("offset", 0)
    limit = max(1, min(limit, current_app.config["MAX_LIMIT"]))
    offset = max(0, offset)

    q = build_query(f)
    total = q.count()
    items = q.limit(limit).offset(offset).all()
    return {
        "items": [product_summary(p) for p in items],
        "paging": {"limit": limit, "offset": offset, "total": total},
        "sort": f.sort,
    }


@bp.get("/categories")
def list_categories():
    """GET /api/categories - Categories with active product counts."""
    return {"items": category_list()}, 200


@bp.get("/categories/<slug>/products")
def category_products(slug: str):
    """GET /api/categories/<slug>/products - Category page listing.

    ``all`` and ``new-arrivals`` are accepted besides real category slugs.
    """
    slug = slug.lower()
    if slug == NEW_ARRIVALS_SLUG:
        title = "New Arrivals"
    elif slug == ALL_SLUG:
        title = "All Jewellery"
    else:
        category = Category.query.filter_by(slug=slug).first()
        if not category:
            not_found("Category")
        title = category.name

    data = paged_products(filter_from_args(category=slug))
    data["category"] = {"slug": slug, "title": title}
    return data, 200


@bp.get("/products")
def list_products():
    """GET /api/products - Filtered, sorted product listing.

    Query params:
      - category, q
      - price (repeatable): under-999 | 1000-2999 | 3000-4999 | above-5000
      - material, occasion (repeatable)
      - sort: recommended | newest | price_low | price_high
      - limit, offset
    """
    return paged_products(filter_from_args()), 200


@bp.get("/products/best-sellers")
def list_best_sellers():
    return {"items": [product_summary(p) for p in best_sellers()]}, 200


@bp.get("/products/new-arrivals")
def list_new_arrivals():
    return {"items": [product_summary(p) for p in new_arrivals()]}, 200


@bp.get("/products/<int:product_id>")
def get_product(product_id: int):
    """GET /api/products/<id> - Product details with reviews summary."""
    p = get_active_product(product_id)
    if not p:
        not_found("Product")
    return product_detail(p), 200


@bp.get("/products/<int:product_id>/delivery")
def check_delivery(product_id: int):
    """GET /api/products/<id>/delivery?pincode=NNNNNN"""
    if not get_active_product(product_id):
        not_found("Product")

    raw = request.args.get("pincode") or ""
    pincode = digits_only(raw)
    if len(pincode) != 6 or len(raw.strip()) != 6:
        abort_json(400, "validation_error", "Pincode must be 6 digits")

    return {
        "product_id": product_id,
        "pincode": pincode,
        "deliverable": True,
        "message": current_app.config["DELIVERY_ETA"],
    }, 200


@bp.get("/products/<int:product_id>/reviews")
def list_reviews(product_id: int):
    if not get_active_product(product_id):
        not_found("Product")

    reviews = (
        Review.query.filter_by(product_id=product_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(100)
        .all()
    )
    return {
        "product_id": product_id,
        "items": [review_dict(r) for r in reviews],
    }, 200


@bp.post("/products/<int:product_id>/reviews")
def add_review(product_id: int):
    user = require_user()
    if not get_active_product(product_id):
        not_found("Product")

    data = get_json()
    review = create_review(product_id, user.email, data)
    return {"review": review_dict(review)}, 201


def create_review(product_id: int, user_email: str, data: dict) -> Review:
    rating = int_field(data, "rating")
    if rating < 1 or rating > 5:
        abort_json(400, "validation_error", "Rating must be between 1 and 5")

    review = Review(
        product_id=product_id,
        user_email=user_email,
        rating=rating,
        review_text=str_field(data, "review_text") or None,
    )
    db.session.add(review)
    db.session.commit()
    return review


def review_dict(r: Review) -> dict:
    return {
        "id": r.id,
        "product_id": r.product_id,
        "user_email": r.user_email,
        "rating": r.rating,
        "review_text": r.review_text,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }
