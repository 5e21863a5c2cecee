from __future__ import annotations

from flask import Blueprint, current_app, request, session

from sarvaa.app.extensions import db
from sarvaa.app.models import CorporateInquiry, HeroSlide
from sarvaa.app.common.errors import abort_json
from sarvaa.app.common.validation import digits_only, get_json, require_fields, str_field
from sarvaa.modules.catalog.queries import (
    PRICE_BAND_LABELS,
    best_sellers,
    category_list,
    new_arrivals,
    product_summary,
)
from sarvaa.modules.catalog.routes import filter_from_args, paged_products

bp = Blueprint("marketing", __name__)

MAX_HERO_SLIDES = 5

# Served when no slide is configured in the database
STATIC_SLIDES = [
    {
        "id": 1,
        "image_url": "https://images.unsplash.com/photo-1602751584552-8ba73aad10e1?w=1600&h=900&fit=crop",
        "overline": "New Collection",
        "title": "Ethereal Silver",
        "subtitle": "Hand-polished 925 Sterling Silver.",
        "cta_text": "Shop Now",
        "cta_link": "/category/new-arrivals",
    },
    {
        "id": 2,
        "image_url": "https://images.unsplash.com/photo-1573408301185-9146fe634ad0?w=1600&h=900&fit=crop",
        "overline": "Best Sellers",
        "title": "The Minimalist Edit",
        "subtitle": "Understated elegance for every day.",
        "cta_text": "Explore",
        "cta_link": "/category/rings",
    },
    {
        "id": 3,
        "image_url": "https://images.unsplash.com/photo-1611591437281-460bfbe1220a?w=1600&h=900&fit=crop",
        "overline": "Limited Edition",
        "title": "Bridal & Occasion",
        "subtitle": "Statement pieces for forever memories.",
        "cta_text": "Discover",
        "cta_link": "/category/necklaces",
    },
]

# "filter" is the Product.occasion value for /api/products?occasion=
OCCASIONS = [
    {"slug": "wedding", "title": "Wedding", "filter": "Wedding"},
    {"slug": "engagement", "title": "Engagement", "filter": "Engagement"},
    {"slug": "party", "title": "Party", "filter": "Party"},
    {"slug": "daily", "title": "Daily Wear", "filter": "Daily Wear"},
    {"slug": "festival", "title": "Festival", "filter": "Festival"},
    {"slug": "office", "title": "Office Wear", "filter": "Office Wear"},
]

POPULAR_SEARCHES = [
    "Diamond Rings", "Gold Chains", "Bridal Sets", "Platinum Bands",
    "Mangalsutra", "Stud Earrings", "Chokers", "Silver Rings", "Couple Rings",
]
CATEGORY_LINKS = ["Rings", "Earrings", "Necklaces", "Bracelets", "Gifts", "Coins"]

MAX_SEARCH_SUGGESTIONS = 5
MAX_CATEGORY_SUGGESTIONS = 4
MAX_TRENDING = 3

PINCODE_KEY = "pincode"


def hero_slides() -> list[dict]:
    rows = (
        HeroSlide.query.filter(HeroSlide.is_active.is_(True))
        .order_by(HeroSlide.sort_order.asc(), HeroSlide.id.asc())
        .limit(MAX_HERO_SLIDES)
        .all()
    )
    if not rows:
        return [dict(s) for s in STATIC_SLIDES]
    return [
        {
            "id": s.id,
            "image_url": s.image_url,
            "overline": s.overline,
            "title": s.title,
            "subtitle": s.subtitle,
            "cta_text": s.cta_text,
            "cta_link": s.cta_link,
        }
        for s in rows
    ]


def _matching(options: list[str], query: str, limit: int) -> list[str]:
    if not query:
        return options[:limit]
    needle = query.lower()
    return [o for o in options if needle in o.lower()][:limit]


@bp.get("/hero-slides")
def list_hero_slides():
    return {"items": hero_slides()}, 200


@bp.get("/home")
def home():
    """GET /api/home - Everything the landing page shows."""
    return {
        "hero_slides": hero_slides(),
        "categories": category_list(),
        "best_sellers": [product_summary(p) for p in best_sellers()],
        "new_arrivals": [product_summary(p) for p in new_arrivals()],
        "price_bands": [{"slug": slug, "label": label} for slug, label in PRICE_BAND_LABELS.items()],
        "occasions": OCCASIONS,
    }, 200


@bp.post("/corporate/inquiries")
def corporate_inquiry():
    """POST /api/corporate/inquiries - Corporate gifting lead: {"email"}"""
    data = get_json()
    require_fields(data, ["email"])
    email = str_field(data, "email").lower()
    if "@" not in email:
        abort_json(400, "validation_error", "Invalid email")

    inquiry = CorporateInquiry(email=email)
    db.session.add(inquiry)
    db.session.commit()
    current_app.logger.info("corporate inquiry id=%s", inquiry.id)
    return {"id": inquiry.id, "message": "received"}, 201


@bp.get("/search/suggestions")
def search_suggestions():
    """GET /api/search/suggestions?q= - Type-ahead panel."""
    query = (request.args.get("q") or "").strip()
    return {
        "query": query,
        "popular_searches": _matching(POPULAR_SEARCHES, query, MAX_SEARCH_SUGGESTIONS),
        "categories": _matching(CATEGORY_LINKS, query, MAX_CATEGORY_SUGGESTIONS),
        "trending": [product_summary(p) for p in best_sellers(limit=MAX_TRENDING)],
    }, 200


@bp.get("/search")
def search():
    """GET /api/search?q= - Name or category match; same filters as /products."""
    query = (request.args.get("q") or "").strip()
    data = paged_products(filter_from_args(q=query))
    data["query"] = query
    return data, 200


@bp.get("/pincode")
def get_pincode():
    return {"pincode": session.get(PINCODE_KEY)}, 200


@bp.put("/pincode")
def save_pincode():
    data = get_json()
    raw = str_field(data, "pincode")
    pincode = digits_only(raw)
    if len(pincode) != 6 or len(raw) != 6:
        abort_json(400, "validation_error", "Pincode must be 6 digits")
    session[PINCODE_KEY] = pincode
    return {"pincode": pincode}, 200
