"""Catalog filtering, sorting and serialization shared by the catalog,
search and home endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_

from sarvaa.app.extensions import db
from sarvaa.app.models import Category, Product, Review
from sarvaa.app.common.errors import validation_error

RUPEE = 100  # paise

# Shop-by-price bands as [low, high) in paise; None means unbounded.
PRICE_BANDS: Dict[str, Tuple[Optional[int], Optional[int]]] = {
    "under-999": (None, 1000 * RUPEE),
    "1000-2999": (1000 * RUPEE, 3000 * RUPEE),
    "3000-4999": (3000 * RUPEE, 5000 * RUPEE),
    "above-5000": (5000 * RUPEE, None),
}

PRICE_BAND_LABELS = {
    "under-999": "Under ₹999",
    "1000-2999": "₹1,000 - ₹2,999",
    "3000-4999": "₹3,000 - ₹4,999",
    "above-5000": "Above ₹5,000",
}

SORTS = ("recommended", "newest", "price_low", "price_high")

BEST_SELLER_BADGES = ("Best Seller", "Trending")
NEW_BADGE = "New"

# Pseudo category slugs that do not exist as rows
ALL_SLUG = "all"
NEW_ARRIVALS_SLUG = "new-arrivals"


@dataclass
class ProductFilter:
    category: str = ""
    q: str = ""
    price_bands: List[str] = field(default_factory=list)
    materials: List[str] = field(default_factory=list)
    occasions: List[str] = field(default_factory=list)
    sort: str = "recommended"

    def validate(self) -> "ProductFilter":
        if self.sort not in SORTS:
            validation_error("Unknown sort option", sort=self.sort, allowed=list(SORTS))
        unknown = [b for b in self.price_bands if b not in PRICE_BANDS]
        if unknown:
            validation_error("Unknown price band", price=unknown, allowed=list(PRICE_BANDS))
        return self


def build_query(f: ProductFilter):
    """Active products matching every given filter, in the requested order."""
    q = Product.query.join(Category).filter(Product.is_active.is_(True))

    if f.category == NEW_ARRIVALS_SLUG:
        q = q.filter(Product.badge == NEW_BADGE)
    elif f.category and f.category != ALL_SLUG:
        q = q.filter(Category.slug == f.category.lower())

    if f.q:
        # autoescape: "%" and "_" in the text match literally
        q = q.filter(
            or_(
                Product.name.icontains(f.q, autoescape=True),
                Category.slug.icontains(f.q, autoescape=True),
                Category.name.icontains(f.q, autoescape=True),
            )
        )

    if f.price_bands:
        clauses = []
        for band in f.price_bands:
            low, high = PRICE_BANDS[band]
            parts = []
            if low is not None:
                parts.append(Product.price_paise >= low)
            if high is not None:
                parts.append(Product.price_paise < high)
            clauses.append(and_(*parts))
        q = q.filter(or_(*clauses))

    if f.materials:
        q = q.filter(func.lower(Product.material).in_([m.lower() for m in f.materials]))
    if f.occasions:
        q = q.filter(func.lower(Product.occasion).in_([o.lower() for o in f.occasions]))

    if f.sort == "price_low":
        q = q.order_by(Product.price_paise.asc(), Product.id.asc())
    elif f.sort == "price_high":
        q = q.order_by(Product.price_paise.desc(), Product.id.asc())
    elif f.sort == "newest":
        q = q.order_by(Product.created_at.desc(), Product.id.desc())
    else:
        q = q.order_by(Product.id.asc())
    return q


def best_sellers(limit: int | None = None) -> List[Product]:
    q = (
        Product.query.filter(Product.is_active.is_(True), Product.badge.in_(BEST_SELLER_BADGES))
        .order_by(Product.id.asc())
    )
    return q.limit(limit).all() if limit else q.all()


def new_arrivals(limit: int | None = None) -> List[Product]:
    q = Product.query.filter(Product.is_active.is_(True), Product.badge == NEW_BADGE).order_by(Product.id.asc())
    return q.limit(limit).all() if limit else q.all()


def get_active_product(product_id: int) -> Optional[Product]:
    p = db.session.get(Product, product_id)
    if not p or not p.is_active:
        return None
    return p


def product_summary(p: Product) -> dict:
    return {
        "id": p.id,
        "sku": p.sku,
        "name": p.name,
        "category": p.category.slug if p.category else None,
        "price_paise": p.price_paise,
        "original_price_paise": p.original_price_paise,
        "discount_percent": p.discount_percent,
        "image_url": p.image_url,
        "badge": p.badge,
        "rating": p.rating,
        "review_count": p.review_count,
    }


def product_detail(p: Product) -> dict:
    avg_rating, count = (
        db.session.query(func.avg(Review.rating), func.count(Review.id))
        .filter(Review.product_id == p.id)
        .one()
    )
    gallery = [p.image_url] if p.image_url else []
    gallery += [url for url in (p.gallery or []) if url and url not in gallery]

    data = product_summary(p)
    data.update(
        {
            "description": p.description,
            "category_name": p.category.name if p.category else None,
            "material": p.material,
            "occasion": p.occasion,
            "sizes": list(p.sizes or []),
            "gallery": gallery,
            "reviews_summary": {
                "avg_rating": round(float(avg_rating), 2) if avg_rating is not None else None,
                "count": int(count or 0),
            },
        }
    )
    return data


def category_counts() -> Dict[int, int]:
    rows = (
        db.session.query(Product.category_id, func.count(Product.id))
        .filter(Product.is_active.is_(True))
        .group_by(Product.category_id)
        .all()
    )
    return {cid: n for cid, n in rows}


def category_list() -> List[dict]:
    counts = category_counts()
    return [
        {
            "id": c.id,
            "slug": c.slug,
            "name": c.name,
            "image_url": c.image_url,
            "count": counts.get(c.id, 0),
        }
        for c in Category.query.order_by(Category.sort_order.asc(), Category.id.asc()).all()
    ]
