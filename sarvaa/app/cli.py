from __future__ import annotations

import click
from flask import Blueprint, current_app

from sarvaa.app.extensions import db
from sarvaa.app.models import Category, HeroSlide, Order, Product, ORDER_STATUSES

cli_bp = Blueprint("cli", __name__, cli_group=None)

IMG = "https://images.unsplash.com/photo-{}?w=400&h=400&fit=crop"
RING_SIZES = ["6", "7", "8", "9", "10", "11"]

CATEGORIES = [
    ("rings", "Rings", "1605100804763-247f67b3557e"),
    ("necklaces", "Necklaces & Pendants", "1599643478518-a784e5dc4c8f"),
    ("earrings", "Earrings", "1535632066927-ab7c9ab60908"),
    ("bracelets", "Bracelets & Bangles", "1611591437281-460bfbe1220a"),
]

# sku, name, category, price, original price, image, badge, rating, reviews, material, occasion
PRODUCTS = [
    ("r1", "Twisted Silver Band", "rings", 1299, 1799, "1605100804763-247f67b3557e", "Best Seller", 4.8, 124, "925 Sterling Silver", "Daily Wear"),
    ("r2", "Minimalist Stacking Ring", "rings", 899, None, "1603561591411-07134e71a2a9", None, 4.6, 89, "925 Sterling Silver", "Office Wear"),
    ("r3", "Celestial Moon Ring", "rings", 1599, None, "1611652022419-a9419f74343d", "New", 4.9, 32, "Oxidized Silver", "Party"),
    ("r4", "Vintage Filigree Ring", "rings", 2199, 2799, "1602751584552-8ba73aad10e1", None, 4.7, 67, "Oxidized Silver", "Wedding"),
    ("n1", "Dainty Chain Pendant", "necklaces", 1499, None, "1599643478518-a784e5dc4c8f", "Trending", 4.9, 156, "925 Sterling Silver", "Daily Wear"),
    ("n2", "Layered Silver Necklace", "necklaces", 2499, 2999, "1515562141589-67f0d569b03e", None, 4.7, 98, "925 Sterling Silver", "Party"),
    ("n3", "Heart Locket Pendant", "necklaces", 1899, None, "1611591437281-460bfbe1220a", "New", 4.5, 45, "Rose Gold Plated", "Gifting"),
    ("n4", "Pearl Drop Necklace", "necklaces", 3299, None, "1602173574767-37ac01994b2a", None, 4.8, 73, "925 Sterling Silver", "Wedding"),
    ("e1", "Silver Hoop Earrings", "earrings", 999, None, "1535632066927-ab7c9ab60908", "Best Seller", 4.8, 203, "925 Sterling Silver", "Daily Wear"),
    ("e2", "Crystal Stud Earrings", "earrings", 799, 1099, "1630019852942-f89202989a59", None, 4.6, 145, "925 Sterling Silver", "Office Wear"),
    ("e3", "Dangling Leaf Earrings", "earrings", 1399, None, "1617038220319-276d3cfab638", "New", 4.7, 28, "Gold Plated", "Party"),
    ("e4", "Geometric Drop Earrings", "earrings", 1199, None, "1588444837495-c6cfeb53f32d", None, 4.5, 61, "Rose Gold Plated", "Office Wear"),
    ("b1", "Silver Chain Bracelet", "bracelets", 1699, None, "1573408301185-9146fe634ad0", "Trending", 4.9, 87, "925 Sterling Silver", "Daily Wear"),
    ("b2", "Charm Bangle Set", "bracelets", 2199, 2799, "1611591437281-460bfbe1220a", None, 4.7, 112, "925 Sterling Silver", "Gifting"),
    ("b3", "Minimalist Cuff Bracelet", "bracelets", 1899, None, "1600721391776-b5cd0e0048f9", "New", 4.6, 34, "Oxidized Silver", "Office Wear"),
    ("b4", "Woven Silver Bracelet", "bracelets", 1499, None, "1635767798638-3e25273a8236", None, 4.8, 56, "925 Sterling Silver", "Party"),
]

GALLERY = [
    "https://images.unsplash.com/photo-1611591437281-460bfbe1220a?w=800&q=80",
    "https://images.unsplash.com/photo-1515562141589-67f0d569b03e?w=800&q=80",
    "https://images.unsplash.com/photo-1599643478518-a784e5dc4c8f?w=800&q=80",
]


@cli_bp.cli.command("init-db")
def init_db() -> None:
    """Create tables."""
    db.create_all()
    click.echo("DB initialized (tables created).")


@cli_bp.cli.command("seed")
def seed_data() -> None:
    """Seed the jewellery catalog.

    Safe to run multiple times; it will no-op if data exists.
    """
    db.create_all()

    if Category.query.count() == 0:
        for order, (slug, name, photo) in enumerate(CATEGORIES):
            db.session.add(Category(slug=slug, name=name, image_url=IMG.format(photo), sort_order=order))
        db.session.flush()

    if Product.query.count() == 0:
        by_slug = {c.slug: c for c in Category.query.all()}
        for sku, name, cat, price, mrp, photo, badge, rating, reviews, material, occasion in PRODUCTS:
            db.session.add(
                Product(
                    sku=sku.upper(),
                    name=name,
                    description=f"Handcrafted {name.lower()} in {material}.",
                    category=by_slug[cat],
                    price_paise=price * 100,
                    original_price_paise=mrp * 100 if mrp else None,
                    image_url=IMG.format(photo),
                    gallery=list(GALLERY),
                    badge=badge,
                    rating=rating,
                    review_count=reviews,
                    material=material,
                    occasion=occasion,
                    sizes=list(RING_SIZES) if cat == "rings" else [],
                )
            )

    db.session.commit()
    click.echo(f"Seed complete: {Category.query.count()} categories, {Product.query.count()} products.")


@cli_bp.cli.command("add-hero-slide")
@click.argument("title")
@click.argument("image_url")
@click.option("--overline", default=None)
@click.option("--subtitle", default=None)
@click.option("--cta-text", default="Shop Now")
@click.option("--cta-link", default="/")
@click.option("--sort-order", default=0, type=int)
def add_hero_slide(title, image_url, overline, subtitle, cta_text, cta_link, sort_order) -> None:
    """Add an active home page hero slide."""
    slide = HeroSlide(
        title=title,
        image_url=image_url,
        overline=overline,
        subtitle=subtitle,
        cta_text=cta_text,
        cta_link=cta_link,
        sort_order=sort_order,
    )
    db.session.add(slide)
    db.session.commit()
    click.echo(f"Hero slide {slide.id} added.")


@cli_bp.cli.command("set-order-status")
@click.argument("order_id", type=int)
@click.argument("status", type=click.Choice(ORDER_STATUSES))
def set_order_status(order_id: int, status: str) -> None:
    """Move an order along fulfilment (Shipped, Delivered, ...)."""
    order = db.session.get(Order, order_id)
    if not order:
        raise click.ClickException(f"Order {order_id} not found")
    old = order.status
    order.status = status
    db.session.commit()
    current_app.logger.info("order %s status %s -> %s (operator)", order_id, old, status)
    click.echo(f"Order {order_id}: {old} -> {status}")
