from flask import Flask, make_response

from sarvaa.modules.auth.routes import bp as auth_bp
from sarvaa.modules.catalog.routes import bp as catalog_bp
from sarvaa.modules.cart.routes import bp as cart_bp
from sarvaa.modules.checkout.routes import bp as checkout_bp
from sarvaa.modules.orders.routes import bp as orders_bp
from sarvaa.modules.marketing.routes import bp as marketing_bp

ALLOWED_METHODS = "GET,POST,PUT,PATCH,DELETE,OPTIONS"


def register_api_blueprints(app: Flask) -> None:
    for bp in (auth_bp, catalog_bp, cart_bp, checkout_bp, orders_bp, marketing_bp):
        app.register_blueprint(bp, url_prefix="/api")

    # Root API document
    @app.get("/api")
    def api_index():
        return {
            "name": f"{app.config['STORE_NAME']} Storefront API",
            "version": "0.1.0",
            "endpoints": {
                "auth": ["/auth/otp", "/auth/otp/verify", "/auth/details", "/auth/logout", "/users/me"],
                "catalog": [
                    "/categories",
                    "/categories/<slug>/products",
                    "/products",
                    "/products/best-sellers",
                    "/products/new-arrivals",
                    "/products/<id>",
                    "/products/<id>/delivery",
                    "/products/<id>/reviews",
                ],
                "cart": ["/cart", "/cart/items", "/cart/items/<product_id>", "/wishlist", "/wishlist/toggle"],
                "checkout": [
                    "/checkout",
                    "/checkout/start",
                    "/checkout/contact",
                    "/checkout/shipping",
                    "/checkout/payment",
                    "/checkout/step",
                    "/checkout/place",
                ],
                "orders": ["/orders", "/orders/<id>", "/orders/<id>/cancel", "/orders/<id>/return"],
                "marketing": ["/home", "/hero-slides", "/corporate/inquiries", "/search", "/search/suggestions", "/pincode"],
            },
        }, 200

    @app.route("/api/options", methods=["OPTIONS"])
    def api_options():
        resp = make_response("", 204)
        resp.headers["Allow"] = ALLOWED_METHODS
        resp.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
        resp.headers["Access-Control-Allow-Headers"] = "Content-Type, X-Request-ID"
        return resp
