"""Session-based login for shoppers.

Shoppers sign in with a phone OTP; after that we keep only ``user_id`` in
the Flask session, next to the cart and wishlist.
"""

from functools import wraps
from typing import Callable, TypeVar, Any, Optional

from flask import session

from sarvaa.app.extensions import db
from sarvaa.app.models import User
from sarvaa.app.common.errors import abort_json

F = TypeVar("F", bound=Callable[..., Any])


def current_user() -> Optional[User]:
    uid = session.get("user_id")
    if not uid:
        return None
    return db.session.get(User, uid)


def require_user() -> User:
    user = current_user()
    if not user:
        abort_json(401, "unauthorized", "Authentication required")
    return user


def login_required(fn: F) -> F:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        require_user()
        return fn(*args, **kwargs)

    return wrapper  # type: ignore
