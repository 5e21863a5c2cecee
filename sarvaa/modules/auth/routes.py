"""Phone + OTP sign-in.

PHONE -> OTP -> (DETAILS for first-time shoppers) -> signed in. SMS delivery
is handled outside this service; the issued code is only logged at DEBUG.

The pending code lives server-side as an HMAC in ``otp_challenges``; the
session only remembers which mobile is signing in. A challenge expires after
``OTP_TTL_SECONDS`` and locks after ``OTP_MAX_ATTEMPTS`` wrong guesses. Failed
attempts carry over resends until the challenge expires.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta

from flask import Blueprint, current_app, session

from sarvaa.app.extensions import db
from sarvaa.app.models import OtpChallenge, User
from sarvaa.app.common.validation import digits_only, get_json, require_fields, str_field
from sarvaa.app.common.errors import abort_json
from sarvaa.app.common.auth import require_user

bp = Blueprint("auth", __name__)

OTP_KEY = "otp_mobile"
PENDING_MOBILE_KEY = "pending_mobile"
GENDERS = ("female", "male", "other")


def new_otp_code() -> str:
    return f"{secrets.randbelow(10_000):04d}"


def otp_digest(mobile: str, code: str) -> str:
    key = str(current_app.config["SECRET_KEY"]).encode("utf-8")
    return hmac.new(key, f"{mobile}:{code}".encode("utf-8"), hashlib.sha256).hexdigest()


def _expires_at(challenge: OtpChallenge) -> datetime:
    return challenge.issued_at + timedelta(seconds=current_app.config["OTP_TTL_SECONDS"])


def _seconds_until(moment: datetime, now: datetime) -> int:
    return max(1, int((moment - now).total_seconds()))


def _login(user: User) -> None:
    session.pop(OTP_KEY, None)
    session.pop(PENDING_MOBILE_KEY, None)
    session["user_id"] = user.id


@bp.post("/auth/otp")
def request_otp():
    """POST /api/auth/otp - {"mobile": "9876543210"}"""
    data = get_json()
    raw = str_field(data, "mobile")
    mobile = digits_only(raw)
    if len(mobile) != 10 or len(raw) != 10:
        abort_json(400, "validation_error", "Please enter a valid 10-digit mobile number.")

    wait = current_app.config["OTP_RESEND_SECONDS"]
    now = datetime.utcnow()
    challenge = OtpChallenge.query.filter_by(mobile=mobile).first()

    if challenge and now >= _expires_at(challenge):
        challenge.failed_attempts = 0
    elif challenge:
        if challenge.failed_attempts >= current_app.config["OTP_MAX_ATTEMPTS"]:
            abort_json(
                429,
                "otp_locked",
                "Too many incorrect codes. Please try again later.",
                {"resend_in": _seconds_until(_expires_at(challenge), now)},
            )
        resend_at = challenge.issued_at + timedelta(seconds=wait)
        if now < resend_at:
            abort_json(
                429,
                "otp_throttled",
                "Please wait before requesting a new code",
                {"resend_in": _seconds_until(resend_at, now)},
            )
    else:
        challenge = OtpChallenge(mobile=mobile, failed_attempts=0)
        db.session.add(challenge)

    code = new_otp_code()
    challenge.code_digest = otp_digest(mobile, code)
    challenge.issued_at = now
    db.session.commit()

    session[OTP_KEY] = mobile
    session.pop(PENDING_MOBILE_KEY, None)
    current_app.logger.info("otp issued for mobile ending %s", mobile[-4:])
    current_app.logger.debug("otp code for %s: %s", mobile, code)
    return {"step": "OTP", "mobile": mobile, "resend_in": wait}, 200


@bp.post("/auth/otp/verify")
def verify_otp():
    """POST /api/auth/otp/verify - {"otp": "1234"}"""
    data = get_json()
    otp = str_field(data, "otp")
    if len(otp) != 4 or not otp.isdigit():
        abort_json(400, "validation_error", "Please enter the complete 4-digit code.")

    mobile = session.get(OTP_KEY)
    challenge = OtpChallenge.query.filter_by(mobile=mobile).first() if mobile else None
    if not challenge:
        abort_json(409, "otp_not_requested", "Request a code first")

    now = datetime.utcnow()
    max_attempts = current_app.config["OTP_MAX_ATTEMPTS"]
    if now >= _expires_at(challenge):
        abort_json(401, "otp_expired", "This code has expired. Please request a new one.")
    if challenge.failed_attempts >= max_attempts:
        abort_json(429, "otp_locked", "Too many incorrect codes. Please try again later.")

    if not hmac.compare_digest(otp_digest(mobile, otp), challenge.code_digest):
        challenge.failed_attempts += 1
        db.session.commit()
        left = max_attempts - challenge.failed_attempts
        current_app.logger.info("otp mismatch for mobile ending %s (%s left)", mobile[-4:], left)
        if left <= 0:
            abort_json(429, "otp_locked", "Too many incorrect codes. Please try again later.")
        abort_json(401, "invalid_otp", "Incorrect code", {"attempts_left": left})

    db.session.delete(challenge)
    db.session.commit()
    session.pop(OTP_KEY, None)

    user = User.query.filter_by(mobile=mobile).first()
    if user:
        _login(user)
        return {"step": "DONE", "user": user.to_dict()}, 200

    session[PENDING_MOBILE_KEY] = mobile
    return {"step": "DETAILS", "mobile": mobile}, 200


@bp.post("/auth/details")
def save_details():
    """POST /api/auth/details - first-time profile: {"name", "email", "gender"?}"""
    mobile = session.get(PENDING_MOBILE_KEY)
    if not mobile:
        abort_json(409, "otp_not_verified", "Verify your mobile number first")

    data = get_json()
    require_fields(data, ["name", "email"])
    email = str_field(data, "email").lower()
    if "@" not in email:
        abort_json(400, "validation_error", "Invalid email")
    gender = str_field(data, "gender").lower() or None
    if gender and gender not in GENDERS:
        abort_json(400, "validation_error", "Unknown gender", {"allowed": list(GENDERS)})

    # Another tab may have finished sign-up for this number already
    user = User.query.filter_by(mobile=mobile).first()
    if not user:
        user = User(mobile=mobile, name=str_field(data, "name"), email=email, gender=gender)
        db.session.add(user)
        db.session.commit()
        current_app.logger.info("account created id=%s", user.id)

    _login(user)
    return {"step": "DONE", "user": user.to_dict()}, 201


@bp.post("/auth/logout")
def logout():
    """POST /api/auth/logout - Ends the login; cart and wishlist stay."""
    session.pop("user_id", None)
    return {"message": "logged_out"}, 200


@bp.get("/users/me")
def me():
    """GET /api/users/me - Current signed-in shopper."""
    return require_user().to_dict(), 200
