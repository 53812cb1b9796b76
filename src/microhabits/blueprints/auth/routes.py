"""Sign-up, sign-in and session routes."""

from __future__ import annotations

from flask import jsonify, request, session

from ...extensions import current_user, get_services
from ...services import auth
from . import bp


def _credentials() -> tuple[str, str]:
    payload = request.get_json(silent=True) or {}
    return str(payload.get("email") or ""), str(payload.get("password") or "")


def _start_session(user) -> None:
    session.clear()
    session["user_id"] = user.id


@bp.post("/signup")
def signup():
    """Create an account and sign it in."""

    services = get_services()
    email, password = _credentials()
    payload = request.get_json(silent=True) or {}
    user = auth.sign_up(
        email=email,
        password=password,
        session_factory=services.session_factory,
        limiter=services.limiter,
        timezone_name=str(payload.get("timezone") or services.config.DEFAULT_TIMEZONE),
    )
    _start_session(user)
    return jsonify({"user": user.as_dict()}), 201


@bp.post("/login")
def login():
    services = get_services()
    email, password = _credentials()
    user = auth.sign_in(
        email=email,
        password=password,
        session_factory=services.session_factory,
        limiter=services.limiter,
    )
    _start_session(user)
    return jsonify({"user": user.as_dict()})


@bp.post("/logout")
def logout():
    session.clear()
    return "", 204


@bp.get("/me")
def me():
    user = current_user()
    if user is None:
        return jsonify({"error": "Authentication required"}), 401
    return jsonify({"user": user.as_dict()})


@bp.get("/exists")
def exists():
    """Report whether an email is already registered."""

    email = request.args.get("email", "")
    registered = auth.email_exists(email, session_factory=get_services().session_factory)
    return jsonify({"exists": registered})
