from flask import Blueprint, request, jsonify, current_app
from flask_limiter.util import get_remote_address
import logging
from sqlalchemy import select
from extensions import limiter
from models import db
from models.user import User
from quickbuy.version import API_PREFIX
from quickbuy.utils.auth import bearer_token
from quickbuy.schemas.auth import LoginRequest, RefreshRequest
from quickbuy.utils import (
    error,
    validate_schema,
    create_access_token,
    create_refresh_token,
    decode_token,
    TokenError,
)


auth_bp = Blueprint("auth", __name__, url_prefix=API_PREFIX)


def _token_response(user: User):
    return jsonify({
        "status": "success",
        "access_token": create_access_token(user.id, user.role),
        "refresh_token": create_refresh_token(user.id),
        "expires_in": current_app.config["ACCESS_TOKEN_LIFETIME_MIN"] * 60,
        "role": user.role,
    }), 200


@auth_bp.route("/auth/login", methods=["POST"])
@limiter.limit(
    lambda: current_app.config["LOGIN_LIMIT_PER_IP"],
    key_func=get_remote_address,
    error_message="Too many logins from this IP",
)
@validate_schema(LoginRequest)
def login_handler():
    """
    Exchange username and password for tokens
    ---
    tags: [Auth]
    responses:
      200: {description: Access and refresh tokens}
      401: {description: Invalid credentials}
    """
    data: LoginRequest = request.validated_data
    user = db.session.execute(
        select(User).where(User.username == data.username)
    ).scalar_one_or_none()
    if not user or not user.check_password(data.password):
        logging.warning("Failed login for username %s", data.username)
        return error("Invalid username or password", status=401)
    return _token_response(user)


@auth_bp.route("/auth/refresh", methods=["POST"])
@validate_schema(RefreshRequest)
def refresh_tokens():
    data: RefreshRequest = request.validated_data
    try:
        payload = decode_token(data.refresh_token, expected_type="refresh")
    except TokenError as e:
        return error(str(e), status=401)

    try:
        user = db.session.get(User, int(payload.get("sub")))
    except (TypeError, ValueError):
        user = None
    if not user:
        return error("Unknown user", status=401)
    return _token_response(user)


@auth_bp.route("/logout", methods=["POST"])
def logout_handler():
    token = bearer_token()
    if not token:
        return error("Token missing", status=401)
    try:
        decode_token(token)
    except TokenError as e:
        return error(str(e), status=401)
    return jsonify({"status": "success", "message": "Logged out"}), 200
