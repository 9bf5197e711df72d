import datetime as dt
import uuid
from typing import Dict
import jwt
from flask import current_app

ALGORITHM = "HS256"


class TokenError(Exception):
    pass


def _encode(user_id, token_type: str, lifetime: dt.timedelta, **claims) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    payload: Dict = {
        "sub": str(user_id),
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
        "jti": uuid.uuid4().hex,
        **claims,
    }
    return jwt.encode(payload, current_app.config["JWT_SECRET"], algorithm=ALGORITHM)


def create_access_token(user_id, role: str) -> str:
    minutes = current_app.config["ACCESS_TOKEN_LIFETIME_MIN"]
    return _encode(user_id, "access", dt.timedelta(minutes=minutes), role=role)


def create_refresh_token(user_id) -> str:
    days = current_app.config["REFRESH_TOKEN_LIFETIME_DAYS"]
    return _encode(user_id, "refresh", dt.timedelta(days=days))


def decode_token(token: str, expected_type: str = "access") -> Dict:
    """Verify signature, expiry and token type. Raises TokenError."""
    try:
        data = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[ALGORITHM],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("token expired")
    except jwt.InvalidTokenError:
        raise TokenError("invalid token")

    if data.get("type") != expected_type:
        raise TokenError(f"expected {expected_type} token")
    return data
