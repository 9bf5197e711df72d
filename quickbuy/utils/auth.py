from functools import wraps
from typing import Optional
from flask import request, g
from .responses import error
from quickbuy.auth.permissions import role_has_scope
from .jwt import decode_token, TokenError
from models import db
from models.user import User


def bearer_token() -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth:
        return None
    scheme, _, token = auth.partition(" ")
    return token if scheme == "Bearer" else auth


def auth_required(func):
    """Load the user named by the access token into ``request.user`` and ``g``."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if not token:
            return error("Auth header missing", status=401)
        try:
            payload = decode_token(token, expected_type="access")
            user_id = int(payload["sub"])
        except TokenError as e:
            return error(str(e), status=401)
        except (KeyError, TypeError, ValueError):
            return error("invalid token", status=401)

        user = db.session.get(User, user_id)
        if not user:
            return error("Unknown user", status=401)
        g.user_id = user.id
        g.role = user.role or payload.get("role")
        request.user = user
        return func(*args, **kwargs)

    return wrapper


def _allows(role: str, entry: str) -> bool:
    if ":" in entry:
        wanted, action = entry.split(":", 1)
        return role == wanted and role_has_scope(role, action)
    return role == entry


def role_required(required):
    """Authorize on a role (``"buyer"``) or a scoped action (``"buyer:checkout"``)."""
    required_set = set(required) if isinstance(required, (list, tuple, set)) else {required}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            role = getattr(g, "role", None)
            if not role:
                return error("Role missing", status=403)
            if not any(_allows(role, entry) for entry in required_set):
                return error("Forbidden", status=403)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
