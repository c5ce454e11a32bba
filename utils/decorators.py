from __future__ import annotations
from functools import wraps
from flask import current_app, request, g

from utils.accounts import AccountManager
from utils.exceptions import AuthError

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def accounts() -> AccountManager:
    """AccountManager bound to the running app."""
    return current_app.extensions["accounts"]


def _presented_access_token() -> str | None:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def jwt_required():
    """
    Require a valid access token from the accessToken cookie or a Bearer
    header; the user is loaded into g.current_user.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = _presented_access_token()
            if not token:
                raise AuthError("Unauthorized request")
            manager = accounts()
            decoded = manager.tokens.decode_access_token(token)
            user = manager.storage.find_by_id(decoded.get("sub"))
            if not user:
                raise AuthError("Invalid access token")
            g.current_user = user
            g.current_token_jti = decoded.get("jti")
            return fn(*args, **kwargs)

        return wrapper

    return decorator
