from __future__ import annotations
from functools import wraps
from flask import current_app, request, g

from utils.exceptions import ForbiddenError, InvalidTokenError, NotFoundError
from utils.security import ACCESS


def get_auth_service():
    """AuthService built by create_app() for this application."""
    return current_app.extensions["auth_service"]


def bearer_token() -> str | None:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


def jwt_required():
    """Require a valid access token; sets g.current_claims."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if token is None:
                raise InvalidTokenError("Missing or invalid Authorization header")
            claims = get_auth_service().validate_token(token)
            if claims.type != ACCESS:
                raise InvalidTokenError()
            g.current_claims = claims
            g.current_user_id = claims.user_id
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the token's role is one of required_roles.
    The role is re-read from the store so demotions and deactivation apply
    before the access token expires.
    """
    req = set(required_roles or [])

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            try:
                user = get_auth_service().get_profile(g.current_user_id)
            except NotFoundError:
                raise InvalidTokenError() from None
            if user.role not in req:
                raise ForbiddenError()
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
