from __future__ import annotations
from functools import wraps

from flask import request, g, current_app

from models.user import Role
from utils.exceptions import Forbidden, InvalidToken, Unauthorized
from utils.security import Identity, TokenIssuer


def _bearer_token(req) -> str | None:
    auth = req.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def authorize(req, issuer: TokenIssuer) -> Identity:
    """
    Verify the bearer access token on a request.
    401 when no token is sent, 403 when the token is invalid or expired.
    The credential store is not consulted; the signed claims are trusted.
    """
    token = _bearer_token(req)
    if token is None:
        raise Unauthorized()
    try:
        decoded = issuer.verify_access(token)
    except InvalidToken:
        raise Forbidden() from None

    try:
        role = Role(decoded["role"])
    except ValueError:
        raise Forbidden() from None
    return Identity(user_id=decoded["user_id"], email=decoded["email"], role=role)


def authorize_admin(req, issuer: TokenIssuer) -> Identity:
    identity = authorize(req, issuer)
    match identity.role:
        case Role.ADMIN:
            return identity
        case Role.USER:
            raise Forbidden("Forbidden - Admins only")


def _issuer() -> TokenIssuer:
    return current_app.extensions["token_issuer"]


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user = authorize(request, _issuer())
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def admin_required():
    """Allow access only to tokens carrying the admin role"""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user = authorize_admin(request, _issuer())
            return fn(*args, **kwargs)

        return wrapper

    return decorator
