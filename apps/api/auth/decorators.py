"""Request gate decorators.

Each decorator resolves the bearer token into a ``CurrentUser`` stored on
``g.current_user`` and applies the role policy before the view runs, so no
store is touched on behalf of an unauthorized caller.
"""

# flake8: noqa: E501


import logging
from functools import wraps
from typing import Optional

from flask import current_app, g, request

from apps.api.auth import policy
from apps.api.auth.jwt_handler import verify_token
from apps.api.models.dataclasses import CurrentUser
from apps.api.utils.api_responses import ApiResponse

logger = logging.getLogger(__name__)


def verify_jwt(token: str):
    """Verify an access token and return its payload (or None)."""
    return verify_token(token, "access")


def _bearer_token() -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer "):].strip()
        return token or None
    return None


def resolve_identity() -> Optional[CurrentUser]:
    """
    Resolve the request's identity, reading roles fresh from storage.

    Returns:
        CurrentUser, or None when no valid token is presented or the user no
        longer exists.
    """
    user = None
    token = _bearer_token()
    if token:
        payload = verify_jwt(token)
        if payload and payload.get("user_id") is not None:
            row = current_app.db.users[int(payload["user_id"])]
            if row:
                user = CurrentUser(
                    id=row.id,
                    email=row.email,
                    roles=frozenset(policy.normalize_roles(row.roles)),
                )
            else:
                logger.info("Token references missing user %s", payload.get("user_id"))

    g.current_user = user
    return user


def _deny(decision):
    if decision.kind == "unauthenticated":
        return ApiResponse.unauthorized()
    return ApiResponse.forbidden(decision.message)


def role_required(*roles: str):
    """
    Require an authenticated identity holding at least one of ``roles``.

    With no roles, any authenticated identity passes.

    Usage:
        @bp.route("", methods=["POST"])
        @role_required("db_admin")
        def create_connection():
            ...
    """

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            decision = policy.check(resolve_identity(), roles)
            if not decision.allowed:
                if decision.kind == "forbidden":
                    logger.info(
                        "Role gate denied %s %s for user %s",
                        request.method,
                        request.path,
                        g.current_user.id,
                    )
                return _deny(decision)
            return f(*args, **kwargs)

        return decorated

    return decorator


def login_required(f):
    """Require any authenticated identity."""
    return role_required()(f)


def optional_auth(f):
    """Resolve the identity if present; anonymous callers still pass."""

    @wraps(f)
    def decorated(*args, **kwargs):
        resolve_identity()
        return f(*args, **kwargs)

    return decorated
