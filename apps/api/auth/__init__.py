"""Authentication and authorization for SeriesBoard."""

# flake8: noqa: E501


from werkzeug.security import check_password_hash, generate_password_hash

from .decorators import login_required, optional_auth, role_required
from .jwt_handler import generate_token, verify_token


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(user, password: str) -> bool:
    """Check a plaintext password against a user row's stored hash."""
    if not user or not user.password_hash:
        return False
    return check_password_hash(user.password_hash, password)


__all__ = [
    "generate_token",
    "hash_password",
    "login_required",
    "optional_auth",
    "role_required",
    "verify_password",
    "verify_token",
]
