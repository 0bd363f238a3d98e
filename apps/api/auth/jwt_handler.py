"""JWT issuance and verification for SeriesBoard identities."""

# flake8: noqa: E501


from datetime import datetime, timezone
from typing import Any, Dict, Optional

import jwt
from flask import current_app

TOKEN_TYPES = ("access", "refresh")


def _secret_key() -> str:
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config.get("SECRET_KEY")


def generate_token(user: Any, token_type: str = "access") -> str:
    """
    Generate a signed JWT for a user row.

    Roles are deliberately not embedded; they are re-read from storage on
    every request so role changes apply immediately.

    Args:
        user: User row (needs id and email)
        token_type: access or refresh

    Returns:
        Encoded JWT string
    """
    if token_type not in TOKEN_TYPES:
        raise ValueError(f"Unknown token type: {token_type}")

    if token_type == "access":
        expires = current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    else:
        expires = current_app.config["JWT_REFRESH_TOKEN_EXPIRES"]

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user.id),
        "user_id": int(user.id),
        "email": user.email,
        "type": token_type,
        "iat": now,
        "exp": now + expires,
    }
    return jwt.encode(payload, _secret_key(), algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"))


def verify_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT.

    Returns:
        Payload dict, or None if the token is invalid, expired or of the
        wrong type.
    """
    try:
        payload = jwt.decode(
            token,
            _secret_key(),
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.InvalidTokenError:
        return None

    if payload.get("type") != token_type:
        return None
    return payload
