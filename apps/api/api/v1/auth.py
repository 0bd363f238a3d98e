"""Authentication API endpoints: registration, login and token refresh."""

# flake8: noqa: E501


import logging

from flask import Blueprint, current_app, g, request

from apps.api.auth import generate_token, login_required, verify_token
from apps.api.models.pydantic import LoginRequest, RegisterRequest
from apps.api.services.users import UserService
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.validation_helpers import parse_request

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)


def get_service():
    """Get UserService instance."""
    return UserService(current_app.db)


def _token_response(user):
    expires = current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    return {
        "access_token": generate_token(user, "access"),
        "refresh_token": generate_token(user, "refresh"),
        "token_type": "Bearer",
        "expires_in": int(expires.total_seconds()),
    }


@bp.route("/register", methods=["POST"])
def register():
    """
    Register a new user. New users hold no roles.

    Request Body:
        {
            "email": "user@example.com",
            "password": "string" (minimum 6 characters),
            "first_name": "string",
            "last_name": "string",
            "middle_name": "string" (optional)
        }

    Returns:
        201: User created
        400: Validation error or user already exists
    """
    payload, error = parse_request(RegisterRequest)
    if error:
        return error

    user = get_service().register(payload)
    return ApiResponse.created({"message": "User registered successfully", "user": user})


@bp.route("/login", methods=["POST"])
def login():
    """
    Exchange email and password for access and refresh tokens.

    Returns:
        200: Tokens and user info
        400: Validation error
        401: Invalid credentials
    """
    payload, error = parse_request(LoginRequest)
    if error:
        return error

    service = get_service()
    user = service.authenticate(payload.email, payload.password)
    if not user:
        logger.info("Failed login for %s", payload.email)
        return ApiResponse.unauthorized()

    body = _token_response(user)
    body["user"] = service.get_user(user.id)
    return ApiResponse.success(body)


@bp.route("/refresh", methods=["POST"])
def refresh():
    """
    Issue a new token pair from a refresh token.

    Request Body:
        {"refresh_token": "string"}

    Returns:
        200: New tokens
        401: Invalid or expired refresh token
    """
    data = request.get_json(silent=True) or {}
    payload = verify_token(data.get("refresh_token") or "", "refresh")
    if not payload:
        return ApiResponse.unauthorized()

    user = current_app.db.users[int(payload["user_id"])]
    if not user:
        return ApiResponse.unauthorized()

    return ApiResponse.success(_token_response(user))


@bp.route("/me", methods=["GET"])
@login_required
def me():
    """Get the authenticated user's profile including roles."""
    return ApiResponse.success(get_service().get_user(g.current_user.id))
