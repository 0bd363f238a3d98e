"""Standard JSON response builders for API endpoints."""

# flake8: noqa: E501


from typing import Any, Dict, List, Optional

from flask import jsonify


class ApiResponse:
    """Helpers producing (response, status) tuples with uniform bodies."""

    @staticmethod
    def success(data: Any, status_code: int = 200):
        return jsonify(data), status_code

    @staticmethod
    def created(data: Any):
        return jsonify(data), 201

    @staticmethod
    def no_content():
        return "", 204

    @staticmethod
    def error(error: str, status_code: int, message: Optional[str] = None, **extra):
        body: Dict[str, Any] = {"error": error}
        if message:
            body["message"] = message
        body.update(extra)
        return jsonify(body), status_code

    @staticmethod
    def unauthorized():
        return ApiResponse.error("Unauthorized", 401)

    @staticmethod
    def forbidden(message: Optional[str] = None):
        return ApiResponse.error("Forbidden", 403, message)

    @staticmethod
    def not_found():
        return ApiResponse.error("Not found", 404)

    @staticmethod
    def validation_error(details: List[Dict[str, Any]]):
        return ApiResponse.error("Invalid input", 400, details=details)
