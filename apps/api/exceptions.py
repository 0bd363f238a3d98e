"""Exception types mapped onto the HTTP error contract."""

# flake8: noqa: E501


from typing import Any, Dict, List, Optional


class ApiError(Exception):
    """Base class for errors rendered as JSON responses."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


class ForbiddenError(ApiError):
    """Identity lacks the role or object-level right."""

    status_code = 403
    error = "Forbidden"


class NotFoundError(ApiError):
    """Resource absent, or not visible to the caller."""

    status_code = 404
    error = "Not found"


class InvalidInputError(ApiError):
    """Input failed validation; carries field-level issues."""

    status_code = 400
    error = "Invalid input"

    def __init__(self, details: List[Dict[str, Any]], message: Optional[str] = None):
        super().__init__(message)
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["details"] = self.details
        return body

    @classmethod
    def for_field(cls, field: str, message: str) -> "InvalidInputError":
        return cls([{"field": field, "message": message, "type": "value_error"}])


class BadRequestError(ApiError):
    """Request is well-formed but cannot be applied (duplicate, wrong password)."""

    status_code = 400

    def __init__(self, error: str):
        super().__init__(None)
        self.error = error
