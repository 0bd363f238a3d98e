"""
Common validation utilities for SeriesBoard API.

Request bodies are validated with pydantic models; failures are turned into
the uniform ``{"error": "Invalid input", "details": [...]}`` body.
"""

# flake8: noqa: E501


from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from flask import request
from pydantic import BaseModel, ValidationError

from .api_responses import ApiResponse

ModelT = TypeVar("ModelT", bound=BaseModel)


def validation_details(error: ValidationError) -> List[Dict[str, Any]]:
    """
    Flatten a pydantic ValidationError into field-level issues.

    Args:
        error: The pydantic validation error

    Returns:
        List of {"field", "message", "type"} dicts
    """
    details = []
    for issue in error.errors():
        field = ".".join(str(part) for part in issue.get("loc", ())) or "body"
        details.append(
            {
                "field": field,
                "message": issue.get("msg", "Invalid value"),
                "type": issue.get("type", "value_error"),
            }
        )
    return details


def validate_json_body(data: Any) -> Optional[Tuple[Any, int]]:
    """
    Validate that request body contains a JSON object.

    Returns:
        Error response tuple if validation fails, None if successful

    Example:
        data = request.get_json(silent=True)
        if error := validate_json_body(data):
            return error
    """
    if not isinstance(data, dict):
        return ApiResponse.validation_error(
            [{"field": "body", "message": "Request body must be a JSON object", "type": "json_invalid"}]
        )
    return None


def parse_request(model_cls: Type[ModelT]) -> Tuple[Optional[ModelT], Optional[Tuple[Any, int]]]:
    """
    Parse and validate the JSON request body with a pydantic model.

    Returns:
        Tuple of (model, error_response). Exactly one of them is None.

    Example:
        payload, error = parse_request(CreateGroupRequest)
        if error:
            return error
    """
    data = request.get_json(silent=True)
    if error := validate_json_body(data):
        return None, error

    try:
        return model_cls.model_validate(data), None
    except ValidationError as e:
        return None, ApiResponse.validation_error(validation_details(e))


def parse_query_args(model_cls: Type[ModelT]) -> Tuple[Optional[ModelT], Optional[Tuple[Any, int]]]:
    """
    Validate the query string with a pydantic model.

    Returns:
        Tuple of (model, error_response). Exactly one of them is None.
    """
    try:
        return model_cls.model_validate(request.args.to_dict()), None
    except ValidationError as e:
        return None, ApiResponse.validation_error(validation_details(e))
