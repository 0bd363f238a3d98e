"""Base pydantic model classes shared by request and DTO models."""

# flake8: noqa: E501


from typing import Any

from pydantic import BaseModel


class ImmutableModel(BaseModel):
    """Base immutable model with frozen configuration."""

    model_config = {
        "frozen": True,
        "from_attributes": True,
    }

    @classmethod
    def from_pydal_row(cls, row: Any, **overrides):
        """Build the model from a PyDAL Row, applying field overrides."""
        data = row.as_dict() if hasattr(row, "as_dict") else dict(row)
        data.update(overrides)
        return cls.model_validate(data)


class RequestModel(BaseModel):
    """Base request model with standard configuration."""

    model_config = {
        "from_attributes": True,
    }
