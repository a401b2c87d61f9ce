"""Pre-send payload validation with pydantic models."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from jambojet.errors import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def field_errors(error: PydanticValidationError) -> dict[str, str]:
    """Flatten pydantic errors into ``{"dotted.field.path": message}``."""
    errors: dict[str, str] = {}
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or "__root__"
        errors.setdefault(field, item["msg"])
    return errors


def validate_payload(model: type[ModelT], data: dict[str, Any] | None) -> ModelT:
    """Validate ``data`` against ``model`` before it is sent.

    Raises:
        ValidationError: With field-level detail, status 400. Nothing is sent.
    """
    try:
        return model.model_validate(data or {})
    except PydanticValidationError as e:
        errors = field_errors(e)
        fields = ", ".join(errors)
        raise ValidationError(f"Invalid {model.__name__}: {fields}", errors=errors) from e
