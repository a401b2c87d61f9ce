"""Typed errors raised by the JamboJet request pipeline.

The set is closed: every failure a caller sees is an ``ApiError`` or one of
its three subclasses.
"""

from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Generic API failure carrying the HTTP status and optional context."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        *,
        context: dict[str, Any] | None = None,
        attempts: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.context = context or {}
        self.attempts = attempts

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging and CLI output."""
        data: dict[str, Any] = {
            "error": self.message,
            "type": self.__class__.__name__,
            "status_code": self.status_code,
        }
        if self.context:
            data["context"] = self.context
        if self.attempts is not None:
            data["attempts"] = self.attempts
        return data

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(status_code={self.status_code!r}, message={self.message!r})"


class AuthenticationError(ApiError):
    """Token missing, invalid or expired (HTTP 401)."""

    def __init__(self, message: str = "Authentication failed", status_code: int = 401, **kwargs: Any) -> None:
        super().__init__(message, status_code, **kwargs)


class ValidationError(ApiError):
    """Malformed request (HTTP 400), with field-level detail when available."""

    def __init__(
        self,
        message: str = "Validation failed",
        status_code: int = 400,
        errors: dict[str, Any] | list[Any] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, status_code, **kwargs)
        self.errors = errors if errors is not None else {}

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class RateLimitError(ApiError):
    """Too many requests (HTTP 429)."""

    def __init__(self, retry_after: int = 60, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            message or f"Rate limit exceeded. Retry after {retry_after} seconds.",
            429,
            context={"retry_after": retry_after},
            **kwargs,
        )
        self.retry_after = retry_after
