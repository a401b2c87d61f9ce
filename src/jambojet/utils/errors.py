"""Structured error handling for agent-friendly output."""

from __future__ import annotations

import json
import sys

import httpx
from rich.console import Console

from jambojet.errors import ApiError, AuthenticationError, RateLimitError, ValidationError

console = Console(stderr=True)

# Actionable hints keyed by error code
_ERROR_HINTS: dict[str, str] = {
    "AUTH_ERROR": "Token may be expired: run `jambojet auth login` or `jambojet auth refresh`",
    "VALIDATION_ERROR": "Check the request fields listed in `errors`",
    "RATE_LIMITED": "Rate limited: wait for the retry-after period and try again",
    "TIMEOUT": "Request timed out: try again or raise JAMBOJET_TIMEOUT",
    "CONNECTION_ERROR": "Connection error: check network connectivity and JAMBOJET_BASE_URL",
    "NOT_FOUND": "The resource does not exist: verify the path and identifiers",
    "SERVER_ERROR": "The API failed upstream: retry later",
    "CONFIG_ERROR": "Check your .env and config/environments.yaml",
}


def classify_error(error: Exception) -> str:
    """Map an exception to a stable error code."""
    cause = error.__cause__
    if isinstance(error, AuthenticationError):
        return "AUTH_ERROR"
    if isinstance(error, ValidationError):
        return "VALIDATION_ERROR"
    if isinstance(error, RateLimitError) or isinstance(cause, RateLimitError):
        return "RATE_LIMITED"
    if isinstance(error, httpx.TimeoutException) or isinstance(cause, httpx.TimeoutException):
        return "TIMEOUT"
    if isinstance(error, httpx.TransportError) or isinstance(cause, httpx.TransportError):
        return "CONNECTION_ERROR"
    if isinstance(error, ApiError):
        if error.status_code == 404:
            return "NOT_FOUND"
        if error.status_code >= 500:
            return "SERVER_ERROR"
        return "API_ERROR"
    if isinstance(error, ValueError):
        return "CONFIG_ERROR"
    return "RUNTIME_ERROR"


def handle_error(error: Exception) -> None:
    """Handle an error with structured output to stdout and human-readable output to stderr.

    Outputs a JSON error object to stdout for agent consumption:
    {"error": true, "code": "AUTH_ERROR", "message": "...", "status_code": 401, "hint": "..."}

    Also prints a human-readable error to stderr.
    """
    message = str(error)
    code = classify_error(error)
    hint = _ERROR_HINTS.get(code)

    error_obj: dict[str, object] = {
        "error": True,
        "code": code,
        "message": message,
    }
    if isinstance(error, ApiError):
        error_obj["status_code"] = error.status_code
        if isinstance(error, ValidationError) and error.errors:
            error_obj["errors"] = error.errors
        if isinstance(error, RateLimitError):
            error_obj["retry_after"] = error.retry_after
    if hint:
        error_obj["hint"] = hint

    json.dump(error_obj, sys.stdout, default=str)
    sys.stdout.write("\n")

    # Human-readable to stderr
    console.print(f"[red]Error:[/red] {message}")
    if hint:
        console.print(f"[dim]Hint: {hint}[/dim]")
