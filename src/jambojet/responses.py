"""Classify raw HTTP responses into envelopes or typed errors."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from jambojet.errors import ApiError, AuthenticationError, RateLimitError, ValidationError
from jambojet.models.envelope import ResponseEnvelope, ResponseMeta

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 60


def decode_body(response: httpx.Response) -> Any:
    """JSON body, or None when empty or not JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def extract_message(body: Any) -> str | None:
    """Best-effort human message from an error body.

    Handles ``{"message": ...}`` and NSK's ``{"errors": [{"message": ...}]}``.
    """
    if not isinstance(body, dict):
        return None
    if body.get("message"):
        return str(body["message"])
    errors = body.get("errors")
    if isinstance(errors, list):
        for item in errors:
            if isinstance(item, dict) and item.get("message"):
                return str(item["message"])
    return None


def parse_retry_after(value: str | None) -> int:
    """Seconds from a Retry-After header (delta-seconds or HTTP date)."""
    if not value:
        return DEFAULT_RETRY_AFTER
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0, int((when - datetime.now(timezone.utc)).total_seconds()))


def classify(
    response: httpx.Response,
    endpoint: str,
    *,
    log_requests: bool = False,
    request_logger: logging.Logger | None = None,
) -> ResponseEnvelope:
    """Return a success envelope for 2xx, otherwise raise the matching error."""
    log = request_logger or logger
    status = response.status_code
    body = decode_body(response)

    if 200 <= status < 300:
        if log_requests:
            log.info(f"JamboJet API success: {endpoint} (HTTP {status}) {body}")
        return ResponseEnvelope(
            success=True,
            data=body,
            message="Request successful",
            errors=[],
            meta=ResponseMeta(
                endpoint=endpoint,
                status_code=status,
                request_id=response.headers.get("X-Request-ID") or uuid.uuid4().hex,
                timestamp=datetime.now(timezone.utc).isoformat(),
            ),
        )

    if log_requests:
        log.error(f"JamboJet API error: {endpoint} (HTTP {status}) {body}")

    message = extract_message(body)

    if status == 401:
        raise AuthenticationError(message or "Authentication failed")

    if status == 400:
        errors = body.get("errors") if isinstance(body, dict) else None
        raise ValidationError(message or "Validation failed", errors=errors or {})

    if status == 429:
        raise RateLimitError(parse_retry_after(response.headers.get("Retry-After")))

    raise ApiError(message or f"API request failed with status {status}", status)
