"""Holder for the single active bearer token.

Shared by the client and the authenticator; all access is serialized by a
re-entrant lock. Optionally persisted to a JSON file so separate CLI
invocations reuse one session.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from jambojet.models.auth import Token, TokenStatus

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenStore:
    """Thread-safe store for one token and its expiry."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._lock = threading.RLock()
        self._token: str | None = None
        self._expires_at: datetime | None = None
        self._path = Path(path) if path else None
        if self._path is not None:
            self._load()

    def set_token(self, token: str, expires_at: datetime) -> None:
        """Replace the held token. The token value is opaque."""
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        with self._lock:
            self._token = token
            self._expires_at = expires_at
            self._save()
        logger.info(f"Token updated, expires at {expires_at.isoformat()} ({self.get_remaining_seconds()}s)")

    def get_token(self) -> str | None:
        with self._lock:
            return self._token

    def get_expiry(self) -> datetime | None:
        with self._lock:
            return self._expires_at

    def snapshot(self) -> Token | None:
        """Token and expiry read together under the lock."""
        with self._lock:
            if self._token is None or self._expires_at is None:
                return None
            return Token(token=self._token, expires_at=self._expires_at)

    def has_valid_token(self) -> bool:
        """True iff a token is held and its expiry is strictly in the future."""
        with self._lock:
            if not self._token or self._expires_at is None:
                return False
            return utcnow() < self._expires_at

    def get_remaining_seconds(self) -> int:
        """Whole seconds until expiry; 0 when absent or expired."""
        with self._lock:
            if self._token is None or self._expires_at is None:
                return 0
            return max(0, int((self._expires_at - utcnow()).total_seconds()))

    def get_status(self) -> TokenStatus:
        with self._lock:
            if not self._token:
                return TokenStatus(has_token=False, is_expired=True)

            is_expired = not self.has_valid_token()
            return TokenStatus(
                has_token=True,
                is_expired=is_expired,
                expires_at=self._expires_at,
                seconds_remaining=None if is_expired else self.get_remaining_seconds(),
            )

    def clear_token(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = None
            if self._path is not None:
                try:
                    self._path.unlink(missing_ok=True)
                except OSError as e:
                    logger.warning(f"Could not remove token file {self._path}: {e}")
        logger.info("Token cleared")

    # ── persistence ───────────────────────────────────────────────────

    def _save(self) -> None:
        if self._path is None or self._token is None or self._expires_at is None:
            return
        data = Token(token=self._token, expires_at=self._expires_at).model_dump(
            mode="json", exclude={"remaining_seconds"}
        )
        # Owner-only: the file holds a live bearer token
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.chmod(self._path, 0o600)
        except OSError as e:
            logger.warning(f"Could not persist token to {self._path}, keeping it in memory: {e}")

    def _load(self) -> None:
        if self._path is None or not self._path.exists():
            return
        try:
            with open(self._path) as f:
                saved = Token.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            logger.warning(f"Ignoring unreadable token file {self._path}: {e}")
            return
        expires_at = saved.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        self._token = saved.token
        self._expires_at = expires_at
