"""Token lifecycle for the JamboJet NSK API.

Creates, refreshes, inspects and abandons session tokens through the identity
endpoints (``api/nsk/v1/token``). Every request made here is auth-class, so
the client never tries to refresh a token while obtaining one.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from jambojet.client import JamboJetClient
from jambojet.errors import ApiError, AuthenticationError
from jambojet.models.auth import (
    ServerTransferRequest,
    SingleSignOnRequest,
    Token,
    TokenRequest,
    TokenStatus,
)
from jambojet.models.envelope import ResponseEnvelope
from jambojet.token_store import TokenStore, utcnow
from jambojet.validation import validate_payload

logger = logging.getLogger(__name__)

TOKEN_PATH = "api/nsk/v1/token"
LEGACY_TOKEN_PATH = "api/v1/token"
SINGLE_SIGN_ON_PATH = "api/nsk/v1/token/singleSignOn"
SERVER_TRANSFER_PATH = "api/nsk/v1/token/serverTransfer"

# Lifetime assumed when the server reports no expiry (NSK idle timeout)
DEFAULT_EXPIRES_IN = 1200


def parse_token_response(body: Any) -> Token | None:
    """Extract the token and its expiry from an identity endpoint body.

    Accepts ``{"data": {"token": ...}}`` or a flat ``{"token": ...}``. Expiry
    comes from ``expires`` (ISO 8601), ``expiresIn`` (seconds) or
    ``idleTimeoutInMinutes``, in that order.
    """
    if not isinstance(body, dict):
        return None
    data = body.get("data") if isinstance(body.get("data"), dict) else body
    token = data.get("token")
    if not token:
        return None

    expires_at: datetime | None = None
    if data.get("expires"):
        try:
            expires_at = datetime.fromisoformat(str(data["expires"]))
        except ValueError:
            logger.warning(f"Unparseable token expiry {data['expires']!r}, using default lifetime")
        else:
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)

    if expires_at is None:
        seconds = DEFAULT_EXPIRES_IN
        try:
            if data.get("expiresIn") is not None:
                seconds = int(data["expiresIn"])
            elif data.get("idleTimeoutInMinutes") is not None:
                seconds = int(data["idleTimeoutInMinutes"]) * 60
        except (TypeError, ValueError):
            logger.warning(
                f"Unparseable token lifetime {data.get('expiresIn', data.get('idleTimeoutInMinutes'))!r}, "
                "using default lifetime"
            )
        expires_at = utcnow() + timedelta(seconds=seconds)

    return Token(token=str(token), expires_at=expires_at)


class Authenticator:
    """Manages the JamboJet session token on behalf of a client."""

    def __init__(self, client: JamboJetClient, token_store: TokenStore | None = None) -> None:
        self._client = client
        self._tokens = token_store if token_store is not None else client.token_store
        self._credentials: dict[str, Any] | None = None
        self._refresh_lock = threading.Lock()
        client.attach_authenticator(self)

    @property
    def token_store(self) -> TokenStore:
        return self._tokens

    # ── token creation ────────────────────────────────────────────────

    def create_token(self, credentials: dict[str, Any] | None = None) -> Token:
        """Create a session token (``POST api/nsk/v1/token``).

        An empty credentials dict yields an anonymous session. The credentials
        are remembered for implicit re-authentication on refresh.

        Raises:
            AuthenticationError: If the API rejects the request or issues no token.
        """
        credentials = dict(credentials or {})
        body = validate_payload(TokenRequest, credentials).to_payload()
        token = self._issue("POST", TOKEN_PATH, body, "Failed to create access token")
        self._credentials = credentials
        logger.info(f"Token created, expires in {token.remaining_seconds}s")
        return token

    def authenticate(self, username: str, password: str, **extra: Any) -> Token:
        """Create a token for an agent login."""
        return self.create_token({"username": username, "password": password, **extra})

    def single_sign_on(self, provider_key: str, sso_token: str) -> Token:
        """Create a token from single sign-on credentials."""
        body = validate_payload(
            SingleSignOnRequest, {"providerKey": provider_key, "token": sso_token}
        ).model_dump(by_alias=True)
        return self._issue("POST", SINGLE_SIGN_ON_PATH, body, "Failed to create SSO token")

    def server_transfer(self, transfer_request: dict[str, Any]) -> Token:
        """Transfer the session to another server and adopt the new token."""
        body = validate_payload(ServerTransferRequest, transfer_request).model_dump(by_alias=True)
        return self._issue(
            "POST", SERVER_TRANSFER_PATH, body, "Failed to transfer server", with_session=True
        )

    # ── refresh ───────────────────────────────────────────────────────

    def refresh_token(
        self,
        credentials: dict[str, Any] | None = None,
        stale_token: str | None = None,
    ) -> Token | None:
        """Refresh the session (``PUT api/nsk/v1/token``).

        With credentials the session's user is upgraded; without, the session
        is kept alive. When the server issues a token it replaces the stored
        one and is returned; a plain keep-alive returns None.

        Refreshes are serialized. A caller passing the ``stale_token`` it saw
        fail gets the current token back without a server call if another
        caller already replaced it.

        With no session held, or a session the server rejects, the
        authenticator re-authenticates with the supplied or remembered
        credentials.

        Raises:
            AuthenticationError: If the session cannot be refreshed.
        """
        with self._refresh_lock:
            current = self._tokens.snapshot()
            if (
                stale_token is not None
                and current is not None
                and current.token != stale_token
                and self._tokens.has_valid_token()
            ):
                logger.debug("Token already refreshed by a concurrent caller")
                return current

            fallback = credentials if credentials is not None else self._credentials
            if current is None:
                if fallback is None:
                    raise AuthenticationError("No session token to refresh and no credentials to re-authenticate")
                return self.create_token(fallback)

            body = validate_payload(TokenRequest, credentials).to_payload() if credentials else None
            try:
                envelope = self._client.put(
                    TOKEN_PATH, body, self._session_headers(), auth_class=True
                )
            except AuthenticationError as e:
                if fallback is None:
                    raise AuthenticationError(f"Failed to refresh token: {e.message}") from e
                logger.info("Session rejected on refresh, re-authenticating")
                return self.create_token(fallback)
            except (ApiError, httpx.HTTPError) as e:
                raise AuthenticationError(f"Failed to refresh token: {e}") from e

            token = parse_token_response(envelope.data)
            if token is None:
                # Keep-alive: the server renewed the idle timeout of the same token
                self._tokens.set_token(current.token, utcnow() + timedelta(seconds=DEFAULT_EXPIRES_IN))
                logger.info(f"Session kept alive for {DEFAULT_EXPIRES_IN}s")
                return None
            self._tokens.set_token(token.token, token.expires_at)
            if credentials:
                self._credentials = dict(credentials)
            logger.info(f"Token refreshed, expires in {token.remaining_seconds}s")
            return token

    def keep_alive(self) -> ResponseEnvelope:
        """Keep the current session alive through the legacy endpoint (``PUT api/v1/token``)."""
        envelope = self._call("PUT", LEGACY_TOKEN_PATH, "Failed to keep token alive")
        current = self._tokens.get_token()
        if current is not None:
            self._tokens.set_token(current, utcnow() + timedelta(seconds=DEFAULT_EXPIRES_IN))
        return envelope

    # ── inspection ────────────────────────────────────────────────────

    def get_token_info(self) -> ResponseEnvelope:
        """Server-side information about the current session."""
        return self._call("GET", TOKEN_PATH, "Failed to get token information")

    def is_token_expiring_soon(self, threshold_seconds: int = 120) -> bool:
        """True iff the held token has at most ``threshold_seconds`` left."""
        return self._tokens.get_remaining_seconds() <= threshold_seconds

    def is_authenticated(self) -> bool:
        return self._tokens.has_valid_token()

    def ensure_authenticated(self) -> None:
        """Raise unless a valid token is held."""
        if not self._tokens.has_valid_token():
            raise AuthenticationError("Not authenticated: no valid access token")

    def get_status(self) -> TokenStatus:
        return self._tokens.get_status()

    # ── logout ────────────────────────────────────────────────────────

    def logout(self) -> None:
        """Abandon the session server-side, then clear it locally.

        The server call is best-effort; local state is always cleared.
        """
        if self._tokens.get_token() is not None:
            try:
                self._client.delete(TOKEN_PATH, None, self._session_headers(), auth_class=True)
            except (ApiError, httpx.HTTPError) as e:
                logger.warning(f"Server-side logout failed, clearing local token anyway: {e}")
        self._tokens.clear_token()
        self._credentials = None

    # ── helpers ───────────────────────────────────────────────────────

    def _session_headers(self) -> dict[str, str]:
        """Bearer header for identity calls that act on the current session."""
        token = self._tokens.get_token()
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _issue(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None,
        failure: str,
        *,
        with_session: bool = False,
    ) -> Token:
        headers = self._session_headers() if with_session else None
        try:
            envelope = self._client.request(method, path, body, headers, auth_class=True)
        except (ApiError, httpx.HTTPError) as e:
            raise AuthenticationError(f"{failure}: {e}") from e

        token = parse_token_response(envelope.data)
        if token is None:
            raise AuthenticationError(f"{failure}: response contained no token")
        self._tokens.set_token(token.token, token.expires_at)
        return token

    def _call(self, method: str, path: str, failure: str) -> ResponseEnvelope:
        try:
            return self._client.request(method, path, None, self._session_headers(), auth_class=True)
        except (ApiError, httpx.HTTPError) as e:
            raise AuthenticationError(f"{failure}: {e}") from e
