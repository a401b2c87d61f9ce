"""HTTP client for the JamboJet NSK API.

Handles header injection, token lifecycle (proactive and reactive refresh),
retry with exponential backoff, GET response caching and response
normalization into envelopes or typed errors.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

import httpx

from jambojet.config import Config
from jambojet.errors import ApiError, AuthenticationError, RateLimitError, ValidationError
from jambojet.models.envelope import RequestDescriptor, ResponseEnvelope
from jambojet.responses import classify
from jambojet.token_store import TokenStore, utcnow
from jambojet.utils.cache import ResponseCache

if TYPE_CHECKING:
    from jambojet.auth import Authenticator

logger = logging.getLogger(__name__)


# Identity endpoints: requests here never get a token attached or refreshed
AUTH_PATH_PREFIXES = ("api/nsk/v1/token", "api/v1/token")

SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"
SECRET_HEADERS = {SUBSCRIPTION_KEY_HEADER.lower(), "authorization"}
SUPPORTED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")

PROACTIVE_REFRESH_THRESHOLD = 120
# NSK idle timeout; used when a token is set without an explicit expiry
DEFAULT_TOKEN_LIFETIME = timedelta(minutes=20)


def is_auth_path(path: str) -> bool:
    """True for paths under the identity/token endpoints."""
    normalized = path.lstrip("/").lower()
    return normalized.startswith(AUTH_PATH_PREFIXES)


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Headers with the subscription key and bearer token removed."""
    return {k: v for k, v in headers.items() if k.lower() not in SECRET_HEADERS}


class JamboJetClient:
    """HTTP client for the JamboJet API with retry and token handling."""

    def __init__(
        self,
        config: Config,
        token_store: TokenStore | None = None,
        *,
        cache: ResponseCache | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        verbose: bool = False,
    ) -> None:
        settings = config.settings
        self._config = config
        self._base_url = config.base_url
        self._tokens = token_store if token_store is not None else TokenStore()
        self._auth: Authenticator | None = None
        self._max_retries = settings.retry_attempts if max_retries is None else max_retries
        self._retry_delay = settings.retry_delay if retry_delay is None else retry_delay
        self._deadline = settings.request_deadline
        self._retry_rate_limited = settings.retry_rate_limited
        self._log_requests = settings.log_requests or verbose
        self._request_log = logging.getLogger(settings.log_channel)
        self._http = httpx.Client(timeout=settings.timeout)
        self._cache = cache if cache is not None else ResponseCache(
            ttl=settings.cache_ttl,
            enabled=settings.cache_enabled,
            prefix=settings.cache_prefix,
        )

    @property
    def token_store(self) -> TokenStore:
        return self._tokens

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def authenticator(self) -> Authenticator | None:
        return self._auth

    def attach_authenticator(self, auth: Authenticator) -> None:
        """Register the authenticator used for proactive and reactive refresh."""
        self._auth = auth

    # ── public surface ────────────────────────────────────────────────

    def request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | list | None = None,
        headers: dict[str, str] | None = None,
        *,
        auth_class: bool | None = None,
    ) -> ResponseEnvelope:
        """Make an API request through the retry/refresh pipeline.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            path: API path relative to the base URL (e.g. "api/nsk/v1/booking").
            payload: Query parameters for GET, JSON body otherwise.
            headers: Header overrides; win over the defaults on conflict.
            auth_class: Mark as an identity request. Defaults to detection by path.

        Returns:
            The success envelope.

        Raises:
            AuthenticationError: 401 that a refresh could not recover.
            ValidationError: 400 response.
            RateLimitError: 429 response.
            ApiError: Any other failure, or retries exhausted.
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ApiError(f"Unsupported HTTP method: {method}")

        descriptor = RequestDescriptor(
            method=method,
            path=path,
            payload=payload,
            headers=headers or {},
            auth_class=is_auth_path(path) if auth_class is None else auth_class,
        )
        return self.send(descriptor)

    def get(self, path: str, query: dict[str, Any] | None = None, headers: dict[str, str] | None = None, **kwargs: Any) -> ResponseEnvelope:
        """Convenience method for GET requests."""
        return self.request("GET", path, query, headers, **kwargs)

    def post(self, path: str, body: dict[str, Any] | list | None = None, headers: dict[str, str] | None = None, **kwargs: Any) -> ResponseEnvelope:
        """Convenience method for POST requests."""
        return self.request("POST", path, body, headers, **kwargs)

    def put(self, path: str, body: dict[str, Any] | list | None = None, headers: dict[str, str] | None = None, **kwargs: Any) -> ResponseEnvelope:
        """Convenience method for PUT requests."""
        return self.request("PUT", path, body, headers, **kwargs)

    def patch(self, path: str, body: dict[str, Any] | list | None = None, headers: dict[str, str] | None = None, **kwargs: Any) -> ResponseEnvelope:
        """Convenience method for PATCH requests."""
        return self.request("PATCH", path, body, headers, **kwargs)

    def delete(self, path: str, body: dict[str, Any] | list | None = None, headers: dict[str, str] | None = None, **kwargs: Any) -> ResponseEnvelope:
        """Convenience method for DELETE requests."""
        return self.request("DELETE", path, body, headers, **kwargs)

    def set_access_token(self, token: str, expires_at: datetime | None = None) -> JamboJetClient:
        """Manually install a token, e.g. one issued out of band."""
        self._tokens.set_token(token, expires_at or utcnow() + DEFAULT_TOKEN_LIFETIME)
        return self

    def clear_access_token(self) -> JamboJetClient:
        self._tokens.clear_token()
        return self

    # ── coordinator ───────────────────────────────────────────────────

    def send(self, descriptor: RequestDescriptor) -> ResponseEnvelope:
        """Run one request descriptor through the pipeline.

        Identity requests skip the proactive refresh and the cache. A first
        401 triggers exactly one reactive refresh and a re-send that does not
        consume retry budget. Transport failures and 5xx responses are retried
        with exponential backoff; 400s and other 4xx are raised immediately.
        """
        url = self._build_url(descriptor.path)

        if not descriptor.auth_class:
            self._refresh_if_expiring()

        cacheable = (
            not descriptor.auth_class
            and self._cache.enabled
            and ResponseCache.is_cacheable_request(descriptor.method)
        )
        cache_key = ""
        if cacheable:
            cache_key = self._cache.make_key(url, descriptor.payload)
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for {descriptor.method} {url}")
                return cached

        started = time.monotonic()
        attempt = 0
        refreshed = False
        last_error: Exception | None = None

        while attempt < self._max_retries:
            sent_token = self._tokens.get_token()
            try:
                response = self._execute(descriptor, url)
                envelope = classify(
                    response,
                    descriptor.path,
                    log_requests=self._log_requests,
                    request_logger=self._request_log,
                )
            except AuthenticationError:
                if descriptor.auth_class or refreshed or attempt > 0:
                    raise
                refreshed = True
                logger.info(f"Token expired (401) on {descriptor.path}, attempting automatic refresh")
                if not self._reactive_refresh(sent_token):
                    raise
                continue
            except ValidationError:
                raise
            except RateLimitError as e:
                if not self._retry_rate_limited:
                    raise
                last_error = e
                wait = float(e.retry_after)
            except ApiError as e:
                if e.status_code < 500:
                    raise
                last_error = e
                wait = self._backoff(attempt + 1)
            except httpx.HTTPError as e:
                last_error = e
                wait = self._backoff(attempt + 1)
            else:
                if cacheable:
                    self._cache.put(cache_key, envelope)
                return envelope

            attempt += 1
            if attempt >= self._max_retries:
                raise ApiError(
                    f"API request failed after {attempt} attempts: {last_error}",
                    getattr(last_error, "status_code", 0),
                    attempts=attempt,
                ) from last_error

            self._check_deadline(started, wait, attempt, last_error)
            logger.warning(
                f"[Attempt {attempt}/{self._max_retries}] {descriptor.method} {url} failed: "
                f"{last_error}. Retrying in {wait:.1f}s..."
            )
            time.sleep(wait)

        raise ApiError(
            f"Maximum retry attempts exceeded for endpoint: {descriptor.path}",
            attempts=attempt,
        )

    def _refresh_if_expiring(self) -> None:
        """Proactive refresh; failures are logged and the call proceeds."""
        token = self._tokens.get_token()
        if self._auth is None or token is None:
            return
        if not self._auth.is_token_expiring_soon(PROACTIVE_REFRESH_THRESHOLD):
            return

        logger.info("Token expiring soon, refreshing proactively")
        try:
            self._auth.refresh_token(stale_token=token)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning(f"Proactive token refresh failed, continuing with existing token: {e}")

    def _reactive_refresh(self, stale_token: str | None) -> bool:
        """One refresh after a 401. True when a new token is in place."""
        if self._auth is None:
            return False
        try:
            token = self._auth.refresh_token(stale_token=stale_token)
        except (ApiError, httpx.HTTPError) as e:
            logger.error(f"Token refresh failed: {e}")
            return False
        return token is not None

    def _check_deadline(self, started: float, wait: float, attempt: int, last_error: Exception) -> None:
        if not self._deadline:
            return
        elapsed = time.monotonic() - started
        if elapsed + wait > self._deadline:
            raise ApiError(
                f"Request deadline of {self._deadline:.0f}s exceeded after {attempt} attempts: {last_error}",
                getattr(last_error, "status_code", 0),
                attempts=attempt,
            ) from last_error

    # ── executor ──────────────────────────────────────────────────────

    def _execute(self, descriptor: RequestDescriptor, url: str) -> httpx.Response:
        """Send one attempt. Transport failures raise httpx.HTTPError."""
        headers = self._build_headers(descriptor)

        if self._log_requests:
            self._request_log.info(
                f"JamboJet API request: {descriptor.method} {url} "
                f"payload={descriptor.payload} headers={redact_headers(headers)}"
            )

        is_get = descriptor.method == "GET"
        return self._http.request(
            method=descriptor.method,
            url=url,
            headers=headers,
            params=descriptor.payload if is_get else None,
            json=None if is_get else descriptor.payload,
        )

    def _build_url(self, path: str) -> str:
        return f"{self._base_url.rstrip('/')}/{path.lstrip('/')}"

    def _build_headers(self, descriptor: RequestDescriptor) -> dict[str, str]:
        """Build request headers; caller overrides win on conflict."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            SUBSCRIPTION_KEY_HEADER: self._config.settings.subscription_key,
        }

        if not descriptor.auth_class:
            token = self._tokens.get_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        for key, value in descriptor.headers.items():
            for existing in [k for k in headers if k.lower() == key.lower()]:
                del headers[existing]
            headers[key] = value

        return headers

    def _backoff(self, attempt: int) -> float:
        """Calculate exponential backoff delay."""
        return self._retry_delay * (2 ** (attempt - 1))

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._http.close()

    def __enter__(self) -> JamboJetClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
