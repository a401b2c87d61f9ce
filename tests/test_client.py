"""Tests for client.py: headers, retry, refresh-on-401, caching, deadline."""
from datetime import timedelta
from unittest.mock import MagicMock, patch

import httpx
import pytest

from conftest import BASE_URL, make_response
from jambojet.auth import Authenticator
from jambojet.client import JamboJetClient, is_auth_path, redact_headers
from jambojet.errors import ApiError, AuthenticationError, RateLimitError, ValidationError
from jambojet.token_store import TokenStore, utcnow


@pytest.fixture
def store():
    s = TokenStore()
    s.set_token("tok-1", utcnow() + timedelta(minutes=20))
    return s


@pytest.fixture
def client(fake_config, store):
    """Client with retry_delay=0.0 to avoid real waits in tests."""
    c = JamboJetClient(fake_config, store, max_retries=3, retry_delay=0.0)
    c._http = MagicMock()
    return c


def _sent(client, index=-1):
    return client._http.request.call_args_list[index][1]


# ── Header construction ──────────────────────────────────────────────

def test_headers_include_bearer_token(client):
    client._http.request.return_value = make_response(200, {"ok": True})
    client.get("api/nsk/v1/booking")

    headers = _sent(client)["headers"]
    assert headers["Authorization"] == "Bearer tok-1"


def test_headers_include_subscription_key(client):
    client._http.request.return_value = make_response(200, {})
    client.get("api/nsk/v1/booking")

    headers = _sent(client)["headers"]
    assert headers["Ocp-Apim-Subscription-Key"] == "sub-key-1234567890abcdef"
    assert headers["Content-Type"] == "application/json"
    assert headers["Accept"] == "application/json"


def test_headers_no_token_when_store_empty(fake_config):
    c = JamboJetClient(fake_config, TokenStore(), retry_delay=0.0)
    c._http = MagicMock()
    c._http.request.return_value = make_response(200, {})
    c.get("api/nsk/v1/resources/stations")

    assert "Authorization" not in c._http.request.call_args[1]["headers"]


def test_caller_headers_win_case_insensitively(client):
    client._http.request.return_value = make_response(200, {})
    client.post("api/nsk/v3/booking", {}, {"accept": "text/plain", "X-Custom": "val"})

    headers = _sent(client)["headers"]
    assert headers["accept"] == "text/plain"
    assert "Accept" not in headers
    assert headers["X-Custom"] == "val"


def test_auth_class_request_gets_no_token(client):
    client._http.request.return_value = make_response(200, {"data": {"token": "new"}})
    client.post("api/nsk/v1/token", {})

    assert "Authorization" not in _sent(client)["headers"]


def test_redact_headers():
    redacted = redact_headers({
        "Authorization": "Bearer x",
        "ocp-apim-subscription-key": "k",
        "Accept": "application/json",
    })
    assert redacted == {"Accept": "application/json"}


def test_is_auth_path():
    assert is_auth_path("api/nsk/v1/token")
    assert is_auth_path("/api/nsk/v1/token/singleSignOn")
    assert is_auth_path("api/v1/token")
    assert not is_auth_path("api/nsk/v1/booking")


# ── URL and payload placement ────────────────────────────────────────

def test_url_joins_without_double_slash(client):
    client._http.request.return_value = make_response(200, {})
    client.get("/api/nsk/v1/booking")

    assert _sent(client)["url"] == BASE_URL + "api/nsk/v1/booking"


def test_get_sends_query_params(client):
    client._http.request.return_value = make_response(200, {})
    client.get("api/nsk/v1/currency/converter", {"Amount": 10})

    kwargs = _sent(client)
    assert kwargs["params"] == {"Amount": 10}
    assert kwargs["json"] is None


@pytest.mark.parametrize("verb", ["post", "put", "patch", "delete"])
def test_body_verbs_send_json(client, verb):
    client._http.request.return_value = make_response(200, {})
    getattr(client, verb)("api/nsk/v1/booking/contacts", {"a": 1})

    kwargs = _sent(client)
    assert kwargs["method"] == verb.upper()
    assert kwargs["json"] == {"a": 1}
    assert kwargs["params"] is None


def test_unsupported_method_raises(client):
    with pytest.raises(ApiError, match="Unsupported HTTP method"):
        client.request("OPTIONS", "api/nsk/v1/booking")
    client._http.request.assert_not_called()


# ── Success envelope ─────────────────────────────────────────────────

def test_success_envelope(client):
    client._http.request.return_value = make_response(
        200, {"data": {"x": 1}}, headers={"X-Request-ID": "req-9"}
    )
    envelope = client.post("api/nsk/v3/booking", {})

    assert envelope.success is True
    assert envelope.data == {"data": {"x": 1}}
    assert envelope.message == "Request successful"
    assert envelope.errors == []
    assert envelope.meta.endpoint == "api/nsk/v3/booking"
    assert envelope.meta.status_code == 200
    assert envelope.meta.request_id == "req-9"


def test_empty_body_gives_none_data(client):
    client._http.request.return_value = make_response(204)
    envelope = client.delete("api/nsk/v1/booking/queue")

    assert envelope.data is None
    assert envelope.meta.status_code == 204


# ── 401: one reactive refresh ────────────────────────────────────────

def test_401_refreshes_and_retries_once(client, store):
    auth = MagicMock()
    auth.is_token_expiring_soon.return_value = False

    def refresh(stale_token=None):
        store.set_token("tok-2", utcnow() + timedelta(minutes=20))
        return MagicMock()

    auth.refresh_token.side_effect = refresh
    client.attach_authenticator(auth)
    client._http.request.side_effect = [
        make_response(401, {"message": "expired"}),
        make_response(200, {"ok": True}),
    ]

    envelope = client.get("api/nsk/v1/booking")

    assert envelope.data == {"ok": True}
    auth.refresh_token.assert_called_once_with(stale_token="tok-1")
    assert _sent(client, 1)["headers"]["Authorization"] == "Bearer tok-2"


def test_second_401_is_raised(client):
    auth = MagicMock()
    auth.is_token_expiring_soon.return_value = False
    auth.refresh_token.return_value = MagicMock()
    client.attach_authenticator(auth)
    client._http.request.side_effect = [
        make_response(401, {}),
        make_response(401, {"message": "still bad"}),
    ]

    with pytest.raises(AuthenticationError, match="still bad"):
        client.get("api/nsk/v1/booking")
    assert auth.refresh_token.call_count == 1
    assert client._http.request.call_count == 2


def test_401_refresh_failure_raises_original(client):
    auth = MagicMock()
    auth.is_token_expiring_soon.return_value = False
    auth.refresh_token.side_effect = AuthenticationError("refresh denied")
    client.attach_authenticator(auth)
    client._http.request.return_value = make_response(401, {"message": "Token expired"})

    with pytest.raises(AuthenticationError, match="Token expired"):
        client.get("api/nsk/v1/booking")
    assert client._http.request.call_count == 1


def test_401_keep_alive_without_token_raises(client):
    auth = MagicMock()
    auth.is_token_expiring_soon.return_value = False
    auth.refresh_token.return_value = None
    client.attach_authenticator(auth)
    client._http.request.return_value = make_response(401, {})

    with pytest.raises(AuthenticationError):
        client.get("api/nsk/v1/booking")
    assert client._http.request.call_count == 1


def test_401_on_auth_path_not_refreshed(client):
    auth = MagicMock()
    client.attach_authenticator(auth)
    client._http.request.return_value = make_response(401, {})

    with pytest.raises(AuthenticationError):
        client.post("api/nsk/v1/token", {})
    auth.refresh_token.assert_not_called()
    auth.is_token_expiring_soon.assert_not_called()


def test_401_without_authenticator_raises(client):
    client._http.request.return_value = make_response(401, {})

    with pytest.raises(AuthenticationError, match="Authentication failed"):
        client.get("api/nsk/v1/booking")


# ── Non-retryable errors ─────────────────────────────────────────────

def test_400_not_retried(client):
    client._http.request.return_value = make_response(
        400, {"message": "Bad", "errors": {"origin": "required"}}
    )

    with pytest.raises(ValidationError) as exc:
        client.post("api/nsk/v4/availability/search", {})
    assert exc.value.errors == {"origin": "required"}
    assert client._http.request.call_count == 1


def test_429_raised_with_retry_after(client):
    client._http.request.return_value = make_response(429, {}, headers={"Retry-After": "30"})

    with pytest.raises(RateLimitError) as exc:
        client.get("api/nsk/v1/resources/stations")
    assert exc.value.retry_after == 30
    assert exc.value.status_code == 429
    assert client._http.request.call_count == 1


def test_429_retried_when_enabled(fake_config, store):
    fake_config.settings.retry_rate_limited = True
    c = JamboJetClient(fake_config, store, retry_delay=0.0)
    c._http = MagicMock()
    c._http.request.side_effect = [
        make_response(429, {}, headers={"Retry-After": "2"}),
        make_response(200, {"ok": True}),
    ]

    with patch("jambojet.client.time.sleep") as sleep:
        envelope = c.get("api/nsk/v1/resources/stations")
    assert envelope.data == {"ok": True}
    sleep.assert_called_once_with(2.0)


@pytest.mark.parametrize("status", [403, 404, 409])
def test_other_4xx_not_retried(client, status):
    client._http.request.return_value = make_response(status, {"message": "nope"})

    with pytest.raises(ApiError) as exc:
        client.get("api/nsk/v1/bookings/ABC123")
    assert exc.value.status_code == status
    assert client._http.request.call_count == 1


# ── Transient failures: backoff ──────────────────────────────────────

def test_5xx_retries_then_succeeds(client):
    client._http.request.side_effect = [
        make_response(503, {}),
        make_response(200, {"ok": True}),
    ]

    envelope = client.get("api/nsk/v1/booking")
    assert envelope.data == {"ok": True}
    assert client._http.request.call_count == 2


def test_5xx_exhausted_raises_with_attempts(client):
    client._http.request.return_value = make_response(500, {"message": "boom"})

    with pytest.raises(ApiError, match="API request failed after 3 attempts") as exc:
        client.get("api/nsk/v1/booking")
    assert exc.value.attempts == 3
    assert exc.value.status_code == 500
    assert isinstance(exc.value.__cause__, ApiError)
    assert client._http.request.call_count == 3


def test_timeout_retried(client):
    client._http.request.side_effect = [
        httpx.ReadTimeout("slow"),
        make_response(200, {"ok": True}),
    ]

    envelope = client.get("api/nsk/v1/booking")
    assert envelope.data == {"ok": True}


def test_connection_error_exhausted(client):
    client._http.request.side_effect = httpx.ConnectError("refused")

    with pytest.raises(ApiError) as exc:
        client.get("api/nsk/v1/booking")
    assert isinstance(exc.value.__cause__, httpx.ConnectError)
    assert client._http.request.call_count == 3


def test_backoff_exponential(fake_config, store):
    c = JamboJetClient(fake_config, store, retry_delay=1.0)
    assert c._backoff(1) == 1.0
    assert c._backoff(2) == 2.0
    assert c._backoff(3) == 4.0


def test_backoff_sleeps_between_attempts(fake_config, store):
    c = JamboJetClient(fake_config, store, max_retries=3, retry_delay=1.0)
    c._http = MagicMock()
    c._http.request.return_value = make_response(502, {})

    with patch("jambojet.client.time.sleep") as sleep, pytest.raises(ApiError):
        c.get("api/nsk/v1/booking")
    assert [args[0][0] for args in sleep.call_args_list] == [1.0, 2.0]


def test_deadline_stops_retries(fake_config, store):
    fake_config.settings.request_deadline = 1.5
    c = JamboJetClient(fake_config, store, max_retries=5, retry_delay=1.0)
    c._http = MagicMock()
    c._http.request.return_value = make_response(500, {})

    with patch("jambojet.client.time.sleep"), pytest.raises(ApiError, match="deadline") as exc:
        c.get("api/nsk/v1/booking")
    # 1s wait fits, the next 2s wait would cross the deadline
    assert exc.value.attempts == 2
    assert c._http.request.call_count == 2


# ── Proactive refresh ────────────────────────────────────────────────

def test_proactive_refresh_when_expiring(client):
    auth = MagicMock()
    auth.is_token_expiring_soon.return_value = True
    client.attach_authenticator(auth)
    client._http.request.return_value = make_response(200, {})

    client.get("api/nsk/v1/booking")
    auth.is_token_expiring_soon.assert_called_once_with(120)
    auth.refresh_token.assert_called_once_with(stale_token="tok-1")


def test_proactive_refresh_failure_is_swallowed(client):
    auth = MagicMock()
    auth.is_token_expiring_soon.return_value = True
    auth.refresh_token.side_effect = AuthenticationError("refresh down")
    client.attach_authenticator(auth)
    client._http.request.return_value = make_response(200, {"ok": True})

    envelope = client.get("api/nsk/v1/booking")
    assert envelope.data == {"ok": True}
    assert _sent(client)["headers"]["Authorization"] == "Bearer tok-1"


def test_no_proactive_refresh_without_token(fake_config):
    c = JamboJetClient(fake_config, TokenStore(), retry_delay=0.0)
    c._http = MagicMock()
    c._http.request.return_value = make_response(200, {})
    auth = MagicMock()
    c.attach_authenticator(auth)

    c.get("api/nsk/v1/resources/stations")
    auth.refresh_token.assert_not_called()


# ── Cache ────────────────────────────────────────────────────────────

def test_get_cached(client):
    client._http.request.return_value = make_response(200, {"stations": ["NBO"]})

    first = client.get("api/nsk/v1/resources/stations", {"ActiveOnly": True})
    second = client.get("api/nsk/v1/resources/stations", {"ActiveOnly": True})

    assert first.data == second.data
    assert client._http.request.call_count == 1


def test_get_different_query_not_shared(client):
    client._http.request.return_value = make_response(200, {})

    client.get("api/nsk/v1/resources/stations", {"ActiveOnly": True})
    client.get("api/nsk/v1/resources/stations", {"ActiveOnly": False})
    assert client._http.request.call_count == 2


def test_post_not_cached(client):
    client._http.request.return_value = make_response(200, {})

    client.post("api/nsk/v4/availability/search", {"a": 1})
    client.post("api/nsk/v4/availability/search", {"a": 1})
    assert client._http.request.call_count == 2


def test_errors_not_cached(client):
    client._http.request.side_effect = [
        make_response(404, {}),
        make_response(200, {"ok": True}),
    ]

    with pytest.raises(ApiError):
        client.get("api/nsk/v1/bookings/ABC123")
    assert client.get("api/nsk/v1/bookings/ABC123").data == {"ok": True}


def test_cache_disabled(fake_config, store):
    fake_config.settings.cache_enabled = False
    c = JamboJetClient(fake_config, store, retry_delay=0.0)
    c._http = MagicMock()
    c._http.request.return_value = make_response(200, {})

    c.get("api/nsk/v1/resources/stations")
    c.get("api/nsk/v1/resources/stations")
    assert c._http.request.call_count == 2


# ── Manual token hooks and lifecycle ─────────────────────────────────

def test_set_access_token_default_lifetime(fake_config):
    c = JamboJetClient(fake_config, TokenStore())
    assert c.set_access_token("manual") is c
    assert c.token_store.get_token() == "manual"
    assert 1190 <= c.token_store.get_remaining_seconds() <= 1200


def test_clear_access_token(client):
    client.clear_access_token()
    assert client.token_store.get_token() is None


def test_context_manager_closes(fake_config):
    with JamboJetClient(fake_config) as c:
        c._http = MagicMock()
    c._http.close.assert_called_once()


# ── End to end with the real authenticator ──────────────────────────

def test_expired_session_recovers_through_refresh(fake_config):
    """Proactive refresh is rejected, the call 401s, the reactive refresh
    re-authenticates and the original request is replayed."""
    store = TokenStore()
    store.set_token("old", utcnow() + timedelta(seconds=30))
    seen = []
    puts = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.headers.get("Authorization")))
        path = request.url.path
        if path.endswith("/token") and request.method == "PUT":
            puts.append(1)
            if len(puts) == 1:
                return httpx.Response(403, json={"message": "refresh unavailable"})
            return httpx.Response(401, json={"message": "session gone"})
        if path.endswith("/token") and request.method == "POST":
            return httpx.Response(200, json={"data": {"token": "fresh", "idleTimeoutInMinutes": 20}})
        if request.headers.get("Authorization") == "Bearer fresh":
            return httpx.Response(200, json={"data": {"recordLocator": "ABC123"}})
        return httpx.Response(401, json={"message": "Token expired"})

    c = JamboJetClient(fake_config, store, retry_delay=0.0)
    c._http = httpx.Client(transport=httpx.MockTransport(handler))
    auth = Authenticator(c)
    auth._credentials = {"username": "agent", "password": "secret"}

    envelope = c.get("api/nsk/v1/booking")

    assert envelope.data == {"data": {"recordLocator": "ABC123"}}
    assert store.get_token() == "fresh"
    methods = [m for m, _, _ in seen]
    assert methods == ["PUT", "GET", "PUT", "POST", "GET"]
    assert seen[0][2] == "Bearer old"
    assert seen[3][2] is None


def test_keep_alive_renews_local_expiry_once(fake_config):
    """A keep-alive PUT without a new token pushes the local expiry forward,
    so only the first of several calls refreshes."""
    store = TokenStore()
    store.set_token("tok", utcnow() + timedelta(seconds=60))
    methods = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        if request.method == "PUT":
            return httpx.Response(201)
        return httpx.Response(200, json={"ok": True})

    fake_config.settings.cache_enabled = False
    c = JamboJetClient(fake_config, store, retry_delay=0.0)
    c._http = httpx.Client(transport=httpx.MockTransport(handler))
    Authenticator(c)

    for _ in range(3):
        c.get("api/nsk/v1/booking")

    assert methods == ["PUT", "GET", "GET", "GET"]
    assert store.get_token() == "tok"
    assert store.get_remaining_seconds() > 1100


def test_proactive_refresh_with_unreadable_lifetime(fake_config):
    store = TokenStore()
    store.set_token("old", utcnow() + timedelta(seconds=60))

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PUT":
            return httpx.Response(200, json={"data": {"token": "new", "expiresIn": "20m"}})
        return httpx.Response(200, json={"ok": True})

    c = JamboJetClient(fake_config, store, retry_delay=0.0)
    c._http = httpx.Client(transport=httpx.MockTransport(handler))
    Authenticator(c)

    assert c.get("api/nsk/v1/booking").data == {"ok": True}
    assert store.get_token() == "new"
    assert 1190 <= store.get_remaining_seconds() <= 1200


def test_zero_max_retries_is_respected(fake_config, store):
    c = JamboJetClient(fake_config, store, max_retries=0, retry_delay=0.0)
    c._http = MagicMock()

    with pytest.raises(ApiError, match="Maximum retry attempts exceeded"):
        c.get("api/nsk/v1/booking")
    c._http.request.assert_not_called()
