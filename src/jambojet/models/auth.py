"""Auth-related data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, computed_field

_CREDENTIAL_FIELDS = ("username", "password", "domain", "location")

class Token(BaseModel):
    """An issued bearer token and its absolute expiry (UTC)."""
    token: str
    expires_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_seconds(self) -> int:
        delta = (self.expires_at - datetime.now(timezone.utc)).total_seconds()
        return max(0, int(delta))


class TokenStatus(BaseModel):
    """Current state of the held access token."""
    has_token: bool
    is_expired: bool
    expires_at: datetime | None = None
    seconds_remaining: int | None = None


class TokenRequest(BaseModel):
    """Credentials for ``POST api/nsk/v1/token``.

    Every field is optional: an empty request yields an anonymous session.
    """
    username: str | None = Field(default=None, min_length=1)
    password: str | None = Field(default=None, min_length=1)
    domain: str | None = None
    location: str | None = None
    channel_type: str | None = Field(default=None, alias="channelType")
    application_name: str | None = Field(default=None, alias="applicationName")

    model_config = {"populate_by_name": True, "extra": "allow"}

    def to_payload(self) -> dict[str, Any]:
        """Body in the API's shape; credentials are nested under ``credentials``."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        credentials = {key: data.pop(key) for key in _CREDENTIAL_FIELDS if key in data}
        if credentials:
            data["credentials"] = credentials
        return data


class SingleSignOnRequest(BaseModel):
    provider_key: str = Field(alias="providerKey", min_length=1)
    token: str = Field(min_length=1)

    model_config = {"populate_by_name": True}


class ServerTransferRequest(BaseModel):
    target_server: str = Field(alias="targetServer", min_length=1)

    model_config = {"populate_by_name": True, "extra": "allow"}
