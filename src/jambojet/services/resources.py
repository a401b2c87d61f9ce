"""Reference data (stations, countries, currencies)."""

from __future__ import annotations

from typing import Any

from jambojet.client import JamboJetClient
from jambojet.models.envelope import ResponseEnvelope


def _criteria(active_only: bool | None, culture_code: str | None) -> dict[str, Any]:
    query: dict[str, Any] = {}
    if active_only is not None:
        query["ActiveOnly"] = active_only
    if culture_code:
        query["CultureCode"] = culture_code
    return query


class ResourcesService:
    """Service for resource lookups. These are GETs and are cached when enabled."""

    def __init__(self, client: JamboJetClient) -> None:
        self._client = client

    def list_stations(self, active_only: bool | None = None, culture_code: str | None = None) -> ResponseEnvelope:
        return self._client.get("api/nsk/v1/resources/stations", _criteria(active_only, culture_code))

    def list_countries(self, active_only: bool | None = None, culture_code: str | None = None) -> ResponseEnvelope:
        return self._client.get("api/nsk/v2/resources/countries", _criteria(active_only, culture_code))

    def list_currencies(self, active_only: bool | None = None, culture_code: str | None = None) -> ResponseEnvelope:
        return self._client.get("api/nsk/v1/resources/currencyCodes", _criteria(active_only, culture_code))
