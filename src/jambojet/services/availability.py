"""Availability and fare search service."""

from __future__ import annotations

from datetime import date
from typing import Any
from urllib.parse import quote

from jambojet.client import JamboJetClient
from jambojet.errors import ValidationError
from jambojet.models.availability import AvailabilitySearchRequest, SimpleAvailabilityRequest
from jambojet.models.envelope import ResponseEnvelope
from jambojet.validation import validate_payload


def _check_version(version: int, supported: tuple[int, ...]) -> None:
    if version not in supported:
        allowed = ", ".join(str(v) for v in supported)
        raise ValidationError(
            f"Unsupported API version {version}. Supported: {allowed}",
            errors={"version": f"must be one of {allowed}"},
        )


class AvailabilityService:
    """Service for flight availability and low fare searches."""

    def __init__(self, client: JamboJetClient) -> None:
        self._client = client

    def search(self, criteria: dict[str, Any]) -> ResponseEnvelope:
        """Full availability search (v4)."""
        body = validate_payload(AvailabilitySearchRequest, criteria).to_payload()
        return self._client.post("api/nsk/v4/availability/search", body)

    def search_simple(
        self,
        origin: str,
        destination: str,
        begin_date: date | str,
        end_date: date | str | None = None,
        adults: int = 1,
        currency_code: str | None = None,
        version: int = 4,
    ) -> ResponseEnvelope:
        """Simple one-way or return search with default settings for the rest."""
        _check_version(version, (3, 4))
        request = validate_payload(
            SimpleAvailabilityRequest,
            {
                "origin": origin,
                "destination": destination,
                "beginDate": begin_date,
                "endDate": end_date,
                "passengers": {"types": [{"type": "ADT", "count": adults}]},
                "currencyCode": currency_code,
            },
        )
        return self._client.post(
            f"api/nsk/v{version}/availability/search/simple", request.to_payload()
        )

    def get_lowest_fares(self, request: dict[str, Any], version: int = 3) -> ResponseEnvelope:
        """Low fare availability search."""
        _check_version(version, (2, 3))
        if not request:
            raise ValidationError("Low fare request is empty", errors={"request": "required"})
        return self._client.post(f"api/nsk/v{version}/availability/lowfare", request)

    def get_fare_rules(self, fare_availability_key: str) -> ResponseEnvelope:
        """Fare rules for a fare availability key."""
        if not fare_availability_key.strip():
            raise ValidationError(
                "Fare availability key is required",
                errors={"fareAvailabilityKey": "required"},
            )
        return self._client.get(f"api/nsk/v1/fareRules/{quote(fare_availability_key, safe='')}")
