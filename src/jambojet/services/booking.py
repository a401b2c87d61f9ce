"""Booking retrieval and commit service."""

from __future__ import annotations

from typing import Any

from jambojet.client import JamboJetClient
from jambojet.models.booking import BookingLookup
from jambojet.models.envelope import ResponseEnvelope
from jambojet.validation import validate_payload


class BookingService:
    """Service for reading and committing bookings.

    Booking contents are passed through untouched.
    """

    def __init__(self, client: JamboJetClient) -> None:
        self._client = client

    def get_current(self) -> ResponseEnvelope:
        """The booking held in session state."""
        return self._client.get("api/nsk/v1/booking")

    def get_by_record_locator(self, record_locator: str) -> ResponseEnvelope:
        """Stateless retrieval by record locator."""
        locator = self._locator(record_locator)
        return self._client.get(f"api/nsk/v1/bookings/{locator}")

    def get_history(self, record_locator: str) -> ResponseEnvelope:
        locator = self._locator(record_locator)
        return self._client.get(f"api/nsk/v1/bookings/{locator}/history")

    def commit(self, booking_data: dict[str, Any]) -> ResponseEnvelope:
        """Commit the stateful booking (v3)."""
        return self._client.post("api/nsk/v3/booking", booking_data)

    @staticmethod
    def _locator(record_locator: str) -> str:
        return validate_payload(BookingLookup, {"recordLocator": record_locator}).record_locator
