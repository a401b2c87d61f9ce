"""Currency conversion service."""

from __future__ import annotations

from jambojet.client import JamboJetClient
from jambojet.models.currency import CurrencyConversionRequest
from jambojet.models.envelope import ResponseEnvelope
from jambojet.validation import validate_payload


class CurrencyService:
    def __init__(self, client: JamboJetClient) -> None:
        self._client = client

    def convert(
        self,
        from_currency_code: str,
        to_currency_code: str,
        amount: float,
        inverted: bool = False,
    ) -> ResponseEnvelope:
        """Convert an amount using the API's exchange rates."""
        request = validate_payload(
            CurrencyConversionRequest,
            {
                "FromCurrencyCode": from_currency_code,
                "ToCurrencyCode": to_currency_code,
                "Amount": amount,
                "Inverted": inverted,
            },
        )
        return self._client.get("api/nsk/v1/currency/converter", request.to_query())
