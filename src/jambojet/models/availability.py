"""Availability search request models."""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, StringConstraints, model_validator

from jambojet.models.currency import upper_code

StationCode = Annotated[str, StringConstraints(pattern=r"^[A-Z]{3}$"), BeforeValidator(upper_code)]
FareCurrencyCode = Annotated[str, StringConstraints(pattern=r"^[A-Z]{3}$"), BeforeValidator(upper_code)]


class PassengerType(BaseModel):
    type: str = Field(default="ADT", min_length=1, max_length=4)  # ADT, CHD, INF...
    count: int = Field(default=1, ge=1, le=9)


class PassengerCriteria(BaseModel):
    types: list[PassengerType] = Field(min_length=1)


class SimpleAvailabilityRequest(BaseModel):
    """Body for ``POST api/nsk/v{3,4}/availability/search/simple``."""
    origin: StationCode
    destination: StationCode
    begin_date: date = Field(alias="beginDate")
    end_date: date | None = Field(default=None, alias="endDate")
    passengers: PassengerCriteria = Field(
        default_factory=lambda: PassengerCriteria(types=[PassengerType()])
    )
    currency_code: FareCurrencyCode | None = Field(default=None, alias="currencyCode")
    search_destination_macs: bool | None = Field(default=None, alias="searchDestinationMacs")
    search_origin_macs: bool | None = Field(default=None, alias="searchOriginMacs")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _check_route_and_dates(self) -> SimpleAvailabilityRequest:
        if self.origin == self.destination:
            raise ValueError("Origin and destination cannot be the same")
        if self.end_date is not None and self.end_date < self.begin_date:
            raise ValueError("Return date must be after departure date")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AvailabilitySearchRequest(BaseModel):
    """Body for the full ``POST api/nsk/v4/availability/search``.

    Only the top-level shape is checked; criteria pass through as sent.
    """
    passengers: PassengerCriteria
    criteria: list[dict[str, Any]] = Field(min_length=1)

    model_config = {"extra": "allow"}

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
