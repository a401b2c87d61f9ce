"""Booking lookup models."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, Field, StringConstraints

from jambojet.models.currency import upper_code

RecordLocator = Annotated[str, StringConstraints(pattern=r"^[A-Z0-9]{6}$"), BeforeValidator(upper_code)]


class BookingLookup(BaseModel):
    record_locator: RecordLocator = Field(alias="recordLocator")

    model_config = {"populate_by_name": True}
