"""Currency conversion models."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, StringConstraints


def upper_code(value: Any) -> Any:
    """Strip and upper-case codes before the pattern check."""
    return value.strip().upper() if isinstance(value, str) else value


CurrencyCode = Annotated[str, StringConstraints(pattern=r"^[A-Z]{1,3}$"), BeforeValidator(upper_code)]


class CurrencyConversionRequest(BaseModel):
    """Query for ``GET api/nsk/v1/currency/converter``."""
    from_currency_code: CurrencyCode = Field(alias="FromCurrencyCode")
    to_currency_code: CurrencyCode = Field(alias="ToCurrencyCode")
    amount: float = Field(alias="Amount", gt=0)
    inverted: bool = Field(default=False, alias="Inverted")

    model_config = {"populate_by_name": True}

    def to_query(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
