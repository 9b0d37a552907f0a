from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Literal


class CurrencyFormat(BaseModel):
    symbol: str = "$"
    position: Literal["before", "after"] = "before"
    decimal_places: int = Field(2, ge=0, le=10)
    thousands_separator: str = ","
    decimal_separator: str = "."

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AlertThresholds(BaseModel):
    large_transaction_threshold: float = Field(1000.0, ge=0)
    budget_threshold: float = Field(0.85, ge=0, le=1)
    currency_symbol: str = "$"
    budget_alerts: bool = True
    large_transactions: bool = True

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)
