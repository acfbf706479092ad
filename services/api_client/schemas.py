"""Response payloads of the remote service."""

import math
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel, StrictFloat, StrictInt, field_validator


class LoginPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: str = Field(min_length=1)
    email: str = ""
    token: str = Field(min_length=1)


class QuotePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Strict: booleans and numeric strings are protocol violations
    price: Union[StrictInt, StrictFloat]

    @field_validator("price")
    @classmethod
    def price_must_be_finite(cls, v):
        if not math.isfinite(v):
            raise ValueError("price must be finite")
        return v


class MarketDataPayload(RootModel[List[QuotePayload]]):
    pass
