from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, SecretStr

from core.utils.exceptions import ValidationError


class Credentials(BaseModel):
    """Login credentials; exist only for the duration of a login call.

    The password is a SecretStr so it is masked in repr and never ends up
    in log output by accident.
    """

    model_config = ConfigDict(frozen=True)

    username: str
    password: SecretStr

    def to_payload(self) -> Dict[str, str]:
        return {"username": self.username, "password": self.password.get_secret_value()}


@dataclass(frozen=True)
class Session:
    """Authenticated identity plus bearer token. Replaced, never mutated."""

    token: str = field(repr=False)
    user_id: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None
    # Restored from the store; identity not confirmed by the server yet
    provisional: bool = False

    @classmethod
    def restored(cls, token: str) -> "Session":
        return cls(token=token, provisional=True)


class SessionState(str, Enum):
    LOGGED_OUT = "logged_out"
    LOGGED_IN = "logged_in"


class SessionInvalidationReason(str, Enum):
    LOGOUT = "logout"
    NOT_AUTHORIZED = "not_authorized"
    MANUAL = "manual"


@dataclass(frozen=True)
class MarketQuote:
    """A single price observation and its position in the received sequence."""

    sequence_index: int
    price: float


class OrderType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"
    STOP = "stop"
    STOP_LIMIT = "stop_limit"


@dataclass(frozen=True)
class TradeOrder:
    """Immutable order value, submitted as-is."""

    symbol: str
    quantity: float
    order_type: OrderType = OrderType.MARKET

    def __post_init__(self):
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise ValidationError("Order symbol must be a non-empty string",
                                  field="symbol", value=self.symbol, expected="non-empty str")
        if isinstance(self.quantity, bool):
            raise ValidationError("Order quantity must be numeric, not boolean",
                                  field="quantity", value=self.quantity, expected="float")
        try:
            quantity = float(self.quantity)
        except (TypeError, ValueError):
            raise ValidationError("Order quantity must be numeric",
                                  field="quantity", value=self.quantity, expected="float") from None
        if not math.isfinite(quantity) or quantity <= 0:
            raise ValidationError("Order quantity must be a positive finite number",
                                  field="quantity", value=self.quantity, expected="> 0")
        try:
            order_type = OrderType(self.order_type)
        except ValueError:
            raise ValidationError(f"Unknown order type: {self.order_type}",
                                  field="order_type", value=self.order_type,
                                  expected="|".join(t.value for t in OrderType)) from None
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "quantity", quantity)
        object.__setattr__(self, "order_type", order_type)

    def to_payload(self) -> Dict[str, Any]:
        """Wire format for POST /place-trade"""
        return {
            "symbol": self.symbol,
            "amount": self.quantity,
            "orderType": self.order_type.value,
        }


@dataclass(frozen=True)
class TradeResult:
    order: TradeOrder
    status_code: int
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status_code == 200


@dataclass(frozen=True)
class PredictionResult:
    """Model output; length and meaning are defined by the model."""

    values: Tuple[float, ...]

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "PredictionResult":
        return cls(values=tuple(float(v) for v in values))

    def __len__(self) -> int:
        return len(self.values)


@dataclass(frozen=True)
class MarketForecast:
    """Quotes and the prediction made from them, for chart + prediction display."""

    quotes: Tuple[MarketQuote, ...]
    prediction: PredictionResult
