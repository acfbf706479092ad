"""Async HTTP client for the remote trading / market-data service.

The client is a pure transport: it never retries, caches, or touches
session state. Every failure leaves as one of the typed errors in
core.utils.exceptions.
"""

import socket
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from core.config.settings import ApiSettings
from core.logging import get_logger
from core.trading.models import Credentials, MarketQuote, Session, TradeOrder, TradeResult
from core.utils.exceptions import (
    AuthenticationError,
    NetworkError,
    NetworkErrorKind,
    NotAuthorizedError,
    ProtocolError,
    TradeRejectedError,
)
from .schemas import LoginPayload, MarketDataPayload

_DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
)


def classify_transport_error(error: httpx.TransportError) -> NetworkErrorKind:
    """Map an httpx transport failure onto timeout / dns / connection."""
    if isinstance(error, httpx.TimeoutException):
        return NetworkErrorKind.TIMEOUT
    if isinstance(error, httpx.ConnectError):
        cause: Optional[BaseException] = error
        while cause is not None:
            if isinstance(cause, socket.gaierror):
                return NetworkErrorKind.DNS
            cause = cause.__cause__ or cause.__context__
        message = str(error).lower()
        if any(marker in message for marker in _DNS_FAILURE_MARKERS):
            return NetworkErrorKind.DNS
    return NetworkErrorKind.CONNECTION


def _response_reason(response: httpx.Response) -> str:
    """Best-effort human readable reason from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            if body.get(key):
                return str(body[key])
    return response.text[:200]


class ApiClient:
    """Client for POST /login, GET /market-data and POST /place-trade."""

    def __init__(self, settings: ApiSettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = get_logger(__name__, component="api_client")

    async def start(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=httpx.Timeout(
                self.settings.timeout_seconds,
                connect=self.settings.connect_timeout_seconds,
            ),
            headers={"User-Agent": self.settings.user_agent, "Accept": "application/json"},
            transport=self._transport,
        )
        self.logger.info("API client started", base_url=self.settings.base_url)

    async def stop(self) -> None:
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        self.logger.info("API client stopped")

    async def __aenter__(self) -> "ApiClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        if self._client is None:
            await self.start()
        started = time.perf_counter()
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            kind = classify_transport_error(e)
            self.logger.warning(
                "Request failed in transport",
                method=method,
                path=path,
                kind=kind.value,
                error=str(e),
            )
            raise NetworkError(
                f"{method} {path} failed: {kind.value}: {e}",
                kind=kind,
                details={"method": method, "path": path},
            ) from e
        self.logger.debug(
            "Request completed",
            method=method,
            path=path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return response

    @staticmethod
    def _json(response: httpx.Response, path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ProtocolError(
                f"Response from {path} is not valid JSON",
                status_code=response.status_code,
            ) from e

    async def login(self, credentials: Credentials) -> Session:
        path = self.settings.login_path
        response = await self._request("POST", path, json=credentials.to_payload())

        if response.status_code != 200:
            self.logger.info("Login rejected", username=credentials.username,
                             status_code=response.status_code)
            raise AuthenticationError(
                f"Login rejected: {_response_reason(response) or response.reason_phrase}",
                status_code=response.status_code,
            )

        body = self._json(response, path)
        try:
            payload = LoginPayload.model_validate(body)
        except PydanticValidationError as e:
            raise ProtocolError(
                f"Unexpected login response: {e.error_count()} invalid field(s)",
                status_code=response.status_code,
            ) from e

        self.logger.info("Login accepted", username=payload.username)
        return Session(
            token=payload.token,
            user_id=payload.username,
            display_name=payload.username,
            email=payload.email or None,
        )

    async def fetch_market_data(self) -> List[MarketQuote]:
        path = self.settings.market_data_path
        response = await self._request("GET", path)

        if response.status_code != 200:
            raise ProtocolError(
                f"Market data request failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        body = self._json(response, path)
        try:
            payload = MarketDataPayload.model_validate(body)
        except PydanticValidationError as e:
            raise ProtocolError(
                f"Unexpected market data response: {e.error_count()} invalid item(s)",
                status_code=response.status_code,
            ) from e

        # Position in the response is the sequence index
        quotes = [
            MarketQuote(sequence_index=index, price=float(item.price))
            for index, item in enumerate(payload.root)
        ]
        self.logger.debug("Market data received", quote_count=len(quotes))
        return quotes

    async def place_trade(self, token: str, order: TradeOrder) -> TradeResult:
        if not token:
            raise NotAuthorizedError("A session token is required to place a trade")

        path = self.settings.place_trade_path
        order_data = order.to_payload()
        response = await self._request(
            "POST",
            path,
            json=order_data,
            headers={"Authorization": f"Bearer {token}"},
        )

        if response.status_code in (401, 403):
            self.logger.warning("Trade not authorized", symbol=order.symbol,
                                status_code=response.status_code)
            raise NotAuthorizedError(
                "Session rejected by the trading service",
                status_code=response.status_code,
            )

        if response.status_code != 200:
            reason = _response_reason(response)
            self.logger.warning("Trade rejected", symbol=order.symbol,
                                status_code=response.status_code, reason=reason)
            raise TradeRejectedError(
                f"Trade rejected with HTTP {response.status_code}: {reason}",
                status_code=response.status_code,
                reason=reason,
                order_data=order_data,
            )

        payload: Dict[str, Any] = {}
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = None
            # A 200 is success regardless of body shape
            if isinstance(body, dict):
                payload = body

        self.logger.info("Trade placed", symbol=order.symbol, quantity=order.quantity,
                         order_type=order.order_type.value)
        return TradeResult(order=order, status_code=response.status_code, payload=payload)
