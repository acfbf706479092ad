"""Top-level coordinator used by the presentation layer."""

from typing import List, Optional, Sequence

from core.logging import correlation_scope, get_logger
from core.trading.models import (
    Credentials,
    MarketForecast,
    MarketQuote,
    PredictionResult,
    Session,
    SessionInvalidationReason,
    SessionState,
    TradeOrder,
    TradeResult,
)
from core.utils.exceptions import NotAuthorizedError, StorageError, create_error_context
from services.api_client import ApiClient
from services.auth import SessionManager
from services.prediction import PredictionEngine


class TradingOrchestrator:
    """Sequences fetch -> predict -> trade and gates authorized calls.

    Errors from the collaborators propagate unchanged. The only local side
    effect is invalidating the session when the service rejects its token.
    Nothing here retries: a trade that timed out may or may not have been
    received, and resubmitting it risks a duplicate order.
    """

    def __init__(self, session_manager: SessionManager, api_client: ApiClient,
                 prediction_engine: PredictionEngine):
        self.session_manager = session_manager
        self.api_client = api_client
        self.prediction_engine = prediction_engine
        self.logger = get_logger(__name__, component="trading")

    # --- session pass-throughs ---

    @property
    def session_state(self) -> SessionState:
        return self.session_manager.state

    @property
    def current_session(self) -> Optional[Session]:
        return self.session_manager.current_session

    async def login(self, credentials: Credentials) -> Session:
        with correlation_scope("login"):
            return await self.session_manager.login(credentials)

    async def logout(self) -> bool:
        with correlation_scope("logout"):
            return await self.session_manager.logout()

    async def restore_session(self) -> Optional[Session]:
        with correlation_scope("restore_session"):
            return await self.session_manager.restore()

    # --- pipeline ---

    async def fetch_market_data(self) -> List[MarketQuote]:
        with correlation_scope("fetch_market_data"):
            return await self.api_client.fetch_market_data()

    async def predict_from_quotes(self, quotes: Sequence[MarketQuote]) -> PredictionResult:
        with correlation_scope("predict_from_quotes", quote_count=len(quotes)):
            prices = [quote.price for quote in quotes]
            return await self.prediction_engine.predict(prices)

    async def fetch_and_predict(self) -> MarketForecast:
        with correlation_scope("fetch_and_predict"):
            quotes = await self.api_client.fetch_market_data()
            prediction = await self.prediction_engine.predict([quote.price for quote in quotes])
            return MarketForecast(quotes=tuple(quotes), prediction=prediction)

    async def place_trade(self, order: TradeOrder) -> TradeResult:
        with correlation_scope("place_trade", symbol=order.symbol):
            session = await self.session_manager.snapshot()
            if session is None:
                self.logger.info("Trade refused: not logged in", symbol=order.symbol)
                raise NotAuthorizedError("Log in before placing trades")

            try:
                return await self.api_client.place_trade(session.token, order)
            except NotAuthorizedError as e:
                self.logger.warning("Session rejected while trading; invalidating",
                                    **create_error_context(e, "place_trade"))
                try:
                    await self.session_manager.invalidate(
                        SessionInvalidationReason.NOT_AUTHORIZED, token=session.token
                    )
                except StorageError as storage_error:
                    # In-memory session is already gone; the caller still needs the auth error
                    self.logger.error("Stored token could not be cleared",
                                      **create_error_context(storage_error, "invalidate"))
                raise
