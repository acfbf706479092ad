import asyncio

import httpx
import pytest

from core.trading.models import (
    MarketForecast,
    MarketQuote,
    OrderType,
    SessionState,
    TradeOrder,
    TradeResult,
)
from core.utils.exceptions import (
    NetworkError,
    NetworkErrorKind,
    NotAuthorizedError,
    ProtocolError,
    TradeRejectedError,
    ValidationError,
)

ORDER = TradeOrder(symbol="BTCUSD", quantity=0.1, order_type=OrderType.MARKET)


class TestAuthorizationGate:

    @pytest.mark.asyncio
    async def test_trade_while_logged_out_issues_no_request(self, orchestrator, remote):
        with pytest.raises(NotAuthorizedError):
            await orchestrator.place_trade(ORDER)
        assert remote.calls() == 0

    @pytest.mark.asyncio
    async def test_trade_with_session_succeeds(self, orchestrator, remote, alice):
        await orchestrator.login(alice)

        result = await orchestrator.place_trade(ORDER)

        assert result.success
        assert remote.last_request("/place-trade").headers["authorization"] == "Bearer tok123"
        assert orchestrator.session_state is SessionState.LOGGED_IN

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_rejected_session_is_invalidated(self, orchestrator, remote, alice, stored_token,
                                                   status_code):
        await orchestrator.login(alice)
        remote.respond("/place-trade", status_code, {"error": "expired"})

        with pytest.raises(NotAuthorizedError):
            await orchestrator.place_trade(ORDER)

        assert orchestrator.session_state is SessionState.LOGGED_OUT
        assert stored_token() is None

        # The next attempt fails locally instead of repeating the doomed call
        with pytest.raises(NotAuthorizedError):
            await orchestrator.place_trade(ORDER)
        assert remote.calls("/place-trade") == 1

    @pytest.mark.asyncio
    async def test_restored_session_is_invalidated_lazily(self, orchestrator, session_store, remote):
        await session_store.save("stale-token")
        await orchestrator.restore_session()
        assert orchestrator.session_state is SessionState.LOGGED_IN
        remote.respond("/place-trade", 401, None)

        with pytest.raises(NotAuthorizedError):
            await orchestrator.place_trade(ORDER)
        assert orchestrator.session_state is SessionState.LOGGED_OUT

    @pytest.mark.asyncio
    async def test_business_rejection_keeps_session(self, orchestrator, remote, alice):
        await orchestrator.login(alice)
        remote.respond("/place-trade", 422, {"message": "insufficient funds"})

        with pytest.raises(TradeRejectedError):
            await orchestrator.place_trade(ORDER)
        assert orchestrator.session_state is SessionState.LOGGED_IN

    @pytest.mark.asyncio
    async def test_timeout_is_surfaced_once_and_keeps_session(self, orchestrator, remote, alice):
        await orchestrator.login(alice)
        remote.fail("/place-trade", httpx.ReadTimeout("timed out"))

        with pytest.raises(NetworkError) as exc:
            await orchestrator.place_trade(ORDER)

        assert exc.value.kind is NetworkErrorKind.TIMEOUT
        assert remote.calls("/place-trade") == 1
        assert orchestrator.session_state is SessionState.LOGGED_IN

    @pytest.mark.asyncio
    async def test_trade_racing_logout_never_uses_a_torn_token(self, orchestrator, remote, alice):
        await orchestrator.login(alice)

        outcomes = await asyncio.gather(
            orchestrator.place_trade(ORDER),
            orchestrator.logout(),
            return_exceptions=True,
        )

        assert isinstance(outcomes[0], (TradeResult, NotAuthorizedError))
        assert outcomes[1] is True
        for request in remote.requests:
            if request.url.path == "/place-trade":
                assert request.headers["authorization"] == "Bearer tok123"
        assert orchestrator.session_state is SessionState.LOGGED_OUT


class TestPipeline:

    @pytest.mark.asyncio
    async def test_fetch_market_data_needs_no_session(self, orchestrator):
        quotes = await orchestrator.fetch_market_data()
        assert quotes == [MarketQuote(0, 100.0), MarketQuote(1, 102.0)]

    @pytest.mark.asyncio
    async def test_predict_uses_prices_in_quote_order(self, orchestrator, model_backend):
        seen = []
        original = model_backend.infer

        def recording_infer(vector):
            seen.append(list(vector))
            return original(vector)

        model_backend.infer = recording_infer

        await orchestrator.predict_from_quotes([MarketQuote(0, 5.0), MarketQuote(1, 7.0)])
        assert seen == [[5.0, 7.0]]

    @pytest.mark.asyncio
    async def test_predict_is_deterministic(self, orchestrator):
        quotes = [MarketQuote(0, 100.0), MarketQuote(1, 102.0)]
        first = await orchestrator.predict_from_quotes(quotes)
        second = await orchestrator.predict_from_quotes(list(quotes))
        assert first == second

    @pytest.mark.asyncio
    async def test_wrong_number_of_quotes_is_validation_error(self, orchestrator, model_backend):
        with pytest.raises(ValidationError):
            await orchestrator.predict_from_quotes([MarketQuote(0, 1.0)])
        assert model_backend.calls == 0

    @pytest.mark.asyncio
    async def test_fetch_and_predict(self, orchestrator):
        forecast = await orchestrator.fetch_and_predict()

        assert isinstance(forecast, MarketForecast)
        assert forecast.quotes == (MarketQuote(0, 100.0), MarketQuote(1, 102.0))
        assert forecast.prediction.values == (101.0,)

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate_unchanged(self, orchestrator, remote, model_backend):
        remote.respond("/market-data", 502, None)

        with pytest.raises(ProtocolError):
            await orchestrator.fetch_and_predict()
        assert model_backend.calls == 0

    @pytest.mark.asyncio
    async def test_reads_run_concurrently_with_login(self, orchestrator, alice):
        session, quotes, forecast = await asyncio.gather(
            orchestrator.login(alice),
            orchestrator.fetch_market_data(),
            orchestrator.fetch_and_predict(),
        )
        assert session.token == "tok123"
        assert len(quotes) == 2
        assert forecast.prediction.values == (101.0,)


@pytest.mark.asyncio
async def test_cancelled_trade_is_not_resubmitted(orchestrator, remote, alice):
    await orchestrator.login(alice)
    remote.delay("/place-trade", 10)

    task = asyncio.create_task(orchestrator.place_trade(ORDER))
    while remote.calls("/place-trade") == 0:
        await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0.05)
    assert remote.calls("/place-trade") == 1
    assert orchestrator.session_state is SessionState.LOGGED_IN
