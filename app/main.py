# app/main.py

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from core.config.settings import Settings
from core.logging import configure_logging, get_logger
from app.containers import AppContainer
from services.trading import TradingOrchestrator


class Application:
    """Builds the container, restores any stored session and owns shutdown."""

    def __init__(self, container: Optional[AppContainer] = None):
        self.container = container or AppContainer()
        self.settings: Settings = self.container.settings()
        configure_logging(self.settings)
        self.logger = get_logger("trade_pilot.main", component="application")

    async def startup(self) -> TradingOrchestrator:
        self.logger.info("Starting application", environment=self.settings.environment.value,
                         base_url=self.settings.api.base_url)
        api_client = self.container.api_client()
        await api_client.start()

        try:
            orchestrator = self.container.trading_orchestrator()
            session = await orchestrator.restore_session()
        except BaseException:
            self.logger.error("Startup failed, shutting down", exc_info=True)
            await self.shutdown()
            raise
        self.logger.info("Startup complete", session_state=orchestrator.session_state.value,
                         restored=session is not None)
        return orchestrator

    async def shutdown(self) -> None:
        await self.container.api_client().stop()
        self.logger.info("Application stopped")


@asynccontextmanager
async def running_application(container: Optional[AppContainer] = None) -> AsyncIterator[TradingOrchestrator]:
    """Yield a started orchestrator; always shuts the application down."""
    app = Application(container)
    orchestrator = await app.startup()
    try:
        yield orchestrator
    finally:
        await app.shutdown()
