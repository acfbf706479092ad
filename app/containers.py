# Application DI container - every component receives its collaborators here
from dependency_injector import containers, providers

from core.config.settings import Settings
from services.api_client import ApiClient
from services.auth import SessionManager
from services.prediction import JoblibModelBackend, PredictionEngine
from services.session_store import SecureSessionStore, create_secret_backend
from services.trading import TradingOrchestrator


class AppContainer(containers.DeclarativeContainer):
    """Application dependency injection container"""

    # Configuration
    settings = providers.Singleton(Settings)

    # --- Secure session store ---
    secret_backend = providers.Singleton(create_secret_backend, settings=settings)

    session_store = providers.Singleton(
        SecureSessionStore,
        backend=secret_backend,
        service_name=settings.provided.session_store.service_name,
        token_key=settings.provided.session_store.token_key,
    )

    # --- Remote service client ---
    # Override `api_transport` to substitute an httpx transport (tests, replay)
    api_transport = providers.Object(None)

    api_client = providers.Singleton(
        ApiClient,
        settings=settings.provided.api,
        transport=api_transport,
    )

    # --- Inference ---
    # Model handle is loaded once, on first use of the engine
    inference_backend = providers.Singleton(
        JoblibModelBackend,
        model_path=settings.provided.resolve_model_path.call(),
    )

    prediction_engine = providers.Singleton(
        PredictionEngine,
        backend=inference_backend,
        input_length=settings.provided.prediction.input_length,
        output_length=settings.provided.prediction.output_length,
    )

    # --- Session & orchestration ---
    session_manager = providers.Singleton(
        SessionManager,
        api_client=api_client,
        store=session_store,
    )

    trading_orchestrator = providers.Singleton(
        TradingOrchestrator,
        session_manager=session_manager,
        api_client=api_client,
        prediction_engine=prediction_engine,
    )
