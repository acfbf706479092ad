"""
Pytest configuration and shared fixtures for Trade Pilot tests.
"""
import pytest

from core.config.settings import (
    ApiSettings,
    PredictionSettings,
    SessionStoreSettings,
    Settings,
)
from core.trading.models import Credentials
from services.api_client import ApiClient
from services.auth import SessionManager
from services.prediction import PredictionEngine
from services.session_store import MemorySecretBackend, SecureSessionStore
from services.trading import TradingOrchestrator
from tests.mocks.mock_trading_api import MockModelBackend, MockTradingService


@pytest.fixture
def test_settings():
    """Test settings configuration."""
    return Settings(
        environment="testing",
        api=ApiSettings(base_url="http://trading.test", timeout_seconds=2.0),
        session_store=SessionStoreSettings(backend="memory", service_name="trade-pilot-test"),
        prediction=PredictionSettings(model_path="unused.joblib", input_length=2, output_length=1),
    )


@pytest.fixture
def remote():
    return MockTradingService()


@pytest.fixture
def secret_backend():
    return MemorySecretBackend()


@pytest.fixture
def session_store(secret_backend, test_settings):
    return SecureSessionStore(
        backend=secret_backend,
        service_name=test_settings.session_store.service_name,
        token_key=test_settings.session_store.token_key,
    )


@pytest.fixture
def stored_token(secret_backend, test_settings):
    """Read the raw token straight from the backend."""
    def _read():
        return secret_backend.get_secret(
            test_settings.session_store.service_name,
            test_settings.session_store.token_key,
        )
    return _read


@pytest.fixture
def api_client(test_settings, remote):
    return ApiClient(test_settings.api, transport=remote.transport())


@pytest.fixture
def model_backend():
    return MockModelBackend(input_length=2)


@pytest.fixture
def prediction_engine(model_backend):
    return PredictionEngine(model_backend, input_length=2, output_length=1)


@pytest.fixture
def session_manager(api_client, session_store):
    return SessionManager(api_client, session_store)


@pytest.fixture
def orchestrator(session_manager, api_client, prediction_engine):
    return TradingOrchestrator(session_manager, api_client, prediction_engine)


@pytest.fixture
def alice():
    return Credentials(username="alice", password="secret")
