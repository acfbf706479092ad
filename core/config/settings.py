# Complete settings for the session & trading core
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from enum import Enum
from typing import Annotated, Literal, Optional
from pathlib import Path


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class ApiSettings(BaseModel):
    """Remote trading / market-data service"""
    base_url: str = "http://localhost:8000"
    timeout_seconds: float = Field(default=10.0, gt=0)
    connect_timeout_seconds: float = Field(default=5.0, gt=0)
    login_path: str = "/login"
    market_data_path: str = "/market-data"
    place_trade_path: str = "/place-trade"
    user_agent: str = "trade-pilot/1.0"

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")


class SessionStoreSettings(BaseModel):
    # keyring = platform keychain, memory = process-local (testing only)
    backend: Literal["keyring", "memory"] = "keyring"
    service_name: str = "trade-pilot"
    token_key: str = "session_token"


class PredictionSettings(BaseModel):
    model_path: str = "models/price_model.joblib"
    input_length: int = Field(default=10, gt=0)
    # None disables the output length check
    output_length: Optional[Annotated[int, Field(gt=0)]] = 1


class LoggingSettings(BaseModel):
    level: str = "INFO"
    console_json_format: bool = False  # Plain text for console by default
    # Redaction
    redact_keys: list[str] = [
        "authorization", "access_token", "refresh_token", "password",
        "secret", "token", "set-cookie"
    ]

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """Main application settings, loaded from environment variables"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    app_name: str = "Trade Pilot"
    version: str = "1.0.0"
    environment: Environment = Environment.DEVELOPMENT

    api: ApiSettings = ApiSettings()
    session_store: SessionStoreSettings = SessionStoreSettings()
    prediction: PredictionSettings = PredictionSettings()
    logging: LoggingSettings = LoggingSettings()

    @property
    def base_dir(self) -> str:
        """Get base application directory dynamically"""
        # Go up 2 levels from core/config/settings.py to reach project root
        return str(Path(__file__).resolve().parents[2])

    def resolve_model_path(self) -> str:
        """Absolute model artifact path; relative paths resolve from the project root."""
        path = Path(self.prediction.model_path)
        if not path.is_absolute():
            path = Path(self.base_dir) / path
        return str(path)


# No global settings instance - use dependency injection instead
