# Structured logging for the Trade Pilot core
import sys
import logging
import structlog
from typing import Optional, Dict, Any, Iterable

from core.config.settings import Settings
from .correlation import CorrelationIdManager, correlation_scope

# Global flag to prevent duplicate logging configuration
_logging_configured = False

DEFAULT_REDACT_KEYS = (
    'authorization', 'access_token', 'refresh_token', 'password',
    'secret', 'token', 'set-cookie'
)


def add_correlation_id(logger, name, event_dict):
    """Add correlation ID to log events if available"""
    correlation_id = CorrelationIdManager.get_correlation_id()
    if correlation_id:
        event_dict.setdefault('correlation_id', correlation_id)
        correlation_context = CorrelationIdManager.get_correlation_context()
        if correlation_context:
            event_dict.setdefault('correlation_context', correlation_context)
    return event_dict


def make_standard_context(settings: Settings):
    """Bind standard context fields once from settings."""
    def add_standard_context(logger, name, event_dict):
        event_dict.setdefault('env', settings.environment.value)
        event_dict.setdefault('service', settings.app_name)
        event_dict.setdefault('version', settings.version)
        return event_dict
    return add_standard_context


def make_redactor(keys: Optional[Iterable[str]] = None):
    """Redact sensitive fields from event dict recursively."""
    keys_to_redact = {k.lower() for k in (keys or DEFAULT_REDACT_KEYS)}

    def _redact(obj):
        if isinstance(obj, dict):
            out = {}
            for k, v in obj.items():
                if isinstance(k, str) and k.lower() in keys_to_redact:
                    out[k] = '[REDACTED]'
                else:
                    out[k] = _redact(v)
            return out
        if isinstance(obj, (list, tuple)):
            return [_redact(v) for v in obj]
        return obj

    def redact_sensitive(logger, name, event_dict):
        return _redact(event_dict)

    return redact_sensitive


def configure_logging(settings: Settings) -> None:
    """Configure structlog on top of stdlib logging, once per process."""
    global _logging_configured

    # Prevent duplicate configuration
    if _logging_configured:
        return

    level = getattr(logging, settings.logging.level.upper())
    root_logger = logging.getLogger()

    foreign_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    console_processor = (
        structlog.processors.JSONRenderer()
        if settings.logging.console_json_format
        else structlog.dev.ConsoleRenderer()
    )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=console_processor,
            foreign_pre_chain=foreign_chain,
        )
    )
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    structlog.configure(
        processors=[
            add_correlation_id,
            make_standard_context(settings),
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            make_redactor(settings.logging.redact_keys),
            # Defer final rendering to handlers via ProcessorFormatter
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _logging_configured = True


def get_logger(name: str, component: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    logger = structlog.get_logger(name)
    if component:
        logger = logger.bind(component=component)
    return logger


def bind_session_context(logger: structlog.BoundLogger, user_id: Optional[str]) -> structlog.BoundLogger:
    """Bind the session's user to a logger (never the token)."""
    ctx: Dict[str, Any] = {"user_id": user_id or "unknown"}
    return logger.bind(**ctx)


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_session_context",
    "make_redactor",
    "CorrelationIdManager",
    "correlation_scope",
]
