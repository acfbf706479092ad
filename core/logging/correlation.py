"""
Correlation IDs for tracing one orchestrator operation across its
store, network and inference calls.
"""

import uuid
import contextvars
from contextlib import contextmanager
from typing import Optional, Dict, Any, Iterator

# Context variable to store correlation ID for the current operation
_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'correlation_id', default=None
)

# Context variable to store additional correlation context
_correlation_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    'correlation_context', default={}
)


class CorrelationIdManager:
    """Manager for correlation ID lifecycle and context propagation"""

    @staticmethod
    def generate_correlation_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def get_correlation_id() -> Optional[str]:
        return _correlation_id.get()

    @staticmethod
    def get_correlation_context() -> Dict[str, Any]:
        return _correlation_context.get().copy()

    @staticmethod
    def clear_correlation() -> None:
        """Clear correlation ID and context from current context"""
        _correlation_id.set(None)
        _correlation_context.set({})


@contextmanager
def correlation_scope(operation: str, **context: Any) -> Iterator[str]:
    """
    Run a block under a fresh correlation ID, restoring the previous one on exit.

    Each asyncio task carries its own copy of the context, so concurrent
    operations never see each other's IDs.
    """
    correlation_id = CorrelationIdManager.generate_correlation_id()
    id_token = _correlation_id.set(correlation_id)
    ctx_token = _correlation_context.set({"operation": operation, **context})
    try:
        yield correlation_id
    finally:
        _correlation_context.reset(ctx_token)
        _correlation_id.reset(id_token)
