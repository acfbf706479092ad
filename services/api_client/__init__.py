"""HTTP client for the remote trading / market-data service."""

from .client import ApiClient

__all__ = ["ApiClient"]
