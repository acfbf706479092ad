"""Market-data -> prediction -> trade pipeline."""

from .orchestrator import TradingOrchestrator

__all__ = ["TradingOrchestrator"]
