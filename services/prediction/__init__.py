"""Model inference wrapper used by the trading pipeline."""

from .engine import PredictionEngine
from .backends import JoblibModelBackend
from .model_loader import ModelLoader

__all__ = ["PredictionEngine", "JoblibModelBackend", "ModelLoader"]
