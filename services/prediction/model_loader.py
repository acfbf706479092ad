"""
Centralized model loading with caching
"""

import os
from pathlib import Path
from typing import Any, Dict

import joblib

from core.logging import get_logger
from core.utils.exceptions import InferenceError

logger = get_logger(__name__, component="prediction")


class ModelLoader:
    """Centralized model loading with caching"""

    _model_cache: Dict[str, Any] = {}

    @classmethod
    def resolve_path(cls, model_path: str) -> str:
        """Resolve relative paths against the project root"""
        if os.path.isabs(model_path):
            return model_path
        project_dir = Path(__file__).resolve().parents[2]
        return str(project_dir / model_path)

    @classmethod
    def load_model(cls, model_path: str) -> Any:
        """Load model with caching; a missing or broken artifact raises InferenceError"""
        model_path = cls.resolve_path(model_path)

        # Check cache first
        if model_path in cls._model_cache:
            logger.debug("Returning model from cache", model_path=model_path)
            return cls._model_cache[model_path]

        if not os.path.exists(model_path):
            raise InferenceError(f"Model file not found: {model_path}", model=model_path)

        try:
            model = joblib.load(model_path)
        except Exception as e:
            logger.exception("Failed to load model", model_path=model_path)
            raise InferenceError(f"Failed to load model {model_path}: {e}", model=model_path) from e

        cls._model_cache[model_path] = model
        logger.info("Model loaded", model_path=model_path, **cls.get_model_metadata(model))
        return model

    @classmethod
    def clear_cache(cls):
        """Clear model cache - useful for testing"""
        cls._model_cache.clear()

    @staticmethod
    def get_model_metadata(model: Any) -> Dict[str, Any]:
        """Return lightweight model metadata for diagnostics."""
        meta: Dict[str, Any] = {"model_class": type(model).__name__}
        nfi = getattr(model, 'n_features_in_', None)
        if nfi is not None:
            meta["n_features_in"] = int(nfi)
        version = getattr(model, 'version', None)
        if version is not None:
            meta["model_version"] = str(version)
        return meta
