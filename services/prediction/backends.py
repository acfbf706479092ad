"""Inference backends."""

import threading
from typing import Any, Optional, Sequence

import numpy as np

from .model_loader import ModelLoader


class JoblibModelBackend:
    """Wraps a joblib-serialized estimator exposing ``predict``.

    The artifact is loaded on first use, so components that never predict
    do not need it on disk. Once loaded the handle is only read.
    """

    def __init__(self, model_path: str, model: Optional[Any] = None):
        self.model_path = model_path
        self._model = model
        self._load_lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._model is not None

    @property
    def model(self) -> Any:
        if self._model is None:
            # infer() runs on executor threads
            with self._load_lock:
                if self._model is None:
                    self._model = ModelLoader.load_model(self.model_path)
        return self._model

    @property
    def expected_input_length(self) -> Optional[int]:
        nfi = getattr(self.model, "n_features_in_", None)
        return int(nfi) if nfi is not None else None

    def infer(self, vector: Sequence[float]) -> Sequence[float]:
        features = np.asarray(vector, dtype=np.float64).reshape(1, -1)
        output = self.model.predict(features)
        return np.asarray(output, dtype=np.float64).ravel().tolist()
