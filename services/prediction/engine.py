"""Shape-checked inference over a pre-trained model."""

import asyncio
from typing import Optional, Sequence

import numpy as np

from core.logging import get_logger
from core.trading.interfaces import InferenceBackend
from core.trading.models import PredictionResult
from core.utils.exceptions import InferenceError, ValidationError


def _contains_bool(input_vector) -> bool:
    if isinstance(input_vector, np.ndarray):
        return input_vector.dtype.kind == "b"
    return any(isinstance(v, (bool, np.bool_)) for v in input_vector)


class PredictionEngine:
    """Validates input, runs inference, validates output.

    The backend is fixed at construction and its model is checked against
    the configured input length on the first predict; after that concurrent
    predict calls only share read-only state.
    """

    def __init__(self, backend: InferenceBackend, input_length: int,
                 output_length: Optional[int] = None):
        if input_length <= 0:
            raise ValueError("input_length must be positive")
        self.backend = backend
        self.input_length = input_length
        self.output_length = output_length
        self._backend_checked = False
        self._check_lock = asyncio.Lock()
        self.logger = get_logger(__name__, component="prediction")

    async def _ensure_backend_ready(self) -> None:
        if self._backend_checked:
            return
        async with self._check_lock:
            if self._backend_checked:
                return
            loop = asyncio.get_running_loop()
            # Reading the declared length may load the model artifact
            declared = await loop.run_in_executor(
                None, lambda: self.backend.expected_input_length
            )
            if declared is not None and declared != self.input_length:
                raise InferenceError(
                    f"Model expects {declared} inputs but {self.input_length} are configured",
                    model=type(self.backend).__name__,
                )
            self._backend_checked = True
            self.logger.info("Inference backend ready", backend=type(self.backend).__name__,
                             input_length=self.input_length)

    def _validate_input(self, input_vector: Sequence[float]) -> np.ndarray:
        try:
            if _contains_bool(input_vector):
                raise ValidationError("Inference input must be numeric, not boolean",
                                      field="input_vector", expected="sequence of float")
            vector = np.array(input_vector, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise ValidationError("Inference input must be numeric",
                                  field="input_vector", expected="sequence of float") from e
        if vector.ndim != 1:
            raise ValidationError("Inference input must be one-dimensional",
                                  field="input_vector", value=vector.shape,
                                  expected=f"({self.input_length},)")
        if vector.shape[0] != self.input_length:
            raise ValidationError(
                f"Inference input length {vector.shape[0]} does not match model input length {self.input_length}",
                field="input_vector",
                value=vector.shape[0],
                expected=str(self.input_length),
            )
        if not np.all(np.isfinite(vector)):
            raise ValidationError("Inference input contains non-finite values",
                                  field="input_vector", expected="finite floats")
        vector.setflags(write=False)
        return vector

    def _validate_output(self, raw_output) -> PredictionResult:
        try:
            output = np.asarray(raw_output, dtype=np.float64).ravel()
        except (TypeError, ValueError) as e:
            raise InferenceError("Model returned non-numeric output",
                                 model=type(self.backend).__name__) from e
        if self.output_length is not None and output.shape[0] != self.output_length:
            raise InferenceError(
                f"Model returned {output.shape[0]} values, expected {self.output_length}",
                model=type(self.backend).__name__,
            )
        if not np.all(np.isfinite(output)):
            raise InferenceError("Model returned non-finite values",
                                 model=type(self.backend).__name__)
        return PredictionResult.from_sequence(output.tolist())

    async def predict(self, input_vector: Sequence[float]) -> PredictionResult:
        vector = self._validate_input(input_vector)
        await self._ensure_backend_ready()

        loop = asyncio.get_running_loop()
        try:
            raw_output = await loop.run_in_executor(None, self.backend.infer, vector)
        except Exception as e:
            self.logger.error("Inference failed", error_type=type(e).__name__, error=str(e))
            raise InferenceError(f"Inference backend failed: {e}",
                                 model=type(self.backend).__name__) from e

        result = self._validate_output(raw_output)
        self.logger.debug("Inference completed", input_length=self.input_length,
                          output_length=len(result))
        return result
