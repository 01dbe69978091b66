"""Inference invoker: window -> classifier -> cry probability.

The classifier is any object with `predict(flat: np.ndarray) -> sequence`,
so TFLite, TorchScript or a test double can be plugged in. Index 0 of the
output is the cry probability; other outputs are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import numpy as np

from cry_detection.errors import InferenceError
from cry_detection.pipeline.config import StreamingConfig

logger = logging.getLogger(__name__)

ScoreCallback = Callable[[float], None]
ErrorCallback = Callable[[InferenceError], None]


class CryModel(Protocol):
    def predict(self, flat: np.ndarray) -> np.ndarray:
        ...


@dataclass
class LatestScore:
    """Most recent cry probability; last write wins."""

    value: Optional[float] = None
    stale: bool = False
    updates: int = 0
    failures: int = 0

    def update(self, value: float) -> None:
        self.value = value
        self.stale = False
        self.updates += 1

    def mark_stale(self) -> None:
        """Keep the previous value but flag that the latest window failed."""
        self.stale = True
        self.failures += 1


class InferenceInvoker:
    """Classifies windows one at a time; a failed window never stops the stream.

    Interface:
      invoker = InferenceInvoker(model, config, on_score=print)
      scheduler = WindowScheduler(config, on_window=invoker)
    """

    def __init__(
        self,
        model: CryModel,
        config: StreamingConfig,
        score: Optional[LatestScore] = None,
        on_score: Optional[ScoreCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.model = model
        self.config = config
        self.score = score if score is not None else LatestScore()
        self.on_score = on_score or (lambda s: None)
        self.on_error = on_error or (lambda e: None)
        self.windows_seen = 0

    def classify(self, window: np.ndarray, window_index: Optional[int] = None) -> float:
        """Run the classifier on one window and return output[0].

        Raises:
            InferenceError: the window has the wrong size, the classifier
                raised, or it returned no numeric output.
        """
        flat = np.asarray(window, dtype=np.float32).reshape(-1)
        if flat.shape[0] != self.config.window_size:
            raise InferenceError(
                f"Window has {flat.shape[0]} values, expected {self.config.window_size}",
                window_index,
            )
        try:
            output = self.model.predict(flat)
        except Exception as exc:
            raise InferenceError(f"Classifier failed: {exc}", window_index) from exc
        try:
            output = np.asarray(output, dtype=np.float64).reshape(-1)
        except (TypeError, ValueError) as exc:
            raise InferenceError("Classifier returned a non-numeric output", window_index) from exc
        if output.size == 0:
            raise InferenceError("Classifier returned an empty output", window_index)
        return float(output[0])

    def __call__(self, window: np.ndarray) -> Optional[float]:
        """Classify and report; failures are logged and skipped, never retried."""
        self.windows_seen += 1
        index = self.windows_seen
        try:
            prob = self.classify(window, index)
        except InferenceError as exc:
            logger.error(f"Inference failed on window {index}: {exc}")
            self.score.mark_stale()
            self.on_error(exc)
            return None
        self.score.update(prob)
        self.on_score(prob)
        return prob
