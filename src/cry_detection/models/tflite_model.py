"""TFLite classifier loader for the cry detection pipeline.

The model takes one window of MFCC frames and outputs a probability vector
whose index 0 is the cry probability. The flat window is reshaped to the
model's declared input shape, e.g. (1, 1200) or (1, 30, 40, 1).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np

from cry_detection.errors import ModelLoadError


def _get_interpreter_class():
    try:
        from tflite_runtime.interpreter import Interpreter
    except ImportError:
        try:
            from ai_edge_litert.interpreter import Interpreter
        except ImportError as exc:
            raise ModelLoadError(
                "A TFLite runtime is required: pip install tflite-runtime (or ai-edge-litert)"
            ) from exc
    return Interpreter


class TFLiteModel:
    """Wraps a TFLite interpreter behind `predict(flat) -> np.ndarray`."""

    def __init__(self, interpreter):
        self._interpreter = interpreter
        self._interpreter.allocate_tensors()
        self._input = self._interpreter.get_input_details()[0]
        self._output = self._interpreter.get_output_details()[0]

    @property
    def input_shape(self) -> tuple:
        return tuple(int(d) for d in self._input["shape"])

    @property
    def input_size(self) -> int:
        """Number of scalars the model consumes per call."""
        return int(np.prod(self.input_shape))

    def predict(self, flat: np.ndarray) -> np.ndarray:
        flat = np.asarray(flat).reshape(-1)
        if flat.shape[0] != self.input_size:
            raise ValueError(
                f"Model expects {self.input_size} values {self.input_shape}, got {flat.shape[0]}"
            )
        x = flat.astype(self._input["dtype"]).reshape(self.input_shape)
        self._interpreter.set_tensor(self._input["index"], x)
        self._interpreter.invoke()
        return np.asarray(self._interpreter.get_tensor(self._output["index"])).reshape(-1)


def load_tflite_model(path: str | Path, num_threads: Optional[int] = None) -> TFLiteModel:
    """Load a .tflite classifier.

    Args:
        path: Path to the .tflite file.
        num_threads: Interpreter thread count (None = runtime default).

    Raises:
        ModelLoadError: file missing, runtime missing, or invalid model.
    """
    path = Path(path)
    if not path.exists():
        raise ModelLoadError(f"TFLite model not found: {path}")
    Interpreter = _get_interpreter_class()
    try:
        interpreter = Interpreter(model_path=str(path), num_threads=num_threads)
        return TFLiteModel(interpreter)
    except Exception as exc:
        raise ModelLoadError(f"Invalid TFLite model {path}: {exc}") from exc
