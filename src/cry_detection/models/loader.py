"""Pick a classifier backend from the model file suffix."""

from __future__ import annotations

import logging
from pathlib import Path

from cry_detection.errors import ModelLoadError
from cry_detection.models.tflite_model import load_tflite_model
from cry_detection.models.torchscript_model import load_torchscript_model

logger = logging.getLogger(__name__)

TFLITE_SUFFIXES = (".tflite",)
TORCHSCRIPT_SUFFIXES = (".pt", ".pth", ".ts", ".jit")


def load_model(identifier: str | Path, **kwargs):
    """Load a classifier exposing `predict(flat) -> np.ndarray`.

    Args:
        identifier: Path to a .tflite or TorchScript file.
        **kwargs: Passed to the backend loader (num_threads, device, input_shape).

    Raises:
        ModelLoadError: missing file, unsupported format, or backend failure.
    """
    path = Path(identifier)
    if not path.exists():
        raise ModelLoadError(f"Model not found: {path}")
    suffix = path.suffix.lower()
    if suffix in TFLITE_SUFFIXES:
        logger.info(f"Loading TFLite model from {path}")
        return load_tflite_model(path, **kwargs)
    if suffix in TORCHSCRIPT_SUFFIXES:
        logger.info(f"Loading TorchScript model from {path}")
        return load_torchscript_model(path, **kwargs)
    raise ModelLoadError(f"Unsupported model format '{suffix}' for {path}")
