"""TorchScript classifier loader for the cry detection pipeline.

The scripted module receives a float32 batch of one window, either flat
(1, W * D) or reshaped to (1, *input_shape), and returns class
probabilities; index 0 is the cry probability.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from cry_detection.errors import ModelLoadError


class TorchScriptModel:
    """Wraps a scripted torch module behind `predict(flat) -> np.ndarray`."""

    def __init__(self, module, device: str = "cpu", input_shape: Optional[Sequence[int]] = None):
        self.module = module
        self.device = device
        self.input_shape = tuple(input_shape) if input_shape else None

    def predict(self, flat: np.ndarray) -> np.ndarray:
        import torch

        with torch.no_grad():
            x = torch.from_numpy(np.asarray(flat, dtype=np.float32).reshape(-1))
            if self.input_shape is not None:
                x = x.reshape(self.input_shape)
            x = x.unsqueeze(0).to(self.device)
            out = self.module(x)
            # Some exports return (probs, ...) tuples
            if isinstance(out, (tuple, list)):
                out = out[0]
            return out.squeeze(0).cpu().numpy().astype(np.float32).reshape(-1)


def load_torchscript_model(
    path: str | Path,
    device: Optional[str] = None,
    input_shape: Optional[Sequence[int]] = None,
) -> TorchScriptModel:
    """Load a TorchScript classifier.

    Args:
        path: Path to the scripted module (.pt / .ts).
        device: 'cuda', 'cpu', ... If None, uses CUDA if available else CPU.
        input_shape: Per-sample input shape, e.g. (30, 40). None keeps the
            window flat.

    Raises:
        ModelLoadError: file missing, torch missing, or invalid module.
    """
    path = Path(path)
    if not path.exists():
        raise ModelLoadError(f"TorchScript model not found: {path}")
    try:
        import torch
    except ImportError as exc:
        raise ModelLoadError("torch is required for TorchScript models. pip install torch") from exc

    if device is None:
        device = "cuda" if torch.cuda.is_available() else "cpu"
    try:
        module = torch.jit.load(str(path), map_location=torch.device(device))
    except Exception as exc:
        raise ModelLoadError(f"Invalid TorchScript model {path}: {exc}") from exc
    module.eval()
    return TorchScriptModel(module, device=device, input_shape=input_shape)
