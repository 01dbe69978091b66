"""Classifier loaders (TFLite, TorchScript)."""

from cry_detection.models.loader import load_model
from cry_detection.models.tflite_model import TFLiteModel, load_tflite_model
from cry_detection.models.torchscript_model import TorchScriptModel, load_torchscript_model

__all__ = [
    "load_model",
    "load_tflite_model",
    "load_torchscript_model",
    "TFLiteModel",
    "TorchScriptModel",
]
