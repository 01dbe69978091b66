"""Infant cry detection - MFCC frames, rolling windows, streaming classifier."""

from cry_detection.errors import (
    CryDetectionError,
    InferenceError,
    MicrophonePermissionError,
    ModelLoadError,
    ResourceReleaseError,
)
from cry_detection.pipeline import CryDetectionSession, SessionEvent, SessionState, StreamingConfig

__all__ = [
    "CryDetectionError",
    "CryDetectionSession",
    "InferenceError",
    "MicrophonePermissionError",
    "ModelLoadError",
    "ResourceReleaseError",
    "SessionEvent",
    "SessionState",
    "StreamingConfig",
]
