"""Error taxonomy for the cry detection pipeline.

Start-time failures (ModelLoadError, MicrophonePermissionError) are raised
out of CryDetectionSession.start(). Steady-state failures (InferenceError,
ResourceReleaseError) are logged and reported but never halt the stream.
"""

from __future__ import annotations

from typing import Optional


class CryDetectionError(Exception):
    """Base class for all cry detection errors."""


class ModelLoadError(CryDetectionError):
    """Classifier could not be loaded, or is not loaded yet."""


class MicrophonePermissionError(CryDetectionError, PermissionError):
    """Capture device access was denied or is unavailable."""


class InferenceError(CryDetectionError):
    """A single window could not be classified."""

    def __init__(self, message: str, window_index: Optional[int] = None):
        super().__init__(message)
        self.window_index = window_index


class ResourceReleaseError(CryDetectionError):
    """A teardown step failed while stopping a session."""

    def __init__(self, resource: str, message: str):
        super().__init__(f"{resource}: {message}")
        self.resource = resource
