"""Streaming window assembly, inference and session lifecycle."""

from cry_detection.pipeline.buffer import FeatureBuffer
from cry_detection.pipeline.config import StreamingConfig
from cry_detection.pipeline.inference import InferenceInvoker, LatestScore
from cry_detection.pipeline.scheduler import WindowScheduler
from cry_detection.pipeline.session import CryDetectionSession, SessionEvent, SessionState

__all__ = [
    "CryDetectionSession",
    "FeatureBuffer",
    "InferenceInvoker",
    "LatestScore",
    "SessionEvent",
    "SessionState",
    "StreamingConfig",
    "WindowScheduler",
]
