"""Audio capture, MFCC extraction and feature frame source."""

from cry_detection.audio.config import AudioConfig
from cry_detection.audio.capture import MicrophoneProvider, MicrophoneStream
from cry_detection.audio.features import MfccFeatureExtractor, RingBuffer
from cry_detection.audio.frames import MfccFrameSource

__all__ = [
    "AudioConfig",
    "MicrophoneProvider",
    "MicrophoneStream",
    "MfccFeatureExtractor",
    "MfccFrameSource",
    "RingBuffer",
]
