"""Window assembly parameters for the streaming classifier."""

from __future__ import annotations

import math
from dataclasses import dataclass

from cry_detection.audio.config import AudioConfig


@dataclass(frozen=True)
class StreamingConfig:
    """Window length, frame dimension and overlap policy.

    After each window is classified, retain_drop = floor(hop_ratio * W)
    frames are dropped from the head of the buffer, so consecutive windows
    share W - retain_drop frames and a new window is ready every
    retain_drop incoming frames.
    """

    window_frames: int = 30
    frame_dim: int = 40
    hop_ratio: float = 0.5

    def __post_init__(self) -> None:
        if self.window_frames < 1:
            raise ValueError("window_frames must be >= 1")
        if self.frame_dim < 1:
            raise ValueError("frame_dim must be >= 1")
        if not 0.0 <= self.hop_ratio <= 1.0:
            raise ValueError("hop_ratio must be in [0, 1]")

    @classmethod
    def from_audio_config(cls, config: AudioConfig) -> "StreamingConfig":
        return cls(
            window_frames=config.frames_per_window,
            frame_dim=config.frame_dim,
            hop_ratio=config.hop_ratio,
        )

    @property
    def window_size(self) -> int:
        """Scalars per window (W * D), the classifier's flat input length."""
        return self.window_frames * self.frame_dim

    @property
    def retain_drop(self) -> int:
        """Frames removed from the buffer head after each window."""
        return math.floor(self.hop_ratio * self.window_frames)

    @property
    def overlap_frames(self) -> int:
        """Frames shared by two consecutive windows."""
        return self.window_frames - self.retain_drop
