"""Window scheduler: turns arriving frames into overlapping classifier windows."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np

from cry_detection.pipeline.buffer import FeatureBuffer
from cry_detection.pipeline.config import StreamingConfig

logger = logging.getLogger(__name__)

WindowCallback = Callable[[np.ndarray], None]


class WindowScheduler:
    """Accumulates frames and dispatches a window whenever W frames are held.

    On every append, if the buffer holds at least W frames, the oldest W
    frames are handed to `on_window` synchronously and then
    `config.retain_drop` frames are trimmed from the head. With the default
    hop ratio of 0.5 consecutive windows overlap by half. A retain_drop of
    zero is allowed and re-dispatches on every frame.

    Not thread-safe: the caller must deliver one frame at a time.
    """

    def __init__(self, config: StreamingConfig, on_window: WindowCallback):
        self.config = config
        self.on_window = on_window
        self.buffer = FeatureBuffer(config.frame_dim)
        self.windows_dispatched = 0

    @property
    def frame_count(self) -> int:
        return self.buffer.frame_count

    def append(self, frame: np.ndarray) -> Optional[np.ndarray]:
        """Add one frame; returns the window dispatched by this call, if any."""
        self.buffer.append(frame)
        window = self.buffer.peek_window(self.config.window_frames)
        if window is None:
            return None
        self.windows_dispatched += 1
        logger.debug(
            f"Window {self.windows_dispatched} ready ({self.buffer.frame_count} frames buffered)"
        )
        try:
            self.on_window(window)
        finally:
            self.buffer.trim(self.config.retain_drop)
        return window

    def reset(self) -> None:
        """Drop all buffered frames."""
        self.buffer.clear()
