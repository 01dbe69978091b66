"""Feature ingestion buffer: append-only, front-trimmable flat feature store."""

from __future__ import annotations

from typing import Optional

import numpy as np


class FeatureBuffer:
    """Concatenated feature frames stored as a flat float32 array.

    The length is always a multiple of frame_dim. Frames are appended at the
    tail and removed from the head. Growth is not bounded: if windows are
    consumed slower than frames arrive the buffer keeps growing.
    """

    def __init__(self, frame_dim: int):
        if frame_dim < 1:
            raise ValueError("frame_dim must be >= 1")
        self.frame_dim = frame_dim
        self._data = np.zeros(0, dtype=np.float32)

    def __len__(self) -> int:
        return int(self._data.shape[0])

    @property
    def frame_count(self) -> int:
        return len(self) // self.frame_dim

    def append(self, frame: np.ndarray) -> None:
        """Add one frame of exactly frame_dim scalars to the tail."""
        frame = np.asarray(frame, dtype=np.float32).reshape(-1)
        if frame.shape[0] != self.frame_dim:
            raise ValueError(
                f"Expected frame of {self.frame_dim} coefficients, got {frame.shape[0]}"
            )
        self._data = np.concatenate([self._data, frame])

    def peek_window(self, window_frames: int) -> Optional[np.ndarray]:
        """Copy of the first window_frames frames, or None if not enough data."""
        if window_frames < 1:
            raise ValueError("window_frames must be >= 1")
        if self.frame_count < window_frames:
            return None
        return self._data[: window_frames * self.frame_dim].copy()

    def trim(self, frame_count: int) -> None:
        """Remove frame_count frames from the head (clamped to what is held)."""
        if frame_count < 0:
            raise ValueError("frame_count must be >= 0")
        if frame_count == 0:
            return
        self._data = self._data[frame_count * self.frame_dim :].copy()

    def frames(self) -> np.ndarray:
        """Buffered frames as a (frame_count, frame_dim) copy."""
        return self._data.reshape(-1, self.frame_dim).copy()

    def clear(self) -> None:
        self._data = np.zeros(0, dtype=np.float32)
