"""Feature frame source: turns captured audio into one MFCC frame per hop."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np

from cry_detection.audio.capture import MicrophoneStream
from cry_detection.audio.config import AudioConfig
from cry_detection.audio.features import MfccFeatureExtractor, RingBuffer

logger = logging.getLogger(__name__)

FrameCallback = Callable[[np.ndarray], None]


class MfccFrameSource:
    """Emits MFCC frames from a microphone stream to `on_frame`.

    The last fft_size samples are kept in a ring buffer. Every hop_size new
    samples, once the ring is full, one frame of n_mfcc coefficients is
    computed and delivered. Frames are delivered one at a time from the
    capture callback; `on_frame` must return before the next one arrives.

    Interface:
      source = MfccFrameSource(stream, scheduler.append, config)
      source.start()
      ...
      source.stop()   # no frames are delivered after this returns
    """

    def __init__(
        self,
        stream: Optional[MicrophoneStream],
        on_frame: FrameCallback,
        config: Optional[AudioConfig] = None,
        extractor: Optional[MfccFeatureExtractor] = None,
    ):
        self.stream = stream
        self.on_frame = on_frame
        self.config = config or AudioConfig()
        self.extractor = extractor or MfccFeatureExtractor(self.config)
        self._ring = RingBuffer(self.config.fft_size, dtype=np.float32)
        self._pending = np.zeros(0, dtype=np.float32)
        self._running = False
        self.frames_emitted = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Attach to the stream and start capture."""
        if self._running:
            return
        self._ring.clear()
        self._pending = np.zeros(0, dtype=np.float32)
        self._running = True
        if self.stream is not None:
            self.stream.listener = self.push_samples
            try:
                self.stream.start()
            except Exception:
                self._running = False
                self.stream.listener = None
                raise
        logger.debug("Frame source started")

    def stop(self) -> None:
        """Stop frame delivery, then stop the stream."""
        if not self._running:
            return
        self._running = False
        if self.stream is not None:
            self.stream.listener = None
            self.stream.stop()
        logger.debug(f"Frame source stopped after {self.frames_emitted} frames")

    def push_samples(self, samples: np.ndarray) -> int:
        """Feed raw mono samples; emits a frame per completed hop.

        Returns:
            Number of frames emitted for this block.
        """
        if not self._running:
            return 0
        hop = self.config.hop_size
        data = np.concatenate([self._pending, np.asarray(samples, dtype=np.float32)])
        emitted = 0
        offset = 0
        while len(data) - offset >= hop and self._running:
            self._ring.push(data[offset : offset + hop])
            offset += hop
            if self._ring.full:
                frame = self.extractor.frame_mfcc(self._ring.get_all())
                self.frames_emitted += 1
                emitted += 1
                self.on_frame(frame)
        self._pending = data[offset:]
        return emitted
