"""Microphone capture at mono 16 kHz via sounddevice."""

import logging
from typing import Callable, Optional

import numpy as np

try:
    import sounddevice as sd
except ImportError:
    sd = None  # type: ignore

from cry_detection.audio.config import AudioConfig
from cry_detection.errors import MicrophonePermissionError

logger = logging.getLogger(__name__)

AudioListener = Callable[[np.ndarray], None]


def _require_sounddevice() -> None:
    if sd is None:
        raise ImportError("sounddevice is required for recording. pip install sounddevice")


def list_input_devices() -> str:
    """Human-readable table of available audio devices."""
    _require_sounddevice()
    return str(sd.query_devices())


class MicrophoneStream:
    """An opened (but not necessarily running) microphone input stream.

    Audio blocks are forwarded, as mono float32 arrays, to `listener`.
    PortAudio delivers callbacks one at a time, so the listener is never
    re-entered.
    """

    def __init__(self, config: AudioConfig, device: Optional[int] = None):
        _require_sounddevice()
        self.config = config
        self.device = device
        self.listener: Optional[AudioListener] = None
        self._released = False
        self._stream = sd.InputStream(
            samplerate=config.sample_rate,
            channels=config.channels,
            dtype=config.dtype,
            blocksize=config.hop_size,
            device=device,
            callback=self._callback,
        )

    def _callback(self, indata: np.ndarray, _frames: int, _time: object, status: object) -> None:
        if status:
            logger.warning(f"Audio input status: {status}")
        listener = self.listener
        if listener is not None:
            listener(indata[:, 0].copy())

    def start(self) -> None:
        """Begin delivering audio to the listener."""
        if self._released:
            raise RuntimeError("Microphone stream already released")
        self._stream.start()

    def stop(self) -> None:
        """Stop delivering audio; the device stays open."""
        if not self._released:
            self._stream.stop()

    def release(self) -> None:
        """Stop and close the device. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        self.listener = None
        try:
            self._stream.stop()
        finally:
            self._stream.close()
        logger.info("Microphone released")


class MicrophoneProvider:
    """Grants access to the capture device as a MicrophoneStream."""

    def __init__(self, config: Optional[AudioConfig] = None, device: Optional[int] = None):
        self.config = config or AudioConfig()
        self.device = device

    def request_access(self) -> MicrophoneStream:
        """Open the input device.

        Raises:
            MicrophonePermissionError: the device is missing, busy or denied,
                or sounddevice is not installed.
        """
        try:
            _require_sounddevice()
        except ImportError as exc:
            logger.error(str(exc))
            raise MicrophonePermissionError(f"Microphone unavailable: {exc}") from exc
        try:
            stream = MicrophoneStream(self.config, self.device)
        except (sd.PortAudioError, ValueError) as exc:
            logger.error(f"Microphone access failed: {exc}")
            raise MicrophonePermissionError(f"Microphone access failed: {exc}") from exc
        logger.info(
            f"Microphone opened (device={self.device if self.device is not None else 'default'}, "
            f"{self.config.sample_rate} Hz)"
        )
        return stream
