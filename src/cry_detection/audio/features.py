"""Feature extraction: ring buffer, Mel filterbank, per-hop MFCC frames."""

from typing import Optional

import numpy as np
from scipy.fft import dct

from cry_detection.audio.config import AudioConfig


class RingBuffer:
    """Fixed-size ring buffer holding the most recent samples."""

    def __init__(self, size: int, dtype: type = np.float32):
        self.size = size
        self.dtype = dtype
        self._data = np.zeros(size, dtype=dtype)
        self._write_idx = 0
        self._count = 0

    def __len__(self) -> int:
        return self._count

    @property
    def full(self) -> bool:
        return self._count == self.size

    def push(self, chunk: np.ndarray) -> None:
        """Append a chunk; older data is overwritten."""
        n = len(chunk)
        if n >= self.size:
            self._data[:] = chunk[-self.size :].astype(self.dtype)
            self._write_idx = 0
            self._count = self.size
            return
        start = self._write_idx
        end = start + n
        if end <= self.size:
            self._data[start:end] = chunk.astype(self.dtype)
        else:
            head = self.size - start
            self._data[start:] = chunk[:head].astype(self.dtype)
            self._data[: end - self.size] = chunk[head:].astype(self.dtype)
        self._write_idx = end % self.size
        self._count = min(self._count + n, self.size)

    def get_all(self) -> np.ndarray:
        """Return all buffered data in chronological order."""
        if self._count == 0:
            return np.array([], dtype=self.dtype)
        if self._count < self.size:
            return self._data[: self._count].copy()
        return np.roll(self._data, -self._write_idx).copy()

    def clear(self) -> None:
        """Reset buffer."""
        self._write_idx = 0
        self._count = 0


def _mel_filterbank(
    n_mels: int,
    n_fft: int,
    sample_rate: float,
    fmin: float = 0.0,
    fmax: Optional[float] = None,
) -> np.ndarray:
    """Build Mel filterbank matrix, shape (n_mels, n_fft // 2 + 1)."""
    if fmax is None:
        fmax = sample_rate / 2
    mel_points = np.linspace(
        _hz_to_mel(fmin),
        _hz_to_mel(fmax),
        n_mels + 2,
    )
    hz_points = _mel_to_hz(mel_points)
    bin_points = np.floor((n_fft + 1) * hz_points / sample_rate).astype(int)
    bin_points = np.clip(bin_points, 0, n_fft // 2)

    filters = np.zeros((n_mels, n_fft // 2 + 1))
    for i in range(n_mels):
        left, center, right = bin_points[i], bin_points[i + 1], bin_points[i + 2]
        if center > left:
            filters[i, left:center] = (np.arange(left, center) - left) / (center - left)
        if right > center:
            filters[i, center:right] = (right - np.arange(center, right)) / (right - center)
    return filters


def _hz_to_mel(hz: float) -> float:
    return 2595 * np.log10(1 + hz / 700)


def _mel_to_hz(mel: np.ndarray) -> np.ndarray:
    return 700 * (10 ** (mel / 2595) - 1)


class MfccFeatureExtractor:
    """Extract MFCC frames (one per analysis hop) from mono audio.

    Each frame is computed over fft_size samples: Hann window -> power
    spectrum -> Mel filterbank -> log -> DCT-II, keeping the first n_mfcc
    coefficients.
    """

    def __init__(self, config: Optional[AudioConfig] = None):
        self.config = config or AudioConfig()
        self._mel_filters = _mel_filterbank(
            self.config.n_mels,
            self.config.fft_size,
            float(self.config.sample_rate),
        )
        self._window = np.hanning(self.config.fft_size).astype(np.float32)

    def power_spectrum(self, samples: np.ndarray) -> np.ndarray:
        """Power spectrum of one analysis frame, shape (fft_size // 2 + 1,)."""
        if samples.shape[-1] != self.config.fft_size:
            raise ValueError(
                f"Expected {self.config.fft_size} samples per frame, got {samples.shape[-1]}"
            )
        spectrum = np.fft.rfft(samples * self._window, n=self.config.fft_size)
        return np.abs(spectrum) ** 2

    def power_to_mfcc(self, power_spec: np.ndarray) -> np.ndarray:
        """Convert power spectra (..., n_bins) to MFCCs (..., n_mfcc)."""
        mel = np.dot(power_spec, self._mel_filters.T)
        log_mel = np.log(np.maximum(mel, 1e-10))
        cepstrum = dct(log_mel, type=2, axis=-1, norm="ortho")
        return cepstrum[..., : self.config.n_mfcc].astype(np.float32)

    def frame_mfcc(self, samples: np.ndarray) -> np.ndarray:
        """MFCC vector for a single fft_size-sample frame."""
        samples = np.asarray(samples, dtype=np.float32)
        return self.power_to_mfcc(self.power_spectrum(samples))

    def num_frames(self, n_samples: int) -> int:
        """Frames produced from n_samples of audio."""
        if n_samples < self.config.fft_size:
            return 0
        return (n_samples - self.config.fft_size) // self.config.hop_size + 1

    def extract(self, audio: np.ndarray) -> np.ndarray:
        """Extract MFCC frames from raw audio (batch), shape (n_frames, n_mfcc)."""
        audio = np.asarray(audio, dtype=np.float32)
        n_frames = self.num_frames(len(audio))
        if n_frames == 0:
            return np.zeros((0, self.config.n_mfcc), dtype=np.float32)
        fft_size, hop = self.config.fft_size, self.config.hop_size
        frames = np.stack([audio[i * hop : i * hop + fft_size] for i in range(n_frames)])
        spectrum = np.fft.rfft(frames * self._window, n=fft_size, axis=-1)
        return self.power_to_mfcc(np.abs(spectrum) ** 2)
