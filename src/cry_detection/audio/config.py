"""Centralized audio and MFCC analysis configuration.

Encoding standards (must match what the classifier was trained on):
- Audio: mono 16 kHz
- Analysis: FFT 1024 / hop 512, Hann window
- Features: 40 MFCC coefficients from 40 Mel bands
- Model input: 1 s of audio -> 30 MFCC frames
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class AudioConfig:
    """Audio capture and MFCC analysis configuration."""

    # Recording
    sample_rate: int = 16_000
    channels: int = 1  # mono
    dtype: str = "float32"

    # Analysis frames
    fft_size: int = 1024
    hop_size: int = 512

    # Mel filterbank / cepstrum
    n_mels: int = 40
    n_mfcc: int = 40

    # Audio covered by one classifier input
    window_sec: float = 1.0

    def __post_init__(self) -> None:
        if self.sample_rate <= 0 or self.fft_size <= 0 or self.hop_size <= 0:
            raise ValueError("sample_rate, fft_size and hop_size must be positive")
        if self.hop_size > self.fft_size:
            raise ValueError("hop_size must not exceed fft_size")
        if self.n_mels <= 0 or self.n_mfcc <= 0:
            raise ValueError("n_mels and n_mfcc must be positive")
        if self.n_mfcc > self.n_mels:
            raise ValueError("n_mfcc must be <= n_mels")
        if self.window_samples < self.fft_size:
            raise ValueError("window_sec is shorter than one FFT frame")

    @property
    def hop_ratio(self) -> float:
        """Hop size as a fraction of the analysis frame."""
        return self.hop_size / self.fft_size

    @property
    def frame_dim(self) -> int:
        """Coefficients per feature frame (D)."""
        return self.n_mfcc

    @property
    def window_samples(self) -> int:
        return int(self.window_sec * self.sample_rate)

    @property
    def frames_per_window(self) -> int:
        """MFCC frames obtainable from window_sec of audio (W)."""
        return (self.window_samples - self.fft_size) // self.hop_size + 1

    @property
    def frames_per_second(self) -> float:
        """Number of feature frames per second."""
        return self.sample_rate / self.hop_size
