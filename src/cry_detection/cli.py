"""CLI for live or file-based infant cry detection."""

import argparse
import logging
import sys
import time
from pathlib import Path

import numpy as np

from cry_detection.audio import AudioConfig, MfccFeatureExtractor
from cry_detection.audio.capture import MicrophoneProvider, list_input_devices
from cry_detection.errors import MicrophonePermissionError, ModelLoadError
from cry_detection.pipeline import CryDetectionSession, SessionEvent

logger = logging.getLogger(__name__)

EXIT_LOAD_FAILED = 1
EXIT_PERMISSION_DENIED = 2


def _print_status(event: SessionEvent, message: str) -> None:
    print(f"[{event.value}] {message}", file=sys.stderr)


def _print_score(score: float) -> None:
    print(f"cry probability: {score:.3f}", flush=True)


def load_wav(path: Path, sample_rate: int) -> np.ndarray:
    """Load a WAV file as mono float32 in [-1, 1]."""
    import scipy.io.wavfile as wavfile

    sr, audio = wavfile.read(str(path))
    if sr != sample_rate:
        raise ValueError(f"Expected {sample_rate} Hz, got {sr} Hz. Resample the file.")
    if audio.dtype == np.int16:
        audio = audio.astype(np.float32) / 32768.0
    elif audio.dtype == np.int32:
        audio = audio.astype(np.float32) / 2147483648.0
    if audio.ndim > 1:
        audio = audio.mean(axis=1)
    return audio.astype(np.float32)


def run_wav(session: CryDetectionSession, path: Path) -> int:
    """Replay a WAV file through the same frame/window cadence as live capture."""
    audio = load_wav(path, session.audio_config.sample_rate)
    extractor = MfccFeatureExtractor(session.audio_config)
    frames = extractor.extract(audio)
    logger.info(f"{path}: {len(audio)} samples -> {frames.shape[0]} MFCC frames")
    for frame in frames:
        session.feed_frame(frame)
    return session.score.updates


def run_live(session: CryDetectionSession, duration: float = 0.0) -> None:
    """Listen until duration elapses (0 = until Ctrl+C)."""
    session.start()
    try:
        started = time.monotonic()
        while duration <= 0 or time.monotonic() - started < duration:
            time.sleep(0.1)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        session.stop()


def main() -> None:
    parser = argparse.ArgumentParser(description="Detect infant crying from the microphone (mono 16 kHz)")
    parser.add_argument(
        "--model",
        "-m",
        type=Path,
        default=Path("baby_cry_model.tflite"),
        help="Classifier file (.tflite or TorchScript .pt)",
    )
    parser.add_argument(
        "--device",
        type=int,
        default=None,
        help="Input device index (list with --list-devices)",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=0.0,
        help="Listening duration in seconds (default: until Ctrl+C)",
    )
    parser.add_argument(
        "--wav",
        type=Path,
        default=None,
        help="Score a mono 16 kHz WAV file instead of the microphone",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List available audio input devices and exit",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_devices:
        try:
            print(list_input_devices())
        except ImportError:
            print("sounddevice not installed: pip install sounddevice", file=sys.stderr)
            sys.exit(1)
        return

    config = AudioConfig()
    session = CryDetectionSession(
        audio_config=config,
        capture_provider=MicrophoneProvider(config, device=args.device),
        on_score=_print_score,
        on_status=_print_status,
    )

    try:
        session.load_model(str(args.model))
    except ModelLoadError:
        sys.exit(EXIT_LOAD_FAILED)

    if args.wav is not None:
        if not args.wav.exists():
            print(f"File not found: {args.wav}", file=sys.stderr)
            sys.exit(1)
        n = run_wav(session, args.wav)
        print(f"Scored {n} windows; last cry probability: {session.score.value}")
        return

    try:
        run_live(session, args.duration)
    except ModelLoadError:
        sys.exit(EXIT_LOAD_FAILED)
    except MicrophonePermissionError:
        sys.exit(EXIT_PERMISSION_DENIED)


if __name__ == "__main__":
    main()
