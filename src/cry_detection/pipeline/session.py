"""Capture-to-inference session: model handle, lifecycle and teardown.

Pipeline: microphone -> MFCC frame source -> window scheduler -> classifier -> score

The session owns everything a running detector needs (model, feature
buffer, current score) so several sessions never share state. Collaborators
are injected so tests can replace the microphone, frame source and model.

Lifecycle:
  Idle --start()--> Active --stop()--> Idle
  start() while Active and stop() while Idle are no-ops.

Classifier calls run synchronously inside the frame callback. Stopping
does not cancel a call already in progress; its result may still update
the score after stop() returns.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from cry_detection.audio.capture import MicrophoneProvider
from cry_detection.audio.config import AudioConfig
from cry_detection.audio.frames import MfccFrameSource
from cry_detection.errors import (
    InferenceError,
    MicrophonePermissionError,
    ModelLoadError,
    ResourceReleaseError,
)
from cry_detection.models import load_model
from cry_detection.pipeline.config import StreamingConfig
from cry_detection.pipeline.inference import CryModel, InferenceInvoker, LatestScore
from cry_detection.pipeline.scheduler import WindowScheduler

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class SessionEvent(str, Enum):
    """Events reported on the status channel."""

    LOADING = "loading"
    READY = "ready"
    ACTIVE = "active"
    PERMISSION_DENIED = "permission-denied"
    LOAD_FAILED = "load-failed"
    INFERENCE_ERROR = "inference-error"
    STOPPED = "stopped"


StatusCallback = Callable[[SessionEvent, str], None]
ScoreCallback = Callable[[float], None]
ModelLoader = Callable[[str], CryModel]
FrameSourceFactory = Callable[..., object]


class CryDetectionSession:
    """Runs live cry detection from the microphone.

    Interface:
      session = CryDetectionSession(on_score=print, on_status=print)
      session.load_model("baby_cry_model.tflite")
      session.start()
      ...
      session.stop()
    """

    def __init__(
        self,
        audio_config: Optional[AudioConfig] = None,
        config: Optional[StreamingConfig] = None,
        capture_provider: Optional[object] = None,
        frame_source_factory: Optional[FrameSourceFactory] = None,
        model_loader: Optional[ModelLoader] = None,
        on_score: Optional[ScoreCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ):
        self.audio_config = audio_config or AudioConfig()
        self.streaming_config = config or StreamingConfig.from_audio_config(self.audio_config)
        self.capture_provider = capture_provider or MicrophoneProvider(self.audio_config)
        self.frame_source_factory = frame_source_factory or self._default_frame_source
        self.model_loader = model_loader or load_model
        self.on_score = on_score or (lambda s: None)
        self.on_status = on_status or (lambda e, m: None)

        self.score = LatestScore()
        self._model: Optional[CryModel] = None
        self._invoker: Optional[InferenceInvoker] = None
        self._scheduler: Optional[WindowScheduler] = None
        self._stream: Optional[object] = None
        self._source: Optional[object] = None
        self._state = SessionState.IDLE

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def model_loaded(self) -> bool:
        return self._model is not None

    @property
    def scheduler(self) -> Optional[WindowScheduler]:
        return self._scheduler

    def _default_frame_source(self, stream, on_frame) -> MfccFrameSource:
        return MfccFrameSource(stream, on_frame, self.audio_config)

    def _emit(self, event: SessionEvent, message: str = "") -> None:
        try:
            self.on_status(event, message)
        except Exception as e:
            logger.error(f"Error in on_status callback: {e}")

    def _report_score(self, score: float) -> None:
        try:
            self.on_score(score)
        except Exception as e:
            logger.error(f"Error in on_score callback: {e}")

    def _report_inference_error(self, error: InferenceError) -> None:
        self._emit(SessionEvent.INFERENCE_ERROR, str(error))

    def load_model(self, identifier: str) -> CryModel:
        """Load the classifier; required before start().

        Raises:
            ModelLoadError: the loader failed, or the session is active.
        """
        if self._state is SessionState.ACTIVE:
            message = "Cannot load a model while the session is active"
            logger.error(message)
            self._emit(SessionEvent.LOAD_FAILED, message)
            raise ModelLoadError(message)
        self._emit(SessionEvent.LOADING, f"Loading model {identifier}")
        try:
            model = self.model_loader(identifier)
        except ModelLoadError as exc:
            logger.error(f"Model load failed: {exc}")
            self._emit(SessionEvent.LOAD_FAILED, str(exc))
            raise
        except Exception as exc:
            logger.error(f"Model load failed: {exc}", exc_info=True)
            self._emit(SessionEvent.LOAD_FAILED, str(exc))
            raise ModelLoadError(f"Could not load model {identifier}: {exc}") from exc
        self.set_model(model)
        logger.info(f"Model loaded: {identifier}")
        self._emit(SessionEvent.READY, "Model loaded, ready to start")
        return model

    def set_model(self, model: CryModel) -> None:
        """Use an already-loaded classifier."""
        if self._state is SessionState.ACTIVE:
            raise RuntimeError("Cannot replace the model while the session is active")
        self._model = model
        self._invoker = InferenceInvoker(
            model,
            self.streaming_config,
            score=self.score,
            on_score=self._report_score,
            on_error=self._report_inference_error,
        )
        self._scheduler = WindowScheduler(self.streaming_config, on_window=self._invoker)

    def start(self) -> None:
        """Acquire the microphone and start streaming frames into the scheduler.

        Either everything is acquired and the session becomes Active, or
        whatever was acquired is released and the session stays Idle.

        Raises:
            ModelLoadError: no model has been loaded.
            MicrophonePermissionError: the microphone could not be opened.
        """
        if self._state is SessionState.ACTIVE:
            logger.debug("start() ignored: session already active")
            return
        if self._model is None or self._scheduler is None:
            message = "Model is not loaded yet"
            logger.error(message)
            self._emit(SessionEvent.LOAD_FAILED, message)
            raise ModelLoadError(message)

        try:
            stream = self.capture_provider.request_access()
        except MicrophonePermissionError as exc:
            self._emit(SessionEvent.PERMISSION_DENIED, str(exc))
            raise
        except Exception as exc:
            logger.error(f"Microphone unavailable: {exc}", exc_info=True)
            self._emit(SessionEvent.PERMISSION_DENIED, str(exc))
            raise MicrophonePermissionError(f"Microphone unavailable: {exc}") from exc

        self._scheduler.reset()
        try:
            source = self.frame_source_factory(stream, self._scheduler.append)
            source.start()
        except Exception:
            logger.error("Frame source failed to start; releasing microphone", exc_info=True)
            try:
                stream.release()
            except Exception as e:
                logger.error(f"Error releasing microphone during rollback: {e}")
            raise

        self._stream = stream
        self._source = source
        self._state = SessionState.ACTIVE
        logger.info(
            f"Session active: W={self.streaming_config.window_frames}, "
            f"D={self.streaming_config.frame_dim}, drop={self.streaming_config.retain_drop}"
        )
        self._emit(SessionEvent.ACTIVE, "Listening")

    def stop(self) -> List[ResourceReleaseError]:
        """Stop the frame source, then release the microphone.

        Each step runs even if an earlier one failed, and the session always
        ends Idle. Safe to call when never started or already stopped.

        Returns:
            Errors raised by the teardown steps (empty on a clean stop).
        """
        if self._state is SessionState.IDLE:
            return []

        source, stream = self._source, self._stream
        self._source = None
        self._stream = None
        errors: List[ResourceReleaseError] = []

        if source is not None:
            try:
                source.stop()
            except Exception as exc:
                errors.append(ResourceReleaseError("frame source", str(exc)))
        if stream is not None:
            try:
                stream.release()
            except Exception as exc:
                errors.append(ResourceReleaseError("microphone", str(exc)))

        self._state = SessionState.IDLE
        for error in errors:
            logger.error(f"Teardown error: {error}")
        logger.info("Session stopped")
        self._emit(SessionEvent.STOPPED, "Microphone stopped")
        return errors

    def feed_frame(self, frame: np.ndarray) -> Optional[float]:
        """Push one frame through the scheduler without live capture.

        Only allowed while Idle; during a live session the frame source is
        the sole writer to the feature buffer.

        Returns:
            The score produced by this frame, if it completed a window and
            classification succeeded.
        """
        if self._state is SessionState.ACTIVE:
            raise RuntimeError("feed_frame() is not allowed while the session is active")
        if self._scheduler is None:
            raise ModelLoadError("Model is not loaded yet")
        updates = self.score.updates
        window = self._scheduler.append(frame)
        if window is not None and self.score.updates > updates:
            return self.score.value
        return None

    def __enter__(self) -> "CryDetectionSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
