"""Unit tests for the inference invoker and fault isolation."""

from __future__ import annotations

import unittest
from typing import List

import numpy as np

from cry_detection.errors import InferenceError
from cry_detection.pipeline import InferenceInvoker, LatestScore, StreamingConfig, WindowScheduler

CONFIG = StreamingConfig(window_frames=4, frame_dim=3, hop_ratio=0.5)


class RecordingModel:
    """Fake classifier: returns [mean, 1 - mean]; fails on chosen calls."""

    def __init__(self, fail_on: tuple = ()):
        self.fail_on = set(fail_on)
        self.calls: List[np.ndarray] = []

    def predict(self, flat: np.ndarray) -> np.ndarray:
        self.calls.append(flat.copy())
        if len(self.calls) in self.fail_on:
            raise RuntimeError("interpreter crashed")
        p = float(np.mean(flat)) / 100.0
        return np.array([p, 1.0 - p], dtype=np.float32)


def _frame(value: float) -> np.ndarray:
    return np.full(CONFIG.frame_dim, value, dtype=np.float32)


class TestInferenceInvoker(unittest.TestCase):
    """Tests for InferenceInvoker."""

    def test_classify_returns_first_output(self) -> None:
        model = RecordingModel()
        invoker = InferenceInvoker(model, CONFIG)
        window = np.full(CONFIG.window_size, 50.0, dtype=np.float32)
        self.assertAlmostEqual(invoker.classify(window), 0.5, places=6)

    def test_flat_order_is_oldest_first(self) -> None:
        model = RecordingModel()
        invoker = InferenceInvoker(model, CONFIG)
        frames = np.arange(CONFIG.window_frames, dtype=np.float32)[:, None].repeat(CONFIG.frame_dim, 1)
        invoker.classify(frames)
        sent = model.calls[0]
        self.assertEqual(sent.shape, (CONFIG.window_size,))
        self.assertEqual(sent.dtype, np.float32)
        np.testing.assert_array_equal(sent[: CONFIG.frame_dim], [0, 0, 0])
        np.testing.assert_array_equal(sent[-CONFIG.frame_dim :], [3, 3, 3])

    def test_wrong_window_size(self) -> None:
        invoker = InferenceInvoker(RecordingModel(), CONFIG)
        with self.assertRaises(InferenceError):
            invoker.classify(np.zeros(CONFIG.window_size - 1))

    def test_empty_output(self) -> None:
        class EmptyModel:
            def predict(self, flat):
                return np.array([])

        invoker = InferenceInvoker(EmptyModel(), CONFIG)
        with self.assertRaises(InferenceError):
            invoker.classify(np.zeros(CONFIG.window_size))

    def test_classifier_exception_wrapped(self) -> None:
        invoker = InferenceInvoker(RecordingModel(fail_on=(1,)), CONFIG)
        with self.assertRaises(InferenceError) as ctx:
            invoker.classify(np.zeros(CONFIG.window_size), window_index=7)
        self.assertEqual(ctx.exception.window_index, 7)
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_call_updates_score_and_reports(self) -> None:
        scores: List[float] = []
        invoker = InferenceInvoker(RecordingModel(), CONFIG, on_score=scores.append)
        result = invoker(np.full(CONFIG.window_size, 20.0))
        self.assertAlmostEqual(result, 0.2, places=6)
        self.assertAlmostEqual(invoker.score.value, 0.2, places=6)
        self.assertEqual(len(scores), 1)

    def test_failure_keeps_previous_score_and_marks_stale(self) -> None:
        errors: List[InferenceError] = []
        score = LatestScore()
        invoker = InferenceInvoker(
            RecordingModel(fail_on=(2,)), CONFIG, score=score, on_error=errors.append
        )
        invoker(np.full(CONFIG.window_size, 30.0))
        self.assertIsNone(invoker(np.full(CONFIG.window_size, 90.0)))
        self.assertAlmostEqual(score.value, 0.3, places=6)
        self.assertTrue(score.stale)
        self.assertEqual(score.failures, 1)
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].window_index, 2)

    def test_no_retry(self) -> None:
        model = RecordingModel(fail_on=(1,))
        invoker = InferenceInvoker(model, CONFIG)
        invoker(np.zeros(CONFIG.window_size))
        self.assertEqual(len(model.calls), 1)


class TestFaultIsolation(unittest.TestCase):
    """A failing window never stops the next one from being formed and scored."""

    def test_non_numeric_output_then_success(self) -> None:
        """A None output on window 1 is skipped; window 2 is still classified."""

        class FlakyModel:
            def __init__(self):
                self.calls = 0

            def predict(self, flat):
                self.calls += 1
                return None if self.calls == 1 else [0.7, 0.3]

        config = StreamingConfig(window_frames=2, frame_dim=3, hop_ratio=0.5)
        errors: List[InferenceError] = []
        model = FlakyModel()
        invoker = InferenceInvoker(model, config, on_error=errors.append)
        scheduler = WindowScheduler(config, on_window=invoker)
        for k in range(3):
            scheduler.append(_frame(k))
        self.assertEqual(model.calls, 2)
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].window_index, 1)
        self.assertAlmostEqual(invoker.score.value, 0.7, places=6)
        self.assertFalse(invoker.score.stale)

    def test_string_and_ragged_outputs_raise_inference_error(self) -> None:
        for bad in ("cry", [[0.1, 0.2], [0.3]]):
            class BadModel:
                def predict(self, flat, _out=bad):
                    return _out

            invoker = InferenceInvoker(BadModel(), CONFIG)
            with self.assertRaises(InferenceError):
                invoker.classify(np.zeros(CONFIG.window_size))

    def test_failure_on_window_n_then_success_on_n_plus_1(self) -> None:
        model = RecordingModel(fail_on=(1,))
        scores: List[float] = []
        invoker = InferenceInvoker(model, CONFIG, on_score=scores.append)
        scheduler = WindowScheduler(CONFIG, on_window=invoker)
        # First window: frames 0-3 (fails). Second: frames 2-5.
        for k in range(6):
            scheduler.append(_frame(k))
        self.assertEqual(scheduler.windows_dispatched, 2)
        self.assertEqual(len(model.calls), 2)
        self.assertEqual(len(scores), 1)
        expected = float(np.mean([2, 3, 4, 5])) / 100.0
        self.assertAlmostEqual(invoker.score.value, expected, places=6)
        self.assertFalse(invoker.score.stale)
        self.assertEqual(invoker.score.updates, 1)
        self.assertEqual(scheduler.frame_count, 2)


if __name__ == "__main__":
    unittest.main()
