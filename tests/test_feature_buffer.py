"""Unit tests for the feature ingestion buffer."""

from __future__ import annotations

import unittest

import numpy as np

from cry_detection.pipeline import FeatureBuffer

D = 4


def _frame(value: float, dim: int = D) -> np.ndarray:
    return np.full(dim, value, dtype=np.float32)


class TestFeatureBuffer(unittest.TestCase):
    """Tests for FeatureBuffer."""

    def test_empty(self) -> None:
        buf = FeatureBuffer(D)
        self.assertEqual(len(buf), 0)
        self.assertEqual(buf.frame_count, 0)
        self.assertIsNone(buf.peek_window(1))

    def test_length_is_multiple_of_dim(self) -> None:
        """After any sequence of appends and trims, length % D == 0."""
        rng = np.random.default_rng(0)
        buf = FeatureBuffer(D)
        for i in range(50):
            buf.append(rng.random(D))
            if i % 7 == 0:
                buf.trim(int(rng.integers(0, 4)))
            self.assertEqual(len(buf) % D, 0)

    def test_wrong_frame_size_rejected(self) -> None:
        buf = FeatureBuffer(D)
        with self.assertRaises(ValueError):
            buf.append(np.zeros(D + 1))
        self.assertEqual(len(buf), 0)

    def test_peek_does_not_mutate(self) -> None:
        buf = FeatureBuffer(D)
        for k in range(3):
            buf.append(_frame(k))
        window = buf.peek_window(2)
        self.assertEqual(window.shape, (2 * D,))
        np.testing.assert_array_equal(window[:D], _frame(0))
        np.testing.assert_array_equal(window[D:], _frame(1))
        self.assertEqual(buf.frame_count, 3)

    def test_peek_returns_copy(self) -> None:
        buf = FeatureBuffer(D)
        buf.append(_frame(1))
        window = buf.peek_window(1)
        window[:] = 99
        np.testing.assert_array_equal(buf.frames()[0], _frame(1))

    def test_peek_insufficient(self) -> None:
        buf = FeatureBuffer(D)
        buf.append(_frame(0))
        self.assertIsNone(buf.peek_window(2))

    def test_trim_from_head(self) -> None:
        buf = FeatureBuffer(D)
        for k in range(5):
            buf.append(_frame(k))
        buf.trim(2)
        self.assertEqual(buf.frame_count, 3)
        np.testing.assert_array_equal(buf.frames()[:, 0], [2, 3, 4])

    def test_trim_more_than_held_empties(self) -> None:
        buf = FeatureBuffer(D)
        buf.append(_frame(0))
        buf.trim(10)
        self.assertEqual(len(buf), 0)

    def test_trim_negative_rejected(self) -> None:
        buf = FeatureBuffer(D)
        with self.assertRaises(ValueError):
            buf.trim(-1)

    def test_appended_frame_is_copied(self) -> None:
        buf = FeatureBuffer(D)
        frame = _frame(1)
        buf.append(frame)
        frame[:] = 5
        np.testing.assert_array_equal(buf.frames()[0], _frame(1))


if __name__ == "__main__":
    unittest.main()
