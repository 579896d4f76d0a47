"""
Unit tests for the SampleWindow ring buffer.
Run with:  pytest tests/test_sample_window.py
"""

from __future__ import annotations

import numpy as np
import pytest

from pulse_estimator.sample_window import SampleWindow


class TestSampleWindow:

    def test_starts_empty(self):
        w = SampleWindow(5)
        assert len(w) == 0
        assert w.capacity == 5
        assert not w.is_full
        assert w.values().size == 0

    def test_keeps_insertion_order(self):
        w = SampleWindow(5)
        for i in range(3):
            w.append(float(i), 1000 + i)
        np.testing.assert_array_equal(w.values(), [0.0, 1.0, 2.0])
        np.testing.assert_array_equal(w.timestamps(), [1000, 1001, 1002])

    def test_evicts_oldest_when_full(self):
        w = SampleWindow(4)
        for i in range(11):
            w.append(float(i), i)
            assert len(w) <= 4
        assert w.is_full
        np.testing.assert_array_equal(w.values(), [7.0, 8.0, 9.0, 10.0])
        np.testing.assert_array_equal(w.timestamps(), [7, 8, 9, 10])

    def test_duplicate_timestamps_kept(self):
        w = SampleWindow(3)
        w.append(1.0, 42)
        w.append(2.0, 42)
        assert len(w) == 2
        np.testing.assert_array_equal(w.timestamps(), [42, 42])

    def test_values_are_copies(self):
        w = SampleWindow(3)
        w.append(1.0, 0)
        snapshot = w.values()
        snapshot[0] = 99.0
        assert w.values()[0] == 1.0

    def test_clear_then_reuse(self):
        w = SampleWindow(3)
        for i in range(5):
            w.append(float(i), i)
        w.clear()
        assert len(w) == 0
        w.append(7.0, 7)
        np.testing.assert_array_equal(w.values(), [7.0])

    def test_capacity_one(self):
        w = SampleWindow(1)
        w.append(1.0, 0)
        w.append(2.0, 1)
        np.testing.assert_array_equal(w.values(), [2.0])

    @pytest.mark.parametrize("capacity", [0, -5])
    def test_invalid_capacity(self, capacity):
        with pytest.raises(ValueError):
            SampleWindow(capacity)
