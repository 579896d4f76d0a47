"""
Fixed-capacity sliding window of ``(value, timestamp)`` samples.

Backed by two preallocated numpy arrays used as a ring buffer, so appending
never reallocates.  Once the window is full every new sample overwrites the
oldest one.
"""

from __future__ import annotations

import numpy as np


class SampleWindow:
    """
    Ring buffer of brightness samples and their capture timestamps.

    Parameters
    ----------
    capacity:
        Maximum number of samples kept.  Must be at least 1.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"Window capacity must be >= 1, got {capacity}")
        self._capacity = int(capacity)
        self._values = np.zeros(self._capacity, dtype=np.float32)
        self._timestamps = np.zeros(self._capacity, dtype=np.int64)
        self._head = 0    # index of the oldest sample
        self._count = 0

    def append(self, value: float, timestamp: int) -> None:
        """Store a sample, evicting the oldest one when the window is full."""
        tail = (self._head + self._count) % self._capacity
        self._values[tail] = value
        self._timestamps[tail] = timestamp
        if self._count < self._capacity:
            self._count += 1
        else:
            self._head = (self._head + 1) % self._capacity

    def values(self) -> np.ndarray:
        """Copy of the stored values, oldest first."""
        return self._values[self._order()]

    def timestamps(self) -> np.ndarray:
        """Copy of the stored timestamps, oldest first."""
        return self._timestamps[self._order()]

    def clear(self) -> None:
        self._head = 0
        self._count = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return self._count == self._capacity

    def __len__(self) -> int:
        return self._count

    def _order(self) -> np.ndarray:
        return (self._head + np.arange(self._count)) % self._capacity
