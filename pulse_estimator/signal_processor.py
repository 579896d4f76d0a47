"""
rPPG heart-rate estimator.

Algorithm
---------
1. Receive one averaged green-channel intensity per camera frame and keep
   the last ``buffer_capacity`` samples in a ring buffer.
2. Once at least ``min_seconds`` of samples are buffered, remove the mean
   (ambient-light DC bias) and apply a Hamming window.
3. Zero-pad to the full capacity and run the mixed-radix FFT.
4. Search the 0.75 – 3.33 Hz band (45 – 200 BPM) for the strongest bin.  When
   a previous estimate exists the search narrows to ±15 BPM around it.
5. Reject peaks weaker than twice the average magnitude of the band (SNR
   gate); otherwise blend the new value into the previous estimate
   (``0.7 · previous + 0.3 · current``).

Every degraded condition (too little data, weak peak, empty search range)
returns the last accepted estimate, or 0.0 when there is none, so callers
always have a displayable number.

References
----------
- Verkruysse W. et al., "Remote plethysmographic imaging using ambient light."
  Opt Express, 2008.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from scipy.signal import detrend
from scipy.signal.windows import hamming

from pulse_estimator.fft import SpectralTransform
from pulse_estimator.sample_window import SampleWindow

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_CAPACITY = 300    # ≈ 10 s at 30 fps
DEFAULT_SAMPLING_RATE = 30.0     # Hz

MIN_FREQ_HZ = 0.75               # 45 BPM
MAX_FREQ_HZ = 3.33               # 200 BPM
LOCK_WINDOW_BPM = 15.0
SNR_THRESHOLD = 2.0
SMOOTHING_WEIGHT = 0.3           # weight of the newest estimate
MIN_SECONDS = 3.0


class MeasurementStatus(Enum):
    ACQUIRING = "acquiring"      # not enough samples for an estimate
    TRACKING  = "tracking"       # estimating on a partially filled window
    MEASURING = "measuring"      # window full


class SignalProcessor:
    """
    Rolling rPPG heart-rate estimator.

    All public methods share one re-entrant lock, so a frame producer may
    call :meth:`add_sample` while a timer thread calls
    :meth:`compute_heart_rate` or :meth:`reset`.

    Parameters
    ----------
    buffer_capacity:
        Number of samples kept in the sliding window, and the FFT length.
        Default 300 (≈ 10 s at 30 fps).
    sampling_rate:
        Nominal sample rate in Hz.  Only the sample *count* is used for the
        warm-up gate and bin frequencies; timestamps are stored but not
        inspected.
    min_freq_hz, max_freq_hz:
        Baseline search band (default 0.75 – 3.33 Hz).
    lock_window_bpm:
        Half-width of the narrowed search range around the previous
        estimate (default 15 BPM).
    snr_threshold:
        Minimum ratio of peak magnitude to average band magnitude
        (default 2).
    smoothing_weight:
        Weight of the newest estimate in the exponential smoothing
        (default 0.3).
    min_seconds:
        Seconds of samples required before an estimate is produced
        (default 3).
    """

    def __init__(
        self,
        buffer_capacity: int = DEFAULT_BUFFER_CAPACITY,
        sampling_rate: float = DEFAULT_SAMPLING_RATE,
        *,
        min_freq_hz: float = MIN_FREQ_HZ,
        max_freq_hz: float = MAX_FREQ_HZ,
        lock_window_bpm: float = LOCK_WINDOW_BPM,
        snr_threshold: float = SNR_THRESHOLD,
        smoothing_weight: float = SMOOTHING_WEIGHT,
        min_seconds: float = MIN_SECONDS,
    ) -> None:
        if buffer_capacity < 1:
            raise ValueError(
                f"buffer_capacity must be >= 1, got {buffer_capacity}"
            )
        if sampling_rate <= 0:
            raise ValueError(f"sampling_rate must be > 0, got {sampling_rate}")
        if not 0.0 < smoothing_weight <= 1.0:
            raise ValueError(
                f"smoothing_weight must be in (0, 1], got {smoothing_weight}"
            )

        self._capacity = int(buffer_capacity)
        self._sampling_rate = float(sampling_rate)
        self.min_freq_hz = min_freq_hz
        self.max_freq_hz = max_freq_hz
        self.lock_window_bpm = lock_window_bpm
        self.snr_threshold = snr_threshold
        self.smoothing_weight = smoothing_weight
        self.min_seconds = min_seconds

        self._window = SampleWindow(self._capacity)
        self._fft = SpectralTransform(self._capacity)
        self._lock = threading.RLock()

        # Positive-frequency bins below Nyquist, DC excluded
        self._bin_freqs = (
            np.arange(1, self._capacity // 2) * self._sampling_rate / self._capacity
        )
        self._baseline_mask = (
            (self._bin_freqs >= self.min_freq_hz)
            & (self._bin_freqs <= self.max_freq_hz)
        )

        # Smoothing state: last accepted BPM, 0.0 while unlocked
        self._previous_bpm: float = 0.0

        logger.debug(
            "SignalProcessor created – capacity=%d rate=%.2f Hz band=%.2f–%.2f Hz",
            self._capacity, self._sampling_rate, self.min_freq_hz, self.max_freq_hz,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_sample(self, value: float, timestamp: Optional[int] = None) -> None:
        """
        Append one frame's green-channel average to the sliding window.

        Parameters
        ----------
        value:
            Mean green intensity of the region of interest.
        timestamp:
            Capture time in milliseconds.  Defaults to the current wall-clock
            time.
        """
        if timestamp is None:
            timestamp = int(time.time() * 1000)
        with self._lock:
            self._window.append(value, timestamp)

    def compute_heart_rate(self) -> float:
        """
        Return the smoothed heart rate in BPM, or 0.0 when there is no
        estimate yet.
        """
        with self._lock:
            if not self._has_enough_data():
                return 0.0

            magnitudes = self._magnitude_spectrum(self._window.values())
            freqs = self._bin_freqs
            min_hz, max_hz = self._search_range()

            # NaN or inf samples poison every bin; such bins never win
            finite = np.isfinite(magnitudes)
            if not finite.any():
                logger.debug("Spectrum has no finite bins, keeping %.1f BPM",
                             self._previous_bpm)
                return self._previous_bpm

            search = np.where(
                (freqs >= min_hz) & (freqs <= max_hz) & finite, magnitudes, 0.0
            )
            peak_index = int(np.argmax(search)) if search.size else -1
            peak_magnitude = float(search[peak_index]) if peak_index >= 0 else 0.0
            if peak_magnitude <= 0.0:
                peak_index = -1

            # The noise floor covers the whole baseline band, peak included
            band = self._baseline_mask & finite
            if band.any():
                noise_floor = float(magnitudes[band].mean())
                if peak_magnitude < noise_floor * self.snr_threshold:
                    logger.debug(
                        "Peak rejected – magnitude=%.3f noise_floor=%.3f",
                        peak_magnitude, noise_floor,
                    )
                    return self._previous_bpm

            if peak_index < 0:
                return self._previous_bpm

            current_bpm = float(freqs[peak_index]) * 60.0
            if self._previous_bpm > 0.0:
                self._previous_bpm = (
                    (1.0 - self.smoothing_weight) * self._previous_bpm
                    + self.smoothing_weight * current_bpm
                )
            else:
                self._previous_bpm = current_bpm
                logger.debug("Locked on %.1f BPM", current_bpm)

            return self._previous_bpm

    def get_buffer(self) -> np.ndarray:
        """Read-only snapshot of the buffered values, oldest first."""
        with self._lock:
            values = self._window.values()
        values.setflags(write=False)
        return values

    def get_sample_count(self) -> int:
        with self._lock:
            return len(self._window)

    def get_fft_data(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Return the current spectrum (frequencies in BPM, magnitudes) within
        the baseline band.  Returns empty arrays if there is insufficient
        data.  The smoothing state is not touched.
        """
        with self._lock:
            if not self._has_enough_data():
                return np.array([]), np.array([])
            magnitudes = self._magnitude_spectrum(self._window.values())
        mask = self._baseline_mask
        return self._bin_freqs[mask] * 60.0, magnitudes[mask]

    def reset(self) -> None:
        """Clear the sliding window and drop the current lock."""
        with self._lock:
            self._window.clear()
            self._previous_bpm = 0.0
        logger.debug("SignalProcessor reset.")

    @property
    def buffer_capacity(self) -> int:
        return self._capacity

    @property
    def sampling_rate(self) -> float:
        return self._sampling_rate

    @property
    def previous_bpm(self) -> float:
        """Last accepted estimate; 0.0 while unlocked."""
        return self._previous_bpm

    @property
    def bin_width_bpm(self) -> float:
        """Spacing of adjacent FFT bins, in BPM."""
        return self._sampling_rate * 60.0 / self._capacity

    @property
    def buffer_fill_ratio(self) -> float:
        """How full the sliding window is (0 – 1)."""
        return self.get_sample_count() / self._capacity

    @property
    def status(self) -> MeasurementStatus:
        count = self.get_sample_count()
        if count < self._sampling_rate * self.min_seconds:
            return MeasurementStatus.ACQUIRING
        if count < self._capacity:
            return MeasurementStatus.TRACKING
        return MeasurementStatus.MEASURING

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _has_enough_data(self) -> bool:
        count = len(self._window)
        return count > 0 and count >= self._sampling_rate * self.min_seconds

    def _magnitude_spectrum(self, values: np.ndarray) -> np.ndarray:
        """Detrend, window, zero-pad and transform; return bin magnitudes."""
        n = values.size
        signal = detrend(values.astype(np.float64), type="constant")
        signal *= hamming(n, sym=True)

        padded = np.zeros(self._capacity, dtype=np.float64)
        padded[:n] = signal
        spectrum = self._fft.transform(padded)
        return np.abs(spectrum[1:self._capacity // 2])

    def _search_range(self) -> Tuple[float, float]:
        if self._previous_bpm <= 0.0:
            return self.min_freq_hz, self.max_freq_hz
        previous_hz = self._previous_bpm / 60.0
        half_width = self.lock_window_bpm / 60.0
        return (
            max(self.min_freq_hz, previous_hz - half_width),
            min(self.max_freq_hz, previous_hz + half_width),
        )
