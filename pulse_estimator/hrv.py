"""
Heart-rate variability (HRV) from a PPG buffer.

Peaks of the raw waveform are turned into beat-to-beat intervals, from which
the usual time-domain metrics are derived:

* SDNN  – standard deviation of the intervals (ms).
* RMSSD – root mean square of successive interval differences (ms).
* pNN50 – percentage of successive differences larger than 50 ms.

A simplified stress index (``100 − SDNN``, clipped to 0 – 100) and a short
interpretation are attached for display.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from scipy.signal import find_peaks

MIN_SAMPLES = 90          # 3 s at 30 fps
MIN_INTERVALS = 10
MIN_PEAK_SPACING_S = 0.3
MIN_INTERVAL_MS = 300.0   # 200 BPM
MAX_INTERVAL_MS = 2000.0  # 30 BPM


@dataclass
class HRVMetrics:
    sdnn:           float   # ms
    rmssd:          float   # ms
    pnn50:          float   # %
    stress_index:   float   # 0 – 100, higher = more stress
    interpretation: str


def extract_peak_intervals(
    signal: np.ndarray, sampling_rate: float
) -> np.ndarray:
    """
    Return beat-to-beat intervals in milliseconds.

    Peaks are local maxima above ``1.1 × mean`` spaced more than 0.3 s
    apart.  Intervals outside 300 – 2000 ms are discarded.

    Parameters
    ----------
    signal:
        Raw brightness samples, oldest first.
    sampling_rate:
        Sample rate in Hz.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size < MIN_SAMPLES:
        return np.array([])

    threshold = float(x.mean()) * 1.1
    spacing = int(sampling_rate * MIN_PEAK_SPACING_S) + 1
    # plateau_size=1 keeps only samples strictly above both neighbours
    peaks, _ = find_peaks(
        x, height=threshold, distance=max(spacing, 1), plateau_size=(1, 1)
    )
    if peaks.size < 2:
        return np.array([])

    intervals = np.diff(peaks) / sampling_rate * 1000.0
    keep = (intervals >= MIN_INTERVAL_MS) & (intervals <= MAX_INTERVAL_MS)
    return intervals[keep]


def compute_hrv(intervals: Sequence[float]) -> Optional[HRVMetrics]:
    """Return HRV metrics, or ``None`` with fewer than 10 intervals."""
    nn = np.asarray(intervals, dtype=np.float64)
    if nn.size < MIN_INTERVALS:
        return None

    sdnn = float(np.std(nn))
    diffs = np.diff(nn)
    rmssd = float(np.sqrt(np.mean(diffs ** 2)))
    pnn50 = float(np.count_nonzero(np.abs(diffs) > 50.0)) / diffs.size * 100.0
    stress_index = float(np.clip(100.0 - np.clip(sdnn, 0.0, 100.0), 0.0, 100.0))

    if sdnn > 50:
        interpretation = "Excellent - Low stress, good recovery"
    elif sdnn > 30:
        interpretation = "Good - Normal stress levels"
    elif sdnn > 15:
        interpretation = "Fair - Moderate stress"
    else:
        interpretation = "Low - High stress or fatigue"

    return HRVMetrics(sdnn, rmssd, pnn50, stress_index, interpretation)


def stress_recommendation(metrics: HRVMetrics) -> str:
    if metrics.stress_index > 70:
        return "Consider taking a break. Try deep breathing exercises."
    if metrics.stress_index > 50:
        return "Moderate stress detected. Stay hydrated and relax."
    if metrics.stress_index > 30:
        return "Stress levels are normal. Keep it up!"
    return "Excellent! You're well-rested and relaxed."


def estimate_fitness_level(resting_bpm: float, sdnn: float) -> str:
    """Coarse fitness label from resting heart rate and SDNN."""
    score = (100.0 - resting_bpm) + sdnn * 2.0
    if score > 80:
        return "Athlete Level"
    if score > 60:
        return "Excellent Fitness"
    if score > 40:
        return "Good Fitness"
    if score > 20:
        return "Average Fitness"
    return "Below Average"
