"""
Signal quality assessment for raw rPPG buffers.

Combines three cheap time-domain indicators into a single score that tells
the user whether the current measurement can be trusted:

* SNR – signal variance against the mean absolute sample-to-sample change.
* Periodicity – autocorrelation at the lag of a typical resting heart rate.
* Cleanness – share of samples free of sudden jumps (motion artifacts).
"""

from __future__ import annotations

from enum import Enum

import numpy as np

SNR_CEILING_DB = 50.0


class SignalQuality(Enum):
    EXCELLENT = "Excellent"
    GOOD      = "Good"
    FAIR      = "Fair"
    POOR      = "Poor"
    VERY_POOR = "Very Poor"

    @property
    def display_name(self) -> str:
        return self.value


def compute_snr(signal: np.ndarray) -> float:
    """
    Return ``10·log10(variance / noise)`` in dB.

    Noise is estimated as the mean absolute difference between successive
    samples.  Returns 100 when successive samples barely change (a constant
    signal included) and 0 for an empty one.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size == 0:
        return 0.0

    variance = float(np.mean((x - x.mean()) ** 2))
    noise = float(np.mean(np.abs(np.diff(x)))) if x.size > 1 else 0.0
    if noise < 1e-6:
        return 100.0
    if variance <= 0.0:
        return 0.0
    return 10.0 * float(np.log10(variance / noise))


def compute_periodicity(
    signal: np.ndarray,
    sampling_rate: float,
    expected_bpm: float = 70.0,
) -> float:
    """
    Return a 0 – 1 periodicity score.

    The autocorrelation at the lag of *expected_bpm*, normalised by the
    energy of the leading segment, is mapped from [-1, 1] to [0, 1].  A
    growing signal can push it past 1, so the score is clipped.  At least
    60 samples (2 s at 30 fps) are needed.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size < 60:
        return 0.0
    lag = int(sampling_rate * 60.0 / expected_bpm)
    if lag <= 0 or lag >= x.size:
        return 0.0

    centred = x - x.mean()
    head = centred[:-lag]
    numerator = float(np.dot(head, centred[lag:]))
    denominator = float(np.dot(head, head))
    if denominator < 1e-6:
        return 0.0
    return float(np.clip((numerator / denominator + 1.0) / 2.0, 0.0, 1.0))


def detect_motion_artifacts(signal: np.ndarray) -> float:
    """
    Return the share of clean samples (0 – 1).

    A step counts as an artifact when it exceeds three times the RMS of
    all steps.
    """
    x = np.asarray(signal, dtype=np.float64)
    if x.size < 2:
        return 0.0
    steps = np.abs(np.diff(x))
    threshold = 3.0 * float(np.sqrt(np.mean(steps ** 2)))
    artifacts = int(np.count_nonzero(steps > threshold))
    return 1.0 - artifacts / x.size


def compute_quality_score(signal: np.ndarray, sampling_rate: float) -> float:
    """Weighted 0 – 1 score: 30 % SNR, 40 % periodicity, 30 % cleanness."""
    snr = float(np.clip(compute_snr(signal), 0.0, SNR_CEILING_DB)) / SNR_CEILING_DB
    periodicity = compute_periodicity(signal, sampling_rate)
    cleanness = detect_motion_artifacts(signal)
    return snr * 0.3 + periodicity * 0.4 + cleanness * 0.3


def compute_overall_quality(
    signal: np.ndarray, sampling_rate: float
) -> SignalQuality:
    score = compute_quality_score(signal, sampling_rate)
    if score >= 0.8:
        return SignalQuality.EXCELLENT
    if score >= 0.6:
        return SignalQuality.GOOD
    if score >= 0.4:
        return SignalQuality.FAIR
    if score >= 0.2:
        return SignalQuality.POOR
    return SignalQuality.VERY_POOR
