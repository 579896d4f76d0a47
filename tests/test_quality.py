"""
Unit tests for the signal quality indicators.
Run with:  pytest tests/test_quality.py
"""

from __future__ import annotations

import numpy as np
import pytest

from pulse_estimator.quality import (
    SignalQuality,
    compute_overall_quality,
    compute_periodicity,
    compute_quality_score,
    compute_snr,
    detect_motion_artifacts,
)

FPS = 30.0


def _pulse(n: int = 300, freq_hz: float = 1.2, amplitude: float = 5.0) -> np.ndarray:
    t = np.arange(n) / FPS
    return 100.0 + amplitude * np.sin(2 * np.pi * freq_hz * t)


class TestSNR:

    def test_empty_signal(self):
        assert compute_snr(np.array([])) == 0.0

    def test_constant_signal_counts_as_clean(self):
        assert compute_snr(np.full(100, 80.0)) == 100.0

    def test_smooth_pulse_beats_white_noise(self):
        noise = np.random.default_rng(0).standard_normal(300)
        assert compute_snr(_pulse()) > compute_snr(noise)


class TestPeriodicity:

    def test_too_short(self):
        assert compute_periodicity(_pulse(n=59), FPS) == 0.0

    def test_pulse_at_expected_rate(self):
        # 1.2 Hz at 30 fps repeats every 25 samples, the lag for 72 BPM
        assert compute_periodicity(_pulse(), FPS, expected_bpm=72.0) > 0.95

    def test_half_period_lag_scores_low(self):
        # 144 BPM puts the lag at half a 72 BPM period
        assert compute_periodicity(_pulse(), FPS, expected_bpm=144.0) < 0.1

    def test_flat_signal(self):
        assert compute_periodicity(np.full(100, 5.0), FPS) == 0.0

    def test_growing_signal_is_clipped(self):
        # Amplitude doubles every 25 samples, so the raw ratio is about 2
        n = np.arange(300)
        x = 2.0 ** (n / 25.0) * np.sin(2 * np.pi * n / 25.0)
        assert compute_periodicity(x, FPS, expected_bpm=72.0) == 1.0


class TestMotionArtifacts:

    def test_smooth_signal_is_clean(self):
        assert detect_motion_artifacts(_pulse()) == pytest.approx(1.0)

    def test_spikes_are_counted(self):
        x = _pulse()
        x[[50, 150, 250]] += 200.0
        assert detect_motion_artifacts(x) < 1.0

    def test_single_sample(self):
        assert detect_motion_artifacts(np.array([1.0])) == 0.0


class TestOverallQuality:

    def test_clean_pulse_is_good(self):
        quality = compute_overall_quality(_pulse(), FPS)
        assert quality in (SignalQuality.GOOD, SignalQuality.EXCELLENT)

    def test_noise_scores_below_pulse(self):
        noise = 100.0 + np.random.default_rng(1).standard_normal(300)
        assert compute_quality_score(noise, FPS) < compute_quality_score(_pulse(), FPS)

    def test_empty_signal_is_very_poor(self):
        assert compute_overall_quality(np.array([]), FPS) is SignalQuality.VERY_POOR

    def test_display_names(self):
        assert SignalQuality.VERY_POOR.display_name == "Very Poor"
        assert SignalQuality.GOOD.display_name == "Good"
