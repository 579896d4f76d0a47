#!/usr/bin/env python3
"""
Pulse Estimator – headless replay entry point.

Feeds a recorded (or synthetic) green-channel trace through the heart-rate
estimator at its nominal frame rate and logs one estimate per second of
samples, the way a live capture loop would.

Usage
-----
    python main.py [OPTIONS]

Options
-------
    --input PATH           CSV of ``timestamp_ms,green`` rows to replay
    --synthetic-bpm FLOAT  Generate a synthetic pulse at this rate instead
    --duration FLOAT       Length of the synthetic trace in seconds (default: 30)
    --noise FLOAT          Std-dev of additive Gaussian noise (default: 0.5)
    --seed INT             Random seed for the synthetic noise (default: 0)
    --capacity INT         Sliding window size in samples (default: 300)
    --fps FLOAT            Nominal sample rate (default: 30)
    --log-level LEVEL      Logging verbosity (default: INFO)
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Tuple

import numpy as np

from pulse_estimator.hrv import compute_hrv, extract_peak_intervals
from pulse_estimator.quality import compute_overall_quality
from pulse_estimator.signal_processor import SignalProcessor

logger = logging.getLogger("pulse_estimator")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Replay a green-channel trace through the rPPG estimator",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=Path, default=None,
                        help="CSV file with timestamp_ms,green rows")
    source.add_argument("--synthetic-bpm", type=float, default=None,
                        help="Generate a synthetic pulse at this BPM")
    parser.add_argument("--duration", type=float, default=30.0,
                        help="Synthetic trace length in seconds")
    parser.add_argument("--noise", type=float, default=0.5,
                        help="Std-dev of additive Gaussian noise")
    parser.add_argument("--seed", type=int, default=0,
                        help="Random seed for the synthetic noise")
    parser.add_argument("--capacity", type=int, default=300,
                        help="Sliding window size in samples")
    parser.add_argument("--fps", type=float, default=30.0,
                        help="Nominal sample rate in Hz")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging verbosity")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Sample sources
# ---------------------------------------------------------------------------

def load_samples(path: Path) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read ``timestamp_ms,green`` rows from *path*.

    A non-numeric first row is treated as a header.  Raises ``ValueError``
    for malformed rows and ``OSError`` if the file cannot be read.
    """
    timestamps: list[int] = []
    values: list[float] = []
    with path.open(newline="") as fh:
        for line_no, row in enumerate(csv.reader(fh), start=1):
            if not row or row[0].startswith("#"):
                continue
            try:
                ts, green = int(float(row[0])), float(row[1])
            except (ValueError, IndexError) as exc:
                if line_no == 1:
                    continue
                raise ValueError(f"{path}:{line_no}: bad row {row!r}") from exc
            timestamps.append(ts)
            values.append(green)
    return np.asarray(values, dtype=np.float32), np.asarray(timestamps, dtype=np.int64)


def synthesize_samples(
    bpm: float,
    duration: float,
    fps: float,
    noise: float = 0.5,
    seed: int = 0,
) -> Tuple[np.ndarray, np.ndarray]:
    """Green trace: brightness 100, pulse amplitude 2, Gaussian noise."""
    rng = np.random.default_rng(seed)
    n = int(duration * fps)
    t = np.arange(n) / fps
    values = 100.0 + 2.0 * np.sin(2 * np.pi * (bpm / 60.0) * t)
    values += noise * rng.standard_normal(n)
    timestamps = (t * 1000.0).astype(np.int64)
    return values.astype(np.float32), timestamps


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def run(args: argparse.Namespace) -> int:
    if args.input is not None:
        try:
            values, timestamps = load_samples(args.input)
        except (OSError, ValueError) as exc:
            logger.error("Cannot read %s: %s", args.input, exc)
            return 1
        logger.info("Replaying %d samples from %s", values.size, args.input)
    else:
        values, timestamps = synthesize_samples(
            args.synthetic_bpm, args.duration, args.fps, args.noise, args.seed
        )
        logger.info(
            "Replaying %.1f s synthetic pulse at %.1f BPM",
            args.duration, args.synthetic_bpm,
        )

    try:
        processor = SignalProcessor(
            buffer_capacity=args.capacity, sampling_rate=args.fps
        )
    except ValueError as exc:
        logger.error("Invalid estimator configuration: %s", exc)
        return 1

    bpm = 0.0
    log_interval = max(int(round(args.fps)), 1)   # once per second of samples
    for idx, (value, ts) in enumerate(zip(values, timestamps), start=1):
        processor.add_sample(float(value), int(ts))
        if idx % log_interval:
            continue

        bpm = processor.compute_heart_rate()
        buffer = processor.get_buffer()
        quality = compute_overall_quality(buffer, args.fps)
        seconds = ts / 1000.0
        if bpm > 0:
            print(f"[{seconds:7.2f}s] BPM={bpm:.1f}  status={processor.status.value}"
                  f"  quality={quality.display_name}")
        else:
            print(f"[{seconds:7.2f}s] Waiting for signal…  status={processor.status.value}")

    metrics = compute_hrv(extract_peak_intervals(processor.get_buffer(), args.fps))
    if metrics is not None:
        logger.info("HRV: SDNN=%.1f ms RMSSD=%.1f ms (%s)",
                    metrics.sdnn, metrics.rmssd, metrics.interpretation)
    logger.info("Final estimate: %.1f BPM", bpm)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
        datefmt="%H:%M:%S",
    )
    return run(args)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
