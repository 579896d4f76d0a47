"""
Tests for the headless replay entry point.
Run with:  pytest tests/test_main.py
"""

from __future__ import annotations

import numpy as np

import main


class TestReplay:

    def test_synthetic_samples(self):
        values, timestamps = main.synthesize_samples(72.0, 10.0, 30.0, noise=0.0)
        assert values.size == 300
        assert values.dtype == np.float32
        assert timestamps[0] == 0 and timestamps[-1] == 9966

    def test_synthetic_run_reports_bpm(self, capsys):
        assert main.main(["--synthetic-bpm", "72", "--duration", "12", "--noise", "0"]) == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 12
        assert "Waiting" in lines[0]
        assert "BPM=72.0" in lines[-1]

    def test_csv_round_trip(self, tmp_path, capsys):
        values, timestamps = main.synthesize_samples(90.0, 10.0, 30.0, noise=0.0)
        path = tmp_path / "trace.csv"
        rows = ["timestamp_ms,green"] + [f"{t},{v}" for t, v in zip(timestamps, values)]
        path.write_text("\n".join(rows) + "\n")

        loaded, loaded_ts = main.load_samples(path)
        np.testing.assert_allclose(loaded, values, rtol=1e-6)
        np.testing.assert_array_equal(loaded_ts, timestamps)

        assert main.main(["--input", str(path)]) == 0
        assert "BPM=90.0" in capsys.readouterr().out.strip().splitlines()[-1]

    def test_missing_file(self, tmp_path):
        assert main.main(["--input", str(tmp_path / "missing.csv")]) == 1

    def test_malformed_row(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("timestamp_ms,green\n0,100.0\n33,oops\n")
        assert main.main(["--input", str(path)]) == 1
