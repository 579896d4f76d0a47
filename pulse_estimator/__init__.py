"""
Pulse Estimator — real-time rPPG heart-rate estimation.
Feed one averaged green-channel intensity per camera frame into
:class:`~pulse_estimator.signal_processor.SignalProcessor`; it keeps a
sliding window, runs a mixed-radix FFT and returns a smoothed BPM value.
"""

__version__ = "0.1.0"
__author__ = "pulse_estimator"
