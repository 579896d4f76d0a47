"""
Mixed-radix complex FFT.

Algorithm
---------
Recursive decimation-in-time Cooley–Tukey transform for an arbitrary length
``n >= 1`` (not restricted to powers of two):

1. At construction, precompute the ``n`` twiddle factors
   ``exp(∓2πi·k/n)`` and factor ``n`` into a list of ``(radix, remaining)``
   stages.  Radix 4 is tried first, then 2, then 3 and successive odd numbers;
   once the candidate exceeds ``floor(sqrt(n))`` the remaining quotient is
   taken whole.
2. Each stage transforms its ``p`` stride-interleaved sub-sequences
   recursively and combines them with a butterfly: dedicated radix-2 and
   radix-4 kernels, and a generic O(p²) kernel for any other factor.

The butterflies are vectorised over the ``m`` outputs of each sub-transform
with numpy, so the Python-level recursion depth equals the number of factors.

A window capacity of 300 samples factors as ``4 · 3 · 5 · 5``.
"""

from __future__ import annotations

import logging
import math
from typing import List, Tuple

import numpy as np

logger = logging.getLogger(__name__)

Factor = Tuple[int, int]


def factorize(n: int) -> List[Factor]:
    """
    Split *n* into ``(radix, remaining)`` stages.

    The product of all radices equals *n*; the ``remaining`` entry of the
    last stage is always 1.

    Raises
    ------
    ValueError
        If *n* is smaller than 1.
    """
    if n < 1:
        raise ValueError(f"FFT length must be >= 1, got {n}")

    floor_sqrt = math.isqrt(n)
    factors: List[Factor] = []
    p = 4
    while True:
        while n % p:
            if p == 4:
                p = 2
            elif p == 2:
                p = 3
            else:
                p += 2
            if p > floor_sqrt:
                p = n
        n //= p
        factors.append((p, n))
        if n <= 1:
            return factors


class SpectralTransform:
    """
    Fixed-length complex DFT with a precomputed twiddle table.

    Parameters
    ----------
    length:
        Number of points.  Every call to :meth:`transform` must pass exactly
        this many samples.
    inverse:
        Compute the inverse transform (positive exponent).  The inverse is
        not normalised: ``inverse(forward(x)) == length * x``.
    """

    def __init__(self, length: int, inverse: bool = False) -> None:
        self._factors: Tuple[Factor, ...] = tuple(factorize(int(length)))
        self._length = int(length)
        self._inverse = bool(inverse)

        phase = -2.0 * np.pi * np.arange(self._length) / self._length
        if self._inverse:
            phase = -phase
        self._twiddles = np.exp(1j * phase)
        self._twiddles.setflags(write=False)

        logger.debug(
            "SpectralTransform ready – length=%d inverse=%s factors=%s",
            self._length, self._inverse, self._factors,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def length(self) -> int:
        return self._length

    @property
    def inverse(self) -> bool:
        return self._inverse

    @property
    def factors(self) -> Tuple[Factor, ...]:
        return self._factors

    @property
    def twiddles(self) -> np.ndarray:
        """Read-only twiddle table, ``exp(∓2πi·k/length)``."""
        return self._twiddles

    def transform(self, data: "np.ndarray") -> np.ndarray:
        """
        Return the DFT of *data* as a new ``complex128`` array.

        Parameters
        ----------
        data:
            Real or complex sequence of length :attr:`length`.  Real input is
            treated as having a zero imaginary part.  *data* is not modified.
        """
        x = np.asarray(data, dtype=np.complex128).reshape(-1)
        if x.size != self._length:
            raise ValueError(
                f"Expected {self._length} samples, got {x.size}"
            )
        out = np.empty(self._length, dtype=np.complex128)
        self._work(out, 0, x, 0, 1, 0)
        return out

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _work(
        self,
        out: np.ndarray,
        offset: int,
        x: np.ndarray,
        start: int,
        fstride: int,
        stage: int,
    ) -> None:
        p, m = self._factors[stage]

        if m == 1:
            out[offset:offset + p] = x[start:start + p * fstride:fstride]
        else:
            for q in range(p):
                self._work(
                    out, offset + q * m, x, start + q * fstride,
                    fstride * p, stage + 1,
                )

        block = out[offset:offset + p * m]
        if p == 2:
            self._butterfly2(block, fstride, m)
        elif p == 4:
            self._butterfly4(block, fstride, m)
        else:
            self._butterfly_generic(block, fstride, m, p)

    def _butterfly2(self, block: np.ndarray, fstride: int, m: int) -> None:
        tw = self._twiddles[np.arange(m) * fstride]
        t = block[m:2 * m] * tw
        head = block[:m].copy()
        block[m:2 * m] = head - t
        block[:m] = head + t

    def _butterfly4(self, block: np.ndarray, fstride: int, m: int) -> None:
        k = np.arange(m) * fstride
        s0 = block[m:2 * m] * self._twiddles[k]
        s1 = block[2 * m:3 * m] * self._twiddles[2 * k]
        s2 = block[3 * m:4 * m] * self._twiddles[3 * k]

        head = block[:m].copy()
        s5 = head - s1
        head += s1
        s3 = s0 + s2
        s4 = s0 - s2

        block[2 * m:3 * m] = head - s3
        block[:m] = head + s3
        # Rotation by ∓i depends on the transform direction
        if self._inverse:
            block[m:2 * m] = s5 + 1j * s4
            block[3 * m:4 * m] = s5 - 1j * s4
        else:
            block[m:2 * m] = s5 - 1j * s4
            block[3 * m:4 * m] = s5 + 1j * s4

    def _butterfly_generic(
        self, block: np.ndarray, fstride: int, m: int, p: int
    ) -> None:
        # scratch[q, u] holds input u of sub-transform q
        scratch = block.reshape(p, m).copy()
        radix = np.arange(p)
        # Output index k = u + q1 * m, laid out as (q1, u)
        k = np.arange(m)[np.newaxis, :] + m * radix[:, np.newaxis]
        tw_idx = (radix[:, np.newaxis, np.newaxis] * fstride * k) % self._length
        block[:] = np.einsum(
            "qu,qku->ku", scratch, self._twiddles[tw_idx]
        ).reshape(-1)

    def __repr__(self) -> str:
        return (
            f"SpectralTransform(length={self._length}, "
            f"inverse={self._inverse})"
        )
