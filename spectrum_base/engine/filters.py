"""Savitzky-Golay smoothing and differentiation.

Convolution weights follow Gorry, "General least-squares smoothing and
differentiation by the convolution (Savitzky-Golay) method", Anal. Chem.
62 (1990) 570-573.  They are built from Gram polynomials evaluated with
exact rational arithmetic and only converted to floats at the end, which
keeps wide windows free of cancellation error.

The first and last ``half_window`` outputs use the same formula with the
evaluation point moved to the boundary sample, i.e. the least-squares
polynomial of the edge window is evaluated where the sample actually is.
No padding or reflection of the input is needed.
"""

from __future__ import annotations

from fractions import Fraction
from functools import lru_cache
import logging
from typing import Callable, Dict, Iterable, Tuple

import numpy as np

from spectrum_base.engine.errors import DimensionMismatch, InvalidFilterConfig, WindowTooLarge

__all__ = [
    "SGFilter",
    "filter_coefficients",
    "gram_polynomial",
]

logger = logging.getLogger(__name__)


def _generalized_factorial(a: int, b: int) -> int:
    """``a * (a - 1) * ... * (a - b + 1)``; one for ``b <= 0``."""

    result = 1
    for factor in range(a - b + 1, a + 1):
        result *= factor
    return result


def _gram_table(half_window: int) -> Callable[[int, int, int], Fraction]:
    m = half_window

    @lru_cache(maxsize=None)
    def gram(i: int, k: int, s: int) -> Fraction:
        if k > 0:
            denom = k * (2 * m - k + 1)
            value = i * gram(i, k - 1, s)
            if s > 0:
                value += s * gram(i, k - 1, s - 1)
            value = Fraction(4 * k - 2, denom) * value
            if k > 1:
                value += Fraction((1 - k) * (2 * m + k), denom) * gram(i, k - 2, s)
            return value
        if k == 0 and s == 0:
            return Fraction(1)
        return Fraction(0)

    return gram


def gram_polynomial(i: int, k: int, half_window: int, derivative: int = 0) -> Fraction:
    """``derivative``-th derivative of the Gram polynomial of order ``k`` at ``i``.

    The polynomials are orthogonal over the ``2 * half_window + 1`` points
    ``-half_window..half_window``.
    """

    if k < 0 or derivative < 0:
        return Fraction(0)
    return _gram_table(int(half_window))(int(i), int(k), int(derivative))


def _savgol_weights(
    half_window: int, degree: int, derivative: int, targets: Iterable[int]
) -> Dict[int, Tuple[Fraction, ...]]:
    m = half_window
    gram = _gram_table(m)
    prefactors = [
        Fraction((2 * k + 1) * _generalized_factorial(2 * m, k), _generalized_factorial(2 * m + k + 1, k + 1))
        for k in range(degree + 1)
    ]
    basis = {i: [gram(i, k, 0) for k in range(degree + 1)] for i in range(-m, m + 1)}

    weights: Dict[int, Tuple[Fraction, ...]] = {}
    for t in targets:
        at_target = [prefactors[k] * gram(t, k, derivative) for k in range(degree + 1)]
        weights[t] = tuple(
            sum((basis[i][k] * at_target[k] for k in range(degree + 1)), Fraction(0))
            for i in range(-m, m + 1)
        )
    return weights


def _integral_setting(name: str, value: object) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidFilterConfig(f"{name} should be an integer, got {value!r}") from None
    if number != value:
        raise InvalidFilterConfig(f"{name} should be an integer, got {value!r}")
    return number


def filter_coefficients(half_window: int, degree: int, derivative: int = 0, at: int = 0) -> Tuple[Fraction, ...]:
    """Exact convolution weights for offsets ``-half_window..half_window``.

    ``at`` is the offset of the evaluation point inside the window: zero for
    the symmetric interior weights, ``-half_window..-1`` or
    ``1..half_window`` for the asymmetric edge weights.
    """

    return _savgol_weights(int(half_window), int(degree), int(derivative), [int(at)])[int(at)]


class SGFilter:
    """Savitzky-Golay filter for noise reduction and derivative estimation.

    ``SGFilter(window_size, degree, derivative=0)`` fits a polynomial of
    ``degree`` over a sliding window of ``window_size`` samples and returns
    its value (``derivative=0``) or derivative at each sample.
    """

    def __init__(self, window_size: int, degree: int, derivative: int = 0):
        window_size = _integral_setting("window size", window_size)
        degree = _integral_setting("polynomial degree", degree)
        derivative = _integral_setting("derivative order", derivative)
        if window_size % 2 == 0 or window_size <= 1:
            raise InvalidFilterConfig(f"window size should be odd and greater than 1, got {window_size}")
        if degree < 0:
            raise InvalidFilterConfig(f"polynomial degree should be nonnegative, got {degree}")
        if window_size - degree <= 1:
            raise InvalidFilterConfig(
                "difference between window size and polynomial degree should be at least 2, "
                f"got {window_size - degree}"
            )
        if derivative < 0:
            raise InvalidFilterConfig(f"derivative order should be nonnegative, got {derivative}")
        if derivative > degree:
            raise InvalidFilterConfig(
                f"derivative order ({derivative}) cannot exceed polynomial degree ({degree})"
            )

        self.window_size = window_size
        self.degree = degree
        self.derivative = derivative

        m = self.half_window
        offsets = list(range(-m, m + 1))
        exact = _savgol_weights(m, degree, derivative, offsets)
        self.coefficients: Tuple[Fraction, ...] = exact[0]
        self.weights = np.array([float(c) for c in exact[0]], dtype=float)
        self._edge_weights = {
            t: np.array([float(c) for c in exact[t]], dtype=float) for t in offsets if t != 0
        }
        logger.debug(
            "Built Savitzky-Golay weights (window=%d, degree=%d, derivative=%d)",
            window_size,
            degree,
            derivative,
        )

    @property
    def half_window(self) -> int:
        return (self.window_size - 1) // 2

    def edge_weights(self, offset: int) -> np.ndarray:
        """Float weights evaluating the window polynomial at ``offset`` (non-zero)."""

        return self._edge_weights[int(offset)]

    def __call__(self, values: Iterable[float], delta: float = 1.0) -> np.ndarray:
        y = np.asarray(values, dtype=float)
        if y.ndim != 1:
            raise DimensionMismatch(f"Savitzky-Golay filter expects a 1-D sequence, got {y.ndim} dimensions")
        n = y.size
        w = self.window_size
        if n < w:
            raise WindowTooLarge(w, n)

        m = self.half_window
        result = np.zeros(n, dtype=float)
        result[m : n - m] = np.correlate(y, self.weights, mode="valid")

        head = y[:w]
        tail = y[n - w :]
        for p in range(m):
            result[p] = float(np.dot(self._edge_weights[p - m], head))
            result[n - 1 - p] = float(np.dot(self._edge_weights[m - p], tail))

        if self.derivative:
            result /= float(delta) ** self.derivative
        return result

    def __repr__(self) -> str:
        return f"SGFilter(window_size={self.window_size}, degree={self.degree}, derivative={self.derivative})"
