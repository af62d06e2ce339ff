"""Basic spectrum manipulations.

These helpers return arrays only; they never construct new spectra.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from spectrum_base.engine.errors import DimensionMismatch
from spectrum_base.engine.filters import SGFilter
from spectrum_base.engine.spectrum import coordinates, intensities, is_evenly_spaced, step

__all__ = [
    "vshift",
    "vscale",
    "hshift",
    "smooth_spectrum",
]


def vshift(spec: Any, y: float) -> np.ndarray:
    """Intensities of ``spec`` shifted vertically by ``y``."""

    return intensities(spec) + float(y)


def vscale(spec: Any, alpha: float) -> np.ndarray:
    """Intensities of ``spec`` multiplied by ``alpha``."""

    return intensities(spec) * alpha


def hshift(spec: Any, x: float) -> np.ndarray:
    """Coordinates of a 1-D ``spec`` shifted horizontally by ``x``."""

    coords = coordinates(spec)
    if isinstance(coords, tuple):
        raise DimensionMismatch("hshift is only defined for one-dimensional spectra")
    return coords + float(x)


def smooth_spectrum(spec: Any, window: int, degree: int, derivative: int = 0) -> np.ndarray:
    """Savitzky-Golay smoothed (or differentiated) intensities of a 1-D spectrum or view.

    Derivatives are taken with respect to the coordinate, using the step of
    evenly spaced spectra; irregular spectra are treated as unit spaced.
    """

    sg = SGFilter(window, degree, derivative)
    delta = step(spec) if is_evenly_spaced(spec) else 1.0
    return sg(intensities(spec), delta=delta)
