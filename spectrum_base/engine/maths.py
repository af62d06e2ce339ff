"""Numerical analysis on sampled spectra.

Integration, spectral moments and derivatives require an evenly spaced
spectrum (or a view of one).  The step may be negative for descending
domains, in which case integrals carry the corresponding sign.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Callable, NamedTuple, Optional, Sequence, Tuple

import numpy as np
from scipy import integrate as sp_integrate

from spectrum_base.engine.errors import DimensionMismatch, NotEvenlySpaced
from spectrum_base.engine.spectrum import axes, intensities, is_evenly_spaced, step

__all__ = [
    "IntegrationScheme",
    "Extremum",
    "integrate",
    "moment",
    "unscaled_moment",
    "nominal_max",
    "nominal_min",
    "first_derivative",
    "integrate_shape",
    "trapezoid_weights",
]

logger = logging.getLogger(__name__)


class IntegrationScheme(str, Enum):
    LEFT_RIEMANN = "left_riemann"
    RIGHT_RIEMANN = "right_riemann"
    MIDPOINT = "midpoint"

    @classmethod
    def coerce(cls, scheme: "IntegrationScheme | str") -> "IntegrationScheme":
        if isinstance(scheme, cls):
            return scheme
        text = str(scheme).strip().lower().replace("-", "_").replace(" ", "_")
        if text == "trapezoid":
            return cls.MIDPOINT
        try:
            return cls(text)
        except ValueError:
            valid = ", ".join(member.value for member in cls)
            raise ValueError(f"Unsupported integration scheme '{scheme}'; expected one of {valid}") from None


class Extremum(NamedTuple):
    coordinate: Any
    intensity: float
    index: Any


def _require_even(spec: Any, action: str) -> None:
    if not is_evenly_spaced(spec):
        raise NotEvenlySpaced(f"only evenly spaced spectra are supported for {action}")


def _require_1d(values: np.ndarray, action: str) -> None:
    if values.ndim != 1:
        raise DimensionMismatch(f"{action} is only defined for one-dimensional spectra")


def _cell_volume(spec: Any) -> float:
    return float(np.prod(step(spec)))


def trapezoid_weights(sizes: Sequence[int]) -> np.ndarray:
    """Product trapezoid weights for a grid of ``sizes``.

    A sample lying on a boundary index along ``k`` axes is weighted by
    ``2 ** -k``: corners 1/4, edges 1/2 and interior samples 1 on a 2-D grid.
    """

    weights = np.ones(tuple(sizes), dtype=float)
    for axis, size in enumerate(sizes):
        factors = np.ones(size, dtype=float)
        factors[0] -= 0.5
        factors[-1] -= 0.5
        broadcast = [1] * len(sizes)
        broadcast[axis] = size
        weights = weights * factors.reshape(broadcast)
    return weights


def _scheme_sum(values: np.ndarray, scheme: IntegrationScheme) -> float:
    if scheme is IntegrationScheme.LEFT_RIEMANN:
        return float(np.sum(values[tuple(slice(None, -1) for _ in values.shape)]))
    if scheme is IntegrationScheme.RIGHT_RIEMANN:
        return float(np.sum(values[tuple(slice(1, None) for _ in values.shape)]))
    return float(np.sum(values * trapezoid_weights(values.shape)))


def integrate(spec: Any, scheme: IntegrationScheme | str = IntegrationScheme.MIDPOINT) -> float:
    """Integrate the intensities of an evenly spaced spectrum or view.

    ``left_riemann`` drops the last sample along every axis, ``right_riemann``
    the first, and ``midpoint`` applies the trapezoid rule
    ``step * (sum - (first + last) / 2)`` (generalised to grids by
    :func:`trapezoid_weights`).
    """

    scheme = IntegrationScheme.coerce(scheme)
    _require_even(spec, "integration")
    return _scheme_sum(intensities(spec), scheme) * _cell_volume(spec)


def unscaled_moment(
    spec: Any,
    degree: int = 1,
    center: float = 0.0,
    scheme: IntegrationScheme | str = IntegrationScheme.MIDPOINT,
) -> float:
    """``integral of intensity(x) * (x - center) ** degree dx`` without normalisation."""

    scheme = IntegrationScheme.coerce(scheme)
    _require_even(spec, "moments")
    values = intensities(spec)
    _require_1d(values, "moment")
    x = axes(spec)[0]
    weighted = values * (x - float(center)) ** degree
    return _scheme_sum(weighted, scheme) * _cell_volume(spec)


def moment(
    spec: Any,
    degree: int = 1,
    center: float = 0.0,
    scheme: IntegrationScheme | str = IntegrationScheme.MIDPOINT,
    *,
    normalized: bool = True,
) -> float:
    """Spectral moment of ``degree`` about ``center``.

    With ``normalized`` the result is divided by the total intensity
    (the zeroth moment) computed with the same scheme.
    """

    raw = unscaled_moment(spec, degree, center, scheme)
    if not normalized:
        return raw
    total = integrate(spec, scheme)
    if total == 0:
        logger.warning("Total intensity is zero; normalised moment of degree %s is undefined", degree)
        return float("nan")
    return raw / total


def _extremum(spec: Any, finder: Callable[[np.ndarray], int]) -> Extremum:
    values = intensities(spec)
    if values.size == 0:
        raise DimensionMismatch("cannot locate an extremum of an empty spectrum")
    flat = 0 if np.all(np.isnan(values)) else int(finder(values))
    index = tuple(int(i) for i in np.unravel_index(flat, values.shape))
    coordinate = tuple(float(axis[i]) for axis, i in zip(axes(spec), index))
    if values.ndim == 1:
        return Extremum(coordinate[0], float(values[index]), index[0])
    return Extremum(coordinate, float(values[index]), index)


def nominal_max(spec: Any) -> Extremum:
    """Largest intensity sample (first occurrence on ties) and its coordinate."""

    return _extremum(spec, np.nanargmax)


def nominal_min(spec: Any) -> Extremum:
    """Smallest intensity sample (first occurrence on ties) and its coordinate."""

    return _extremum(spec, np.nanargmin)


def first_derivative(spec: Any) -> np.ndarray:
    """Central-difference first derivative.

    Only interior samples carry a derivative; the first and last entries are
    set to zero and must not be read as a flat slope.
    """

    _require_even(spec, "derivatives")
    values = intensities(spec)
    _require_1d(values, "first_derivative")
    result = np.zeros(values.shape, dtype=float)
    if values.size < 3:
        return result
    result[1:-1] = (values[2:] - values[:-2]) / (2.0 * float(step(spec)))
    return result


def integrate_shape(
    shape: Any,
    interval: Tuple[float, float],
    func: Optional[Callable[[float], float]] = None,
    **quad_kwargs: Any,
) -> float:
    """Integrate a line shape (or composite shape) over ``interval`` with adaptive quadrature.

    ``func`` optionally transforms the shape value before integration.
    """

    lower, upper = (float(value) for value in interval)

    def _integrand(x: float) -> float:
        value = float(shape.evaluate(x))
        return func(value) if func is not None else value

    value, _ = sp_integrate.quad(_integrand, lower, upper, **quad_kwargs)
    return float(value)
