"""Sub-range extraction for spectra.

``get_view`` turns a coordinate interval (in spectrum units, not indices)
into the smallest :class:`SpectrumView` whose coordinates enclose it.  Two
search strategies are available and always agree:

``binary``
    bisection on the (ascending or descending) coordinate array.
``linear``
    a left-to-right scan applying the same comparisons.
"""

from __future__ import annotations

import logging
import operator
from typing import Any, Sequence, Tuple

import numpy as np

from spectrum_base.engine.errors import DimensionMismatch, InvalidInterval
from spectrum_base.engine.spectrum import SpectrumView, axes, intensities

__all__ = [
    "SEARCH_METHODS",
    "normalize_search_method",
    "envelope",
    "extract_section",
    "get_view",
    "section",
]

logger = logging.getLogger(__name__)

SEARCH_METHODS = ("binary", "linear")
_METHOD_ALIASES = {"binary": "binary", "binsearch": "binary", "linear": "linear"}


def normalize_search_method(method: object) -> str:
    text = str(method).strip().lower() if method is not None else ""
    try:
        return _METHOD_ALIASES[text]
    except KeyError:
        raise ValueError(
            f"Unsupported search method '{method}'; expected one of {', '.join(SEARCH_METHODS)}"
        ) from None


def _is_descending(values: np.ndarray) -> bool:
    return bool(values[0] > values[-1])


def _check_interval(parent: np.ndarray, inner: Tuple[float, float]) -> None:
    lower, upper = inner
    if not (np.isfinite(lower) and np.isfinite(upper)):
        raise InvalidInterval(f"interval endpoints must be finite, got ({lower}, {upper})")

    lo, hi = float(np.min(parent)), float(np.max(parent))
    for value in inner:
        if not lo <= value <= hi:
            raise InvalidInterval(f"interval endpoint {value} outside coordinate range [{lo}, {hi}]")

    if lower != upper and (lower > upper) != _is_descending(parent):
        order = "descending" if _is_descending(parent) else "ascending"
        raise InvalidInterval(
            f"interval ({lower}, {upper}) must run in the same ({order}) order as the coordinates"
        )


def _envelope_linear(parent: np.ndarray, inner: Tuple[float, float]) -> Tuple[int, int]:
    lower, upper = inner
    if _is_descending(parent):
        not_past_start, not_before_stop = operator.ge, operator.le
    else:
        not_past_start, not_before_stop = operator.le, operator.ge

    start = 0
    stop = parent.size - 1
    for idx, value in enumerate(parent):
        if not_past_start(value, lower):
            start = idx
        if not_before_stop(value, upper):
            stop = idx
            break
    return start, stop


def _envelope_binary(parent: np.ndarray, inner: Tuple[float, float]) -> Tuple[int, int]:
    lower, upper = inner
    ordered = parent
    if _is_descending(parent):
        ordered, lower, upper = -parent, -lower, -upper

    # last index not past the lower bound, first index not before the upper bound
    start = int(np.searchsorted(ordered, lower, side="right")) - 1
    stop = int(np.searchsorted(ordered, upper, side="left"))
    return start, stop


def envelope(parent: Any, inner: Sequence[float], method: str = "binary") -> Tuple[int, int]:
    """Return the closed index pair of the smallest bracket around ``inner``.

    ``parent`` is a monotonic coordinate array.  For an ascending domain the
    bracket starts at the last index with ``coord <= inner[0]`` and stops at
    the first index with ``coord >= inner[1]``; the comparisons flip for a
    descending domain.
    """

    values = np.asarray(parent, dtype=float)
    if values.ndim != 1 or values.size == 0:
        raise InvalidInterval("cannot search an empty or multi-dimensional coordinate array")
    pair = tuple(float(value) for value in inner)
    if len(pair) != 2:
        raise InvalidInterval(f"interval must be a (start, stop) pair, got {inner!r}")
    _check_interval(values, pair)

    if normalize_search_method(method) == "linear":
        return _envelope_linear(values, pair)
    return _envelope_binary(values, pair)


def get_view(spec: Any, *intervals: Sequence[float], method: str = "binary") -> SpectrumView:
    """Smallest view of ``spec`` enclosing one coordinate interval per dimension."""

    domain = axes(spec)
    if len(intervals) != len(domain):
        raise DimensionMismatch(
            f"expected {len(domain)} interval(s) for a {len(domain)}-D spectrum, got {len(intervals)}"
        )
    method = normalize_search_method(method)
    frames = tuple(envelope(axis, inner, method) for axis, inner in zip(domain, intervals))
    logger.debug("Resolved intervals %s to index frames %s (%s search)", intervals, frames, method)
    return SpectrumView(spec, frames)


def extract_section(view: SpectrumView) -> Tuple[Any, np.ndarray]:
    """Return independent copies of the coordinates and intensities of ``view``."""

    coords = view.coordinates()
    if isinstance(coords, tuple):
        coords = tuple(np.array(axis, copy=True) for axis in coords)
    else:
        coords = np.array(coords, copy=True)
    return coords, np.array(intensities(view), copy=True)


section = extract_section
