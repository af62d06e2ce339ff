"""Spectrum data model.

A spectrum is anything exposing two capabilities:

* ``coordinates()`` - the ordered coordinate domain (one array per
  dimension), and
* ``intensities()`` - the sampled values, of matching shape.

Evenly spaced spectra advertise ``evenly_spaced = True`` and expose
``endpoints()`` instead of storing their coordinates; the domain is
regenerated from the endpoints and the intensity shape whenever it is
needed.  The module level accessors below work on any object following
that contract, so callers are free to bring their own spectrum types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Sequence, Tuple

import numpy as np

from spectrum_base.engine.errors import DimensionMismatch, InvalidDomain, InvalidInterval, NotEvenlySpaced

__all__ = [
    "Spectrum",
    "EvenSpacedSpectrum",
    "GridSpectrum",
    "SpectrumView",
    "axes",
    "coordinates",
    "endpoints",
    "intensities",
    "is_evenly_spaced",
    "length",
    "ndim",
    "shape",
    "step",
]


def _readonly(values: Any, *, ndim: int | None = None, label: str = "intensity") -> np.ndarray:
    arr = np.array(values, dtype=float)
    if ndim is not None and arr.ndim != ndim:
        raise DimensionMismatch(f"{label} must be {ndim}-dimensional, got {arr.ndim} dimensions")
    arr.setflags(write=False)
    return arr


def _check_bounds(bounds: Sequence[float], samples: int) -> Tuple[float, float]:
    try:
        start, end = (float(value) for value in bounds)
    except (TypeError, ValueError) as exc:
        raise InvalidDomain(f"endpoints must be a (start, end) pair, got {bounds!r}") from exc
    if samples < 2:
        raise InvalidDomain("an evenly spaced axis needs at least two samples")
    if start == end:
        raise InvalidDomain("endpoints must differ so that the step is non-zero")
    return start, end


# ---------------------------------------------------------------------------
# Capability accessors
# ---------------------------------------------------------------------------


def is_evenly_spaced(spec: Any) -> bool:
    """Return ``True`` when ``spec`` advertises a uniform coordinate step."""

    return bool(getattr(spec, "evenly_spaced", False))


def intensities(spec: Any) -> np.ndarray:
    return np.asarray(spec.intensities())


def shape(spec: Any) -> Tuple[int, ...]:
    return intensities(spec).shape


def ndim(spec: Any) -> int:
    return intensities(spec).ndim


def length(spec: Any) -> int:
    """Number of samples, always derived from the intensity array."""

    return int(intensities(spec).size)


def axes(spec: Any) -> Tuple[np.ndarray, ...]:
    """Return the coordinate domain as a tuple with one array per dimension."""

    sizes = shape(spec)
    if is_evenly_spaced(spec) and hasattr(spec, "endpoints"):
        bounds = spec.endpoints()
        if len(sizes) == 1:
            bounds = (bounds,)
        if len(bounds) != len(sizes):
            raise DimensionMismatch(
                f"expected {len(sizes)} endpoint pairs, got {len(bounds)}"
            )
        return tuple(np.linspace(float(a), float(b), n) for (a, b), n in zip(bounds, sizes))

    coords = spec.coordinates()
    if len(sizes) == 1:
        return (np.asarray(coords, dtype=float),)
    return tuple(np.asarray(axis, dtype=float) for axis in coords)


def coordinates(spec: Any) -> np.ndarray | Tuple[np.ndarray, ...]:
    """Coordinate array of a 1-D spectrum, or a tuple of axes for grids."""

    domain = axes(spec)
    return domain[0] if len(domain) == 1 else domain


def endpoints(spec: Any) -> Tuple[float, float] | Tuple[Tuple[float, float], ...]:
    if hasattr(spec, "endpoints"):
        return spec.endpoints()
    pairs = tuple((float(axis[0]), float(axis[-1])) for axis in axes(spec))
    return pairs[0] if len(pairs) == 1 else pairs


def step(spec: Any) -> float | Tuple[float, ...]:
    """Uniform coordinate step (negative for descending domains).

    Raises :class:`NotEvenlySpaced` for irregularly sampled spectra.
    """

    if not is_evenly_spaced(spec):
        raise NotEvenlySpaced(f"{type(spec).__name__} is not evenly spaced and has no step")
    if isinstance(spec, SpectrumView):
        return step(spec.parent)
    bounds = spec.endpoints()
    sizes = shape(spec)
    if len(sizes) == 1:
        bounds = (bounds,)
    steps = tuple((float(b) - float(a)) / (n - 1) for (a, b), n in zip(bounds, sizes))
    return steps[0] if len(steps) == 1 else steps


# ---------------------------------------------------------------------------
# Concrete spectrum types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Spectrum:
    """Irregularly sampled one-dimensional spectrum.

    ``axis`` must be strictly ascending or strictly descending.
    """

    axis: np.ndarray
    intensity: np.ndarray

    evenly_spaced: ClassVar[bool] = False

    def __post_init__(self) -> None:
        axis = _readonly(self.axis, ndim=1, label="coordinates")
        intensity = _readonly(self.intensity, ndim=1)
        if axis.size != intensity.size:
            raise DimensionMismatch(
                f"coordinates ({axis.size}) and intensities ({intensity.size}) differ in length"
            )
        if axis.size > 1:
            diffs = np.diff(axis)
            if not (np.all(diffs > 0) or np.all(diffs < 0)):
                raise InvalidDomain("coordinates must be strictly ascending or strictly descending")
        object.__setattr__(self, "axis", axis)
        object.__setattr__(self, "intensity", intensity)

    def coordinates(self) -> np.ndarray:
        return self.axis

    def intensities(self) -> np.ndarray:
        return self.intensity

    def __len__(self) -> int:
        return int(self.intensity.size)


@dataclass(frozen=True, eq=False)
class EvenSpacedSpectrum:
    """One-dimensional spectrum sampled on a uniform grid.

    Only the two endpoints are stored; ``coordinate[i] = start + i * step``
    with ``step = (end - start) / (len - 1)``.  A negative step describes a
    descending domain (e.g. wavenumbers recorded high to low).
    """

    bounds: Tuple[float, float]
    intensity: np.ndarray

    evenly_spaced: ClassVar[bool] = True

    def __post_init__(self) -> None:
        intensity = _readonly(self.intensity, ndim=1)
        object.__setattr__(self, "bounds", _check_bounds(self.bounds, intensity.size))
        object.__setattr__(self, "intensity", intensity)

    def endpoints(self) -> Tuple[float, float]:
        return self.bounds

    def coordinates(self) -> np.ndarray:
        return coordinates(self)

    def intensities(self) -> np.ndarray:
        return self.intensity

    def __len__(self) -> int:
        return int(self.intensity.size)


@dataclass(frozen=True, eq=False)
class GridSpectrum:
    """Two-dimensional evenly spaced spectrum (e.g. a 2-D NMR plane).

    ``bounds`` holds one ``(start, end)`` pair per axis and the axis lengths
    come from ``intensity.shape``.
    """

    bounds: Tuple[Tuple[float, float], Tuple[float, float]]
    intensity: np.ndarray

    evenly_spaced: ClassVar[bool] = True

    def __post_init__(self) -> None:
        intensity = _readonly(self.intensity, ndim=2)
        bounds = tuple(self.bounds)
        if len(bounds) != intensity.ndim:
            raise DimensionMismatch(
                f"expected {intensity.ndim} endpoint pairs, got {len(bounds)}"
            )
        checked = tuple(_check_bounds(pair, n) for pair, n in zip(bounds, intensity.shape))
        object.__setattr__(self, "bounds", checked)
        object.__setattr__(self, "intensity", intensity)

    def endpoints(self) -> Tuple[Tuple[float, float], ...]:
        return self.bounds

    def coordinates(self) -> Tuple[np.ndarray, ...]:
        return axes(self)

    def intensities(self) -> np.ndarray:
        return self.intensity


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class SpectrumView:
    """Read-only window onto a spectrum.

    ``frames`` holds one closed ``(start, stop)`` index pair per dimension.
    A view of a view is re-based on the root spectrum, so ``parent`` is never
    itself a view.  The view owns no data: the parent must stay alive.
    Build views with :func:`spectrum_base.engine.views.get_view`.
    """

    parent: Any
    frames: Tuple[Tuple[int, int], ...]

    def __post_init__(self) -> None:
        frames = tuple((int(start), int(stop)) for start, stop in self.frames)
        sizes = shape(self.parent)
        if len(frames) != len(sizes):
            raise DimensionMismatch(f"expected {len(sizes)} index frames, got {len(frames)}")
        for (start, stop), size in zip(frames, sizes):
            if not 0 <= start <= stop <= size - 1:
                raise InvalidInterval(
                    f"index frame ({start}, {stop}) outside parent range (0, {size - 1})"
                )

        parent = self.parent
        if isinstance(parent, SpectrumView):
            frames = tuple(
                (start + offset, stop + offset)
                for (start, stop), (offset, _) in zip(frames, parent.frames)
            )
            parent = parent.parent
        object.__setattr__(self, "parent", parent)
        object.__setattr__(self, "frames", frames)

    @property
    def evenly_spaced(self) -> bool:
        return is_evenly_spaced(self.parent)

    def _slices(self) -> Tuple[slice, ...]:
        return tuple(slice(start, stop + 1) for start, stop in self.frames)

    def coordinates(self) -> np.ndarray | Tuple[np.ndarray, ...]:
        sliced = tuple(axis[sl] for axis, sl in zip(axes(self.parent), self._slices()))
        return sliced[0] if len(sliced) == 1 else sliced

    def intensities(self) -> np.ndarray:
        window = intensities(self.parent)[self._slices()].view()
        window.setflags(write=False)
        return window

    def __len__(self) -> int:
        start, stop = self.frames[0]
        return stop - start + 1

    def __repr__(self) -> str:
        return f"SpectrumView({type(self.parent).__name__}, frames={self.frames})"
