"""Plotting adapter.

Spectra reach matplotlib as plain arrays: ``(x, y)`` for 1-D data and
``(x_a, x_b, z)`` for grids.
"""

from __future__ import annotations

from typing import Any, Tuple

import matplotlib.pyplot as plt
import numpy as np

from spectrum_base.engine.spectrum import axes, intensities

__all__ = ["plot_arguments", "plot_spectrum"]


def plot_arguments(spec: Any) -> Tuple[np.ndarray, ...]:
    domain = axes(spec)
    values = np.asarray(intensities(spec), dtype=float)
    return (*domain, values)


def plot_spectrum(spec: Any, ax=None, **kwargs: Any):
    """Draw ``spec`` on ``ax`` (a new figure when omitted) and return ``(fig, ax)``.

    Grid spectra are drawn with ``pcolormesh``; the intensity array is indexed
    ``[axis_a, axis_b]`` so it is transposed for matplotlib's row/column order.
    """

    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4))
    else:
        fig = ax.figure

    arrays = plot_arguments(spec)
    if len(arrays) == 2:
        x, y = arrays
        kwargs.setdefault("linewidth", 1.5)
        ax.plot(x, y, **kwargs)
        ax.set_ylabel("Intensity")
    else:
        xa, xb, z = arrays
        kwargs.setdefault("shading", "auto")
        ax.pcolormesh(xa, xb, z.T, **kwargs)
    ax.grid(True, alpha=0.2)
    return fig, ax
