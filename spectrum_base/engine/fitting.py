"""Least-squares fitting of composite line shapes.

The engine only builds the objective surface; minimisation is delegated to
:func:`scipy.optimize.minimize` and its result is kept as-is inside a
:class:`FittingSolution`.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, List, Optional, Tuple, Type

import numpy as np
import pandas as pd
from scipy import optimize

from spectrum_base.engine.errors import DimensionMismatch
from spectrum_base.engine.lineshapes import CompositeShape, LineShape, composite_profile, resolve_shape
from spectrum_base.engine.spectrum import coordinates, intensities

__all__ = [
    "FittingProblem",
    "FittingSolution",
    "build_objective",
    "solve",
]

logger = logging.getLogger(__name__)

REDUCTIONS = ("sum", "mean")
SCALE_FLOOR = 1e-12
_BOUNDED_METHODS = {"l-bfgs-b", "tnc", "slsqp", "powell", "trust-constr", "nelder-mead"}


@dataclass(frozen=True, eq=False)
class FittingProblem:
    """Line shape family, starting parameters and the observed data to fit."""

    kind: Type[LineShape]
    init_params: np.ndarray
    xdata: np.ndarray
    ydata: np.ndarray
    reduction: str = "sum"

    def __post_init__(self) -> None:
        kind = resolve_shape(self.kind)
        x = np.array(self.xdata, dtype=float).ravel()
        y = np.array(self.ydata, dtype=float).ravel()
        if x.size != y.size:
            raise DimensionMismatch(f"x data ({x.size}) and y data ({y.size}) differ in length")
        if x.size == 0:
            raise DimensionMismatch("fitting needs at least one observation")
        reduction = str(self.reduction).strip().lower()
        if reduction not in REDUCTIONS:
            raise ValueError(f"Unsupported loss reduction '{self.reduction}'; expected one of {', '.join(REDUCTIONS)}")
        # validates grouping and positive scales of the starting point
        initial = CompositeShape(kind, self.init_params)

        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "init_params", np.array(initial.params, dtype=float))
        object.__setattr__(self, "xdata", x)
        object.__setattr__(self, "ydata", y)
        object.__setattr__(self, "reduction", reduction)

    @classmethod
    def from_spectrum(cls, kind: Any, init_params: Any, spec: Any, reduction: str = "sum") -> "FittingProblem":
        """Problem fitting the coordinates/intensities of a 1-D spectrum or view."""

        x = coordinates(spec)
        if isinstance(x, tuple):
            raise DimensionMismatch("line shape fitting is only defined for one-dimensional spectra")
        return cls(kind, init_params, x, intensities(spec), reduction)

    @property
    def n_shapes(self) -> int:
        return self.init_params.size // self.kind.n_params


def build_objective(problem: FittingProblem) -> Callable[[np.ndarray], float]:
    """Return ``objective(params) -> float``, the sum (or mean) of squared residuals."""

    kind = problem.kind
    x, y = problem.xdata, problem.ydata
    reduce = np.sum if problem.reduction == "sum" else np.mean

    def objective(params: np.ndarray) -> float:
        residuals = y - composite_profile(kind, params, x)
        return float(reduce(residuals**2))

    return objective


@dataclass(frozen=True, eq=False)
class FittingSolution:
    """A solved :class:`FittingProblem` and the optimiser's raw result."""

    problem: FittingProblem
    optimized: Any

    @property
    def minimizer(self) -> np.ndarray:
        return np.asarray(self.optimized.x, dtype=float)

    @property
    def minimum(self) -> float:
        return float(self.optimized.fun)

    @property
    def iterations(self) -> int:
        return int(getattr(self.optimized, "nit", 0) or 0)

    @property
    def f_calls(self) -> int:
        return int(getattr(self.optimized, "nfev", 0) or 0)

    @property
    def converged(self) -> bool:
        return bool(self.optimized.success)

    def summary(self) -> str:
        status = "converged" if self.converged else "not converged"
        message = getattr(self.optimized, "message", "")
        return (
            f"{self.problem.kind.__name__} x{self.problem.n_shapes}: {status} after "
            f"{self.iterations} iterations ({self.f_calls} evaluations), loss={self.minimum:.6g}; {message}"
        )

    def composite(self) -> CompositeShape:
        return CompositeShape(self.problem.kind, self.minimizer)

    def residuals(self) -> np.ndarray:
        fitted = composite_profile(self.problem.kind, self.minimizer, self.problem.xdata)
        return self.problem.ydata - fitted

    def parameter_table(self) -> pd.DataFrame:
        layout = self.minimizer.reshape(-1, self.problem.kind.n_params)
        frame = pd.DataFrame(layout, columns=["center", "scale", "height"])
        frame.insert(0, "shape", self.problem.kind.__name__)
        return frame


def _scale_bounds(problem: FittingProblem) -> List[Tuple[Optional[float], Optional[float]]]:
    return [(None, None), (SCALE_FLOOR, None), (None, None)] * problem.n_shapes


def solve(problem: FittingProblem, method: str = "L-BFGS-B", **options: Any) -> FittingSolution:
    """Minimise the problem's objective with :func:`scipy.optimize.minimize`.

    Scales are kept positive through bounds when ``method`` supports them.
    Extra keyword arguments are passed as the optimiser ``options``.
    """

    objective = build_objective(problem)
    bounds = _scale_bounds(problem) if method.lower() in _BOUNDED_METHODS else None
    logger.info(
        "Fitting %d %s shape(s) to %d points with %s",
        problem.n_shapes,
        problem.kind.__name__,
        problem.xdata.size,
        method,
    )
    result = optimize.minimize(
        objective,
        problem.init_params,
        method=method,
        bounds=bounds,
        options=options or None,
    )
    solution = FittingSolution(problem, result)
    if solution.converged:
        logger.info("Fit converged after %d iterations (loss=%.6g)", solution.iterations, solution.minimum)
    else:
        logger.warning("Fit did not converge: %s", getattr(result, "message", "unknown reason"))
    return solution
