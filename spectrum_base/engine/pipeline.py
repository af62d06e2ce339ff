"""Recipe-driven analysis of a single spectrum.

The recipe selects an optional coordinate window, optional Savitzky-Golay
smoothing, the integration scheme and moments to report, and an optional
line shape fit.  Each stage is recorded in ``AnalysisResult.audit``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Mapping, Optional

import numpy as np

from spectrum_base.engine.fitting import FittingProblem, FittingSolution, solve
from spectrum_base.engine.manip import smooth_spectrum
from spectrum_base.engine.maths import Extremum, IntegrationScheme, integrate, moment, nominal_max, nominal_min
from spectrum_base.engine.recipe_model import (
    Recipe,
    resolve_fit_config,
    resolve_integration_config,
    resolve_smoothing_config,
    resolve_view_config,
)
from spectrum_base.engine.spectrum import (
    EvenSpacedSpectrum,
    Spectrum,
    SpectrumView,
    coordinates,
    is_evenly_spaced,
    ndim,
)
from spectrum_base.engine.views import get_view

__all__ = ["AnalysisResult", "analyze_spectrum"]

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    source: Any
    maximum: Extremum
    minimum: Extremum
    view: Optional[SpectrumView] = None
    smoothed: Optional[np.ndarray] = None
    integral: Optional[float] = None
    moments: Dict[int, float] = field(default_factory=dict)
    fit: Optional[FittingSolution] = None
    audit: List[str] = field(default_factory=list)


def _rebuild(target: Any, values: np.ndarray) -> Any:
    x = coordinates(target)
    if is_evenly_spaced(target):
        return EvenSpacedSpectrum((float(x[0]), float(x[-1])), values)
    return Spectrum(x, values)


def analyze_spectrum(spec: Any, recipe: Recipe | Mapping[str, Any] | None = None) -> AnalysisResult:
    if not isinstance(recipe, Recipe):
        recipe = Recipe(params=dict(recipe or {}))
    errs = recipe.validate()
    if errs:
        raise ValueError("; ".join(errs))

    params = recipe.params
    audit: List[str] = []
    target: Any = spec
    view: Optional[SpectrumView] = None

    view_cfg = resolve_view_config(params.get("view"))
    if view_cfg.get("enabled"):
        intervals = [tuple(float(v) for v in interval) for interval in view_cfg["intervals"]]
        view = get_view(spec, *intervals, method=str(view_cfg["method"]))
        target = view
        audit.append(f"Restricted to index frames {view.frames} ({view_cfg['method']} search)")

    smoothed = None
    smoothing = resolve_smoothing_config(params.get("smoothing"))
    if smoothing.get("enabled"):
        window = int(smoothing["window"])
        poly = int(smoothing["polyorder"])
        deriv = int(smoothing["derivative"])
        smoothed = smooth_spectrum(target, window, poly, deriv)
        audit.append(f"Savitzky-Golay window={window} polyorder={poly} derivative={deriv}")
        if deriv == 0:
            target = _rebuild(target, smoothed)

    integral = None
    moments: Dict[int, float] = {}
    integration = resolve_integration_config(params.get("integration"))
    if is_evenly_spaced(target):
        scheme = IntegrationScheme.coerce(integration["scheme"])
        integral = integrate(target, scheme)
        audit.append(f"Integrated with {scheme.value} scheme")
        degrees = integration.get("moments") or []
        if degrees and ndim(target) != 1:
            audit.append(f"Moments skipped: {ndim(target)}-D spectra only support integration and extrema")
            degrees = []
        for degree in degrees:
            moments[int(degree)] = moment(
                target,
                int(degree),
                float(integration.get("center", 0.0)),
                scheme,
                normalized=bool(integration.get("normalized", True)),
            )
    else:
        logger.info("Skipping integration for irregularly sampled %s", type(target).__name__)
        audit.append("Integration skipped: spectrum is not evenly spaced")

    fit_solution = None
    if params.get("fit"):
        fit_cfg = resolve_fit_config(params["fit"])
        problem = FittingProblem.from_spectrum(
            fit_cfg["shape"], fit_cfg["init_params"], target, reduction=str(fit_cfg["reduction"])
        )
        fit_solution = solve(problem, method=str(fit_cfg["method"]), maxiter=int(fit_cfg["maxiter"]))
        audit.append(fit_solution.summary())

    return AnalysisResult(
        source=spec,
        maximum=nominal_max(target),
        minimum=nominal_min(target),
        view=view,
        smoothed=smoothed,
        integral=integral,
        moments=moments,
        fit=fit_solution,
        audit=audit,
    )
