from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from spectrum_base.engine.lineshapes import resolve_shape
from spectrum_base.engine.maths import IntegrationScheme
from spectrum_base.engine.views import SEARCH_METHODS

DEFAULT_VIEW_CONFIG: Dict[str, object] = {
    "enabled": False,
    "intervals": None,
    "method": "binary",
}

DEFAULT_SMOOTHING_CONFIG: Dict[str, object] = {
    "enabled": False,
    "window": 7,
    "polyorder": 2,
    "derivative": 0,
}

DEFAULT_INTEGRATION_CONFIG: Dict[str, object] = {
    "scheme": "midpoint",
    "moments": [1, 2],
    "center": 0.0,
    "normalized": True,
}

DEFAULT_FIT_CONFIG: Dict[str, object] = {
    "shape": "gaussian",
    "method": "L-BFGS-B",
    "reduction": "sum",
    "maxiter": 500,
}


def _resolve(defaults: Dict[str, object], cfg: Optional[Dict[str, object]]) -> Dict[str, object]:
    resolved = dict(defaults)
    if cfg:
        resolved.update({k: v for k, v in cfg.items() if v is not None})
    return resolved


def resolve_view_config(cfg: Optional[Dict[str, object]] = None) -> Dict[str, object]:
    resolved = _resolve(DEFAULT_VIEW_CONFIG, cfg)
    if resolved.get("intervals") and "enabled" not in (cfg or {}):
        resolved["enabled"] = True
    return resolved


def resolve_smoothing_config(cfg: Optional[Dict[str, object]] = None) -> Dict[str, object]:
    resolved = _resolve(DEFAULT_SMOOTHING_CONFIG, cfg)
    if "degree" in resolved:
        resolved["polyorder"] = resolved.pop("degree")
    return resolved


def resolve_integration_config(cfg: Optional[Dict[str, object]] = None) -> Dict[str, object]:
    return _resolve(DEFAULT_INTEGRATION_CONFIG, cfg)


def resolve_fit_config(cfg: Optional[Dict[str, object]] = None) -> Dict[str, object]:
    return _resolve(DEFAULT_FIT_CONFIG, cfg)


@dataclass
class Recipe:
    params: Dict[str, Any] = field(default_factory=dict)
    version: str = "0.1.0"

    def validate(self) -> list[str]:
        errs = []
        view = resolve_view_config(self.params.get("view"))
        if view.get("enabled"):
            intervals = view.get("intervals")
            if intervals is not None and not isinstance(intervals, (list, tuple)):
                errs.append("View intervals must be a list of (start, stop) pairs")
            elif not intervals:
                errs.append("View window requires at least one interval")
            else:
                for interval in intervals:
                    try:
                        if len(tuple(float(v) for v in interval)) != 2:
                            raise ValueError(interval)
                    except (TypeError, ValueError):
                        errs.append("View intervals must be numeric (start, stop) pairs")
                        break
            if str(view.get("method", "")).lower() not in (*SEARCH_METHODS, "binsearch"):
                errs.append(f"View search method must be one of {', '.join(SEARCH_METHODS)}")

        smoothing = resolve_smoothing_config(self.params.get("smoothing"))
        if smoothing.get("enabled"):
            settings = (smoothing.get("window", 7), smoothing.get("polyorder", 2), smoothing.get("derivative", 0))
            try:
                if any(isinstance(v, float) and not v.is_integer() for v in settings):
                    raise ValueError(settings)
                window, poly, deriv = (int(v) for v in settings)
            except (TypeError, ValueError, OverflowError):
                errs.append("Savitzky–Golay settings must be integers")
            else:
                if window % 2 == 0:
                    errs.append("Savitzky–Golay window must be odd")
                if window < 3:
                    errs.append("Savitzky–Golay window must be at least 3 points")
                if window - poly <= 1:
                    errs.append("Savitzky–Golay window must exceed polynomial order by at least 2")
                if poly < 0:
                    errs.append("Savitzky–Golay polynomial order must be nonnegative")
                if deriv < 0:
                    errs.append("Savitzky–Golay derivative order must be nonnegative")
                elif deriv > poly:
                    errs.append("Savitzky–Golay derivative order cannot exceed polynomial order")

        integration = resolve_integration_config(self.params.get("integration"))
        try:
            IntegrationScheme.coerce(integration.get("scheme", "midpoint"))
        except ValueError:
            errs.append(f"Unknown integration scheme: {integration.get('scheme')}")
        moments = integration.get("moments") or []
        if not isinstance(moments, (list, tuple)) or any(
            not isinstance(m, int) or isinstance(m, bool) or m < 0 for m in moments
        ):
            errs.append("Moment degrees must be nonnegative integers")

        fit = self.params.get("fit")
        if fit:
            fit = resolve_fit_config(fit)
            init_params = fit.get("init_params")
            try:
                if init_params is None or len(init_params) == 0:
                    errs.append("Fit requires initial parameters")
            except TypeError:
                errs.append("Fit initial parameters must be a flat sequence of numbers")
            try:
                resolve_shape(fit.get("shape", ""))
            except ValueError:
                errs.append(f"Unknown line shape: {fit.get('shape')}")
            if fit.get("reduction") not in ("sum", "mean"):
                errs.append("Fit loss reduction must be 'sum' or 'mean'")
            try:
                if int(fit.get("maxiter", 0)) <= 0:
                    errs.append("Fit iteration limit must be positive")
            except (TypeError, ValueError):
                errs.append("Fit iteration limit must be numeric")
        return errs
