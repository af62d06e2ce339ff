import numpy as np
import pytest

from spectrum_base.engine.lineshapes import Gaussian
from spectrum_base.engine.pipeline import analyze_spectrum
from spectrum_base.engine.recipe_model import Recipe
from spectrum_base.engine.spectrum import EvenSpacedSpectrum, GridSpectrum, Spectrum

X = np.linspace(0.0, 20.0, 401)


@pytest.fixture
def peak():
    return EvenSpacedSpectrum((0.0, 20.0), Gaussian(10.0, 1.0, 1.0)(X))


def test_pipeline_views_smooths_and_reports_moments(peak):
    recipe = Recipe(
        params={
            "view": {"intervals": [(5.0, 15.0)]},
            "smoothing": {"enabled": True, "window": 7, "polyorder": 3},
            "integration": {"moments": [1, 2], "center": 10.0},
        }
    )
    result = analyze_spectrum(peak, recipe)

    assert result.view.frames == ((100, 300),)
    assert result.smoothed.shape == (201,)
    assert result.maximum.coordinate == pytest.approx(10.0)
    assert result.integral == pytest.approx(np.sqrt(2.0 * np.pi), rel=1e-4)
    assert result.moments[1] == pytest.approx(0.0, abs=1e-6)
    assert result.moments[2] == pytest.approx(1.0, rel=1e-3)
    assert len(result.audit) == 3
    assert result.fit is None


def test_pipeline_accepts_plain_mapping(peak):
    result = analyze_spectrum(peak, {"integration": {"scheme": "left_riemann", "moments": []}})
    assert result.view is None
    assert result.smoothed is None
    assert result.moments == {}
    assert result.integral == pytest.approx(np.sqrt(2.0 * np.pi), rel=1e-4)


def test_pipeline_skips_integration_for_irregular_spectra():
    x = np.array([0.0, 0.5, 2.0, 3.0, 3.1])
    spec = Spectrum(x, [1.0, 3.0, 2.0, 0.5, 0.1])
    result = analyze_spectrum(spec)
    assert result.integral is None
    assert result.moments == {}
    assert "Integration skipped: spectrum is not evenly spaced" in result.audit
    assert result.maximum.coordinate == 0.5


def test_pipeline_rejects_invalid_recipe(peak):
    with pytest.raises(ValueError, match="window must be odd"):
        analyze_spectrum(peak, {"smoothing": {"enabled": True, "window": 4}})


def test_pipeline_derivative_keeps_original_for_integration(peak):
    result = analyze_spectrum(peak, {"smoothing": {"enabled": True, "window": 9, "polyorder": 3, "derivative": 1}})
    # derivative of the peak crosses zero at the center
    assert abs(result.smoothed[200]) < 1e-6
    assert result.integral == pytest.approx(np.sqrt(2.0 * np.pi), rel=1e-4)


def test_pipeline_fits_line_shape(peak):
    recipe = {"fit": {"shape": "gaussian", "init_params": [9.5, 0.8, 0.9]}}
    result = analyze_spectrum(peak, recipe)
    np.testing.assert_allclose(result.fit.minimizer, [10.0, 1.0, 1.0], atol=1e-2)
    assert result.audit[-1].startswith("Gaussian x1")


def test_pipeline_on_grid_reports_integral_and_extrema():
    z = np.ones((3, 4))
    z[1, 2] = 5.0
    grid = GridSpectrum(((0.0, 2.0), (0.0, 3.0)), z)
    result = analyze_spectrum(grid)
    # trapezoid weights give the interior peak full weight: 6 + 4
    assert result.integral == pytest.approx(10.0)
    assert result.moments == {}
    assert result.maximum.index == (1, 2)
    assert result.maximum.coordinate == pytest.approx((1.0, 2.0))
    assert any(entry.startswith("Moments skipped") for entry in result.audit)
