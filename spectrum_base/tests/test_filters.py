from fractions import Fraction

import numpy as np
import pytest
from scipy.signal import savgol_coeffs, savgol_filter

from spectrum_base.engine.errors import InvalidFilterConfig, WindowTooLarge
from spectrum_base.engine.filters import SGFilter, filter_coefficients, gram_polynomial
from spectrum_base.engine.manip import smooth_spectrum
from spectrum_base.engine.spectrum import EvenSpacedSpectrum
from spectrum_base.engine.views import get_view


@pytest.mark.parametrize(
    "window,degree,derivative",
    [(4, 2, 0), (1, 0, 0), (5, 4, 0), (5, 2, -1), (5, 2, 3), (5, -1, 0), (5.5, 2, 0), (7, 2.5, 0), (7, 2, 0.5), ("7", 2, 0)],
)
def test_invalid_configurations(window, degree, derivative):
    with pytest.raises(InvalidFilterConfig):
        SGFilter(window, degree, derivative)


def test_window_longer_than_input():
    with pytest.raises(WindowTooLarge):
        SGFilter(7, 2)(np.ones(5))


def test_classic_quadratic_coefficients():
    sg = SGFilter(5, 2)
    expected = [Fraction(n, 35) for n in (-3, 12, 17, 12, -3)]
    assert list(sg.coefficients) == expected
    assert list(SGFilter(5, 2, 1).coefficients) == [Fraction(n, 10) for n in (-2, -1, 0, 1, 2)]


def test_moving_average_preserves_constants_everywhere():
    values = np.full(20, 3.5)
    np.testing.assert_allclose(SGFilter(5, 0)(values), values)
    np.testing.assert_allclose(SGFilter(9, 0)(values), values)


@pytest.mark.parametrize(
    "window,degree,derivative",
    [(5, 2, 0), (7, 3, 1), (9, 2, 0), (11, 4, 2), (21, 6, 0)],
)
def test_interior_weights_match_scipy(window, degree, derivative):
    sg = SGFilter(window, degree, derivative)
    expected = savgol_coeffs(window, degree, deriv=derivative, use="dot")
    np.testing.assert_allclose(sg.weights, expected, atol=1e-10)


@pytest.mark.parametrize(
    "window,degree,derivative,delta",
    [(5, 2, 0, 1.0), (7, 3, 1, 0.5), (11, 4, 2, 2.0), (9, 0, 0, 1.0)],
)
def test_boundary_corrected_output_matches_polynomial_fit(window, degree, derivative, delta):
    rng = np.random.default_rng(7)
    y = np.cumsum(rng.normal(size=40))
    result = SGFilter(window, degree, derivative)(y, delta=delta)
    expected = savgol_filter(y, window, degree, deriv=derivative, delta=delta, mode="interp")
    np.testing.assert_allclose(result, expected, atol=1e-8)


def test_derivative_of_linear_signal_includes_edges():
    x = np.linspace(0.0, 4.0, 41)
    result = SGFilter(7, 2, 1)(2.0 * x + 1.0, delta=0.1)
    np.testing.assert_allclose(result, 2.0)


def test_window_equal_to_length():
    y = np.array([1.0, 4.0, 9.0, 16.0, 25.0])
    # a quadratic is reproduced exactly by a degree-2 fit
    np.testing.assert_allclose(SGFilter(5, 2)(y), y)


def test_gram_polynomial_low_orders():
    assert gram_polynomial(3, 0, 4) == 1
    assert gram_polynomial(2, 1, 4) == Fraction(1, 2)
    assert gram_polynomial(0, 1, 4, 1) == Fraction(1, 4)
    assert gram_polynomial(1, 0, 4, 1) == 0
    assert gram_polynomial(1, -1, 4) == 0


def test_edge_coefficients_reproduce_constants_exactly():
    for at in range(-3, 4):
        assert sum(filter_coefficients(3, 2, 0, at=at)) == 1
    assert filter_coefficients(2, 2) == SGFilter(5, 2).coefficients
    np.testing.assert_allclose(
        SGFilter(7, 2).edge_weights(-3), [float(c) for c in filter_coefficients(3, 2, 0, at=-3)]
    )


def test_smooth_spectrum_uses_step_for_derivatives():
    x = np.linspace(0.0, 5.0, 51)
    spec = EvenSpacedSpectrum((0.0, 5.0), 3.0 * x)
    np.testing.assert_allclose(smooth_spectrum(spec, 5, 2, derivative=1), 3.0)
    np.testing.assert_allclose(smooth_spectrum(spec, 5, 2), 3.0 * x, atol=1e-12)

    view = get_view(spec, (1.0, 3.0))
    np.testing.assert_allclose(smooth_spectrum(view, 5, 1, derivative=1), 3.0)


def test_integral_float_settings_are_accepted():
    assert SGFilter(5.0, 2.0).coefficients == SGFilter(5, 2).coefficients
    assert SGFilter(np.int64(7), np.int64(3), np.int64(1)).window_size == 7
