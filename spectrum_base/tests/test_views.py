import numpy as np
import pytest

from spectrum_base.engine.errors import DimensionMismatch, InvalidInterval
from spectrum_base.engine.spectrum import (
    EvenSpacedSpectrum,
    GridSpectrum,
    Spectrum,
    SpectrumView,
    coordinates,
    intensities,
    is_evenly_spaced,
    step,
)
from spectrum_base.engine.views import envelope, extract_section, get_view, section

METHODS = ["binary", "linear"]


@pytest.fixture
def ascending():
    x = np.linspace(0.0, 100.0, 101)
    return EvenSpacedSpectrum((0.0, 100.0), np.sin(x / 10.0))


@pytest.fixture
def descending():
    x = np.linspace(100.0, 0.0, 101)
    return EvenSpacedSpectrum((100.0, 0.0), np.cos(x / 10.0))


@pytest.mark.parametrize("method", METHODS)
def test_view_brackets_interval_between_samples(ascending, method):
    view = get_view(ascending, (10.5, 20.5), method=method)
    assert view.frames == ((10, 21),)
    coords = coordinates(view)
    assert coords[0] <= 10.5 and coords[-1] >= 20.5


@pytest.mark.parametrize("method", METHODS)
def test_view_on_exact_coordinates(ascending, method):
    assert get_view(ascending, (10.0, 20.0), method=method).frames == ((10, 20),)
    assert get_view(ascending, (0.0, 100.0), method=method).frames == ((0, 100),)


@pytest.mark.parametrize("method", METHODS)
def test_degenerate_interval(ascending, descending, method):
    assert get_view(ascending, (10.0, 10.0), method=method).frames == ((10, 10),)
    assert get_view(ascending, (10.5, 10.5), method=method).frames == ((10, 11),)
    # coordinate 60.5 sits between indices 39 (61.0) and 40 (60.0)
    assert get_view(descending, (60.5, 60.5), method=method).frames == ((39, 40),)


@pytest.mark.parametrize("method", METHODS)
def test_view_on_descending_domain(descending, method):
    view = get_view(descending, (80.5, 60.5), method=method)
    assert view.frames == ((19, 40),)
    coords = coordinates(view)
    assert coords[0] == pytest.approx(81.0)
    assert coords[-1] == pytest.approx(60.0)


def test_interval_direction_must_match_domain(ascending, descending):
    with pytest.raises(InvalidInterval):
        get_view(ascending, (20.0, 10.0))
    with pytest.raises(InvalidInterval):
        get_view(descending, (10.0, 20.0), method="linear")


def test_interval_must_lie_inside_domain(ascending):
    with pytest.raises(InvalidInterval):
        get_view(ascending, (-1.0, 20.0))
    with pytest.raises(InvalidInterval):
        get_view(ascending, (50.0, 100.5), method="linear")
    with pytest.raises(DimensionMismatch):
        get_view(ascending, (1.0, 2.0), (3.0, 4.0))


def test_unknown_search_method(ascending):
    with pytest.raises(ValueError, match="Unsupported search method"):
        get_view(ascending, (1.0, 2.0), method="golden")
    assert get_view(ascending, (1.0, 2.0), method="binsearch").frames == ((1, 2),)


def _random_intervals(coords, rng, count=200):
    lo, hi = float(np.min(coords)), float(np.max(coords))
    for _ in range(count):
        a, b = np.sort(rng.uniform(lo, hi, size=2))
        if rng.random() < 0.2:
            a = b = float(coords[rng.integers(coords.size)])
        if coords[0] > coords[-1]:
            a, b = b, a
        yield a, b


@pytest.mark.parametrize(
    "coords",
    [
        np.linspace(0.0, 1.0, 37),
        np.linspace(4000.0, 450.0, 512),
        np.cumsum(np.random.default_rng(5).uniform(0.1, 2.0, size=80)),
        -np.cumsum(np.random.default_rng(6).uniform(0.1, 2.0, size=80)),
    ],
)
def test_binary_and_linear_search_agree(coords):
    rng = np.random.default_rng(42)
    for interval in _random_intervals(coords, rng):
        assert envelope(coords, interval, "binary") == envelope(coords, interval, "linear")


def test_view_accessors_slice_parent(ascending):
    view = get_view(ascending, (30.0, 40.0))
    np.testing.assert_allclose(coordinates(view), np.linspace(30.0, 40.0, 11))
    np.testing.assert_array_equal(intensities(view), intensities(ascending)[30:41])
    assert len(view) == 11
    assert is_evenly_spaced(view)
    assert step(view) == step(ascending)
    with pytest.raises(ValueError):
        view.intensities()[0] = 1.0


def test_view_of_view_is_rebased_on_root(ascending):
    outer = get_view(ascending, (20.0, 60.0))
    inner = get_view(outer, (30.0, 40.0))
    assert inner.parent is ascending
    assert inner.frames == ((30, 40),)
    np.testing.assert_allclose(coordinates(inner), np.linspace(30.0, 40.0, 11))


def test_view_frames_outside_parent_are_rejected(ascending):
    with pytest.raises(InvalidInterval):
        SpectrumView(ascending, ((5, 200),))
    with pytest.raises(InvalidInterval):
        SpectrumView(ascending, ((10, 5),))


def test_view_of_irregular_spectrum():
    spec = Spectrum([0.0, 0.5, 2.0, 2.2, 7.0], [1.0, 2.0, 3.0, 4.0, 5.0])
    view = get_view(spec, (0.7, 2.1), method="linear")
    assert view.frames == ((1, 3),)
    assert not is_evenly_spaced(view)


def test_section_returns_independent_copies(ascending):
    view = get_view(ascending, (5.0, 9.0))
    x, y = extract_section(view)
    y[:] = 0.0
    x[:] = -1.0
    assert np.all(intensities(ascending)[5:10] == np.sin(np.linspace(5.0, 9.0, 5) / 10.0))
    assert section is extract_section


@pytest.mark.parametrize("method", METHODS)
def test_grid_view(method):
    grid = GridSpectrum(((0.0, 10.0), (0.0, 5.0)), np.arange(66.0).reshape(11, 6))
    view = get_view(grid, (2.0, 4.0), (1.0, 3.0), method=method)
    assert view.frames == ((2, 4), (1, 3))
    assert intensities(view).shape == (3, 3)
    np.testing.assert_array_equal(intensities(view), np.arange(66.0).reshape(11, 6)[2:5, 1:4])
    xa, xb = coordinates(view)
    np.testing.assert_allclose(xa, [2.0, 3.0, 4.0])
    np.testing.assert_allclose(xb, [1.0, 2.0, 3.0])
