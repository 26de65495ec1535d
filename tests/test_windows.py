import numpy as np
import pytest

from fft3d.windows import (
    dehalo_window,
    overlap_windows,
    pattern_window,
    sharpen_window,
)


@pytest.mark.parametrize("wintype", [0, 2])
def test_overlap_windows_sum_to_one(wintype):
    w = overlap_windows(6, 4, wintype)
    x = w.analysis_xl * w.synthesis_xl + w.analysis_xr * w.synthesis_xr
    y = w.analysis_yl * w.synthesis_yl + w.analysis_yr * w.synthesis_yr
    np.testing.assert_allclose(x, 1.0, atol=1e-5)
    np.testing.assert_allclose(y, 1.0, atol=1e-5)


def test_wintype1_sums_to_one_for_square_overlap():
    w = overlap_windows(5, 5, 1)
    x = w.analysis_xl * w.synthesis_xl + w.analysis_xr * w.synthesis_xr
    np.testing.assert_allclose(x, 1.0, atol=1e-5)
    np.testing.assert_allclose(w.synthesis_yl, w.analysis_yl ** 3, rtol=1e-6)


def test_wintype1_right_x_edge_spans_vertical_overlap():
    w = overlap_windows(3, 6, 1)
    np.testing.assert_allclose(w.analysis_xr, w.analysis_yr[:3], rtol=1e-6)


def test_wintype0_analysis_equals_synthesis():
    w = overlap_windows(4, 3, 0)
    np.testing.assert_array_equal(w.analysis_xl, w.synthesis_xl)
    np.testing.assert_array_equal(w.analysis_yr, w.synthesis_yr)
    assert len(w.analysis_xl) == 4
    assert len(w.analysis_yl) == 3


def test_wintype2_flat_analysis():
    w = overlap_windows(4, 2, 2)
    np.testing.assert_array_equal(w.analysis_xl, np.ones(4))
    np.testing.assert_array_equal(w.analysis_yr, np.ones(2))


def test_overlap_windows_rejects_negative():
    with pytest.raises(ValueError):
        overlap_windows(-1, 2, 0)


def test_sharpen_window_shape_and_range():
    w = sharpen_window(16, 8, 1.0, 0.3)
    assert w.shape == (8, 9)
    assert w[0, 0] == pytest.approx(0.0)
    assert np.all(w >= 0) and np.all(w < 1)


def test_sharpen_window_vertically_symmetric():
    bh = 8
    w = sharpen_window(16, bh, 0.7, 0.3)
    for j in range(1, bh):
        np.testing.assert_array_equal(w[j], w[bh - j])


def test_sharpen_window_grows_with_frequency():
    w = sharpen_window(16, 8, 1.0, 0.3)
    assert w.shape == (8, 9)
    np.testing.assert_array_less(0.0, np.diff(w[0]))


def test_dehalo_window_normalised():
    w = dehalo_window(16, 16, 1.0, 2.0)
    assert w.shape == (16, 9)
    assert w.max() == pytest.approx(1.0)
    assert w[0, 0] == pytest.approx(0.0)
    assert np.all(w >= 0)


def test_pattern_window_first_row_zero():
    w = pattern_window(16, 8, 0.1)
    assert w.shape == (8, 9)
    np.testing.assert_array_equal(w[0], 0.0)
    assert np.all(w >= 0) and np.all(w < 1)


@pytest.mark.parametrize("func,args", [
    (sharpen_window, (1, 8, 1.0, 0.3)),
    (dehalo_window, (8, 1, 1.0, 2.0)),
    (pattern_window, (0, 8, 0.1)),
])
def test_tiny_blocks_rejected(func, args):
    with pytest.raises(ValueError):
        func(*args)