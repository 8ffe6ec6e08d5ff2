import numpy as np
import pytest

import pyus.info.error as pxe
import pyus.interp.kernel as pxk


class TestResolve:
    @pytest.mark.parametrize(
        ["name", "method"],
        [
            ["nearest", pxk.Method.NEAREST],
            ["Linear", pxk.Method.LINEAR],
            [" cubic ", pxk.Method.CUBIC],
            ["lanczos3", pxk.Method.LANCZOS3],
            [pxk.Method.CUBIC, pxk.Method.CUBIC],
        ],
    )
    def test_canonical(self, name, method):
        assert pxk.resolve(name) is method

    @pytest.mark.parametrize("kind", sorted(pxk.SCIPY_KINDS))
    def test_scipy(self, kind):
        assert pxk.resolve(kind) == kind

    @pytest.mark.parametrize("name", ["spline", "lanczos5", ""])
    def test_unknown(self, name):
        with pytest.raises(pxe.UnsupportedMethod):
            pxk.resolve(name)

    def test_support(self):
        assert [m.support() for m in pxk.Method] == [1, 2, 4, 6]


class TestInterpolate:
    @pytest.fixture
    def data(self) -> np.ndarray:
        return np.array([1.0, 4.0, -2.0, 3.0, 0.5, 7.0])

    @pytest.mark.parametrize("method", list(pxk.Method))
    def test_integer_positions(self, data, method):
        # Every canonical kernel interpolates.
        t = np.arange(data.size, dtype=float)
        y = pxk.interpolate(data, t, method)
        assert np.allclose(y, data)

    @pytest.mark.parametrize("method", [pxk.Method.LINEAR, pxk.Method.CUBIC])
    def test_affine(self, method):
        x = 2.0 * np.arange(10) - 3
        t = np.linspace(1, 8, 17)  # away from clamped edges
        y = pxk.interpolate(x, t, method)
        assert np.allclose(y, 2.0 * t - 3)

    def test_linear_edges(self):
        x = np.array([0.0, 10.0])
        y = pxk.interpolate(x, np.array([0.0, 0.25, 1.0]), pxk.Method.LINEAR)
        assert np.allclose(y, [0, 2.5, 10])

    def test_nearest_rounding(self, data):
        y = pxk.interpolate(data, np.array([0.49, 0.5, 1.51, 4.999]), pxk.Method.NEAREST)
        assert np.allclose(y, data[[0, 1, 2, 5]])

    @pytest.mark.parametrize("method", ["nearest", "linear", "cubic", "lanczos3", "slinear"])
    def test_extrapolation(self, data, method):
        t = np.array([-0.5, data.size - 0.5, np.nan, 2.0])
        y = pxk.interpolate(data, t, method, extrapval=-9)
        assert np.allclose(y[:3], -9)
        assert np.isclose(y[3], data[2])

    def test_default_extrapval(self, data):
        y = pxk.interpolate(data, np.array([-1.0]))
        assert np.isnan(y).all()

    def test_empty_data(self):
        y = pxk.interpolate(np.zeros((0, 3)), np.zeros((2, 1)), extrapval=5)
        assert y.shape == (2, 3)
        assert np.all(y == 5)

    def test_broadcast(self):
        # x: (T, 1, 3), t: (I, 2, 1)
        x = np.arange(12.0).reshape(4, 1, 3)
        t = np.array([0.0, 1.5, 3.0]).reshape(3, 1, 1) * np.ones((1, 2, 1))
        y = pxk.interpolate(x, t, pxk.Method.LINEAR)
        assert y.shape == (3, 2, 3)
        for j in range(3):
            assert np.allclose(y[:, 0, j], np.interp(t[:, 0, 0], np.arange(4), x[:, 0, j]))

    def test_lanczos_smooth(self):
        # Lanczos3 reproduces slowly-varying sinusoids away from the edges.
        n = np.arange(64)
        x = np.cos(2 * np.pi * 0.05 * n)
        t = np.linspace(8, 55, 91)
        y = pxk.interpolate(x, t, pxk.Method.LANCZOS3)
        assert np.allclose(y, np.cos(2 * np.pi * 0.05 * t), atol=1e-2)

    @pytest.mark.parametrize("kind", ["zero", "slinear", "quadratic", "previous", "next"])
    def test_scipy_kinds(self, kind):
        x = np.arange(8.0) ** 2
        t = np.array([1.0, 2.0, 5.0])
        y = pxk.interpolate(x, t, kind)
        assert np.allclose(y, x[[1, 2, 5]])

    def test_scipy_complex(self):
        x = np.arange(6.0) + 1j * np.arange(6.0)[::-1]
        t = np.array([0.5, 2.25, 9.0])
        y = pxk.interpolate(x, t, "slinear", extrapval=0)
        assert np.iscomplexobj(y)
        grid = np.arange(6)
        assert np.allclose(y[:2], np.interp(t[:2], grid, x.real) + 1j * np.interp(t[:2], grid, x.imag))
        assert y[2] == 0

    def test_complex_canonical(self):
        x = np.exp(1j * np.linspace(0, 1, 5))
        y = pxk.interpolate(x, np.array([1.0, 3.0]), pxk.Method.CUBIC)
        assert np.allclose(y, x[[1, 3]])
