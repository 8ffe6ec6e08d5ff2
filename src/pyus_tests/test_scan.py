import math

import numpy as np
import pytest

import pyus.scan as pxs


class TestScanCartesian:
    @pytest.fixture
    def scan(self) -> pxs.ScanCartesian:
        return pxs.ScanCartesian(
            x=np.linspace(-1, 1, 5),
            y=0,
            z=np.linspace(0, 3, 4),
        )

    def test_size(self, scan):
        # order ZXY
        assert scan.size == (4, 5, 1)
        assert scan.n_pix == 20

    def test_grid(self, scan):
        X, Y, Z, shape = scan.grid()
        assert shape == scan.size
        for A in (X, Y, Z):
            assert A.shape == shape
        assert np.allclose(X[0, :, 0], np.linspace(-1, 1, 5))
        assert np.allclose(Z[:, 0, 0], np.linspace(0, 3, 4))
        assert np.all(Y == 0)

    def test_order(self, scan):
        scan.order = "xyz"
        assert scan.order == "XYZ"
        assert scan.size == (5, 1, 4)
        X, _, Z, _ = scan.grid()
        assert np.allclose(X[:, 0, 0], np.linspace(-1, 1, 5))
        assert np.allclose(Z[0, 0, :], np.linspace(0, 3, 4))

    def test_bad_order(self, scan):
        with pytest.raises(ValueError):
            scan.order = "XXZ"

    def test_bounds(self, scan):
        assert scan.bounds("x") == (-1, 1)
        scan.set_bounds("x", (2, -2))
        assert scan.count("x") == 5
        assert np.allclose(scan.values("x"), np.linspace(-2, 2, 5))

    def test_count(self, scan):
        scan.set_count("z", 7)
        assert scan.bounds("z") == (0, 3)
        assert np.allclose(scan.values("z"), np.linspace(0, 3, 7))

    def test_step(self, scan):
        assert math.isclose(scan.step("x"), 0.5)
        assert math.isinf(scan.step("y"))
        scan.set_values("x", [0, 1, 3])
        assert math.isnan(scan.step("x"))

    def test_set_step(self, scan):
        scan.set_bounds("x", (-0.9, 1.1))
        scan.set_step("x", 0.5)
        v = scan.values("x")
        assert np.allclose(np.diff(v), 0.5)
        assert np.any(np.isclose(v, 0))  # through zero
        assert v.min() <= -0.9 and v.max() >= 1.1

    def test_set_step_inf(self, scan):
        scan.set_step("x", math.inf)
        assert scan.count("x") == 1
        assert scan.values("x")[0] == 0

    def test_unknown_axis(self, scan):
        with pytest.raises(ValueError):
            scan.values("r")

    def test_scale(self, scan):
        mm = scan.scale(1e3)
        assert isinstance(mm, pxs.ScanCartesian)
        assert np.allclose(mm.values("x"), 1e3 * scan.values("x"))
        assert scan.bounds("x") == (-1, 1)  # original untouched

    def test_defaults(self):
        scan = pxs.ScanCartesian()
        assert scan.size == (128, 128, 1)


class TestScanPolar:
    @pytest.fixture
    def scan(self) -> pxs.ScanPolar:
        return pxs.ScanPolar(
            r=np.linspace(0, 10, 11),
            a=np.linspace(-30, 30, 7),
            origin=(1, 0, -2),
        )

    def test_size(self, scan):
        assert scan.size == (11, 7, 1)

    def test_grid_polar(self, scan):
        R, A, Y, shape = scan.grid_polar()
        assert R.shape == A.shape == Y.shape == shape
        assert np.allclose(A[0], np.linspace(-30, 30, 7)[:, None])

    def test_grid(self, scan):
        X, Y, Z, _ = scan.grid()
        R, A, _, _ = scan.grid_polar()
        assert np.allclose(np.hypot(X - 1, Z + 2), R)
        assert np.allclose(np.rad2deg(np.arctan2(X[1:] - 1, Z[1:] + 2)), A[1:])
        # broadside line lies on the depth axis
        assert np.allclose(X[:, 3, 0], 1)

    def test_scan_cartesian(self, scan):
        cart = scan.scan_cartesian()
        X, _, Z, _ = scan.grid()
        assert np.isclose(cart.bounds("x")[0], X.min())
        assert np.isclose(cart.bounds("z")[1], Z.max())

    def test_scan_convert(self):
        scan = pxs.ScanPolar(r=np.linspace(0, 10, 21), a=np.linspace(-40, 40, 33))
        R, _, _, _ = scan.grid_polar()
        b = R[..., 0]  # range-only image: (R, A)
        cart = pxs.ScanCartesian(x=np.linspace(-2, 2, 5), z=np.linspace(1, 12, 12))
        b_cart, out = scan.scan_convert(b, cart)
        assert out is cart
        assert b_cart.shape == cart.size
        X, _, Z, _ = cart.grid()
        inside = (np.hypot(X, Z) <= 10) & (np.abs(np.rad2deg(np.arctan2(X, Z))) <= 40)
        assert np.allclose(b_cart[inside], np.hypot(X, Z)[inside], atol=0.05)
        assert np.all(np.isnan(b_cart[~inside]))

    def test_scan_convert_order(self, scan):
        scan.order = "ARY"
        with pytest.raises(ValueError):
            scan.scan_convert(np.zeros((7, 11)))

    def test_set_grid_on_target(self):
        scan = pxs.ScanPolar()
        scan.set_grid_on_target(
            xb=(-5e-3, 5e-3),
            yb=(0, 0),
            zb=(10e-3, 20e-3),
            margin=np.zeros((3, 2)),
        )
        assert scan.bounds("r")[0] == 0
        assert np.isclose(scan.bounds("r")[1], np.hypot(5e-3, 20e-3))
        a = np.rad2deg(np.arctan2(5e-3, 10e-3))
        assert np.allclose(scan.bounds("a"), (-a, a))
        assert scan.count("a") == 128

    def test_scale(self, scan):
        mm = scan.scale(1e3)
        assert np.allclose(mm.values("r"), 1e3 * scan.values("r"))
        assert np.allclose(mm.values("a"), scan.values("a"))  # angles are not distances
        assert np.allclose(mm.origin, (1e3, 0, -2e3))
