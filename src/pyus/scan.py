"""
Imaging grids.

A :py:class:`Scan` stores one coordinate vector per named axis, and the order in which the axes are laid out in image
arrays.  The sampling engine and the propagation routines only consume the full coordinate grids returned by
:py:meth:`Scan.grid`.
"""

import abc
import copy
import logging
import math

import numpy as np
import scipy.interpolate as spi

import pyus.info.ptype as pxt

__all__ = [
    "Scan",
    "ScanCartesian",
    "ScanPolar",
]

logger = logging.getLogger(__name__)


class Scan(abc.ABC):
    """
    Imaging region, defined as the tensor product of per-axis coordinate vectors.

    Sub-classes define the axis names (`axes`) and how coordinates map to Cartesian space (:py:meth:`grid`).  Per-axis
    properties are queried/updated via :py:meth:`values`, :py:meth:`bounds`, :py:meth:`count`, :py:meth:`step` and
    their ``set_*`` counterparts.
    """

    #: Axis names, in the reference order.
    axes: tuple[str, ...] = ()

    def __init__(self, order: str, **values):
        self._values = {}
        for ax in self.axes:
            self.set_values(ax, values.pop(ax))
        assert len(values) == 0, f"Unknown axes {tuple(values)}."
        self.order = order

    @property
    def order(self) -> str:
        """Layout of image arrays, e.g. "ZXY" for (depth, lateral, elevation) images."""
        return self._order

    @order.setter
    def order(self, order: str):
        order = order.upper()
        if sorted(order) != sorted("".join(self.axes).upper()):
            raise ValueError(f"order: expected a permutation of {self.axes}, got {order}.")
        self._order = order

    def _axis(self, ax: str) -> str:
        ax = ax.lower()
        if ax not in self.axes:
            raise ValueError(f"Unknown axis {ax}: expected one of {self.axes}.")
        return ax

    def dim(self, ax: str) -> int:
        """Position of axis `ax` in image arrays."""
        return self.order.index(self._axis(ax).upper())

    # Per-axis accessors/mutators ---------------------------------------------
    def values(self, ax: str) -> np.ndarray:
        return self._values[self._axis(ax)]

    def set_values(self, ax: str, v: pxt.NDArray):
        v = np.atleast_1d(np.asarray(v, dtype=float))
        assert v.ndim == 1, f"[{ax}] Coordinates must be a vector."
        self._values[self._axis(ax)] = v

    def bounds(self, ax: str) -> tuple[float, float]:
        v = self.values(ax)
        return float(v.min()), float(v.max())

    def set_bounds(self, ax: str, b: tuple[float, float]):
        """Resample axis linearly within `b`, preserving the number of points."""
        self.set_values(ax, np.linspace(min(b), max(b), self.count(ax)))

    def count(self, ax: str) -> int:
        return self.values(ax).size

    def set_count(self, ax: str, n: int):
        """Resample axis linearly with `n` points, preserving the bounds."""
        lo, hi = self.bounds(ax)
        self.set_values(ax, np.linspace(lo, hi, int(n)))

    def step(self, ax: str) -> float:
        """
        Coordinate spacing: ``inf`` for scalar axes, NaN if the axis is not regularly spaced.
        """
        v = self.values(ax)
        if v.size < 2:
            return math.inf
        d = np.diff(v)
        if np.allclose(d, d[0], rtol=1e-9, atol=1e-12 * np.abs(v).max()):
            return float(d[0])
        return math.nan

    def set_step(self, ax: str, d: float):
        """
        Set the coordinate spacing.

        The new axis passes through 0 and covers (at least) the current bounds.  An infinite step collapses the axis
        to the single coordinate 0.
        """
        if math.isinf(d):
            self.set_values(ax, [0.0])
        else:
            lo, hi = self.bounds(ax)
            self.set_values(ax, d * np.arange(math.floor(lo / d), math.ceil(hi / d) + 1))

    # Image sizing ------------------------------------------------------------
    @property
    def size(self) -> tuple[int, ...]:
        """Shape of image arrays."""
        return tuple(self.count(c) for c in self.order)

    @property
    def n_pix(self) -> int:
        return math.prod(self.size)

    def mesh(self) -> tuple[np.ndarray, ...]:
        """
        Full coordinate arrays of every axis, in the reference axis order, each of shape :py:attr:`size`.
        """
        grid = np.meshgrid(*[self.values(c) for c in self.order], indexing="ij")
        return tuple(grid[self.dim(ax)] for ax in self.axes)

    @abc.abstractmethod
    def grid(self) -> tuple[np.ndarray, np.ndarray, np.ndarray, tuple[int, ...]]:
        """
        Cartesian pixel coordinates.

        Returns
        -------
        X, Y, Z: np.ndarray
            Coordinates [m], each of shape :py:attr:`size`.
        shape: tuple[int, ...]
            :py:attr:`size`.
        """
        pass

    def scale(self, dist: pxt.Real) -> "Scan":
        """
        Copy of the scan with distances multiplied by `dist` (i.e. 1e3 for m -> mm).
        """
        scan = copy.deepcopy(self)
        scan._scale(float(dist))
        return scan

    @abc.abstractmethod
    def _scale(self, w: float):
        pass

    def __repr__(self) -> str:
        ax = ", ".join(f"{a}: {self.count(a)} in {self.bounds(a)}" for a in self.axes)
        return f"{type(self).__name__}(order={self.order}, {ax})"


class ScanCartesian(Scan):
    """
    Imaging region on a Cartesian grid.
    """

    axes = ("x", "y", "z")

    def __init__(
        self,
        x: pxt.NDArray = None,
        y: pxt.NDArray = 0,
        z: pxt.NDArray = None,
        order: str = "ZXY",
    ):
        """
        Parameters
        ----------
        x, y, z: NDArray
            Lateral, elevation and depth coordinates [m].
        order: str
            Layout of image arrays.
        """
        if x is None:
            x = 1e-3 * np.linspace(-20, 20, 128)
        if z is None:
            z = 1e-3 * np.linspace(0, 40, 128)
        super().__init__(order=order, x=x, y=y, z=z)

    def grid(self):
        X, Y, Z = self.mesh()
        return X, Y, Z, self.size

    def _scale(self, w: float):
        for ax in self.axes:
            self.set_values(ax, w * self.values(ax))


class ScanPolar(Scan):
    """
    Imaging region on a polar grid: range `r`, angle `a` (degrees, from the depth axis towards the lateral axis) and
    elevation `y`, around an `origin`.
    """

    axes = ("r", "a", "y")

    def __init__(
        self,
        r: pxt.NDArray = None,
        a: pxt.NDArray = None,
        y: pxt.NDArray = 0,
        order: str = "RAY",
        origin: pxt.NDArray = (0, 0, 0),
    ):
        """
        Parameters
        ----------
        r: NDArray
            Range coordinates [m].
        a: NDArray
            Angle coordinates [deg].
        y: NDArray
            Elevation coordinates [m].
        order: str
            Layout of image arrays.
        origin: NDArray
            (3,) Cartesian (x, y, z) center of the coordinate system [m].
        """
        if r is None:
            r = 1e-3 * np.linspace(0, 40, 128)
        if a is None:
            a = np.linspace(-45, 45, 128)
        super().__init__(order=order, r=r, a=a, y=y)
        self.origin = np.asarray(origin, dtype=float).reshape(3)

    def grid_polar(self) -> tuple[np.ndarray, np.ndarray, np.ndarray, tuple[int, ...]]:
        """
        Polar pixel coordinates.

        Returns
        -------
        R, A, Y: np.ndarray
            Range [m], angle [deg] and elevation [m], each of shape :py:attr:`size`.
        shape: tuple[int, ...]
        """
        R, A, Y = self.mesh()
        return R, A, Y, self.size

    def grid(self):
        R, A, Y, sz = self.grid_polar()
        theta = np.deg2rad(A)
        ox, oy, oz = self.origin
        X = R * np.sin(theta) + ox
        Z = R * np.cos(theta) + oz
        return X, Y + oy, Z, sz

    def _to_polar(self, X, Y, Z) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        # Cartesian -> (range, angle [deg], elevation) w.r.t. origin.
        ox, oy, oz = self.origin
        R = np.hypot(X - ox, Z - oz)
        A = np.rad2deg(np.arctan2(X - ox, Z - oz))
        return R, A, Y - oy

    def scan_cartesian(self) -> ScanCartesian:
        """
        Cartesian scan encompassing this scan.

        Axis sizes are the :py:class:`ScanCartesian` defaults, bounds are those of the polar grid.
        """
        X, Y, Z, _ = self.grid()
        scan = ScanCartesian()
        for ax, v in zip("xyz", (X, Y, Z)):
            scan.set_bounds(ax, (v.min(), v.max()))
        return scan

    def scan_convert(
        self,
        b: pxt.NDArray,
        scan: ScanCartesian = None,
    ) -> tuple[np.ndarray, ScanCartesian]:
        """
        Resample data on this scan onto a Cartesian scan.

        Parameters
        ----------
        b: NDArray
            (R, A, ...) image data, i.e. the scan must have order "RAY".  Trailing axes are carried through.
        scan: ScanCartesian
            Output scan.  Defaults to :py:meth:`scan_cartesian`.

        Returns
        -------
        b_cart: np.ndarray
            (*scan.size, ...) data, NaN outside of the polar region.
        scan: ScanCartesian
        """
        if self.order != "RAY":
            raise ValueError(f"Data must be in order 'RAY', got '{self.order}'.")
        if scan is None:
            scan = self.scan_cartesian()
        b = np.asarray(b)
        assert b.shape[:2] == self.size[:2], f"Expected ({self.size[:2]}, ...) data, got {b.shape}."

        X, Y, Z, sz = scan.grid()
        R, A, _ = self._to_polar(X, Y, Z)
        f = spi.RegularGridInterpolator(
            points=(self.values("r"), self.values("a")),
            values=b,
            method="linear",
            bounds_error=False,
            fill_value=np.nan,
        )
        pts = np.stack([R.reshape(-1), A.reshape(-1)], axis=-1)
        b_cart = f(pts).reshape(*sz, *b.shape[2:])
        return b_cart, scan

    def set_grid_on_target(
        self,
        xb: tuple[float, float],
        yb: tuple[float, float],
        zb: tuple[float, float],
        margin: pxt.NDArray = None,
    ):
        """
        Set the grid bounds to encompass a Cartesian box, preserving the number of points per axis.

        Parameters
        ----------
        xb, yb, zb: tuple[float, float]
            Box bounds [m].
        margin: NDArray
            (3, 2) extra (lower, upper) margins on (r, a, y).  Default: 3mm extra range, 2m elevation.
        """
        if margin is None:
            margin = [[0, 3e-3], [0, 0], [-2, 2]]
        margin = np.asarray(margin, dtype=float).reshape(3, 2)

        Xb, Yb, Zb = np.meshgrid(xb, yb, zb, indexing="ij")
        R, A, Y = self._to_polar(Xb, Yb, Zb)
        self.set_bounds("r", np.r_[min(R.min(), 0), R.max()] + margin[0])
        self.set_bounds("a", np.r_[A.min(), A.max()] + margin[1])
        self.set_bounds("y", np.r_[Y.min(), Y.max()] + margin[2])

    def _scale(self, w: float):
        self.set_values("r", w * self.values("r"))
        self.set_values("y", w * self.values("y"))
        self.origin = w * self.origin
