import dataclasses
import math

import numpy as np

import pyus.info.ptype as pxt
import pyus.interp.broadcast as pxb
import pyus.util as pxu

__all__ = [
    "FLAG_INDEX",
    "FLAG_MATCHING",
    "FLAG_DATA",
    "Layout",
    "plan",
]

#: Role codes understood by the device kernel.
FLAG_INDEX = 0  # sampling, index-outer and inert axes: enumerated by the kernel's `I` dimension.
FLAG_MATCHING = 1  # matching axes: enumerated by the kernel's `N` dimension.
FLAG_DATA = 2  # data-outer axes: enumerated by the kernel's `F` loop.


@dataclasses.dataclass(frozen=True)
class Layout:
    """
    Flat-memory description of a sample-weight-sum problem.

    All per-axis vectors are stored in canonical order, i.e. permuted by `order`:
    ``(sampling, *matching, *index_outer, *inert, *data_outer)``.  The sampling axis is therefore always axis 0 of the
    canonical vectors.

    Strides are expressed in elements of C-contiguous arrays and are zero on singleton axes, so that the same
    multi-index can address all of `w`, `y`, `t` and `x`.  Row order of `strides` is (w, y, t, x).
    """

    roles: pxb.DimensionRoles
    reduce: tuple[int, ...]
    order: tuple[int, ...]
    sizes: tuple[int, ...]
    flags: tuple[int, ...]
    strides: tuple[tuple[int, ...], ...]
    out_shape: tuple[int, ...]

    @property
    def S(self) -> int:
        return len(self.order)

    @property
    def T(self) -> int:
        return self.roles.x_shape[self.roles.axis]

    @property
    def I(self) -> int:  # noqa: E743
        return self._prod(FLAG_INDEX)

    @property
    def N(self) -> int:
        return self._prod(FLAG_MATCHING)

    @property
    def F(self) -> int:
        return self._prod(FLAG_DATA)

    def _prod(self, flag: int) -> int:
        return math.prod(n for (n, f) in zip(self.sizes, self.flags) if f == flag)

    def constants(self) -> tuple[int, int, int, int, int]:
        """
        (I, T, S, N, F) sizes frozen into device kernels.
        """
        return (self.I, self.T, self.S, self.N, self.F)

    def arrays(self) -> dict[str, np.ndarray]:
        """
        NUMPY encoding of the per-axis vectors, as passed to the device kernel.
        """
        return dict(
            sizes=np.array(self.sizes, dtype=np.int64),
            flags=np.array(self.flags, dtype=np.uint8),
            strides=np.array(self.strides, dtype=np.int64).reshape(4, self.S),
        )


def plan(roles: pxb.DimensionRoles, reduce: pxt.NDArrayAxis = ()) -> Layout:
    """
    Compute the flat-memory layout of a sample-weight-sum problem.

    Parameters
    ----------
    roles: DimensionRoles
        Axis classification.
    reduce: NDArrayAxis
        Axes to sum over.  Inert axes are dropped.

    Returns
    -------
    layout: Layout
    """
    reduce = roles.reduction(reduce)
    order = (
        roles.axis,
        *roles.matching,
        *roles.index_outer,
        *roles.inert,
        *roles.data_outer,
    )

    flags = [FLAG_INDEX] * roles.ndim
    for d in roles.matching:
        flags[d] = FLAG_MATCHING
    for d in roles.data_outer:
        flags[d] = FLAG_DATA

    sizes = roles.sizes
    out_shape = tuple(1 if (d in reduce) else n for (d, n) in enumerate(sizes))
    strides = [
        pxu.strides(roles.w_shape),
        pxu.strides(out_shape),
        pxu.strides(roles.t_shape),
        pxu.strides(roles.x_shape),
    ]

    perm = lambda v: tuple(v[d] for d in order)
    return Layout(
        roles=roles,
        reduce=reduce,
        order=order,
        sizes=perm(sizes),
        flags=perm(flags),
        strides=tuple(map(perm, strides)),
        out_shape=out_shape,
    )
