import dataclasses
import itertools
import logging

import pyus.info.error as pxe
import pyus.info.ptype as pxt
import pyus.util as pxu

__all__ = [
    "DimensionRoles",
    "classify",
]

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class DimensionRoles:
    r"""
    Role of every axis in a sample-weight-sum problem.

    Given data `x`, sample positions `t` and weights `w` (all padded to rank :math:`S`), every axis other than the
    sampling axis falls in exactly one of the following classes:

    * matching: :math:`x` and :math:`t` have the same extent :math:`> 1`; iterated element-wise.
    * index-outer: :math:`x` is singleton, :math:`t` is not; the data is replicated across the axis.
    * data-outer: :math:`t` is singleton, :math:`x` is not; positions and weights are replicated across the axis.
    * inert: both are singleton.

    Instances are built with :py:func:`~pyus.interp.broadcast.classify`.
    """

    axis: int
    x_shape: tuple[int, ...]
    t_shape: tuple[int, ...]
    w_shape: tuple[int, ...]
    matching: tuple[int, ...]
    index_outer: tuple[int, ...]
    data_outer: tuple[int, ...]
    inert: tuple[int, ...]

    @property
    def ndim(self) -> int:
        return len(self.x_shape)

    @property
    def sizes(self) -> tuple[int, ...]:
        """
        Broadcast extents: index extent along the sampling axis, largest of data/index extents elsewhere.
        """
        sz = [max(nx, nt) for (nx, nt) in zip(self.x_shape, self.t_shape)]
        sz[self.axis] = self.t_shape[self.axis]
        return tuple(sz)

    def role(self, ax: int) -> str:
        for name in ("matching", "index_outer", "data_outer", "inert"):
            if ax in getattr(self, name):
                return name
        if ax == self.axis:
            return "sampling"
        raise ValueError(f"Axis {ax} out of bounds for rank-{self.ndim} arrays.")

    def reduction(self, axes: pxt.NDArrayAxis) -> tuple[int, ...]:
        """
        Normalize reduction axes.

        Axes which are singleton in both data and index arrays are dropped: summing over them is a no-op.
        """
        axes = pxu.normalize_axes(axes, self.ndim)
        return tuple(ax for ax in axes if ax not in self.inert)


def classify(
    x_shape: pxt.NDArrayShape,
    t_shape: pxt.NDArrayShape,
    w_shape: pxt.NDArrayShape = (),
    axis: pxt.Integer = 0,
) -> DimensionRoles:
    """
    Classify the axes of a sample-weight-sum problem.

    Arrays of different rank are aligned on their leading axes, i.e. shorter shapes are padded with trailing
    singleton axes.

    Parameters
    ----------
    x_shape: NDArrayShape
        Shape of the sampled data.
    t_shape: NDArrayShape
        Shape of the sample positions.
    w_shape: NDArrayShape
        Shape of the weights.  Use ``()`` for scalar weights.
    axis: Integer
        Sampling axis.

    Returns
    -------
    roles: DimensionRoles

    Raises
    ------
    ShapeMismatch
        If data and index extents are both > 1 and differ on some axis, or if `w` cannot be broadcast.
    InternalConsistencyError
        If the classification does not cover all axes.
    """
    x_shape, t_shape, w_shape = map(pxu.broadcast_seq, (x_shape, t_shape, w_shape))
    ndim = max(len(x_shape), len(t_shape), len(w_shape), 1)
    axis = int(axis)
    if axis >= ndim:
        ndim = axis + 1
    if not (-ndim <= axis < ndim):
        raise ValueError(f"Sampling axis {axis} out of bounds for rank-{ndim} arrays.")
    axis %= ndim
    x_shape, t_shape, w_shape = (pxu.pad_shape(sh, ndim) for sh in (x_shape, t_shape, w_shape))

    found = {name: [] for name in ("matching", "index_outer", "data_outer", "inert")}
    for d in range(ndim):
        role = _axis_role(d, axis, x_shape[d], t_shape[d])
        if role != "sampling":
            found[role].append(d)

    alldims = sorted([axis, *itertools.chain.from_iterable(found.values())])
    if alldims != list(range(ndim)):
        raise pxe.InternalConsistencyError("Unable to identify all dimensions: this is a bug.")

    for d in range(ndim):
        nw = w_shape[d]
        n_max = t_shape[d] if (d == axis) else max(x_shape[d], t_shape[d])
        if nw not in (1, n_max):
            msg = f"Weight extent {nw} on axis {d} incompatible with broadcast extent {n_max}."
            raise pxe.ShapeMismatch(msg)

    roles = DimensionRoles(
        axis=axis,
        x_shape=x_shape,
        t_shape=t_shape,
        w_shape=w_shape,
        **{name: tuple(axes) for (name, axes) in found.items()},
    )
    logger.debug(f"Axis roles: {roles}")
    return roles


def _axis_role(d: int, axis: int, nx: int, nt: int) -> str:
    # Role of axis `d` given its data/index extents (nx, nt).
    if d == axis:
        return "sampling"
    if nx == nt:
        return "inert" if nx == 1 else "matching"
    elif nx == 1:
        return "index_outer"
    elif nt == 1:
        return "data_outer"
    else:
        msg = f"Data/index extents {nx}/{nt} on axis {d} cannot be broadcast."
        raise pxe.ShapeMismatch(msg)
