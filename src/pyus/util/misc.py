import collections.abc as cabc
import math

import pyus.info.ptype as pxt

__all__ = [
    "broadcast_seq",
    "normalize_axes",
    "pad_shape",
    "strides",
]


def broadcast_seq(x, N: int = None, cast: cabc.Callable = None) -> tuple:
    """
    Broadcast `x` to a tuple of length `N`.

    If `N` is omitted, then no broadcasting takes place, only tupling.
    If `cast` is provided, it is applied to every item.
    """
    if isinstance(x, cabc.Iterable) and not isinstance(x, str):
        y = tuple(x)
    else:
        y = (x,)

    if N is not None:
        if len(y) == 1:
            y *= N  # broadcast
        assert len(y) == N, f"Expected {N} items, got {len(y)}."

    if cast is not None:
        y = tuple(map(cast, y))
    return y


def normalize_axes(axes: pxt.NDArrayAxis, ndim: int) -> tuple[int, ...]:
    """
    Convert `axes` to a sorted tuple of unique non-negative axis indices.

    Raises
    ------
    ValueError
        If any axis lies outside ``[-ndim, ndim)``.
    """
    if axes is None:
        return ()
    out = set()
    for ax in broadcast_seq(axes, cast=int):
        if not (-ndim <= ax < ndim):
            raise ValueError(f"Axis {ax} out of bounds for rank-{ndim} arrays.")
        out.add(ax % ndim)
    return tuple(sorted(out))


def pad_shape(shape: pxt.NDArrayShape, ndim: int) -> tuple[int, ...]:
    """
    Append trailing singleton axes to `shape` until it has `ndim` entries.
    """
    shape = broadcast_seq(shape, cast=int)
    assert len(shape) <= ndim, f"Cannot pad rank-{len(shape)} shape to rank {ndim}."
    return shape + (1,) * (ndim - len(shape))


def strides(shape: pxt.NDArrayShape) -> tuple[int, ...]:
    """
    Element strides of a C-contiguous array of `shape`, with zero stride on singleton axes.
    """
    shape = broadcast_seq(shape, cast=int)
    out = []
    for d, n in enumerate(shape):
        out.append(math.prod(shape[d + 1 :]) if n != 1 else 0)
    return tuple(out)
