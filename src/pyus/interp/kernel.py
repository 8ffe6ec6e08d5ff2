r"""
Host-side interpolation kernels.

All routines in this module sample along axis 0: data `x` has shape :math:`(T, \ldots)` and positions `t` have shape
:math:`(I, \ldots)`, where trailing axes are broadcast against each other.  Positions are 0-based, i.e. ``t == 0``
refers to ``x[0]``.
"""

import enum
import math

import numpy as np
import scipy.interpolate as spi

import pyus.info.error as pxe
import pyus.info.ptype as pxt
import pyus.util as pxu

__all__ = [
    "Method",
    "SCIPY_KINDS",
    "interpolate",
    "resolve",
]

#: Methods forwarded to :py:class:`scipy.interpolate.interp1d`.
SCIPY_KINDS = frozenset({"zero", "slinear", "quadratic", "previous", "next"})


@enum.unique
class Method(enum.IntEnum):
    """
    Interpolation kernels implemented by every execution path.

    Member values are the method codes understood by the device kernel.
    """

    NEAREST = 0
    LINEAR = 1
    CUBIC = 2
    LANCZOS3 = 3

    def support(self) -> int:
        """Number of taps used by the kernel."""
        return {
            Method.NEAREST: 1,
            Method.LINEAR: 2,
            Method.CUBIC: 4,
            Method.LANCZOS3: 6,
        }[self]


def resolve(method) -> "Method | str":
    """
    Parse an interpolation method specifier.

    Returns
    -------
    method: Method, str
        :py:class:`Method` for canonical kernels, a :py:class:`scipy.interpolate.interp1d` kind otherwise.

    Raises
    ------
    UnsupportedMethod
    """
    if isinstance(method, Method):
        return method
    name = str(method).strip().lower()
    try:
        return Method[name.upper()]
    except KeyError:
        pass
    if name in SCIPY_KINDS:
        return name
    raise pxe.UnsupportedMethod(f"Interp option not recognized: {method}.")


def _taps(xp: pxt.ArrayModule, t: pxt.NDArray, method: Method) -> list[tuple[pxt.NDArray, pxt.NDArray]]:
    # (integer position, weight) pairs whose weighted sum defines the interpolant at `t`.
    if method == Method.NEAREST:
        k = xp.floor(t + 0.5)
        return [(k, xp.ones_like(t))]

    k = xp.floor(t)
    u = t - k
    if method == Method.LINEAR:
        return [(k, 1 - u), (k + 1, u)]
    elif method == Method.CUBIC:
        # Catmull-Rom spline
        u2, u3 = u * u, u * u * u
        return [
            (k - 1, (-u3 + 2 * u2 - u) / 2),
            (k, (3 * u3 - 5 * u2 + 2) / 2),
            (k + 1, (-3 * u3 + 4 * u2 + u) / 2),
            (k + 2, (u3 - u2) / 2),
        ]
    elif method == Method.LANCZOS3:
        taps = []
        for j in range(-2, 4):
            z = u - j
            weight = xp.where(abs(z) < 3, xp.sinc(z) * xp.sinc(z / 3), 0)
            taps.append((k + j, weight))
        return taps
    else:
        raise pxe.UnsupportedMethod(f"No host kernel for {method}.")


def _gather(xp: pxt.ArrayModule, x: pxt.NDArray, k: pxt.NDArray) -> pxt.NDArray:
    # x[k] along axis 0, broadcasting trailing axes.
    rest = np.broadcast_shapes(x.shape[1:], k.shape[1:])
    xb = xp.broadcast_to(x, (x.shape[0], *rest))
    kb = xp.broadcast_to(k, (k.shape[0], *rest))
    return xp.take_along_axis(xb, kb, axis=0)


def _interpolate_scipy(
    x: np.ndarray,
    t: np.ndarray,
    kind: str,
    extrapval: pxt.Scalar,
) -> np.ndarray:
    # Per-column pass-through to scipy.  NUMPY only.
    T = x.shape[0]
    rest = np.broadcast_shapes(x.shape[1:], t.shape[1:])
    R = math.prod(rest)
    xb = np.broadcast_to(x, (T, *rest)).reshape(T, R)
    tb = np.broadcast_to(t, (t.shape[0], *rest)).reshape(t.shape[0], R)

    dtype = np.result_type(x.dtype, np.asarray(extrapval).dtype, np.float32)
    out = np.empty(tb.shape, dtype=dtype)
    grid = np.arange(T)
    for r in range(R):
        parts = (xb[:, r].real, xb[:, r].imag) if np.iscomplexobj(xb) else (xb[:, r],)
        fill = (np.real(extrapval), np.imag(extrapval)) if len(parts) == 2 else (extrapval,)
        vals = [
            spi.interp1d(
                grid,
                p,
                kind=kind,
                bounds_error=False,
                fill_value=f,
                assume_sorted=True,
            )(tb[:, r])
            for (p, f) in zip(parts, fill)
        ]
        out[:, r] = vals[0] if len(vals) == 1 else vals[0] + 1j * vals[1]
    out[np.isnan(tb)] = extrapval  # scipy propagates NaN positions
    return out.reshape(t.shape[0], *rest)


def interpolate(
    x: pxt.NDArray,
    t: pxt.NDArray,
    method: "Method | str" = Method.LINEAR,
    extrapval: pxt.Scalar = np.nan,
) -> pxt.NDArray:
    r"""
    Sample `x` at fractional positions `t` along axis 0.

    Parameters
    ----------
    x: NDArray
        (T, ...) data.
    t: NDArray
        (I, ...) real-valued 0-based positions.  Trailing axes must broadcast against those of `x`.
    method: Method, str
        Interpolation kernel.  Non-canonical methods are forwarded to :py:class:`scipy.interpolate.interp1d`.
    extrapval: Scalar
        Value returned for positions outside :math:`[0, T-1]`.

    Returns
    -------
    y: NDArray
        (I, ...) samples, in the array module of `x`.

    Notes
    -----
    Taps of the cubic/lanczos3 kernels which fall outside the data are clamped to the nearest edge sample.
    """
    method = resolve(method)
    xp = pxu.get_array_module(x)
    T = x.shape[0]
    rest = np.broadcast_shapes(x.shape[1:], t.shape[1:])
    dtype = np.result_type(x.dtype, t.dtype)
    if T == 0:
        return xp.full((t.shape[0], *rest), extrapval, dtype=dtype)
    if isinstance(method, str):
        out = _interpolate_scipy(pxu.to_NUMPY(x), pxu.to_NUMPY(t), method, extrapval)
        return xp.asarray(out)

    valid = (t >= 0) & (t <= T - 1)  # NaN positions are never valid
    t_safe = xp.where(valid, t, 0)

    y = 0
    for k, weight in _taps(xp, t_safe, method):
        k = xp.clip(k, 0, T - 1).astype(np.int64)
        y = y + weight * _gather(xp, x, k)
    y = xp.where(valid, y, xp.asarray(extrapval, dtype=dtype))
    return xp.broadcast_to(y, (t.shape[0], *rest)).astype(dtype, copy=False)
