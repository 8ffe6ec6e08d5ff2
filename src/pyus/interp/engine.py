import concurrent.futures as cf
import logging
import warnings

import numpy as np

import pyus.info.config as pxc
import pyus.info.deps as pxd
import pyus.info.ptype as pxt
import pyus.info.warning as pxw
import pyus.interp._cuda as pxcu
import pyus.interp.broadcast as pxb
import pyus.interp.kernel as pxk
import pyus.interp.layout as pxl
import pyus.runtime as pxrt
import pyus.util as pxu

__all__ = [
    "sample",
    "wsinterpd",
    "wsinterpd2",
]

logger = logging.getLogger(__name__)


def wsinterpd(
    x: pxt.NDArray,
    t: pxt.NDArray,
    axis: pxt.Integer = 0,
    w: pxt.NDArray = 1,
    reduce: pxt.NDArrayAxis = (),
    method: str = "linear",
    extrapval: pxt.Scalar = np.nan,
    omega: pxt.Scalar = 0,
    ctx: pxrt.ExecutionContext = None,
) -> pxt.NDArray:
    r"""
    Weight-and-sum interpolation in one dimension.

    Samples `x` at the fractional positions `t` along `axis`, weights the samples and sums them over the axes
    `reduce`:

    .. math::

       y = \sum_{\text{reduce}} \exp(\omega t) \, w \, x(t).

    Arrays are broadcast implicitly.  Along every other axis, `x` and `t` either have matching extents (sampled
    element-wise) or one of them is singleton (replicated over the other), i.e. with `axis=0`::

        x is (T, N', 1 , F')
        t is (I, N', M', 1 )
        y is (I, N', M', F')

    Parameters
    ----------
    x: NDArray
        Data to sample.  Real or complex valued; float16/float32/float64 are computed natively.
    t: NDArray
        Real-valued 0-based sample positions, i.e. ``t == 0`` samples the first element of `x` along `axis`.
    axis: Integer
        Sampling axis.
    w: NDArray
        Weights applied after sampling.  Must broadcast against `t` along `axis` and against both `x` and `t`
        elsewhere.
    reduce: NDArrayAxis
        Axes summed over after weighting.  NaN-valued contributions are omitted from the sums.
    method: str
        One of "nearest", "linear", "cubic", "lanczos3", or any :py:class:`scipy.interpolate.interp1d` kind.
    extrapval: Scalar
        Value of samples outside :math:`[0, T-1]`.
    omega: Scalar
        Modulation factor: samples are scaled by :math:`\exp(\omega t)`.  May be complex-valued.
    ctx: ExecutionContext
        Execution resources.  Inferred from the inputs and environment if omitted.

    Returns
    -------
    y: NDArray
        Output with the broadcast shape of (`x`, `t`), the extent of `t` along `axis`, and extent 1 along reduced
        axes.  Arrays of different rank are aligned on their leading axes.

    Notes
    -----
    * Computation takes place on the GPU when the context requests it (by default: if any input is a CuPy array), the
      method is one of the 4 canonical kernels, and a CUDA runtime is available.  Otherwise the host path is used.
      Both paths evaluate the same formula.
    * Half-precision data is promoted to single precision on the host path, and the output is narrowed back to
      float16.
    * When `reduce` is empty, out-of-domain samples are returned as `extrapval` (NaN by default).
    """
    x, t, w = map(_as_array, (x, t, w))
    if np.iscomplexobj(t):
        raise ValueError("Sample indices must be real.")
    extrapval, omega = _as_scalar(extrapval, "extrapval"), _as_scalar(omega, "omega")
    if ctx is None:
        ctx = pxrt.ExecutionContext.auto(x, t, w)

    method = pxk.resolve(method)
    roles = pxb.classify(x.shape, t.shape, w.shape, axis)
    layout = pxl.plan(roles, reduce)
    rep = pxrt.Representation.from_dtype(
        x.dtype,
        complex_=any(np.iscomplexobj(_) for _ in (x, w, omega, extrapval)),
    )

    # DASK inputs are evaluated on the host, then re-wrapped.
    ndi = [pxd.NDArrayInfo.from_obj(_) for _ in (x, t, w)]
    lazy = pxd.NDArrayInfo.DASK in ndi
    if lazy:
        pxw.warn_dask_perf()
        x, t, w = map(pxu.to_NUMPY, (x, t, w))

    x = x.reshape(roles.x_shape)
    t = t.reshape(roles.t_shape)
    w = w.reshape(roles.w_shape)

    device = ctx.device
    if device and not isinstance(method, pxk.Method):
        msg = f"Method '{method}' has no device kernel: falling back to the host path."
        logger.warning(msg)
        warnings.warn(msg, pxw.BackendWarning)
        device = False
    if device and not pxd.cuda_available():
        msg = "No CUDA runtime available: falling back to the host path."
        logger.warning(msg)
        warnings.warn(msg, pxw.BackendWarning)
        device = False

    logger.debug(
        f"wsinterpd: path={'device' if device else 'host'}, rep={rep.name}, method={method}, "
        f"reduce={layout.reduce}, (I,T,S,N,F)={layout.constants()}."
    )
    if device:
        y = pxcu.wsinterpd_device(
            x=x,
            t=t,
            w=w,
            layout=layout,
            rep=rep,
            method=method,
            extrapval=extrapval,
            omega=omega,
            max_threads=ctx.max_threads,
        )
    else:
        y = _wsinterpd_host(
            x=x,
            t=t,
            w=w,
            layout=layout,
            rep=rep,
            method=method,
            extrapval=extrapval,
            omega=omega,
            workers=ctx.workers,
        )

    if lazy:
        y = pxu.from_NUMPY(y, pxd.NDArrayInfo.DASK)
    return y


def wsinterpd2(
    x: pxt.NDArray,
    t1: pxt.NDArray,
    t2: pxt.NDArray,
    axis: pxt.Integer = 0,
    w: pxt.NDArray = 1,
    reduce: pxt.NDArrayAxis = (),
    method: str = "linear",
    extrapval: pxt.Scalar = np.nan,
    omega: pxt.Scalar = 0,
    ctx: pxrt.ExecutionContext = None,
) -> pxt.NDArray:
    """
    Weight-and-sum interpolation at the sum of two position arrays.

    Equivalent to ``wsinterpd(x, t1 + t2, ...)``, where `t1` and `t2` are first aligned on their leading axes.  This
    is the usual form of delay-and-sum problems, e.g. `t1` holding transmit delays and `t2` receive delays.

    See Also
    --------
    :py:func:`~pyus.interp.wsinterpd`
    """
    t1, t2 = map(_as_array, (t1, t2))
    ndim = max(t1.ndim, t2.ndim)
    t1 = t1.reshape(pxu.pad_shape(t1.shape, ndim))
    t2 = t2.reshape(pxu.pad_shape(t2.shape, ndim))
    return wsinterpd(
        x=x,
        t=t1 + t2,
        axis=axis,
        w=w,
        reduce=reduce,
        method=method,
        extrapval=extrapval,
        omega=omega,
        ctx=ctx,
    )


def sample(
    x: pxt.NDArray,
    t: pxt.NDArray,
    method: str = "linear",
    extrapval: pxt.Scalar = np.nan,
    axis: pxt.Integer = 0,
    ctx: pxrt.ExecutionContext = None,
) -> pxt.NDArray:
    """
    Sample `x` at fractional 0-based positions `t` along `axis`.

    This is :py:func:`~pyus.interp.wsinterpd` with unit weights and no reduction.
    """
    return wsinterpd(
        x=x,
        t=t,
        axis=axis,
        method=method,
        extrapval=extrapval,
        ctx=ctx,
    )


# Helper routines (internal) --------------------------------------------------
def _as_array(x) -> pxt.NDArray:
    if isinstance(x, pxd.supported_array_types()):
        return x
    return np.asarray(x)


def _as_scalar(v, name: str) -> pxt.Scalar:
    if np.ndim(v) != 0:
        raise ValueError(f"Only a scalar value accepted for {name}.")
    v = pxu.to_NUMPY(v) if isinstance(v, pxd.supported_array_types()) else v
    v = np.asarray(v).item()
    return complex(v) if isinstance(v, complex) else float(v)


def _wsinterpd_host(
    x: pxt.NDArray,
    t: pxt.NDArray,
    w: pxt.NDArray,
    layout: pxl.Layout,
    rep: pxrt.Representation,
    method: "pxk.Method | str",
    extrapval: pxt.Scalar,
    omega: pxt.Scalar,
    workers: int,
) -> pxt.NDArray:
    # Host evaluation: NUMPY/CUPY arrays with padded shapes.
    ndi = pxd.NDArrayInfo.NUMPY
    for arr in (x, t, w):
        if pxd.NDArrayInfo.from_obj(arr) == pxd.NDArrayInfo.CUPY:
            ndi = pxd.NDArrayInfo.CUPY
    xp = ndi.module()

    # Canonical form: sampling axis first, computations at `rep` precision.
    axis = layout.roles.axis
    perm = (axis, *[d for d in range(layout.S) if d != axis])
    x = xp.moveaxis(xp.asarray(x, dtype=rep.compute_dtype), axis, 0)
    # Sample positions keep their own precision if finer than `rep`.
    t = xp.asarray(t)
    t = xp.moveaxis(t.astype(np.result_type(t.dtype, rep.real_dtype), copy=False), axis, 0)
    w = xp.moveaxis(xp.asarray(w, dtype=rep.compute_dtype), axis, 0)
    reduce = tuple(perm.index(d) for d in layout.reduce)
    out_shape = tuple(layout.out_shape[d] for d in perm)
    kwargs = dict(
        method=method,
        extrapval=extrapval,
        omega=omega,
        reduce=reduce,
    )

    matching = [perm.index(d) for d in layout.roles.matching]
    if (ndi == pxd.NDArrayInfo.NUMPY) and (workers > 1) and (len(matching) > 0):
        # Split the largest matching axis into independent chunks.
        ax = max(matching, key=lambda d: x.shape[d])
        n_chunks = min(x.shape[ax], workers * pxc.chunks_per_worker())
        bounds = np.linspace(0, x.shape[ax], n_chunks + 1).astype(int)
        logger.debug(f"Host path: {n_chunks} chunks along axis {perm[ax]}, {workers} workers.")

        def select(arr, q):
            if arr.shape[ax] == 1:
                return arr
            idx = [slice(None)] * arr.ndim
            idx[ax] = slice(bounds[q], bounds[q + 1])
            return arr[tuple(idx)]

        def task(q):
            return q, _evaluate(select(x, q), select(t, q), select(w, q), **kwargs)

        with cf.ThreadPoolExecutor(max_workers=workers) as executor:
            fs = [executor.submit(task, q) for q in range(n_chunks)]

        parts = [None] * n_chunks
        for f in cf.as_completed(fs):
            q, v = f.result()
            parts[q] = v
        if ax in reduce:
            y = sum(parts[1:], start=parts[0])
        else:
            y = np.concatenate(parts, axis=ax)
    else:
        y = _evaluate(x, t, w, **kwargs)

    y = xp.broadcast_to(y, out_shape).astype(rep.dtype)
    return xp.moveaxis(y, 0, axis)


def _evaluate(
    x: pxt.NDArray,
    t: pxt.NDArray,
    w: pxt.NDArray,
    method: "pxk.Method | str",
    extrapval: pxt.Scalar,
    omega: pxt.Scalar,
    reduce: tuple[int, ...],
) -> pxt.NDArray:
    # Sample, weight and sum (x, t, w), sampling along axis 0.
    xp = pxu.get_array_module(x)
    y = pxk.interpolate(x, t, method=method, extrapval=extrapval)
    y = y * w
    if omega != 0:
        y = y * xp.exp(omega * t)
    if len(reduce) > 0:
        y = xp.nansum(y, axis=reduce, keepdims=True)
    return y
