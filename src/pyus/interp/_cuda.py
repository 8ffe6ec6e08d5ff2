r"""
CUDA implementation of the sample-weight-sum primitive.

The kernel operates on flat C-contiguous buffers described by a :py:class:`~pyus.interp.layout.Layout`:

* thread index `i` (grid x) enumerates the axes flagged :py:data:`~pyus.interp.layout.FLAG_INDEX`, i.e. the sampling
  axis of `t` and the index-outer axes;
* block indices (y, z) enumerate the matching axes, up to :py:data:`MAX_GRID_Y` blocks per grid row;
* each thread loops over the data-outer axes.

Sizes (I, T, S, N, F) are frozen into the compiled kernel.  Complex-valued outputs are written through an interleaved
real-valued view so that atomic accumulation is available for every representation.
"""

import cmath
import functools
import logging
import math

import numba as nb
import numba.cuda as cuda
import numpy as np

import pyus.info.deps as pxd
import pyus.info.ptype as pxt
import pyus.interp.layout as pxl
import pyus.runtime as pxrt

__all__ = [
    "MAX_GRID_Y",
    "build_kernel",
    "launch_config",
    "wsinterpd_device",
]

logger = logging.getLogger(__name__)

#: Maximum grid extent used along grid-y before spilling matching indices to grid-z.
MAX_GRID_Y = 2**15


@functools.lru_cache(maxsize=32)
def build_kernel(
    rep: pxrt.Representation,
    I: int,  # noqa: E741
    T: int,
    S: int,
    N: int,
    F: int,
):
    r"""
    Compile the sample-weight-sum kernel for one representation and problem size.

    Kernel signature::

        wsinterpd(y, w, x, t, sizes, flags, strides, method, omega, extrapval, reduce)

    * y: (2 * prod(out_shape),) or (prod(out_shape),) real-valued output buffer, updated in place.
    * w, x, t: flat weights, data and positions.
    * sizes, flags: (S,) canonical extents and role codes.
    * strides: (4, S) canonical element strides of (w, y, t, x).
    * method: 0=nearest, 1=linear, 2=cubic, 3=lanczos3.
    * omega: modulation factor, i.e. samples are scaled by :math:`\exp(\omega t)`.
    * extrapval: value of out-of-domain samples.
    * reduce: accumulate (True, NaN-omitting) or assign (False) into `y`.
    """
    is_complex = rep.is_complex
    to_real = nb.float64 if (rep.compute_dtype in (np.float64, np.complex128)) else nb.float32

    if rep == pxrt.Representation.HALF:

        @cuda.jit(device=True)
        def load(a, k):
            return nb.float32(a[k])

    else:

        @cuda.jit(device=True)
        def load(a, k):
            return a[k]

    if is_complex:

        @cuda.jit(device=True)
        def modulate(omega, tau):
            return cmath.exp(omega * tau)

        @cuda.jit(device=True)
        def store(y, k, v, reduce):
            re, im = to_real(v.real), to_real(v.imag)
            if reduce:
                if not (math.isnan(re) or math.isnan(im)):
                    cuda.atomic.add(y, 2 * k, re)
                    cuda.atomic.add(y, 2 * k + 1, im)
            else:
                y[2 * k] = re
                y[2 * k + 1] = im

    else:

        @cuda.jit(device=True)
        def modulate(omega, tau):
            return math.exp(omega * tau)

        @cuda.jit(device=True)
        def store(y, k, v, reduce):
            re = to_real(v)
            if reduce:
                if not math.isnan(re):
                    cuda.atomic.add(y, k, re)
            else:
                y[k] = re

    @cuda.jit(device=True)
    def tap(x, xo, xs, k):
        k = min(max(k, 0), T - 1)
        return load(x, xo + k * xs)

    @cuda.jit(device=True)
    def sinc(z):
        if z == 0:
            return 1.0
        return math.sin(math.pi * z) / (math.pi * z)

    @cuda.jit(device=True)
    def sample(x, xo, xs, tau, method, extrapval):
        if not ((tau >= 0) and (tau <= T - 1)):  # NaN-safe
            return extrapval
        if method == 0:
            return tap(x, xo, xs, int(math.floor(tau + 0.5)))

        k = int(math.floor(tau))
        u = tau - k
        if method == 1:
            return (1 - u) * tap(x, xo, xs, k) + u * tap(x, xo, xs, k + 1)
        elif method == 2:
            u2, u3 = u * u, u * u * u
            acc = ((-u3 + 2 * u2 - u) / 2) * tap(x, xo, xs, k - 1)
            acc += ((3 * u3 - 5 * u2 + 2) / 2) * tap(x, xo, xs, k)
            acc += ((-3 * u3 + 4 * u2 + u) / 2) * tap(x, xo, xs, k + 1)
            acc += ((u3 - u2) / 2) * tap(x, xo, xs, k + 2)
            return acc
        else:
            acc = (sinc(u + 2) * sinc((u + 2) / 3)) * tap(x, xo, xs, k - 2)
            for j in range(-1, 4):
                z = u - j
                if abs(z) < 3:
                    acc += (sinc(z) * sinc(z / 3)) * tap(x, xo, xs, k + j)
            return acc

    @cuda.jit
    def wsinterpd(y, w, x, t, sizes, flags, strides, method, omega, extrapval, reduce):
        i = cuda.blockIdx.x * cuda.blockDim.x + cuda.threadIdx.x
        n = cuda.blockIdx.y + cuda.gridDim.y * cuda.blockIdx.z
        if (i >= I) or (n >= N):
            return

        # offsets of the (i, n) pair: last canonical axis varies fastest
        wo, yo, to, xo = 0, 0, 0, 0
        ri, rn = i, n
        for s in range(S - 1, -1, -1):
            if flags[s] == 0:
                c = ri % sizes[s]
                ri //= sizes[s]
            elif flags[s] == 1:
                c = rn % sizes[s]
                rn //= sizes[s]
            else:
                continue
            wo += c * strides[0, s]
            yo += c * strides[1, s]
            to += c * strides[2, s]
            if s != 0:  # the sampling coordinate of `x` comes from `t`
                xo += c * strides[3, s]

        tau = t[to]
        for f in range(F):
            wf, yf, xf = wo, yo, xo
            rf = f
            for s in range(S - 1, -1, -1):
                if flags[s] == 2:
                    c = rf % sizes[s]
                    rf //= sizes[s]
                    wf += c * strides[0, s]
                    yf += c * strides[1, s]
                    xf += c * strides[3, s]
            v = load(w, wf) * sample(x, xf, strides[3, 0], tau, method, extrapval)
            if omega != 0:
                v = modulate(omega, tau) * v
            store(y, yf, v, reduce)

    logger.debug(f"Built wsinterpd kernel: rep={rep.name}, (I,T,S,N,F)={(I, T, S, N, F)}.")
    return wsinterpd


def launch_config(I: int, N: int, max_threads: int) -> tuple[tuple[int, int, int], int]:  # noqa: E741
    """
    Grid/block sizes of a kernel launch.

    Index elements are the innermost parallel axis; matching elements tile grid-y, spilling into grid-z beyond
    :py:data:`MAX_GRID_Y`.

    Returns
    -------
    grid: tuple[int, int, int]
    block: int
    """
    block = max(1, min(max_threads, I))
    grid = (
        max(1, math.ceil(I / block)),
        max(1, min(N, MAX_GRID_Y)),
        max(1, math.ceil(N / MAX_GRID_Y)),
    )
    return grid, block


def wsinterpd_device(
    x: pxt.NDArray,
    t: pxt.NDArray,
    w: pxt.NDArray,
    layout: pxl.Layout,
    rep: pxrt.Representation,
    method: int,
    extrapval: pxt.Scalar,
    omega: pxt.Scalar,
    max_threads: int = 256,
) -> pxt.NDArray:
    """
    Evaluate the sample-weight-sum primitive with the CUDA kernel.

    Parameters
    ----------
    x, t, w: NDArray
        NUMPY or CUPY arrays with shapes ``layout.roles.[x,t,w]_shape``.
    layout: Layout
    rep: Representation
    method: int
        Canonical method code.
    extrapval, omega: Scalar
    max_threads: int
        Upper bound on the block size.

    Returns
    -------
    y: NDArray
        (``layout.out_shape``) output, in the array module of the inputs (CUPY if any of them is a CUPY array).
    """
    ndi = pxd.NDArrayInfo.NUMPY
    for arr in (x, t, w):
        if pxd.NDArrayInfo.from_obj(arr) == pxd.NDArrayInfo.CUPY:
            ndi = pxd.NDArrayInfo.CUPY
    xp = ndi.module()

    def as_buffer(arr, dtype):
        arr = xp.ascontiguousarray(xp.asarray(arr), dtype=dtype).reshape(-1)
        return cuda.to_device(arr) if (ndi == pxd.NDArrayInfo.NUMPY) else arr

    real_dtype = np.dtype(rep.real_dtype)
    storage = np.dtype(rep.dtype)
    d_x = as_buffer(x, storage)
    d_w = as_buffer(w, storage)
    d_t = as_buffer(t, real_dtype)

    size = math.prod(layout.out_shape)
    y = xp.zeros((2 if rep.is_complex else 1) * size, dtype=real_dtype)
    d_y = cuda.to_device(y) if (ndi == pxd.NDArrayInfo.NUMPY) else y

    I, T, S, N, F = layout.constants()  # noqa: E741
    if min(I, N, F, size) > 0:
        meta = {k: cuda.to_device(v) for (k, v) in layout.arrays().items()}
        scalar = np.dtype(rep.compute_dtype).type
        kernel = build_kernel(rep, I, T, S, N, F)
        grid, block = launch_config(I, N, max_threads)
        logger.debug(f"Launching wsinterpd: grid={grid}, block={block}.")
        kernel[grid, block](
            d_y,
            d_w,
            d_x,
            d_t,
            meta["sizes"],
            meta["flags"],
            meta["strides"],
            int(method),
            scalar(omega),
            scalar(extrapval),
            bool(layout.reduce),
        )
        cuda.synchronize()

    if ndi == pxd.NDArrayInfo.NUMPY:
        y = d_y.copy_to_host()
    if rep.is_complex:
        y = y.view(rep.dtype)
    y = y.reshape(layout.out_shape)
    if rep == pxrt.Representation.HALF:
        y = y.astype(rep.dtype)
    return y
