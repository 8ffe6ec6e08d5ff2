r"""
Point-scatterer channel data simulation.

The received signal of a medium made of point scatterers is the superposition of delayed, weighted copies of the
transmitted pulse:

.. math::

   y[t, n, m] = \sum_{s} \frac{a_{s}}{E_{rx} E_{tx}} \sum_{e_{rx}, e_{tx}}
                v\big(t - c_{0}^{-1} (\|r_{n, e_{rx}} - p_{s}\| + \|r_{m, e_{tx}} - p_{s}\|)\big),

where :math:`v` is the pulse, :math:`p_{s}, a_{s}` are scatterer positions and amplitudes, and receive/transmit
elements are made of :math:`E_{rx}`/:math:`E_{tx}` sub-elements.  The pulse is evaluated with
:py:func:`~pyus.interp.wsinterpd`.
"""

import logging
import math

import numpy as np

import pyus.info.ptype as pxt
import pyus.interp as pxi
import pyus.runtime as pxrt
import pyus.util as pxu

__all__ = [
    "greens",
]

logger = logging.getLogger(__name__)

#: Upper bound on the number of pulse evaluations per scatterer chunk.
MAX_ELEMENTS = 2**24


def greens(
    scat_pos: pxt.NDArray,
    scat_amp: pxt.NDArray,
    rx_pos: pxt.NDArray,
    tx_pos: pxt.NDArray,
    wave: pxt.NDArray,
    fs: pxt.Real,
    t0: pxt.Real = 0,
    cinv: pxt.Real = 1 / 1540,
    n_samples: pxt.Integer = None,
    wave_t0: pxt.Real = 0,
    rx_sub: pxt.Integer = 1,
    tx_sub: pxt.Integer = 1,
    method: str = "cubic",
    chunk: pxt.Integer = None,
    ctx: pxrt.ExecutionContext = None,
) -> pxt.NDArray:
    """
    Simulate pulse-echo channel data of point scatterers.

    Parameters
    ----------
    scat_pos: NDArray
        (3, S) scatterer positions [m].
    scat_amp: NDArray
        (S,) scatterer amplitudes.
    rx_pos: NDArray
        (3, N * rx_sub) receive (sub-)element positions [m].  Sub-elements of an element are contiguous.
    tx_pos: NDArray
        (3, M * tx_sub) transmit (sub-)element positions [m].
    wave: NDArray
        (K,) pulse samples, sampled at `fs`.
    fs: Real
        Sampling frequency of both `wave` and the output [Hz].
    t0: Real
        Time of the first output sample [s].
    cinv: Real
        Reciprocal of the propagation speed [s/m].
    n_samples: Integer
        Number of output samples.  Defaults to the number needed to record the furthest echo in full.
    wave_t0: Real
        Time of the first pulse sample [s].
    rx_sub, tx_sub: Integer
        Number of sub-elements per receive/transmit element.  Echoes are averaged over sub-elements.
    method: str
        Pulse interpolation kernel.  See :py:func:`~pyus.interp.wsinterpd`.
    chunk: Integer
        Number of scatterers processed per call to the sampling engine.  Chosen automatically if omitted.
    ctx: ExecutionContext

    Returns
    -------
    y: NDArray
        (n_samples, N, M) complex-valued channel data.
    """
    scat_pos = np.asarray(scat_pos, dtype=float).reshape(3, -1)
    scat_amp = np.asarray(scat_amp).reshape(-1)
    rx_pos = np.asarray(rx_pos, dtype=float).reshape(3, -1)
    tx_pos = np.asarray(tx_pos, dtype=float).reshape(3, -1)
    wave = np.asarray(wave).reshape(-1)

    S = scat_pos.shape[1]
    assert scat_amp.size == S, f"Expected {S} scatterer amplitudes, got {scat_amp.size}."
    Er, Et = int(rx_sub), int(tx_sub)
    for name, pos, E in [("rx_pos", rx_pos, Er), ("tx_pos", tx_pos, Et)]:
        assert (E >= 1) and (pos.shape[1] % E == 0), f"[{name}] {pos.shape[1]} positions not divisible by {E}."
    N, M = rx_pos.shape[1] // Er, tx_pos.shape[1] // Et

    # (3, N, M, S, Er, Et) broadcastable layouts
    rx = rx_pos.reshape(3, N, Er)[:, :, None, None, :, None]
    tx = tx_pos.reshape(3, M, Et)[:, None, :, None, None, :]
    sc = scat_pos[:, None, None, :, None, None]

    if n_samples is None:
        tau_max = _delays(rx, tx, sc, cinv).max(initial=0)
        n_samples = max(1, math.ceil((tau_max + wave_t0 - t0) * fs) + wave.size)
    T = int(n_samples)

    if chunk is None:
        chunk = max(1, MAX_ELEMENTS // max(1, T * N * M * Er * Et))
    chunk = int(chunk)
    logger.debug(f"greens: (T,N,M,S)={(T, N, M, S)}, sub-elements={(Er, Et)}, {math.ceil(S / chunk)} chunks.")

    # time axis in pulse samples: (T, 1, 1, 1, 1, 1)
    tk = (t0 - wave_t0) * fs + np.arange(T, dtype=float)
    tk = tk.reshape(T, *((1,) * 5))

    rep = pxrt.Representation.from_dtype(wave.dtype).as_complex()
    y = np.zeros((T, N, M), dtype=rep.dtype)
    for s0 in range(0, S, chunk):
        sl = slice(s0, s0 + chunk)
        tau = _delays(rx, tx, sc[:, :, :, sl], cinv)  # (1, N, M, S', Er, Et)
        w = scat_amp[sl].reshape(1, 1, 1, -1, 1, 1) / (Er * Et)
        yc = pxi.wsinterpd(
            x=wave,
            t=tk - tau * fs,
            axis=0,
            w=w,
            reduce=(3, 4, 5),
            method=method,
            extrapval=0,
            ctx=ctx,
        )
        y += pxu.to_NUMPY(yc).reshape(T, N, M)
    return y


def _delays(rx, tx, sc, cinv) -> np.ndarray:
    # Two-way propagation delays [s] of (rx, tx, scatterer) triplets.
    d_rx = np.linalg.norm(rx - sc, axis=0)
    d_tx = np.linalg.norm(tx - sc, axis=0)
    return (d_rx + d_tx)[None] * cinv
