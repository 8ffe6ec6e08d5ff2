import os

# Device-path tests run on Numba's CUDA simulator unless told otherwise.
# Must be set before numba.cuda is first imported.
os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import types  # noqa: E402
import typing as typ  # noqa: E402

import dask.array as da  # noqa: E402
import numpy as np  # noqa: E402
import pytest  # noqa: E402

import pyus.info.ptype as pxt  # noqa: E402
import pyus.runtime as pxrt  # noqa: E402
import pyus.util as pxu  # noqa: E402


@pytest.fixture(params=[np, da])
def xp(request) -> types.ModuleType:
    # CuPy inputs take the device path: covered separately by test_cuda.py.
    return request.param


@pytest.fixture(params=pxrt.Representation)
def rep(request) -> pxrt.Representation:
    return request.param


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(0)


def isclose(
    a: typ.Union[pxt.Real, pxt.NDArray],
    b: typ.Union[pxt.Real, pxt.NDArray],
    as_dtype: pxt.DType,
) -> pxt.NDArray:
    """
    Equivalent of `xp.isclose`, but where atol is automatically chosen based on `as_dtype`.

    NaNs compare equal.  This function always returns a computed array, i.e. NumPy/CuPy output.
    """
    atol = {
        pxrt.Width.HALF.value: 3e-2,
        pxrt.Width.SINGLE.value: 2e-4,
        pxrt.CWidth.SINGLE.value: 2e-4,
        pxrt.Width.DOUBLE.value: 1e-8,
        pxrt.CWidth.DOUBLE.value: 1e-8,
    }
    # Numbers obtained by:
    # * \sum_{k >= (p+1)//2} 2^{-k}, where p=<number of mantissa bits>; then
    # * round up value to 3 significant decimal digits.
    # N_mantissa = [10, 23, 52] for [half, single, double] respectively.

    prec = atol.get(np.dtype(as_dtype), pxrt.Width.DOUBLE.value)
    a, b = map(np.asarray, pxu.compute(a, b))
    eq = np.isclose(a, b, atol=prec, rtol=prec, equal_nan=True)
    return eq


def allclose(
    a: pxt.NDArray,
    b: pxt.NDArray,
    as_dtype: pxt.DType,
) -> bool:
    """
    Equivalent of `all(isclose)`, but where atol is automatically chosen based on `as_dtype`.
    """
    return bool(np.all(isclose(a, b, as_dtype)))


def as_backend(x: np.ndarray, xp: types.ModuleType) -> pxt.NDArray:
    # Move NUMPY test data to the array module under test.
    # DASK arrays are chunked to have (when possible) 2 chunks per axis.
    if xp is da:
        chunks = tuple(max(1, n // 2) for n in x.shape)
        return da.from_array(x, chunks=chunks)
    return xp.asarray(x)
