import dask

import pyus.info.deps as pxd
import pyus.info.ptype as pxt

__all__ = [
    "compute",
    "from_NUMPY",
    "get_array_module",
    "to_NUMPY",
]


def get_array_module(x, fallback: pxt.ArrayModule = None) -> pxt.ArrayModule:
    """
    Get the array namespace corresponding to a given object.

    Parameters
    ----------
    x: object
        Any object compatible with the interface of NumPy arrays.
    fallback: ArrayModule
        Fallback module if `x` is not a NumPy-like array.  Default behaviour: raise error if fallback used.

    Returns
    -------
    namespace: ArrayModule
        The namespace to use to manipulate `x`, or `fallback` if provided.
    """

    def infer_api(y):
        try:
            return pxd.NDArrayInfo.from_obj(y).module()
        except ValueError:
            return None

    if (xp := infer_api(x)) is not None:
        return xp
    elif fallback is not None:
        return fallback
    else:
        raise ValueError(f"Could not infer array module for {type(x)}.")


def compute(*args, **kwargs):
    r"""
    Force computation of Dask collections.

    Parameters
    ----------
    \*args: object, list
        Any number of objects.  If it is a dask object, it is evaluated and the result is returned.  Non-dask arguments
        are passed through unchanged.
    \*\*kwargs: dict
        Extra keyword parameters forwarded to :py:func:`dask.compute`.

    Returns
    -------
    \*cargs: object, list
        Evaluated objects. Non-dask arguments are passed through unchanged.
    """
    cargs = dask.compute(*args, **kwargs)
    if len(args) == 1:
        cargs = cargs[0]
    return cargs


def to_NUMPY(x: pxt.NDArray) -> pxt.NDArray:
    """
    Convert an array from a specific backend to NUMPY.

    Parameters
    ----------
    x: NDArray
        Array to be converted.

    Returns
    -------
    y: NDArray
        Array with NumPy backend.

    Notes
    -----
    This function is a no-op if the array is already a NumPy array.
    """
    N = pxd.NDArrayInfo
    ndi = N.from_obj(x)
    if ndi == N.NUMPY:
        y = x
    elif ndi == N.DASK:
        y = compute(x)
    elif ndi == N.CUPY:
        y = x.get()
    else:
        msg = f"Dev-action required: define behaviour for {ndi}."
        raise ValueError(msg)
    return y


def from_NUMPY(x: pxt.NDArray, ndi: pxd.NDArrayInfo) -> pxt.NDArray:
    """
    Convert a NUMPY array to the backend `ndi`.

    This function is the inverse of :py:func:`~pyus.util.to_NUMPY`.
    """
    N = pxd.NDArrayInfo
    if ndi == N.NUMPY:
        y = x
    elif ndi == N.DASK:
        y = ndi.module().from_array(x)
    elif ndi == N.CUPY:
        y = ndi.module().asarray(x)
    else:
        msg = f"Dev-action required: define behaviour for {ndi}."
        raise ValueError(msg)
    return y
