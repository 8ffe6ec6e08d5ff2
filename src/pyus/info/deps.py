import collections.abc as cabc
import enum
import importlib.util
import types

import dask.array
import numpy

import pyus.info.config as pxc

#: Show if CuPy-based backends are available.
CUPY_ENABLED: bool = importlib.util.find_spec("cupy") is not None
if CUPY_ENABLED:
    try:
        import cupy

        cupy.is_available()  # will fail if hardware/drivers/runtime missing
    except Exception:
        CUPY_ENABLED = False


@enum.unique
class NDArrayInfo(enum.Enum):
    """
    Supported dense array backends.
    """

    NUMPY = enum.auto()
    DASK = enum.auto()
    CUPY = enum.auto()

    def type(self) -> type:
        """Array type associated to a backend."""
        if self.name == "NUMPY":
            return numpy.ndarray
        elif self.name == "DASK":
            return dask.array.core.Array
        elif self.name == "CUPY":
            return cupy.ndarray if CUPY_ENABLED else type(None)
        else:
            raise ValueError(f"No known array type for {self.name}.")

    @classmethod
    def from_obj(cls, obj) -> "NDArrayInfo":
        """Find array backend associated to `obj`."""
        if obj is not None:
            for ndi in cls:
                if isinstance(obj, ndi.type()):
                    return ndi
        raise ValueError(f"No known array type to match {obj}.")

    def module(self) -> types.ModuleType:
        """
        Python module associated to an array backend.
        """
        if self.name == "NUMPY":
            xp = numpy
        elif self.name == "DASK":
            xp = dask.array
        elif self.name == "CUPY":
            xp = cupy if CUPY_ENABLED else None
        else:
            raise ValueError(f"No known module(s) for {self.name}.")
        return xp


def cuda_available() -> bool:
    """
    Show if CUDA kernels can be launched.

    This is queried at call time: ``PYUS_DISABLE_CUDA`` and Numba's CUDA simulator are honored.
    """
    if pxc.cuda_disabled():
        return False
    try:
        import numba.cuda

        return bool(numba.cuda.is_available())
    except Exception:
        return False


def supported_array_types() -> cabc.Collection[type]:
    """List of all supported dense array types in current install."""
    data = set()
    for ndi in NDArrayInfo:
        if (ndi != NDArrayInfo.CUPY) or CUPY_ENABLED:
            data.add(ndi.type())
    return tuple(data)


def supported_array_modules() -> cabc.Collection[types.ModuleType]:
    """List of all supported dense array modules in current install."""
    data = set()
    for ndi in NDArrayInfo:
        if (ndi != NDArrayInfo.CUPY) or CUPY_ENABLED:
            data.add(ndi.module())
    return tuple(data)


__all__ = [
    "CUPY_ENABLED",
    "NDArrayInfo",
    "cuda_available",
    "supported_array_types",
    "supported_array_modules",
]
