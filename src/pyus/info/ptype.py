import numbers as nb
import typing as typ

import numpy.typing as npt

import pyus.info.deps as pxd

#: Supported dense array types.
NDArray = typ.TypeVar("NDArray", *pxd.supported_array_types())

#: Supported dense array modules.
ArrayModule = typ.TypeVar(
    "ArrayModule",
    *[typ.Literal[_] for _ in pxd.supported_array_modules()],
)

Integer = nb.Integral
Real = nb.Real  #: Alias of :py:class:`numbers.Real`.
Scalar = nb.Number  #: Alias of :py:class:`numbers.Number`.
DType = npt.DTypeLike  #: :py:attr:`~pyus.info.ptype.NDArray` dtype specifier.
NDArrayAxis = typ.Union[Integer, tuple[Integer, ...]]  #: Axis/Axes specifier.
NDArrayShape = typ.Union[Integer, tuple[Integer, ...]]  #: :py:attr:`~pyus.info.ptype.NDArray` shape specifier.
