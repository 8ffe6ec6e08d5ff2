import dataclasses
import enum
import logging
import warnings

import numpy as np

import pyus.info.config as pxc
import pyus.info.deps as pxd
import pyus.info.ptype as pxt
import pyus.info.warning as pxw

__all__ = [
    "Width",
    "CWidth",
    "Representation",
    "ExecutionContext",
]

logger = logging.getLogger(__name__)


@enum.unique
class Width(enum.Enum):
    """
    Machine-dependent floating-point types.
    """

    HALF = np.dtype(np.half)
    SINGLE = np.dtype(np.single)
    DOUBLE = np.dtype(np.double)

    def eps(self) -> pxt.Real:
        """
        Machine precision of a floating-point type.

        Returns the difference between 1 and the next smallest representable float larger than 1.
        """
        eps = np.finfo(self.value).eps
        return float(eps)

    @property
    def complex(self) -> "CWidth":
        """
        Returns precision-equivalent complex-valued type.

        There is no complex half-precision type: HALF maps to CWidth.SINGLE.
        """
        if self == Width.HALF:
            return CWidth.SINGLE
        return CWidth[self.name]


@enum.unique
class CWidth(enum.Enum):
    """
    Machine-dependent complex-valued floating-point types.
    """

    SINGLE = np.dtype(np.csingle)
    DOUBLE = np.dtype(np.cdouble)

    @property
    def real(self) -> "Width":
        """
        Returns precision-equivalent real-valued type.
        """
        return Width[self.name]


@enum.unique
class Representation(enum.Enum):
    """
    Numeric representations understood by the sampling kernels.

    The representation of a call is chosen once from the data dtype, and each execution path provides one
    specialization per member.
    """

    HALF = Width.HALF
    SINGLE = Width.SINGLE
    DOUBLE = Width.DOUBLE
    CSINGLE = CWidth.SINGLE
    CDOUBLE = CWidth.DOUBLE

    @property
    def is_complex(self) -> bool:
        return isinstance(self.value, CWidth)

    @property
    def dtype(self) -> np.dtype:
        """Storage dtype of data/weights/output."""
        return self.value.value

    @property
    def compute_dtype(self) -> np.dtype:
        """Dtype in which products and sums are carried out."""
        if self == Representation.HALF:
            return Width.SINGLE.value
        return self.dtype

    @property
    def real_dtype(self) -> np.dtype:
        """Dtype of sample positions."""
        if self.is_complex:
            return self.value.real.value
        return self.compute_dtype

    def as_complex(self) -> "Representation":
        if self.is_complex:
            return self
        return Representation(self.value.complex)

    @classmethod
    def from_dtype(cls, dtype: pxt.DType, complex_: bool = False) -> "Representation":
        """
        Select the representation of data with dtype `dtype`.

        Parameters
        ----------
        dtype: DType
            Data dtype.
        complex_: bool
            Force a complex-valued representation, i.e. if weights or modulation are complex-valued.

        Unrecognized dtypes (integers, booleans, extended precision, ...) degrade to single precision and emit an
        :py:class:`~pyus.info.warning.UnsupportedDataTypeWarning`.
        """
        dtype = np.dtype(dtype)
        try:
            rep = cls(Width(dtype) if dtype.kind == "f" else CWidth(dtype))
        except ValueError:
            rep = cls.CSINGLE if (dtype.kind == "c") else cls.SINGLE
            msg = f"Datatype {dtype} not recognized as a supported type: computing in {rep.dtype}."
            logger.warning(msg)
            warnings.warn(pxw.UnsupportedDataTypeWarning(msg, dtype=dtype))

        if complex_ and (not rep.is_complex):
            if rep == cls.HALF:
                msg = "No complex half-precision type: computing in complex single precision."
                logger.warning(msg)
                warnings.warn(msg, pxw.PrecisionWarning)
            rep = rep.as_complex()
        return rep


@dataclasses.dataclass(frozen=True)
class ExecutionContext:
    """
    Execution resources selected for one call of the sampling engine.

    Attributes
    ----------
    device: bool
        Launch the CUDA kernel if possible.
    workers: int
        Number of host threads used when the host path is taken.  Values <= 1 disable the thread pool.
    max_threads: int
        Maximum number of threads per CUDA block.
    """

    device: bool = False
    workers: int = 1
    max_threads: int = 256

    def __post_init__(self):
        assert self.workers >= 1, "[workers] Must be positive."
        assert self.max_threads >= 1, "[max_threads] Must be positive."

    @classmethod
    def auto(cls, *arrays) -> "ExecutionContext":
        """
        Infer the context from the inputs and the environment.

        The device path is requested if any of `arrays` lives on the GPU.
        """
        device = False
        for arr in arrays:
            try:
                ndi = pxd.NDArrayInfo.from_obj(arr)
            except ValueError:  # scalars
                continue
            device |= ndi == pxd.NDArrayInfo.CUPY
        return cls(
            device=device,
            workers=pxc.workers(),
            max_threads=pxc.cuda_threads(),
        )

    @property
    def parallel(self) -> bool:
        return (not self.device) and (self.workers > 1)
