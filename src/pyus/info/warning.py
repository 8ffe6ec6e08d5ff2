# Custom warnings used inside pyus.
import inspect
import warnings


class PyusWarning(UserWarning):
    """
    Parent class of all warnings raised in pyus.
    """


class PerformanceWarning(PyusWarning):
    """
    Use for performance-related warnings.
    """


def warn_dask_perf(msg: str = None):
    """
    Issue a warning for DASK-related performance issues.

    This method is aware of its context and prints the name of the enclosing function/method which invoked it.

    Parameters
    ----------
    msg: str
        Custom warning message.
    """
    if msg is None:
        msg = "Sub-optimal performance for DASK inputs."

    # Get context
    my_frame = inspect.currentframe()
    up_frame = inspect.getouterframes(my_frame)[1]
    header = f"{up_frame.filename}:{up_frame.function}"

    msg = f"[{header}] {msg}"
    warnings.warn(msg, PerformanceWarning)


class PrecisionWarning(PyusWarning):
    """
    Use for precision-related warnings.
    """


class UnsupportedDataTypeWarning(PrecisionWarning):
    """
    Data type not recognized by the sampling kernels: computation degrades to single precision.

    The offending dtype is available as the `dtype` attribute.
    """

    def __init__(self, msg: str, dtype=None):
        super().__init__(msg)
        self.dtype = dtype


class BackendWarning(PyusWarning):
    """
    Inform user of a backend-specific problem to be aware of.
    """
