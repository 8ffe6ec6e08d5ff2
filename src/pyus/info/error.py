# Custom exceptions used inside pyus.


class PyusError(Exception):
    """
    Parent class of all exceptions raised in pyus.
    """


class ShapeMismatch(PyusError, ValueError):
    """
    Array extents cannot be broadcast against each other.
    """


class UnsupportedMethod(PyusError, ValueError):
    """
    Interpolation method not implemented by any execution path.
    """


class InternalConsistencyError(PyusError, RuntimeError):
    """
    Internal invariant violated: this is a bug, not a user-input problem.
    """
