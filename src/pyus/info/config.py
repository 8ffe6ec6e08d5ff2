"""
This module exposes pyus-wide runtime configuration.

Values are read from the environment each time they are queried, so that sub-processes and test runners can change
them without re-importing the package.

* ``PYUS_WORKERS``: default number of host threads used by the sampling engine. [Default: 1, i.e. serial.]
* ``PYUS_CHUNKS_PER_WORKER``: number of tasks submitted per host thread. [Default: 4.]
* ``PYUS_CUDA_THREADS``: maximum number of threads per CUDA block. [Default: 256.]
* ``PYUS_DISABLE_CUDA``: if set to a truthy value, never launch CUDA kernels.
"""

import os

__all__ = [
    "workers",
    "chunks_per_worker",
    "cuda_threads",
    "cuda_disabled",
]

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _int_env(name: str, default: int, lower: int = 1) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        out = int(value)
    except ValueError:
        raise ValueError(f"{name}: expected an integer, got {value!r}.")
    if out < lower:
        raise ValueError(f"{name}: expected a value >= {lower}, got {out}.")
    return out


def workers() -> int:
    return _int_env("PYUS_WORKERS", 1)


def chunks_per_worker() -> int:
    return _int_env("PYUS_CHUNKS_PER_WORKER", 4)


def cuda_threads() -> int:
    return _int_env("PYUS_CUDA_THREADS", 256)


def cuda_disabled() -> bool:
    return os.getenv("PYUS_DISABLE_CUDA", "").strip().lower() in _TRUTHY
