from .array_module import (
    compute as compute,
    from_NUMPY as from_NUMPY,
    get_array_module as get_array_module,
    to_NUMPY as to_NUMPY,
)
from .misc import (
    broadcast_seq as broadcast_seq,
    normalize_axes as normalize_axes,
    pad_shape as pad_shape,
    strides as strides,
)
