from .propagation import (
    greens as greens,
)
from .interp import (
    sample as sample,
    wsinterpd as wsinterpd,
    wsinterpd2 as wsinterpd2,
)
from .runtime import (
    ExecutionContext as ExecutionContext,
    Representation as Representation,
)
from .scan import (
    Scan as Scan,
    ScanCartesian as ScanCartesian,
    ScanPolar as ScanPolar,
)
