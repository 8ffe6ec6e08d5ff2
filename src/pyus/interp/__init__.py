from .broadcast import (
    DimensionRoles as DimensionRoles,
    classify as classify,
)
from .kernel import (
    Method as Method,
)
from .layout import (
    Layout as Layout,
    plan as plan,
)
from .engine import (
    sample as sample,
    wsinterpd as wsinterpd,
    wsinterpd2 as wsinterpd2,
)
