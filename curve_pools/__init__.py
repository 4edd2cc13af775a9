__version__ = "0.1.0"

from curve_pools.core import (
    BaseAdapter,
    CurveCoin,
    CurvePoolData,
    CurvePoolsError,
    FixedPointOverflow,
    InvalidInput,
    ValidationError,
)
from curve_pools.core.utils.gauge_math import (
    compute_boosted_deposit_cap,
    compute_optimal_deposits,
)

__all__ = [
    "__version__",
    "BaseAdapter",
    "CurveCoin",
    "CurvePoolData",
    "CurvePoolsError",
    "FixedPointOverflow",
    "InvalidInput",
    "ValidationError",
    "compute_boosted_deposit_cap",
    "compute_optimal_deposits",
]
