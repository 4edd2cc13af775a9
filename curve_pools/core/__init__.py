from curve_pools.core.adapters.BaseAdapter import BaseAdapter
from curve_pools.core.adapters.models import CurveCoin, CurvePoolData
from curve_pools.core.errors import (
    CurvePoolsError,
    FixedPointOverflow,
    InvalidInput,
    ValidationError,
)

__all__ = [
    "BaseAdapter",
    "CurveCoin",
    "CurvePoolData",
    "CurvePoolsError",
    "FixedPointOverflow",
    "InvalidInput",
    "ValidationError",
]
