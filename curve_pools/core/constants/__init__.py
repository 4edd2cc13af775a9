from curve_pools.core.constants.base import MANTISSA, MAX_UINT256
from curve_pools.core.constants.chains import DEFAULT_CHAIN_ID
from curve_pools.core.constants.contracts import ZERO_ADDRESS

__all__ = ["DEFAULT_CHAIN_ID", "MANTISSA", "MAX_UINT256", "ZERO_ADDRESS"]
