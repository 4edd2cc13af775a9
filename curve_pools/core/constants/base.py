MANTISSA = 10**18
FIXED_POINT_DECIMALS = 18

MAX_UINT256 = 2**256 - 1
MAX_INT256 = 2**255 - 1
MIN_INT256 = -(2**255)

DEFAULT_SLIPPAGE = 0.01

# Curve pools quote min / max amounts with a flat percentage haircut
MIN_AMOUNT_PCT = 99
MAX_BURN_PCT = 101

# Timeout constants (seconds)
DEFAULT_TRANSACTION_TIMEOUT = 180
DEFAULT_RECEIPT_POLL_INTERVAL = 0.1

ADAPTER_MULTICALL = "MULTICALL"
ADAPTER_CURVE_POOL = "CURVE_POOL"
ADAPTER_CURVE_ROUTER = "CURVE_ROUTER"
