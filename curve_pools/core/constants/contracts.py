from eth_utils import to_checksum_address

# Curve (Ethereum mainnet)
# Source: https://curve.readthedocs.io/ref-addresses.html

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Multicall3 is deployed at the same address on every supported chain
MULTICALL3_ADDRESS = to_checksum_address("0xcA11bde05977b3631167028862bE2a173976CA11")

CURVE_ADDRESS_PROVIDER = to_checksum_address(
    "0x0000000022D53366457F9d5E68Ec105046FC4383"
)
CURVE_VOTING_ESCROW = to_checksum_address("0x5f3b5DfEb7B28CDbD7FAba78963EE202a494e2A2")

# AddressProvider.get_address id of the registry exchange
ADDRESS_PROVIDER_ID_EXCHANGE = 2

# USDT reverts on approve(x) when the current allowance is non-zero
TOKENS_REQUIRING_APPROVAL_RESET: set[tuple[int, str]] = {
    (1, to_checksum_address("0xdAC17F958D2ee523a2206206994597C13D831ec7")),
}
