CHAIN_ID_ETHEREUM = 1
CHAIN_ID_OPTIMISM = 10
CHAIN_ID_POLYGON = 137
CHAIN_ID_FANTOM = 250
CHAIN_ID_ARBITRUM = 42161
CHAIN_ID_AVALANCHE = 43114

# Chains whose blocks carry oversized extraData (needs the POA middleware)
POA_MIDDLEWARE_CHAIN_IDS = {CHAIN_ID_POLYGON}

DEFAULT_CHAIN_ID = CHAIN_ID_ETHEREUM
