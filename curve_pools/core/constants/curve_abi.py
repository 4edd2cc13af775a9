# Minimal Curve ABI fragments. Pool functions are declared per coin count since
# Vyper pools take fixed-size arrays (uint256[N_COINS]).


def _uint_array(n_coins: int) -> str:
    return f"uint256[{int(n_coins)}]"


def stableswap_pool_abi(n_coins: int, *, underlying: bool = False) -> list[dict]:
    arr = _uint_array(n_coins)
    abi: list[dict] = [
        {
            "name": "calc_token_amount",
            "type": "function",
            "stateMutability": "view",
            "inputs": [
                {"name": "amounts", "type": arr},
                {"name": "is_deposit", "type": "bool"},
            ],
            "outputs": [{"type": "uint256"}],
        },
        {
            "name": "calc_withdraw_one_coin",
            "type": "function",
            "stateMutability": "view",
            "inputs": [
                {"name": "_token_amount", "type": "uint256"},
                {"name": "i", "type": "int128"},
            ],
            "outputs": [{"type": "uint256"}],
        },
        {
            "name": "get_dy",
            "type": "function",
            "stateMutability": "view",
            "inputs": [
                {"name": "i", "type": "int128"},
                {"name": "j", "type": "int128"},
                {"name": "dx", "type": "uint256"},
            ],
            "outputs": [{"type": "uint256"}],
        },
        {
            "name": "add_liquidity",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "amounts", "type": arr},
                {"name": "min_mint_amount", "type": "uint256"},
            ],
            "outputs": [],
        },
        {
            "name": "remove_liquidity",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "_amount", "type": "uint256"},
                {"name": "min_amounts", "type": arr},
            ],
            "outputs": [],
        },
        {
            "name": "remove_liquidity_imbalance",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "amounts", "type": arr},
                {"name": "max_burn_amount", "type": "uint256"},
            ],
            "outputs": [],
        },
        {
            "name": "remove_liquidity_one_coin",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "_token_amount", "type": "uint256"},
                {"name": "i", "type": "int128"},
                {"name": "min_amount", "type": "uint256"},
            ],
            "outputs": [],
        },
        {
            "name": "exchange",
            "type": "function",
            "stateMutability": "nonpayable",
            "inputs": [
                {"name": "i", "type": "int128"},
                {"name": "j", "type": "int128"},
                {"name": "dx", "type": "uint256"},
                {"name": "min_dy", "type": "uint256"},
            ],
            "outputs": [],
        },
    ]
    if underlying:
        abi.append(
            {
                "name": "exchange_underlying",
                "type": "function",
                "stateMutability": "nonpayable",
                "inputs": [
                    {"name": "i", "type": "int128"},
                    {"name": "j", "type": "int128"},
                    {"name": "dx", "type": "uint256"},
                    {"name": "min_dy", "type": "uint256"},
                ],
                "outputs": [],
            }
        )
    return abi


LIQUIDITY_GAUGE_ABI = [
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_value", "type": "uint256"}],
        "outputs": [],
    },
    {
        "name": "withdraw",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "_value", "type": "uint256"}],
        "outputs": [],
    },
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "arg0", "type": "address"}],
        "outputs": [{"type": "uint256"}],
    },
    {
        "name": "totalSupply",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"type": "uint256"}],
    },
]

VOTING_ESCROW_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "addr", "type": "address"}],
        "outputs": [{"type": "uint256"}],
    },
    {
        "name": "totalSupply",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"type": "uint256"}],
    },
]

ADDRESS_PROVIDER_ABI = [
    {
        "name": "get_registry",
        "type": "function",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"type": "address"}],
    },
    {
        "name": "get_address",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "_id", "type": "uint256"}],
        "outputs": [{"type": "address"}],
    },
]

REGISTRY_ABI = [
    {
        "name": "get_coin_indices",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "_pool", "type": "address"},
            {"name": "_from", "type": "address"},
            {"name": "_to", "type": "address"},
        ],
        "outputs": [
            {"type": "int128"},
            {"type": "int128"},
            {"type": "bool"},
        ],
    },
]

REGISTRY_EXCHANGE_ABI = [
    {
        "name": "get_best_rate",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "_from", "type": "address"},
            {"name": "_to", "type": "address"},
            {"name": "_amount", "type": "uint256"},
        ],
        "outputs": [
            {"type": "address"},
            {"type": "uint256"},
        ],
    },
]
