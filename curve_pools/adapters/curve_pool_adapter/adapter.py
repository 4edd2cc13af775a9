from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

from eth_utils import to_checksum_address

from curve_pools.adapters.multicall_adapter.adapter import MulticallAdapter
from curve_pools.core.adapters.BaseAdapter import BaseAdapter
from curve_pools.core.adapters.models import CurveCoin, CurvePoolData
from curve_pools.core.config import (
    get_chain_id,
    get_pools_config,
    get_strategy_wallet_address,
)
from curve_pools.core.constants.base import (
    ADAPTER_CURVE_POOL,
    DEFAULT_SLIPPAGE,
    FIXED_POINT_DECIMALS,
    MAX_BURN_PCT,
    MAX_UINT256,
    MIN_AMOUNT_PCT,
)
from curve_pools.core.constants.contracts import CURVE_VOTING_ESCROW
from curve_pools.core.constants.curve_abi import (
    LIQUIDITY_GAUGE_ABI,
    VOTING_ESCROW_ABI,
    stableswap_pool_abi,
)
from curve_pools.core.errors import InvalidInput
from curve_pools.core.utils.gauge_math import (
    compute_boosted_deposit_cap,
    compute_optimal_deposits,
    vote_fraction,
)
from curve_pools.core.utils.tokens import ensure_allowance, is_native_token
from curve_pools.core.utils.transaction import (
    SignCallback,
    encode_call,
    send_transaction,
)
from curve_pools.core.utils.units import format_units, parse_units
from curve_pools.core.utils.web3 import web3_from_chain_id


def flatten_accounts(accounts: Sequence[Any]) -> list[str]:
    """Accept ``f(a, b)`` as well as ``f([a, b])``; addresses come back checksummed."""
    if len(accounts) == 1 and isinstance(accounts[0], (list, tuple)):
        accounts = accounts[0]
    return [to_checksum_address(str(a)) for a in accounts]


def resolve_pool_data(
    pool: CurvePoolData | dict[str, Any] | None = None,
    *,
    pool_name: str | None = None,
    pools_config: dict[str, Any] | None = None,
) -> CurvePoolData:
    if isinstance(pool, CurvePoolData):
        return pool
    if isinstance(pool, dict):
        return CurvePoolData.model_validate(pool)
    if not pool_name:
        raise ValueError("pool or pool_name is required")
    registry = pools_config if pools_config is not None else get_pools_config()
    raw = registry.get(pool_name)
    if raw is None:
        raise ValueError(f"Unknown Curve pool: {pool_name}")
    return CurvePoolData.model_validate({"name": pool_name, **raw})


class CurvePoolAdapter(BaseAdapter):
    adapter_type = ADAPTER_CURVE_POOL

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        pool: CurvePoolData | dict[str, Any] | None = None,
        pool_name: str | None = None,
        strategy_wallet_signing_callback: SignCallback | None = None,
    ) -> None:
        super().__init__("curve_pool_adapter", config)
        cfg = config or {}
        self.chain_id = int(cfg.get("chain_id") or get_chain_id())

        self.pool = resolve_pool_data(
            pool, pool_name=pool_name, pools_config=cfg.get("pools")
        )
        self.pool_name = self.pool.name
        self.swap = self.pool.swap_address
        self.zap = self.pool.zap_address
        self.lp_token = self.pool.lp_token_address
        self.gauge = self.pool.gauge_address
        self.coins: list[CurveCoin] = list(self.pool.coins)
        self.swap_abi = stableswap_pool_abi(
            self.pool.n_coins, underlying=self.pool.underlying_swaps
        )
        self.ve = to_checksum_address(cfg.get("voting_escrow") or CURVE_VOTING_ESCROW)

        strategy_wallet = cfg.get("strategy_wallet") or {}
        wallet_address = strategy_wallet.get("address") or get_strategy_wallet_address()
        self.strategy_wallet_address = (
            to_checksum_address(wallet_address) if wallet_address else None
        )
        self.strategy_wallet_signing_callback = strategy_wallet_signing_callback

    # -----------------------------
    # Validation helpers
    # -----------------------------

    def _require_wallet(self) -> str:
        if not self.strategy_wallet_address:
            raise ValueError("config.strategy_wallet.address is required")
        if not self.strategy_wallet_signing_callback:
            raise ValueError("strategy_wallet_signing_callback is required")
        return self.strategy_wallet_address

    def _coin_amounts(self, amounts: Sequence[int]) -> list[int]:
        if len(amounts) != self.pool.n_coins:
            raise ValueError(
                f"expected {self.pool.n_coins} amounts for {self.pool_name}, got {len(amounts)}"
            )
        out = [int(a) for a in amounts]
        if any(a < 0 for a in out):
            raise ValueError("amounts must be non-negative")
        return out

    def _coin_index(self, i: int) -> int:
        i = int(i)
        if not 0 <= i < self.pool.n_coins:
            raise ValueError(f"coin index {i} out of range for {self.pool_name}")
        return i

    @staticmethod
    def _positive(amount: int, name: str = "amount") -> int:
        amount = int(amount)
        if amount <= 0:
            raise ValueError(f"{name} must be positive")
        return amount

    @staticmethod
    def _slippage_bps(max_slippage: float | Decimal) -> int:
        bps = int(Decimal(str(max_slippage)) * 10_000)
        if bps < 0 or bps >= 10_000:
            raise ValueError("max_slippage must be in [0, 1)")
        return bps

    def _native_value(self, amounts: Sequence[int], *, underlying: bool) -> int:
        value = 0
        for coin, amount in zip(self.coins, amounts):
            address = coin.underlying_address if underlying else coin.address
            if is_native_token(address):
                value += int(amount)
        return value

    async def _send(
        self,
        fn_name: str,
        args: list[Any],
        *,
        target: str,
        abi: list[dict[str, Any]],
        value: int = 0,
    ) -> str:
        strategy = self._require_wallet()
        tx = await encode_call(
            target=target,
            abi=abi,
            fn_name=fn_name,
            args=args,
            from_address=strategy,
            chain_id=self.chain_id,
            value=value,
        )
        self.logger.info(f"{self.pool_name}: {fn_name}({args})")
        return await send_transaction(tx, self.strategy_wallet_signing_callback)

    async def _approve(self, token: str, spender: str, amount: int) -> None:
        await ensure_allowance(
            token_address=token,
            owner=self._require_wallet(),
            spender=spender,
            amount=amount,
            chain_id=self.chain_id,
            signing_callback=self.strategy_wallet_signing_callback,
            approval_amount=MAX_UINT256,
        )

    # -----------------------------
    # Read helpers
    # -----------------------------

    async def calc_lp_token_amount(
        self, amounts: Sequence[int], is_deposit: bool = True
    ) -> int:
        amounts = self._coin_amounts(amounts)
        async with web3_from_chain_id(self.chain_id) as web3:
            c = web3.eth.contract(address=self.swap, abi=self.swap_abi)
            return int(
                await c.functions.calc_token_amount(amounts, bool(is_deposit)).call()
            )

    async def calc_withdraw_one_coin(self, token_amount: int, i: int) -> int:
        i = self._coin_index(i)
        async with web3_from_chain_id(self.chain_id) as web3:
            c = web3.eth.contract(address=self.swap, abi=self.swap_abi)
            return int(
                await c.functions.calc_withdraw_one_coin(int(token_amount), i).call()
            )

    async def get_dy(self, i: int, j: int, amount: int) -> int:
        i, j = self._coin_index(i), self._coin_index(j)
        async with web3_from_chain_id(self.chain_id) as web3:
            c = web3.eth.contract(address=self.swap, abi=self.swap_abi)
            return int(await c.functions.get_dy(i, j, int(amount)).call())

    async def _get_balances(
        self, addresses: list[str], tokens: list[str]
    ) -> dict[str, list[int]]:
        if not addresses:
            return {}
        async with web3_from_chain_id(self.chain_id) as web3:
            multicall = MulticallAdapter(web3=web3)
            calls = [
                multicall.encode_balance(token, address)
                for address in addresses
                for token in tokens
            ]
            values = await multicall.aggregate_uint256(calls)
        n = len(tokens)
        return {
            address: values[k * n : (k + 1) * n] for k, address in enumerate(addresses)
        }

    async def calc_underlying_coins_amount(self, amount: int) -> list[int]:
        """Min coin amounts for burning ``amount`` LP, with a 1% haircut."""
        amount = int(amount)
        coin_addresses = [c.underlying_address for c in self.coins]
        async with web3_from_chain_id(self.chain_id) as web3:
            multicall = MulticallAdapter(web3=web3)
            calls = [multicall.encode_balance(t, self.swap) for t in coin_addresses]
            calls.append(multicall.encode_total_supply(self.lp_token))
            values = await multicall.aggregate_uint256(calls)
        *coin_balances, total_supply = values
        if total_supply == 0:
            raise InvalidInput(f"{self.pool_name}: LP token total supply is zero")
        return [
            balance * amount // total_supply // 100 * MIN_AMOUNT_PCT
            for balance in coin_balances
        ]

    async def balances(self, *addresses: str | list[str]) -> dict[str, list[int]]:
        """``{address: [lp_balance, gauge_balance]}``."""
        return await self._get_balances(
            flatten_accounts(addresses), [self.lp_token, self.gauge]
        )

    async def lp_token_balances(self, *addresses: str | list[str]) -> dict[str, int]:
        raw = await self._get_balances(flatten_accounts(addresses), [self.lp_token])
        return {address: values[0] for address, values in raw.items()}

    async def gauge_balances(self, *addresses: str | list[str]) -> dict[str, int]:
        raw = await self._get_balances(flatten_accounts(addresses), [self.gauge])
        return {address: values[0] for address, values in raw.items()}

    async def get_swap_output(self, i: int, j: int, amount: str | int | float) -> str:
        """Quote in human units: ``amount`` of coin i -> expected coin j."""
        i, j = self._coin_index(i), self._coin_index(j)
        amount_raw = parse_units(amount, self.coins[i].decimals)
        expected = await self.get_dy(i, j, amount_raw)
        return format_units(expected, self.coins[j].decimals)

    # -----------------------------
    # Liquidity
    # -----------------------------

    async def add_liquidity(self, amounts: Sequence[int]) -> str:
        amounts = self._coin_amounts(amounts)
        for coin, amount in zip(self.coins, amounts):
            if amount > 0:
                await self._approve(coin.underlying_address, self.swap, amount)

        min_mint_amount = (
            await self.calc_lp_token_amount(amounts)
        ) // 100 * MIN_AMOUNT_PCT
        return await self._send(
            "add_liquidity",
            [amounts, min_mint_amount],
            target=self.swap,
            abi=self.swap_abi,
            value=self._native_value(amounts, underlying=True),
        )

    async def remove_liquidity(self, lp_token_amount: int) -> str:
        lp_token_amount = self._positive(lp_token_amount, "lp_token_amount")
        min_amounts = await self.calc_underlying_coins_amount(lp_token_amount)
        return await self._send(
            "remove_liquidity",
            [lp_token_amount, min_amounts],
            target=self.swap,
            abi=self.swap_abi,
        )

    async def remove_liquidity_imbalance(self, amounts: Sequence[int]) -> str:
        amounts = self._coin_amounts(amounts)
        max_burn_amount = (
            await self.calc_lp_token_amount(amounts, is_deposit=False)
        ) // 100 * MAX_BURN_PCT
        return await self._send(
            "remove_liquidity_imbalance",
            [amounts, max_burn_amount],
            target=self.swap,
            abi=self.swap_abi,
        )

    async def remove_liquidity_one_coin(self, lp_token_amount: int, i: int) -> str:
        lp_token_amount = self._positive(lp_token_amount, "lp_token_amount")
        i = self._coin_index(i)
        min_amount = (
            await self.calc_withdraw_one_coin(lp_token_amount, i)
        ) // 100 * MIN_AMOUNT_PCT
        return await self._send(
            "remove_liquidity_one_coin",
            [lp_token_amount, i, min_amount],
            target=self.swap,
            abi=self.swap_abi,
        )

    # -----------------------------
    # Gauge
    # -----------------------------

    async def gauge_deposit(self, amount: int) -> str:
        amount = self._positive(amount)
        await self._approve(self.lp_token, self.gauge, amount)
        return await self._send(
            "deposit", [amount], target=self.gauge, abi=LIQUIDITY_GAUGE_ABI
        )

    async def gauge_withdraw(self, amount: int) -> str:
        amount = self._positive(amount)
        return await self._send(
            "withdraw", [amount], target=self.gauge, abi=LIQUIDITY_GAUGE_ABI
        )

    async def gauge_max_boosted_deposit(
        self, *accounts: str | list[str]
    ) -> dict[str, str]:
        """Largest gauge deposit per account that still earns full boost.

        The cap is ``vote_fraction * gauge_total_supply`` with the vote fraction
        already truncated to 18 decimals, so it can sit a few wei below
        ``gauge_total_supply * ve_balance // ve_total_supply``. For example a ve
        balance of 1 out of 3 against a gauge supply of 3e18 gives
        999999999999999999 rather than 1e18. The same truncated fraction feeds
        ``gauge_optimal_deposits``, so the two calls agree with each other.
        """
        accounts = flatten_accounts(accounts)
        if not accounts:
            return {}

        async with web3_from_chain_id(self.chain_id) as web3:
            multicall = MulticallAdapter(web3=web3)
            calls = [
                multicall.encode_contract_call(self.ve, VOTING_ESCROW_ABI, "totalSupply"),
                multicall.encode_contract_call(
                    self.gauge, LIQUIDITY_GAUGE_ABI, "totalSupply"
                ),
            ]
            calls.extend(
                multicall.encode_contract_call(
                    self.ve, VOTING_ESCROW_ABI, "balanceOf", [to_checksum_address(a)]
                )
                for a in accounts
            )
            values = await multicall.aggregate_uint256(calls)

        ve_total_supply, gauge_total_supply = values[:2]
        shares = [
            (account, vote_fraction(ve_balance, ve_total_supply))
            for account, ve_balance in zip(accounts, values[2:])
        ]
        caps = compute_boosted_deposit_cap(shares, gauge_total_supply)
        return {a: format_units(v, FIXED_POINT_DECIMALS) for a, v in caps.items()}

    async def gauge_optimal_deposits(
        self, *accounts: str | list[str]
    ) -> dict[str, str]:
        """Redistribute the accounts' LP between them to match their boost.

        See ``compute_optimal_deposits`` for the allocation rule.
        """
        accounts = flatten_accounts(accounts)
        if not accounts:
            return {}

        async with web3_from_chain_id(self.chain_id) as web3:
            multicall = MulticallAdapter(web3=web3)
            calls = [
                multicall.encode_contract_call(self.ve, VOTING_ESCROW_ABI, "totalSupply"),
                multicall.encode_contract_call(
                    self.gauge, LIQUIDITY_GAUGE_ABI, "totalSupply"
                ),
            ]
            for account in accounts:
                checksum = to_checksum_address(account)
                calls.append(
                    multicall.encode_contract_call(
                        self.ve, VOTING_ESCROW_ABI, "balanceOf", [checksum]
                    )
                )
                calls.append(multicall.encode_erc20_balance(self.lp_token, checksum))
                calls.append(multicall.encode_erc20_balance(self.gauge, checksum))
            values = await multicall.aggregate_uint256(calls)

        ve_total_supply, gauge_total_supply = values[:2]
        rows = [values[2 + 3 * k : 5 + 3 * k] for k in range(len(accounts))]
        shares = [
            (account, vote_fraction(row[0], ve_total_supply))
            for account, row in zip(accounts, rows)
        ]
        balances = [(account, row[1], row[2]) for account, row in zip(accounts, rows)]
        self.logger.debug(
            f"{self.pool_name}: optimal deposits for {len(accounts)} accounts, "
            f"gauge supply {gauge_total_supply}"
        )
        optimal = compute_optimal_deposits(shares, balances, gauge_total_supply)
        return {a: format_units(v, FIXED_POINT_DECIMALS) for a, v in optimal.items()}

    # -----------------------------
    # Swaps
    # -----------------------------

    async def exchange(
        self,
        i: int,
        j: int,
        amount: int,
        max_slippage: float | Decimal = DEFAULT_SLIPPAGE,
    ) -> str:
        i, j = self._coin_index(i), self._coin_index(j)
        amount = self._positive(amount)
        bps = self._slippage_bps(max_slippage)

        expected = await self.get_dy(i, j, amount)
        min_recv_amount = expected * (10_000 - bps) // 10_000
        coin_in = self.coins[i].underlying_address
        await self._approve(coin_in, self.swap, amount)

        fn_name = "exchange_underlying" if self.pool.underlying_swaps else "exchange"
        return await self._send(
            fn_name,
            [i, j, amount, min_recv_amount],
            target=self.swap,
            abi=self.swap_abi,
            value=amount if is_native_token(coin_in) else 0,
        )
