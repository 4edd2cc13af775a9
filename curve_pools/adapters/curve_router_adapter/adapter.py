from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from eth_utils import to_checksum_address

from curve_pools.adapters.curve_pool_adapter.adapter import (
    CurvePoolAdapter,
    resolve_pool_data,
)
from curve_pools.core.adapters.BaseAdapter import BaseAdapter
from curve_pools.core.adapters.models import CurvePoolData
from curve_pools.core.config import get_chain_id, get_pools_config
from curve_pools.core.constants.base import ADAPTER_CURVE_ROUTER, DEFAULT_SLIPPAGE
from curve_pools.core.constants.contracts import (
    ADDRESS_PROVIDER_ID_EXCHANGE,
    CURVE_ADDRESS_PROVIDER,
    ZERO_ADDRESS,
)
from curve_pools.core.constants.curve_abi import (
    ADDRESS_PROVIDER_ABI,
    REGISTRY_ABI,
    REGISTRY_EXCHANGE_ABI,
)
from curve_pools.core.utils.tokens import get_token_decimals
from curve_pools.core.utils.transaction import SignCallback
from curve_pools.core.utils.units import format_units, parse_units
from curve_pools.core.utils.web3 import web3_from_chain_id


class CurveRouterAdapter(BaseAdapter):
    """Finds the best-rate Curve pool for a pair and swaps through it."""

    adapter_type = ADAPTER_CURVE_ROUTER

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        pools: Iterable[CurvePoolData | dict[str, Any]] | None = None,
        strategy_wallet_signing_callback: SignCallback | None = None,
    ) -> None:
        super().__init__("curve_router_adapter", config)
        cfg = config or {}
        self.chain_id = int(cfg.get("chain_id") or get_chain_id())
        self.address_provider = to_checksum_address(
            cfg.get("address_provider") or CURVE_ADDRESS_PROVIDER
        )
        self.strategy_wallet_signing_callback = strategy_wallet_signing_callback

        if pools is None:
            registry = cfg.get("pools")
            if registry is None:
                registry = get_pools_config()
            pools = [
                resolve_pool_data(pool_name=name, pools_config=registry)
                for name in registry
            ]
        self._pools_by_swap: dict[str, CurvePoolData] = {}
        for pool in pools:
            data = resolve_pool_data(pool)
            self._pools_by_swap[data.swap_address] = data

    def pool_by_swap_address(self, swap_address: str) -> CurvePoolData:
        pool = self._pools_by_swap.get(to_checksum_address(swap_address))
        if pool is None:
            raise ValueError(f"No pool metadata for swap address {swap_address}")
        return pool

    async def registry_exchange_address(self) -> str:
        async with web3_from_chain_id(self.chain_id) as web3:
            c = web3.eth.contract(
                address=self.address_provider, abi=ADDRESS_PROVIDER_ABI
            )
            address = await c.functions.get_address(ADDRESS_PROVIDER_ID_EXCHANGE).call()
            return to_checksum_address(address)

    async def registry_address(self) -> str:
        async with web3_from_chain_id(self.chain_id) as web3:
            c = web3.eth.contract(
                address=self.address_provider, abi=ADDRESS_PROVIDER_ABI
            )
            return to_checksum_address(await c.functions.get_registry().call())

    async def get_best_pool_and_output_raw(
        self, input_coin: str, output_coin: str, amount: str | int | float | Decimal
    ) -> tuple[str, int]:
        """Best pool for ``amount`` (human units) of input coin, raw output."""
        input_coin = to_checksum_address(input_coin)
        output_coin = to_checksum_address(output_coin)
        exchange = await self.registry_exchange_address()
        async with web3_from_chain_id(self.chain_id) as web3:
            decimals = await get_token_decimals(input_coin, self.chain_id, web3=web3)
            amount_raw = parse_units(amount, decimals)
            c = web3.eth.contract(address=exchange, abi=REGISTRY_EXCHANGE_ABI)
            pool_address, output = await c.functions.get_best_rate(
                input_coin, output_coin, amount_raw
            ).call()
        return to_checksum_address(pool_address), int(output)

    async def get_best_pool_and_output(
        self, input_coin: str, output_coin: str, amount: str | int | float | Decimal
    ) -> tuple[str, str]:
        pool_address, output = await self.get_best_pool_and_output_raw(
            input_coin, output_coin, amount
        )
        decimals = await get_token_decimals(output_coin, self.chain_id)
        return pool_address, format_units(output, decimals)

    async def swap(
        self,
        input_coin: str,
        output_coin: str,
        amount: str | int | float | Decimal,
        max_slippage: float | Decimal = DEFAULT_SLIPPAGE,
    ) -> str:
        input_coin = to_checksum_address(input_coin)
        output_coin = to_checksum_address(output_coin)

        pool_address, _ = await self.get_best_pool_and_output_raw(
            input_coin, output_coin, amount
        )
        if pool_address == ZERO_ADDRESS:
            raise ValueError(f"No Curve pool routes {input_coin} -> {output_coin}")
        pool = self.pool_by_swap_address(pool_address)

        registry = await self.registry_address()
        async with web3_from_chain_id(self.chain_id) as web3:
            decimals = await get_token_decimals(input_coin, self.chain_id, web3=web3)
            c = web3.eth.contract(address=registry, abi=REGISTRY_ABI)
            i, j, is_underlying = await c.functions.get_coin_indices(
                pool_address, input_coin, output_coin
            ).call()

        self.logger.info(
            f"Routing {amount} {input_coin} -> {output_coin} via {pool.name} "
            f"(i={i}, j={j}, underlying={is_underlying})"
        )
        adapter = CurvePoolAdapter(
            config=self.config,
            pool=pool,
            strategy_wallet_signing_callback=self.strategy_wallet_signing_callback,
        )
        return await adapter.exchange(
            int(i), int(j), parse_units(amount, decimals), max_slippage
        )
