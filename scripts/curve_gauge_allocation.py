#!/usr/bin/env python3

from __future__ import annotations

import argparse
import asyncio
import json

from eth_utils import to_checksum_address

from curve_pools.adapters.curve_pool_adapter.adapter import CurvePoolAdapter
from curve_pools.core.config import CONFIG, get_chain_id, load_config, set_rpc_urls


async def main() -> int:
    p = argparse.ArgumentParser(
        description="Curve gauge boost caps and optimal LP split across accounts"
    )
    p.add_argument("--config", default="config.json")
    p.add_argument("--pool", required=True, help="pool name under config 'pools'")
    p.add_argument(
        "--rpc-url", action="append", help="override the configured RPC for chain_id"
    )
    p.add_argument("accounts", nargs="+", help="accounts to allocate across")
    args = p.parse_args()

    load_config(args.config, require_exists=True)
    if args.rpc_url:
        set_rpc_urls({str(get_chain_id()): args.rpc_url})
    accounts = [to_checksum_address(a) for a in args.accounts]

    adapter = CurvePoolAdapter(config=dict(CONFIG), pool_name=args.pool)
    caps = await adapter.gauge_max_boosted_deposit(accounts)
    balances = await adapter.balances(accounts)
    optimal = await adapter.gauge_optimal_deposits(accounts)

    state = {
        "pool": adapter.pool_name,
        "gauge": adapter.gauge,
        "accounts": {
            a: {
                "lp_balance": str(balances[a][0]),
                "gauge_balance": str(balances[a][1]),
                "max_boosted_deposit": caps[a],
                "optimal_deposit": optimal[a],
            }
            for a in accounts
        },
    }
    print(json.dumps(state, indent=2, sort_keys=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
