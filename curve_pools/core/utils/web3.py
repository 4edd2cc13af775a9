from contextlib import asynccontextmanager

from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.middleware import ExtraDataToPOAMiddleware

from curve_pools.core.config import get_rpc_urls
from curve_pools.core.constants.chains import POA_MIDDLEWARE_CHAIN_IDS


def _get_rpcs_for_chain_id(chain_id: int) -> list[str]:
    mapping = get_rpc_urls()
    rpcs = mapping.get(str(chain_id))
    if rpcs is None:
        rpcs = mapping.get(chain_id)  # allow int keys
    if rpcs is None:
        raise ValueError(f"No RPCs configured for chain ID {chain_id}")
    if isinstance(rpcs, str):
        return [rpcs]
    if not rpcs:
        raise ValueError(f"Empty RPC list configured for chain ID {chain_id}")
    return list(rpcs)


def _get_web3(rpc: str, chain_id: int) -> AsyncWeb3:
    provider = AsyncHTTPProvider(
        rpc, request_kwargs={"headers": AsyncHTTPProvider.get_request_headers()}
    )
    web3 = AsyncWeb3(provider)
    if chain_id in POA_MIDDLEWARE_CHAIN_IDS:
        web3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return web3


def get_transaction_chain_id(transaction: dict) -> int:
    if "chainId" not in transaction:
        raise ValueError("Transaction does not contain chainId")
    return int(transaction["chainId"])


def get_web3s_from_chain_id(chain_id: int) -> list[AsyncWeb3]:
    rpcs = _get_rpcs_for_chain_id(chain_id)
    return [_get_web3(rpc, chain_id) for rpc in rpcs]


async def _disconnect(web3: AsyncWeb3) -> None:
    try:
        await web3.provider.disconnect()
    except Exception as exc:
        logger.debug(f"Provider disconnect failed: {exc}")


@asynccontextmanager
async def web3s_from_chain_id(chain_id: int):
    web3s = get_web3s_from_chain_id(chain_id)
    try:
        yield web3s
    finally:
        for web3 in web3s:
            await _disconnect(web3)


@asynccontextmanager
async def web3_from_chain_id(chain_id: int):
    web3s = get_web3s_from_chain_id(chain_id)
    try:
        yield web3s[0]
    finally:
        await _disconnect(web3s[0])
