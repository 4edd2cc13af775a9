from typing import Any

from eth_utils import to_checksum_address
from web3 import AsyncWeb3

from curve_pools.core.constants.contracts import TOKENS_REQUIRING_APPROVAL_RESET
from curve_pools.core.constants.erc20_abi import ERC20_ABI
from curve_pools.core.utils.transaction import SignCallback, send_transaction
from curve_pools.core.utils.web3 import web3_from_chain_id

NATIVE_TOKEN_ADDRESSES: set = {
    "0x0000000000000000000000000000000000000000",
    "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee",
}


def is_native_token(token_address: str | None) -> bool:
    if token_address is None:
        return True
    normalized = str(token_address).strip().lower()
    if normalized in ("", "native"):
        return True
    return normalized in NATIVE_TOKEN_ADDRESSES


async def get_token_decimals(
    token_address: str | None,
    chain_id: int,
    *,
    web3: AsyncWeb3 | None = None,
    default_native_decimals: int = 18,
) -> int:
    async def _read_with_web3(w3: AsyncWeb3) -> int:
        if is_native_token(token_address):
            return int(default_native_decimals)

        checksum_token = w3.to_checksum_address(str(token_address))
        contract = w3.eth.contract(address=checksum_token, abi=ERC20_ABI)
        return int(await contract.functions.decimals().call())

    if web3 is None:
        async with web3_from_chain_id(chain_id) as w3:
            return await _read_with_web3(w3)
    return await _read_with_web3(web3)


async def get_token_allowance(
    token_address: str, chain_id: int, owner_address: str, spender_address: str
) -> int:
    async with web3_from_chain_id(chain_id) as web3:
        contract = web3.eth.contract(
            address=web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        allowance = await contract.functions.allowance(
            web3.to_checksum_address(owner_address),
            web3.to_checksum_address(spender_address),
        ).call(block_identifier="pending")
        return int(allowance)


async def build_approve_transaction(
    from_address: str,
    chain_id: int,
    token_address: str,
    spender_address: str,
    amount: int,
) -> dict:
    async with web3_from_chain_id(chain_id) as web3:
        contract = web3.eth.contract(
            address=web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        data = contract.encode_abi(
            "approve",
            [
                web3.to_checksum_address(spender_address),
                amount,
            ],
        )
        return {
            "to": web3.to_checksum_address(token_address),
            "from": web3.to_checksum_address(from_address),
            "data": data,
            "chainId": chain_id,
        }


async def ensure_allowance(
    *,
    token_address: str,
    owner: str,
    spender: str,
    amount: int,
    chain_id: int,
    signing_callback: SignCallback | None,
    approval_amount: int | None = None,
) -> tuple[bool, Any]:
    if is_native_token(token_address):
        return True, {}

    allowance = await get_token_allowance(token_address, chain_id, owner, spender)
    if allowance >= amount:
        return True, {}

    if (
        int(chain_id),
        to_checksum_address(token_address),
    ) in TOKENS_REQUIRING_APPROVAL_RESET and allowance > 0:
        clear_transaction = await build_approve_transaction(
            from_address=owner,
            chain_id=chain_id,
            token_address=token_address,
            spender_address=spender,
            amount=0,
        )
        await send_transaction(clear_transaction, signing_callback)

    approve_tx = await build_approve_transaction(
        from_address=owner,
        chain_id=chain_id,
        token_address=token_address,
        spender_address=spender,
        amount=approval_amount if approval_amount is not None else amount,
    )
    txn_hash = await send_transaction(approve_tx, signing_callback)
    return True, txn_hash
