import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3

from curve_pools.core.constants.base import (
    DEFAULT_RECEIPT_POLL_INTERVAL,
    DEFAULT_TRANSACTION_TIMEOUT,
)
from curve_pools.core.utils.web3 import (
    get_transaction_chain_id,
    web3_from_chain_id,
    web3s_from_chain_id,
)

# Signing callbacks receive the unsigned transaction dict and return raw signed
# bytes. Gas pricing and limits are the wallet layer's responsibility.
SignCallback = Callable[[dict], Awaitable[bytes]]


class TransactionRevertedError(RuntimeError):
    def __init__(
        self,
        txn_hash: str,
        receipt: dict[str, Any] | None = None,
        message: str | None = None,
    ):
        self.txn_hash = txn_hash
        self.receipt = receipt or {}
        super().__init__(message or f"Transaction reverted: {txn_hash}")


def _get_transaction_from_address(transaction: dict) -> str:
    if "from" not in transaction:
        raise ValueError("Transaction does not contain from address")
    return AsyncWeb3.to_checksum_address(transaction["from"])


def _hex_hash(txn_hash: Any) -> str:
    if isinstance(txn_hash, (bytes, bytearray)):
        txn_hash = bytes(txn_hash).hex()
    elif hasattr(txn_hash, "hex") and not isinstance(txn_hash, str):
        txn_hash = txn_hash.hex()
    txn_hash = str(txn_hash)
    return txn_hash if txn_hash.startswith("0x") else f"0x{txn_hash}"


async def nonce_transaction(transaction: dict):
    transaction = transaction.copy()

    from_address = _get_transaction_from_address(transaction)

    async def _get_nonce(web3: AsyncWeb3, from_address: str) -> int:
        return await web3.eth.get_transaction_count(
            from_address, block_identifier="pending"
        )

    async with web3s_from_chain_id(get_transaction_chain_id(transaction)) as web3s:
        nonces = await asyncio.gather(
            *[_get_nonce(web3, from_address) for web3 in web3s]
        )
        transaction["nonce"] = max(nonces)

    return transaction


async def broadcast_transaction(chain_id: int, signed_transaction: bytes) -> str:
    async with web3_from_chain_id(chain_id) as web3:
        tx_hash = await web3.eth.send_raw_transaction(signed_transaction)
        return _hex_hash(tx_hash)


async def wait_for_transaction_receipt(
    chain_id: int,
    txn_hash: str,
    poll_interval: float = DEFAULT_RECEIPT_POLL_INTERVAL,
    timeout: int = DEFAULT_TRANSACTION_TIMEOUT,
) -> dict:
    txn_hash = _hex_hash(txn_hash)
    async with web3_from_chain_id(chain_id) as web3:
        receipt = await web3.eth.wait_for_transaction_receipt(
            txn_hash, poll_latency=poll_interval, timeout=timeout
        )
    receipt = dict(receipt)
    if receipt.get("status") == 0:
        raise TransactionRevertedError(
            txn_hash, receipt, message=f"Transaction reverted (status=0): {txn_hash}"
        )
    return receipt


async def send_transaction(
    transaction: dict, sign_callback: SignCallback | None, wait_for_receipt=True
) -> str:
    if sign_callback is None:
        raise ValueError("sign_callback must be provided to send transaction")

    chain_id = get_transaction_chain_id(transaction)
    transaction = await nonce_transaction(transaction)
    logger.info(f"Broadcasting transaction {transaction}...")
    signed_transaction = await sign_callback(transaction)
    txn_hash = await broadcast_transaction(chain_id, signed_transaction)
    logger.info(f"Transaction broadcasted: {txn_hash}")
    if wait_for_receipt:
        await wait_for_transaction_receipt(chain_id, txn_hash)
        logger.info(f"Transaction confirmed: {txn_hash}")
    return txn_hash


_GAS_PRICE_FIELDS = ("gasPrice", "maxFeePerGas")


async def sign_and_send_transaction(
    transaction: dict, private_key: str, wait_for_receipt: bool = True
) -> str:
    """Sign with a raw private key. Gas fields must already be on ``transaction``."""
    if "gas" not in transaction or not any(k in transaction for k in _GAS_PRICE_FIELDS):
        raise ValueError(
            "Transaction must include 'gas' and 'gasPrice' or 'maxFeePerGas' "
            "to be signed with a private key"
        )
    account = Account.from_key(private_key)

    async def sign_callback(tx: dict) -> bytes:
        signed = account.sign_transaction(tx)
        return bytes(signed.raw_transaction)

    return await send_transaction(transaction, sign_callback, wait_for_receipt)


async def encode_call(
    *,
    target: str,
    abi: list[dict[str, Any]],
    fn_name: str,
    args: list[Any],
    from_address: str,
    chain_id: int,
    value: int = 0,
) -> dict[str, Any]:
    async with web3_from_chain_id(chain_id) as web3:
        try:
            contract = web3.eth.contract(
                address=web3.to_checksum_address(target),
                abi=abi,
            )
            data = contract.encode_abi(fn_name, args)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Failed to encode {fn_name}: {exc}") from exc

        return {
            "chainId": int(chain_id),
            "from": AsyncWeb3.to_checksum_address(from_address),
            "to": AsyncWeb3.to_checksum_address(target),
            "data": data,
            "value": int(value),
        }
