from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from web3 import AsyncWeb3

from curve_pools.core.utils.transaction import (
    TransactionRevertedError,
    _get_transaction_from_address,
    _hex_hash,
    broadcast_transaction,
    encode_call,
    nonce_transaction,
    send_transaction,
    sign_and_send_transaction,
    wait_for_transaction_receipt,
)
from curve_pools.core.utils.web3 import get_transaction_chain_id

RANDOM_USER_0 = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
# Well-known anvil / hardhat dev key #0
DEV_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class TestGetChainId:
    def test_valid_chain_id(self):
        assert get_transaction_chain_id({"chainId": 1}) == 1

    def test_chain_id_as_string(self):
        assert get_transaction_chain_id({"chainId": "137"}) == 137

    def test_empty_transaction(self):
        with pytest.raises(ValueError, match="Transaction does not contain chainId"):
            get_transaction_chain_id({})


class TestGetFromAddress:
    def test_lowercase_address_converted_to_checksum(self):
        result = _get_transaction_from_address({"from": RANDOM_USER_0.lower()})
        assert AsyncWeb3.is_checksum_address(result)
        assert result == RANDOM_USER_0

    def test_empty_transaction(self):
        with pytest.raises(
            ValueError, match="Transaction does not contain from address"
        ):
            _get_transaction_from_address({})


class TestHexHash:
    def test_bytes(self):
        assert _hex_hash(b"\xab\xcd") == "0xabcd"

    def test_prefixed(self):
        assert _hex_hash("abcd") == "0xabcd"
        assert _hex_hash("0xabcd") == "0xabcd"


@pytest.mark.asyncio
class TestNonceTransaction:
    @patch("curve_pools.core.utils.transaction.web3s_from_chain_id")
    async def test_multiple_web3s_returns_max_nonce(self, mock_web3s_context):
        web3s = []
        for nonce in (5, 8, 6):
            web3 = MagicMock()
            web3.eth.get_transaction_count = AsyncMock(return_value=nonce)
            web3s.append(web3)
        mock_web3s_context.return_value.__aenter__.return_value = web3s

        transaction = {"from": RANDOM_USER_0, "chainId": 1, "data": "0xabcd"}
        result = await nonce_transaction(transaction)

        assert result["nonce"] == 8
        assert result["data"] == "0xabcd"
        assert "nonce" not in transaction
        for web3 in web3s:
            web3.eth.get_transaction_count.assert_called_once_with(
                RANDOM_USER_0, block_identifier="pending"
            )


@pytest.mark.asyncio
class TestReceipts:
    @patch("curve_pools.core.utils.transaction.web3_from_chain_id")
    async def test_broadcast_returns_prefixed_hash(self, mock_web3_context):
        web3 = MagicMock()
        web3.eth.send_raw_transaction = AsyncMock(return_value=b"\x12\x34")
        mock_web3_context.return_value.__aenter__.return_value = web3

        assert await broadcast_transaction(1, b"\x00") == "0x1234"

    @patch("curve_pools.core.utils.transaction.web3_from_chain_id")
    async def test_wait_raises_on_revert(self, mock_web3_context):
        web3 = MagicMock()
        web3.eth.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 0, "gasUsed": 50_000}
        )
        mock_web3_context.return_value.__aenter__.return_value = web3

        with pytest.raises(TransactionRevertedError, match="reverted") as exc_info:
            await wait_for_transaction_receipt(1, "0xdead")
        assert exc_info.value.txn_hash == "0xdead"
        assert exc_info.value.receipt["gasUsed"] == 50_000

    @patch("curve_pools.core.utils.transaction.web3_from_chain_id")
    async def test_wait_returns_receipt(self, mock_web3_context):
        web3 = MagicMock()
        web3.eth.wait_for_transaction_receipt = AsyncMock(
            return_value={"status": 1}
        )
        mock_web3_context.return_value.__aenter__.return_value = web3

        assert await wait_for_transaction_receipt(1, "0xbeef") == {"status": 1}


@pytest.mark.asyncio
class TestSendTransaction:
    async def test_requires_sign_callback(self):
        with pytest.raises(ValueError, match="sign_callback"):
            await send_transaction({"from": RANDOM_USER_0, "chainId": 1}, None)

    @patch("curve_pools.core.utils.transaction.wait_for_transaction_receipt")
    @patch("curve_pools.core.utils.transaction.broadcast_transaction")
    @patch("curve_pools.core.utils.transaction.nonce_transaction")
    async def test_returns_hash_on_success(
        self, mock_nonce, mock_broadcast, mock_wait_receipt
    ):
        mock_nonce.return_value = {"from": RANDOM_USER_0, "chainId": 1, "nonce": 3}
        mock_broadcast.return_value = "0xabc"
        mock_wait_receipt.return_value = {"status": 1}
        signed = []

        async def sign_callback(tx: dict) -> bytes:
            signed.append(tx)
            return b"\x00"

        txn_hash = await send_transaction(
            {"from": RANDOM_USER_0, "chainId": 1}, sign_callback
        )
        assert txn_hash == "0xabc"
        assert signed[0]["nonce"] == 3
        mock_broadcast.assert_called_once_with(1, b"\x00")
        mock_wait_receipt.assert_called_once_with(1, "0xabc")

    @patch("curve_pools.core.utils.transaction.wait_for_transaction_receipt")
    @patch("curve_pools.core.utils.transaction.broadcast_transaction")
    @patch("curve_pools.core.utils.transaction.nonce_transaction")
    async def test_skips_receipt_when_not_waiting(
        self, mock_nonce, mock_broadcast, mock_wait_receipt
    ):
        mock_nonce.return_value = {"from": RANDOM_USER_0, "chainId": 1, "nonce": 0}
        mock_broadcast.return_value = "0xabc"

        async def sign_callback(_tx: dict) -> bytes:
            return b"\x00"

        await send_transaction(
            {"from": RANDOM_USER_0, "chainId": 1},
            sign_callback,
            wait_for_receipt=False,
        )
        mock_wait_receipt.assert_not_called()

    @patch("curve_pools.core.utils.transaction.wait_for_transaction_receipt")
    @patch("curve_pools.core.utils.transaction.broadcast_transaction")
    @patch("curve_pools.core.utils.transaction.nonce_transaction")
    async def test_raises_on_revert(
        self, mock_nonce, mock_broadcast, mock_wait_receipt
    ):
        mock_nonce.return_value = {"from": RANDOM_USER_0, "chainId": 1, "nonce": 1}
        mock_broadcast.return_value = "0xdeadbeef"
        mock_wait_receipt.side_effect = TransactionRevertedError("0xdeadbeef")

        async def sign_callback(_tx: dict) -> bytes:
            return b"\x00"

        with pytest.raises(TransactionRevertedError, match="Transaction reverted"):
            await send_transaction(
                {"from": RANDOM_USER_0, "chainId": 1}, sign_callback
            )

    @patch("curve_pools.core.utils.transaction.wait_for_transaction_receipt")
    @patch("curve_pools.core.utils.transaction.broadcast_transaction")
    @patch("curve_pools.core.utils.transaction.nonce_transaction")
    async def test_sign_and_send_signs_with_private_key(
        self, mock_nonce, mock_broadcast, mock_wait_receipt
    ):
        mock_nonce.side_effect = lambda tx: {**tx, "nonce": 3}
        mock_broadcast.return_value = "0xabc"
        mock_wait_receipt.return_value = {"status": 1}
        tx = {
            "chainId": 1,
            "from": DEV_ADDRESS,
            "to": RANDOM_USER_0,
            "data": "0x1234",
            "value": 0,
            "gas": 100_000,
            "gasPrice": 10**9,
        }

        assert await sign_and_send_transaction(tx, DEV_PRIVATE_KEY) == "0xabc"
        chain_id, raw = mock_broadcast.call_args.args
        assert chain_id == 1
        assert isinstance(raw, bytes) and len(raw) > 0

    @patch("curve_pools.core.utils.transaction.send_transaction")
    async def test_sign_and_send_requires_gas_fields(self, mock_send):
        tx = {
            "chainId": 1,
            "from": DEV_ADDRESS,
            "to": RANDOM_USER_0,
            "data": "0x1234",
            "value": 0,
        }
        with pytest.raises(ValueError, match="'gas'"):
            await sign_and_send_transaction(tx, DEV_PRIVATE_KEY)
        with pytest.raises(ValueError, match="gasPrice"):
            await sign_and_send_transaction({**tx, "gas": 21_000}, DEV_PRIVATE_KEY)
        mock_send.assert_not_called()


@pytest.mark.asyncio
class TestEncodeCall:
    @patch("curve_pools.core.utils.transaction.web3_from_chain_id")
    async def test_builds_unsigned_transaction(self, mock_web3_context):
        contract = MagicMock()
        contract.encode_abi = MagicMock(return_value="0x1234")
        web3 = MagicMock()
        web3.to_checksum_address = AsyncWeb3.to_checksum_address
        web3.eth.contract = MagicMock(return_value=contract)
        mock_web3_context.return_value.__aenter__.return_value = web3

        tx = await encode_call(
            target=RANDOM_USER_0.lower(),
            abi=[],
            fn_name="deposit",
            args=[1],
            from_address=RANDOM_USER_0.lower(),
            chain_id=1,
            value=5,
        )
        assert tx == {
            "chainId": 1,
            "from": RANDOM_USER_0,
            "to": RANDOM_USER_0,
            "data": "0x1234",
            "value": 5,
        }
        contract.encode_abi.assert_called_once_with("deposit", [1])

    @patch("curve_pools.core.utils.transaction.web3_from_chain_id")
    async def test_wraps_encoding_errors(self, mock_web3_context):
        contract = MagicMock()
        contract.encode_abi = MagicMock(side_effect=TypeError("bad args"))
        web3 = MagicMock()
        web3.eth.contract = MagicMock(return_value=contract)
        mock_web3_context.return_value.__aenter__.return_value = web3

        with pytest.raises(ValueError, match="Failed to encode deposit"):
            await encode_call(
                target=RANDOM_USER_0,
                abi=[],
                fn_name="deposit",
                args=["x"],
                from_address=RANDOM_USER_0,
                chain_id=1,
            )
