from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from curve_pools.core.constants.base import MAX_UINT256
from curve_pools.core.utils.tokens import (
    ensure_allowance,
    get_token_decimals,
    is_native_token,
)

OWNER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
SPENDER = "0x" + "22" * 20
TOKEN = "0x" + "55" * 20
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"


async def _sign(_tx: dict) -> bytes:
    return b""


def test_is_native_token():
    assert is_native_token(None)
    assert is_native_token("native")
    assert is_native_token("0x0000000000000000000000000000000000000000")
    assert is_native_token("0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE")
    assert not is_native_token(TOKEN)


@pytest.mark.asyncio
class TestEnsureAllowance:
    @patch("curve_pools.core.utils.tokens.send_transaction")
    @patch("curve_pools.core.utils.tokens.get_token_allowance")
    async def test_native_token_is_skipped(self, mock_allowance, mock_send):
        ok, tx = await ensure_allowance(
            token_address="0x0000000000000000000000000000000000000000",
            owner=OWNER,
            spender=SPENDER,
            amount=10,
            chain_id=1,
            signing_callback=_sign,
        )
        assert ok and tx == {}
        mock_allowance.assert_not_called()
        mock_send.assert_not_called()

    @patch("curve_pools.core.utils.tokens.send_transaction")
    @patch("curve_pools.core.utils.tokens.get_token_allowance")
    async def test_sufficient_allowance_is_skipped(self, mock_allowance, mock_send):
        mock_allowance.return_value = 100

        ok, tx = await ensure_allowance(
            token_address=TOKEN,
            owner=OWNER,
            spender=SPENDER,
            amount=100,
            chain_id=1,
            signing_callback=_sign,
        )
        assert ok and tx == {}
        mock_send.assert_not_called()

    @patch("curve_pools.core.utils.tokens.build_approve_transaction")
    @patch("curve_pools.core.utils.tokens.send_transaction")
    @patch("curve_pools.core.utils.tokens.get_token_allowance")
    async def test_approves_requested_amount(
        self, mock_allowance, mock_send, mock_build
    ):
        mock_allowance.return_value = 0
        mock_build.return_value = {"approve": True}
        mock_send.return_value = "0xabc"

        ok, tx_hash = await ensure_allowance(
            token_address=TOKEN,
            owner=OWNER,
            spender=SPENDER,
            amount=100,
            chain_id=1,
            signing_callback=_sign,
            approval_amount=MAX_UINT256,
        )
        assert ok and tx_hash == "0xabc"
        assert mock_build.call_args.kwargs["amount"] == MAX_UINT256
        mock_send.assert_called_once_with({"approve": True}, _sign)

    @patch("curve_pools.core.utils.tokens.build_approve_transaction", new_callable=AsyncMock)
    @patch("curve_pools.core.utils.tokens.send_transaction", new_callable=AsyncMock)
    @patch("curve_pools.core.utils.tokens.get_token_allowance", new_callable=AsyncMock)
    async def test_resets_usdt_before_raising(
        self, mock_allowance, mock_send, mock_build
    ):
        mock_allowance.return_value = 5
        mock_send.return_value = "0xabc"

        await ensure_allowance(
            token_address=USDT,
            owner=OWNER,
            spender=SPENDER,
            amount=100,
            chain_id=1,
            signing_callback=_sign,
        )
        amounts = [c.kwargs["amount"] for c in mock_build.call_args_list]
        assert amounts == [0, 100]
        assert mock_send.call_count == 2


@pytest.mark.asyncio
async def test_get_token_decimals():
    decimals_fn = MagicMock()
    decimals_fn.call = AsyncMock(return_value=6)
    contract = MagicMock()
    contract.functions.decimals = MagicMock(return_value=decimals_fn)
    web3 = MagicMock()
    web3.to_checksum_address = lambda a: a
    web3.eth.contract = MagicMock(return_value=contract)

    assert await get_token_decimals(TOKEN, 1, web3=web3) == 6
    assert await get_token_decimals(None, 1, web3=web3) == 18
    web3.eth.contract.assert_called_once()
