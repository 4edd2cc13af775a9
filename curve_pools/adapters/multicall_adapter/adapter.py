from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from hexbytes import HexBytes

from curve_pools.core.adapters.BaseAdapter import BaseAdapter
from curve_pools.core.constants.base import ADAPTER_MULTICALL
from curve_pools.core.constants.contracts import MULTICALL3_ADDRESS
from curve_pools.core.constants.erc20_abi import ERC20_ABI
from curve_pools.core.utils.tokens import is_native_token

MULTICALL3_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"internalType": "address", "name": "target", "type": "address"},
                    {"internalType": "bytes", "name": "callData", "type": "bytes"},
                ],
                "internalType": "struct Multicall3.Call[]",
                "name": "calls",
                "type": "tuple[]",
            }
        ],
        "name": "aggregate",
        "outputs": [
            {"internalType": "uint256", "name": "blockNumber", "type": "uint256"},
            {"internalType": "bytes[]", "name": "returnData", "type": "bytes[]"},
        ],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [{"internalType": "address", "name": "addr", "type": "address"}],
        "name": "getEthBalance",
        "outputs": [
            {"internalType": "uint256", "name": "balance", "type": "uint256"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


@dataclass(frozen=True)
class MulticallCall:
    target: str
    call_data: bytes

    def as_tuple(self) -> tuple[str, bytes]:
        return self.target, self.call_data


@dataclass
class MulticallResult:
    block_number: int
    return_data: Sequence[bytes]


class MulticallAdapter(BaseAdapter):
    """Batches view calls into a single Multicall3 ``aggregate`` round-trip."""

    adapter_type = ADAPTER_MULTICALL

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        web3: Any | None = None,
        address: str | None = None,
    ) -> None:
        super().__init__("multicall_adapter", config)

        if web3 is None:
            raise ValueError("MulticallAdapter requires web3 instance")
        self.web3 = web3

        checksum_address = self.web3.to_checksum_address(address or MULTICALL3_ADDRESS)
        self.contract = self.web3.eth.contract(
            address=checksum_address, abi=MULTICALL3_ABI
        )

    async def aggregate(
        self,
        calls: Iterable[MulticallCall | tuple[str, bytes | str]],
        *,
        block_identifier: str | int | None = None,
    ) -> MulticallResult:
        encoded_calls = [self._coerce_call(call) for call in calls]
        if not encoded_calls:
            return MulticallResult(block_number=0, return_data=[])

        self.logger.debug(f"Multicall aggregate with {len(encoded_calls)} calls")
        call_fn = self.contract.functions.aggregate(encoded_calls).call
        if block_identifier is None:
            block_number, return_data = await call_fn()
        else:
            block_number, return_data = await call_fn(
                block_identifier=block_identifier
            )
        payload = tuple(self._to_bytes(r) for r in return_data)
        return MulticallResult(block_number=int(block_number), return_data=payload)

    async def aggregate_uint256(
        self,
        calls: Iterable[MulticallCall | tuple[str, bytes | str]],
        *,
        block_identifier: str | int | None = None,
    ) -> list[int]:
        result = await self.aggregate(calls, block_identifier=block_identifier)
        return [self.decode_uint256(r) for r in result.return_data]

    def build_call(self, target: str, call_data: bytes | str) -> MulticallCall:
        checksum = self.web3.to_checksum_address(target)
        return MulticallCall(target=checksum, call_data=self._to_bytes(call_data))

    def encode_contract_call(
        self,
        target: str,
        abi: list[dict[str, Any]],
        fn_name: str,
        args: list[Any] | None = None,
    ) -> MulticallCall:
        addr = self.web3.to_checksum_address(target)
        contract = self.web3.eth.contract(address=addr, abi=abi)
        calldata = contract.encode_abi(fn_name, args=list(args or []))
        return self.build_call(addr, calldata)

    def encode_erc20_balance(self, token: str, account: str) -> MulticallCall:
        return self.encode_contract_call(
            token, ERC20_ABI, "balanceOf", [self.web3.to_checksum_address(account)]
        )

    def encode_eth_balance(self, account: str) -> MulticallCall:
        calldata = self.contract.encode_abi(
            "getEthBalance", args=[self.web3.to_checksum_address(account)]
        )
        return self.build_call(self.contract.address, calldata)

    def encode_balance(self, token: str, account: str) -> MulticallCall:
        if is_native_token(token):
            return self.encode_eth_balance(account)
        return self.encode_erc20_balance(token, account)

    def encode_total_supply(self, token: str) -> MulticallCall:
        return self.encode_contract_call(token, ERC20_ABI, "totalSupply")

    @staticmethod
    def decode_uint256(data: bytes | str) -> int:
        raw = MulticallAdapter._to_bytes(data)
        if len(raw) < 32:
            raw = raw.rjust(32, b"\x00")
        return int.from_bytes(raw[-32:], byteorder="big")

    def _coerce_call(
        self, call: MulticallCall | tuple[str, bytes | str]
    ) -> tuple[str, bytes]:
        if isinstance(call, MulticallCall):
            target, call_data = call.target, call.call_data
        else:
            target, call_data = call
        return self.web3.to_checksum_address(target), self._to_bytes(call_data)

    @staticmethod
    def _to_bytes(data: bytes | str | HexBytes) -> bytes:
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
        if isinstance(data, str):
            if data.startswith("0x"):
                return bytes.fromhex(data[2:])
            return data.encode()
        raise TypeError(f"Unsupported calldata type: {type(data).__name__}")
