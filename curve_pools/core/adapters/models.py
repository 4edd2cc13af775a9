from typing import Any

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, Field, field_validator, model_validator


def _checksum(value: Any) -> str:
    if not isinstance(value, str) or not is_address(value):
        raise ValueError(f"invalid address: {value!r}")
    return to_checksum_address(value)


class CurveCoin(BaseModel):
    address: str
    underlying_address: str | None = None
    decimals: int = Field(ge=0, le=77)
    symbol: str | None = None

    @field_validator("address", "underlying_address")
    @classmethod
    def _validate_address(cls, value: str | None) -> str | None:
        return None if value is None else _checksum(value)

    @model_validator(mode="after")
    def _default_underlying(self) -> "CurveCoin":
        if self.underlying_address is None:
            self.underlying_address = self.address
        return self


class CurvePoolData(BaseModel):
    """Registry metadata for one pool, as supplied by the caller or config."""

    name: str
    swap_address: str
    zap_address: str | None = None
    lp_token_address: str
    gauge_addresses: list[str] = Field(min_length=1)
    coins: list[CurveCoin] = Field(min_length=2)
    # Lending / meta pools route swaps through exchange_underlying
    underlying_swaps: bool = False

    @field_validator("swap_address", "lp_token_address", "zap_address")
    @classmethod
    def _validate_address(cls, value: str | None) -> str | None:
        return None if value is None else _checksum(value)

    @field_validator("gauge_addresses")
    @classmethod
    def _validate_gauges(cls, value: list[str]) -> list[str]:
        return [_checksum(v) for v in value]

    @property
    def gauge_address(self) -> str:
        return self.gauge_addresses[0]

    @property
    def n_coins(self) -> int:
        return len(self.coins)
