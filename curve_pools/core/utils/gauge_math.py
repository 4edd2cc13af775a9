"""Gauge boost allocation math.

Pure fixed-point(18) helpers used to size gauge deposits against voting-escrow
share. Values are plain ints: vote fractions are scaled by 10**18 (``10**18 == 1.0``)
and balances / supplies are raw token units. Division truncates toward zero, the
way EVM and BigNumber integer division does, so results reproduce on-chain maths
exactly.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import NamedTuple

from curve_pools.core.constants.base import MANTISSA, MAX_INT256, MIN_INT256
from curve_pools.core.errors import FixedPointOverflow, InvalidInput, ValidationError

FixedInput = int | Decimal | str | float


class AccountShare(NamedTuple):
    account: str
    vote_fraction: int


class BalanceSnapshot(NamedTuple):
    account: str
    token_balance: int
    gauge_balance: int


def to_fixed(value: FixedInput) -> int:
    """Convert to fixed-point(18). Ints are taken as already scaled."""
    if isinstance(value, bool):
        raise InvalidInput("bool is not a fixed-point value")
    if isinstance(value, int):
        return value
    if not isinstance(value, (Decimal, str, float)):
        raise InvalidInput(f"Unsupported fixed-point value: {value!r}")
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidInput(f"Invalid fixed-point value: {value!r}") from exc
    if not dec.is_finite():
        raise InvalidInput(f"Invalid fixed-point value: {value!r}")
    with localcontext() as ctx:
        ctx.prec = 96
        return int((dec * MANTISSA).to_integral_value(rounding=ROUND_DOWN))


def _check_int256(value: int) -> int:
    if value > MAX_INT256 or value < MIN_INT256:
        raise FixedPointOverflow(f"Value out of int256 range: {value}")
    return value


def _div_trunc(numerator: int, denominator: int) -> int:
    if denominator == 0:
        raise InvalidInput("Division by zero")
    q = abs(numerator) // abs(denominator)
    return q if (numerator >= 0) == (denominator > 0) else -q


def mul_fixed(a: int, b: int) -> int:
    """``a * b / 1e18`` with the product checked against int256."""
    return _div_trunc(_check_int256(a * b), MANTISSA)


def div_fixed(a: int, b: int) -> int:
    """``a * 1e18 / b``; raises InvalidInput when ``b`` is zero."""
    if b == 0:
        raise InvalidInput("Division by zero")
    return _div_trunc(_check_int256(a * MANTISSA), b)


def vote_fraction(ve_balance: int, ve_total_supply: int) -> int:
    """Account share of voting-escrow supply as fixed-point(18)."""
    if ve_total_supply == 0:
        raise InvalidInput("Voting escrow total supply is zero")
    return div_fixed(int(ve_balance), int(ve_total_supply))


def _normalize_shares(
    shares: Mapping[str, FixedInput] | Iterable[tuple[str, FixedInput]],
) -> list[AccountShare]:
    items = shares.items() if isinstance(shares, Mapping) else shares
    out: list[AccountShare] = []
    seen: set[str] = set()
    for account, fraction in items:
        if account in seen:
            raise ValidationError(f"Duplicate account in shares: {account}")
        seen.add(account)
        out.append(AccountShare(account, to_fixed(fraction)))
    return out


def _normalize_balances(
    balances: Mapping[str, Sequence[int]] | Iterable[Sequence],
) -> dict[str, BalanceSnapshot]:
    rows = []
    if isinstance(balances, Mapping):
        for acct, vals in balances.items():
            if isinstance(vals, (str, bytes)) or not isinstance(vals, Sequence):
                raise ValidationError(
                    f"Balance for {acct} must be (token_balance, gauge_balance): {vals!r}"
                )
            rows.append((acct, *vals))
    else:
        for row in balances:
            if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
                raise ValidationError(
                    f"Balance entry must be (account, token_balance, gauge_balance): {row!r}"
                )
            rows.append(tuple(row))
    out: dict[str, BalanceSnapshot] = {}
    for row in rows:
        if len(row) != 3:
            raise ValidationError(
                f"Balance entry must be (account, token_balance, gauge_balance): {row!r}"
            )
        account, token_balance, gauge_balance = row
        if account in out:
            raise ValidationError(f"Duplicate account in balances: {account}")
        out[account] = BalanceSnapshot(account, int(token_balance), int(gauge_balance))
    return out


def _check_supply(gauge_total_supply: int) -> int:
    gauge_total_supply = int(gauge_total_supply)
    if gauge_total_supply == 0:
        raise InvalidInput("Gauge total supply is zero")
    return gauge_total_supply


def compute_boosted_deposit_cap(
    shares: Mapping[str, FixedInput] | Iterable[tuple[str, FixedInput]],
    gauge_total_supply: int,
) -> dict[str, int]:
    """Max deposit each account can make and still be fully boosted.

    ``cap = vote_fraction * gauge_total_supply``; balances are not consulted.
    """
    share_list = _normalize_shares(shares)
    if not share_list:
        return {}
    supply = _check_supply(gauge_total_supply)
    return {s.account: mul_fixed(s.vote_fraction, supply) for s in share_list}


def compute_optimal_deposits(
    shares: Mapping[str, FixedInput] | Iterable[tuple[str, FixedInput]],
    balances: Mapping[str, Sequence[int]] | Iterable[Sequence],
    gauge_total_supply: int,
) -> dict[str, int]:
    """Split the accounts' combined LP holdings so each deposit matches its boost.

    The total (wallet + gauge balance of every account) is redistributed and the
    result always sums to exactly that total.

    When the combined holdings are a smaller share of the gauge than the combined
    vote share, accounts are filled to their cap in input order until the total is
    used up; accounts after that point get nothing. Callers wanting a different
    priority must reorder ``shares``.

    Otherwise each account gets ``vote_fraction / total_share`` of the total and the
    truncation remainder goes to the first account.
    """
    share_list = _normalize_shares(shares)
    snapshots = _normalize_balances(balances)

    share_accounts = {s.account for s in share_list}
    if share_accounts != set(snapshots):
        missing = sorted(share_accounts - set(snapshots))
        extra = sorted(set(snapshots) - share_accounts)
        raise ValidationError(
            f"Shares and balances cover different accounts "
            f"(missing balances: {missing}, missing shares: {extra})"
        )
    if not share_list:
        return {}
    supply = _check_supply(gauge_total_supply)

    total_balance = sum(
        snapshots[s.account].token_balance + snapshots[s.account].gauge_balance
        for s in share_list
    )
    total_share = sum(s.vote_fraction for s in share_list)

    optimal = {s.account: 0 for s in share_list}
    if div_fixed(total_balance, supply) < total_share:
        remaining = total_balance
        for s in share_list:
            cap = mul_fixed(s.vote_fraction, supply)
            amount = cap if cap < remaining else remaining
            optimal[s.account] = amount
            remaining -= amount
            if remaining <= 0:
                break
        # caps are truncated, so a few units of dust can be left over
        if remaining != 0:
            optimal[share_list[0].account] += remaining
    else:
        if total_share != 0:
            for s in share_list:
                optimal[s.account] = mul_fixed(
                    div_fixed(s.vote_fraction, total_share), total_balance
                )
        first = share_list[0].account
        optimal[first] += total_balance - sum(optimal.values())

    return optimal
