"""
Quote Calculator
================
Constant-product spot quotes against bonding-curve virtual reserves.

Every result is floored, the same integer truncation the curve program
applies, so a local estimate never exceeds what the program allows.
Rational arithmetic (Fraction over the decimal form of the slippage)
keeps floats out of the amounts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Union

from pumpfleet.core.constants import LAMPORTS_PER_SOL
from pumpfleet.shared.errors import InvalidInput

Number = Union[int, float, str, Decimal]


@dataclass(frozen=True)
class BuyQuote:
    sol_in: int  # lamports
    token_out: int
    max_sol_cost: int  # lamports


@dataclass(frozen=True)
class SellQuote:
    token_in: int
    min_sol_out: int  # lamports


def _exact(value: Number, name: str) -> Fraction:
    """Exact rational from the decimal form (0.1 stays 1/10, not a binary float)."""
    try:
        return Fraction(Decimal(str(value)))
    except (InvalidOperation, ValueError, OverflowError):
        raise InvalidInput(f"{name} is not a number: {value!r}") from None


def _check_positive(**values: int) -> None:
    for name, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInput(f"{name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidInput(f"{name} must be > 0, got {value}")


def _slippage(slippage: Number) -> Fraction:
    s = _exact(slippage, "slippage")
    if s < 0:
        raise InvalidInput(f"slippage must be >= 0, got {slippage}")
    return s


def quote_buy(sol_reserve: int, token_reserve: int, sol_in: int, slippage: Number) -> BuyQuote:
    """
    Tokens received for `sol_in` lamports, and the most SOL the buyer will pay.

        token_out    = floor(sol_in * token_reserve / sol_reserve)
        max_sol_cost = floor(sol_in * (1 + slippage))
    """
    _check_positive(sol_reserve=sol_reserve, token_reserve=token_reserve, sol_in=sol_in)
    s = _slippage(slippage)

    token_out = (sol_in * token_reserve) // sol_reserve
    max_sol_cost = math.floor(sol_in * (1 + s))
    return BuyQuote(sol_in=sol_in, token_out=token_out, max_sol_cost=max_sol_cost)


def quote_sell(sol_reserve: int, token_reserve: int, token_in: int, slippage: Number) -> SellQuote:
    """
    Least SOL the seller accepts for `token_in` tokens.

        min_sol_out = floor(token_in * (1 - slippage) * sol_reserve / token_reserve)
    """
    _check_positive(sol_reserve=sol_reserve, token_reserve=token_reserve, token_in=token_in)
    s = _slippage(slippage)
    if s >= 1:
        raise InvalidInput(f"sell slippage must be < 1, got {slippage}")

    min_sol_out = math.floor(token_in * (1 - s) * sol_reserve / token_reserve)
    return SellQuote(token_in=token_in, min_sol_out=min_sol_out)


def sol_to_lamports(sol: Number) -> int:
    """SOL -> lamports, floored. Negative amounts are rejected."""
    value = _exact(sol, "sol")
    if value < 0:
        raise InvalidInput(f"SOL amount must be >= 0, got {sol}")
    return math.floor(value * LAMPORTS_PER_SOL)


def lamports_to_sol(lamports: int) -> Decimal:
    return Decimal(lamports) / Decimal(LAMPORTS_PER_SOL)
