"""
Instruction Factory
===================
Builds the pump.fun curve instructions a trade submits. No I/O: the same
accounts and amounts always give the same bytes.

Responsibilities:
- Build buy / sell curve instructions (fixed positional account order)
- Encode operands: u64 LE discriminator + two u64 LE amounts
- Set ComputeBudget limit and optional priority fee
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from pumpfleet.core.constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    LAMPORTS_PER_SOL,
    PUMP_BUY_DISCRIMINATOR,
    PUMP_FUN_EVENT_AUTHORITY,
    PUMP_FUN_FEE_RECIPIENT,
    PUMP_FUN_GLOBAL,
    PUMP_FUN_PROGRAM_ID,
    PUMP_SELL_DISCRIMINATOR,
    RENT_SYSVAR_ID,
    SPL_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    U64_MAX,
)
from pumpfleet.shared.errors import EncodingOverflow, InvalidInput


# ═══════════════════════════════════════════════════════════════════════════════
# ACCOUNT SCHEMAS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProgramAccounts:
    """Protocol-wide accounts. Defaults are pump.fun mainnet."""

    program: Pubkey = field(default_factory=lambda: Pubkey.from_string(PUMP_FUN_PROGRAM_ID))
    global_config: Pubkey = field(default_factory=lambda: Pubkey.from_string(PUMP_FUN_GLOBAL))
    fee_recipient: Pubkey = field(default_factory=lambda: Pubkey.from_string(PUMP_FUN_FEE_RECIPIENT))
    event_authority: Pubkey = field(default_factory=lambda: Pubkey.from_string(PUMP_FUN_EVENT_AUTHORITY))
    system_program: Pubkey = field(default_factory=lambda: Pubkey.from_string(SYSTEM_PROGRAM_ID))
    token_program: Pubkey = field(default_factory=lambda: Pubkey.from_string(SPL_TOKEN_PROGRAM_ID))
    associated_token_program: Pubkey = field(
        default_factory=lambda: Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID)
    )
    rent: Pubkey = field(default_factory=lambda: Pubkey.from_string(RENT_SYSVAR_ID))


@dataclass(frozen=True)
class CurveAccounts:
    """Per-trade accounts: which curve, and who is trading."""

    mint: Pubkey
    bonding_curve: Pubkey
    associated_bonding_curve: Pubkey
    trader_token_account: Pubkey
    trader: Pubkey


# ═══════════════════════════════════════════════════════════════════════════════
# OPERAND ENCODING
# ═══════════════════════════════════════════════════════════════════════════════

_U64_TRIPLE = struct.Struct("<QQQ")


def _check_u64(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{name} must be an integer, got {value!r}")
    if value < 0 or value > U64_MAX:
        raise EncodingOverflow(name, value)
    return value


def encode_operands(discriminator: int, amount: int, bound: int) -> bytes:
    """`discriminator || amount || bound`, each an 8-byte little-endian u64."""
    return _U64_TRIPLE.pack(
        _check_u64("discriminator", discriminator),
        _check_u64("amount", amount),
        _check_u64("bound", bound),
    )


def priority_fee_micro_lamports(priority_fee_sol: float) -> int:
    """SOL surcharge -> compute-unit price (1 SOL -> 10^9 micro-lamports)."""
    if priority_fee_sol < 0:
        raise InvalidInput(f"priority fee must be >= 0, got {priority_fee_sol}")
    return int(Decimal(str(priority_fee_sol)) * LAMPORTS_PER_SOL)


# ═══════════════════════════════════════════════════════════════════════════════
# INSTRUCTION FACTORY
# ═══════════════════════════════════════════════════════════════════════════════

class InstructionFactory:
    """
    Pure instruction builder for bonding-curve trades.

    This class contains NO side effects - it only constructs
    Solana instructions from amounts and account references.

    Usage:
        factory = InstructionFactory()
        ix = factory.build_buy_instruction(accounts, token_out, max_sol_cost)
    """

    def __init__(self, programs: ProgramAccounts = None):
        self.programs = programs or ProgramAccounts()

    def build_compute_budget_instructions(
        self,
        unit_limit: int = 1_000_000,
        priority_fee_sol: float = 0.0,
    ) -> List[Instruction]:
        """
        Compute budget prefix for a trade transaction.

        Returns:
            [SetComputeUnitLimit] plus SetComputeUnitPrice when the fee is nonzero
        """
        instructions = [set_compute_unit_limit(unit_limit)]
        micro_lamports = priority_fee_micro_lamports(priority_fee_sol)
        if micro_lamports > 0:
            instructions.append(set_compute_unit_price(micro_lamports))
        return instructions

    def build_buy_instruction(
        self,
        accounts: CurveAccounts,
        token_out: int,
        max_sol_cost: int,
    ) -> Instruction:
        """
        Buy `token_out` tokens paying at most `max_sol_cost` lamports.

        The program indexes accounts by position; never reorder.
        """
        p = self.programs
        keys = [
            AccountMeta(p.global_config, is_signer=False, is_writable=False),
            AccountMeta(p.fee_recipient, is_signer=False, is_writable=True),
            AccountMeta(accounts.mint, is_signer=False, is_writable=False),
            AccountMeta(accounts.bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(accounts.associated_bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(accounts.trader_token_account, is_signer=False, is_writable=True),
            AccountMeta(accounts.trader, is_signer=True, is_writable=True),
            AccountMeta(p.system_program, is_signer=False, is_writable=False),
            AccountMeta(p.token_program, is_signer=False, is_writable=False),
            AccountMeta(p.rent, is_signer=False, is_writable=False),
            AccountMeta(p.event_authority, is_signer=False, is_writable=False),
            AccountMeta(p.program, is_signer=False, is_writable=False),
        ]
        data = encode_operands(PUMP_BUY_DISCRIMINATOR, token_out, max_sol_cost)
        return Instruction(p.program, data, keys)

    def build_sell_instruction(
        self,
        accounts: CurveAccounts,
        token_in: int,
        min_sol_out: int,
    ) -> Instruction:
        """
        Sell `token_in` tokens for at least `min_sol_out` lamports.

        Same prefix as buy; slot 8 is the associated token program and the
        rent sysvar is dropped.
        """
        p = self.programs
        keys = [
            AccountMeta(p.global_config, is_signer=False, is_writable=False),
            AccountMeta(p.fee_recipient, is_signer=False, is_writable=True),
            AccountMeta(accounts.mint, is_signer=False, is_writable=False),
            AccountMeta(accounts.bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(accounts.associated_bonding_curve, is_signer=False, is_writable=True),
            AccountMeta(accounts.trader_token_account, is_signer=False, is_writable=True),
            AccountMeta(accounts.trader, is_signer=True, is_writable=True),
            AccountMeta(p.system_program, is_signer=False, is_writable=False),
            AccountMeta(p.associated_token_program, is_signer=False, is_writable=False),
            AccountMeta(p.token_program, is_signer=False, is_writable=False),
            AccountMeta(p.event_authority, is_signer=False, is_writable=False),
            AccountMeta(p.program, is_signer=False, is_writable=False),
        ]
        data = encode_operands(PUMP_SELL_DISCRIMINATOR, token_in, min_sol_out)
        return Instruction(p.program, data, keys)

    def build_trade_instructions(
        self,
        main_instruction: Instruction,
        unit_limit: int = 1_000_000,
        priority_fee_sol: float = 0.0,
    ) -> List[Instruction]:
        """
        Full ordered list for one trade transaction.

        Order:
        1. ComputeBudget limit
        2. ComputeBudget price (only when priority fee > 0)
        3. Curve buy/sell
        """
        return [
            *self.build_compute_budget_instructions(unit_limit, priority_fee_sol),
            main_instruction,
        ]
