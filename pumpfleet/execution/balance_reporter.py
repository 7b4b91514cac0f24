"""
Balance Reporter
================
Read-only balance snapshots for the funding account and the sub-account
pool, rendered as a Rich table. No retries; read errors propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from rich.table import Table
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from pumpfleet.execution.quote_calculator import lamports_to_sol
from pumpfleet.shared.infrastructure.key_store import parse_pubkey
from pumpfleet.shared.infrastructure.ledger_client import LedgerClient
from pumpfleet.shared.system.logging import Logger


@dataclass(frozen=True)
class WalletBalance:
    owner: str
    token_amount: int  # raw units
    lamports: int

    @property
    def sol(self):
        return lamports_to_sol(self.lamports)


class BalanceReporter:
    def __init__(self, ledger: LedgerClient):
        self.ledger = ledger

    async def token_balance(self, owner: Pubkey, mint: str) -> int:
        """Raw units in the owner's associated token account (0 if absent)."""
        token_account = get_associated_token_address(owner, parse_pubkey(mint, "mint"))
        return await self.ledger.get_token_balance(token_account)

    async def sol_balance(self, owner: Pubkey) -> int:
        return await self.ledger.get_balance(owner)

    async def snapshot(self, owners: Sequence[Pubkey], mint: str) -> List[WalletBalance]:
        balances = []
        for owner in owners:
            balances.append(
                WalletBalance(
                    owner=str(owner),
                    token_amount=await self.token_balance(owner, mint),
                    lamports=await self.sol_balance(owner),
                )
            )
        return balances

    async def report(
        self,
        title: str,
        parent: Pubkey,
        children: Sequence[Pubkey],
        mint: str,
    ) -> List[WalletBalance]:
        """
        Snapshot parent + children and log a balance table.

        Returns:
            [parent, *children] balances, in that order
        """
        balances = await self.snapshot([parent, *children], mint)

        table = Table(title=title, show_lines=False)
        table.add_column("Wallet", style="cyan")
        table.add_column("Address")
        table.add_column("Tokens", justify="right", style="green")
        table.add_column("SOL", justify="right", style="yellow")

        lines = []
        for i, balance in enumerate(balances):
            label = "parent" if i == 0 else f"child {i}"
            table.add_row(label, balance.owner, str(balance.token_amount), f"{balance.sol:.6f}")
            lines.append(f"{title} | {label} {balance.owner}: tokens={balance.token_amount} sol={balance.sol:.6f}")

        Logger.section(title)
        Logger.table(table, lines)
        return balances
