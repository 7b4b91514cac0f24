"""
Distribution Orchestrator
=========================
Sequential fan-out of tokens and SOL from the funding account to the
sub-account pool, plus the reverse sweep and per-sub-account sells.

Every loop is strictly sequential (one in-flight mutation per signer) and
never aborts on a per-account failure: each account gets an AccountResult.
Each network mutation goes through the shared RetryPolicy; value transfers
use `RetryPolicy.send`, which checks an earlier broadcast before resending.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import TransferParams as SystemTransferParams
from solders.system_program import transfer as system_transfer
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferParams as TokenTransferParams,
    create_associated_token_account,
    get_associated_token_address,
    transfer as token_transfer,
)

from pumpfleet.config.infrastructure import DistributionConfig
from pumpfleet.execution.trade_executor import TradeExecutor
from pumpfleet.shared.errors import InsufficientBalance, InvalidInput
from pumpfleet.shared.execution.execution_result import (
    AccountResult,
    ErrorCode,
    TransactionMode,
    failure_result,
    simulated_result,
    skipped_result,
    success_result,
    summarize,
)
from pumpfleet.shared.infrastructure.key_store import parse_pubkey
from pumpfleet.shared.infrastructure.ledger_client import LedgerClient
from pumpfleet.shared.system.logging import Logger
from pumpfleet.shared.system.retry import RetryPolicy


def _short(pubkey) -> str:
    s = str(pubkey)
    return f"{s[:8]}..."


class DistributionOrchestrator:
    """
    Usage:
        distributor = DistributionOrchestrator(ledger, DistributionConfig(), RetryPolicy())
        results = await distributor.distribute_tokens(parent, children, mint, 1_000_000)
        print(distributor.summarize(results)["failed_accounts"])
    """

    def __init__(
        self,
        ledger: LedgerClient,
        config: DistributionConfig = None,
        retry: RetryPolicy = None,
        trade_executor: Optional[TradeExecutor] = None,
    ):
        self.ledger = ledger
        self.config = config or DistributionConfig()
        self.retry = retry or RetryPolicy()
        self.trade_executor = trade_executor

    @staticmethod
    def summarize(results: List[AccountResult]) -> dict:
        return summarize(results)

    # ═══════════════════════════════════════════════════════════════════
    # HOLDING ACCOUNTS
    # ═══════════════════════════════════════════════════════════════════

    async def ensure_token_account(self, payer: Keypair, owner: Pubkey, mint: Pubkey) -> Pubkey:
        """
        Resolve `owner`'s associated token account, creating it (paid by
        `payer`, separate transaction) when absent.
        """
        token_account = get_associated_token_address(owner, mint)

        async def _create() -> Pubkey:
            # A previous attempt may have landed after its confirmation timed out
            if await self.ledger.account_exists(token_account):
                return token_account
            Logger.info(f"[DISTRIBUTE] Creating token account {_short(token_account)} for {_short(owner)}")
            ix = create_associated_token_account(payer.pubkey(), owner, mint)
            await self.ledger.send_and_confirm([ix], payer, label=f"create_ata {_short(owner)}")
            return token_account

        return await self.retry.run(_create, name=f"create_ata {_short(owner)}")

    # ═══════════════════════════════════════════════════════════════════
    # TOKENS
    # ═══════════════════════════════════════════════════════════════════

    async def distribute_tokens(
        self,
        source: Keypair,
        destinations: Sequence[Pubkey],
        mint: str,
        amount_per_account: int,
        mode: Optional[TransactionMode] = None,
    ) -> List[AccountResult]:
        """
        Transfer `amount_per_account` raw token units to every destination.

        Raises (before any per-account work):
            InvalidInput: non-positive amount
            InsufficientBalance: source holds less than amount * len(destinations)
        """
        mode = mode or self.config.mode
        if isinstance(amount_per_account, bool) or not isinstance(amount_per_account, int):
            raise InvalidInput(f"amount_per_account must be an integer, got {amount_per_account!r}")
        if amount_per_account <= 0:
            raise InvalidInput(f"amount_per_account must be > 0, got {amount_per_account}")
        mint_pk = parse_pubkey(mint, "mint")
        if not destinations:
            return []

        Logger.section(f"DISTRIBUTE {amount_per_account} TOKENS x {len(destinations)}")

        if mode == TransactionMode.EXECUTION:
            source_ata = await self.ensure_token_account(source, source.pubkey(), mint_pk)
        else:
            source_ata = get_associated_token_address(source.pubkey(), mint_pk)

        required = amount_per_account * len(destinations)
        available = await self.ledger.get_token_balance(source_ata)
        if available < required:
            raise InsufficientBalance(str(source.pubkey()), required, available, unit="tokens")

        results = []
        for i, destination in enumerate(destinations, 1):
            Logger.info(
                f"[DISTRIBUTE] {i}/{len(destinations)} {amount_per_account} tokens -> {_short(destination)}"
            )
            try:
                if mode == TransactionMode.EXECUTION:
                    result = await self._transfer_tokens(source, source_ata, destination, mint_pk, amount_per_account)
                else:
                    result = await self._simulate_token_transfer(
                        source, source_ata, destination, mint_pk, amount_per_account
                    )
            except Exception as e:
                Logger.error(f"[DISTRIBUTE] {_short(destination)} failed: {e}")
                result = failure_result("distribute_tokens", str(destination), amount_per_account, e)
            results.append(result)

        self._log_summary("DISTRIBUTE", results)
        return results

    def _token_transfer_ix(
        self, source: Keypair, source_ata: Pubkey, dest_ata: Pubkey, amount: int
    ) -> Instruction:
        return token_transfer(
            TokenTransferParams(
                program_id=TOKEN_PROGRAM_ID,
                source=source_ata,
                dest=dest_ata,
                owner=source.pubkey(),
                amount=amount,
                signers=[],
            )
        )

    async def _transfer_tokens(
        self, source: Keypair, source_ata: Pubkey, destination: Pubkey, mint: Pubkey, amount: int
    ) -> AccountResult:
        dest_ata = await self.ensure_token_account(source, destination, mint)
        ix = self._token_transfer_ix(source, source_ata, dest_ata, amount)
        signature = await self.retry.send(
            self.ledger, [ix], source, label=f"token_transfer {_short(destination)}"
        )
        Logger.success(f"[DISTRIBUTE] {_short(destination)} received {amount} tokens: {signature}")
        return success_result("distribute_tokens", str(destination), amount, signature)

    async def _simulate_token_transfer(
        self, source: Keypair, source_ata: Pubkey, destination: Pubkey, mint: Pubkey, amount: int
    ) -> AccountResult:
        """One combined create-if-missing + transfer dry-run; nothing lands."""
        dest_ata = get_associated_token_address(destination, mint)
        instructions = []
        if not await self.ledger.account_exists(dest_ata):
            instructions.append(create_associated_token_account(source.pubkey(), destination, mint))
        instructions.append(self._token_transfer_ix(source, source_ata, dest_ata, amount))

        outcome = await self.retry.run(
            lambda: self.ledger.simulate(instructions, source, label=f"token_transfer {_short(destination)}"),
            name=f"simulate token_transfer {_short(destination)}",
        )
        return simulated_result("distribute_tokens", str(destination), amount, outcome)

    # ═══════════════════════════════════════════════════════════════════
    # SOL
    # ═══════════════════════════════════════════════════════════════════

    async def _transfer_sol(
        self,
        operation: str,
        account: str,
        payer: Keypair,
        destination: Pubkey,
        lamports: int,
        mode: TransactionMode,
    ) -> AccountResult:
        """One system transfer signed and paid by `payer`, reported under `account`."""
        ix = system_transfer(
            SystemTransferParams(from_pubkey=payer.pubkey(), to_pubkey=destination, lamports=lamports)
        )
        label = f"{operation} {_short(payer.pubkey())}->{_short(destination)}"
        if mode == TransactionMode.EXECUTION:
            signature = await self.retry.send(self.ledger, [ix], payer, label)
            Logger.success(f"[LEDGER] {label} confirmed: {signature}")
            return success_result(operation, account, lamports, signature)
        outcome = await self.retry.run(lambda: self.ledger.simulate([ix], payer, label=label), name=label)
        return simulated_result(operation, account, lamports, outcome)

    async def distribute_sol(
        self,
        source: Keypair,
        destinations: Sequence[Pubkey],
        lamports_per_account: int,
        mode: Optional[TransactionMode] = None,
    ) -> List[AccountResult]:
        """
        Fund every destination with `lamports_per_account` SOL lamports.

        Raises (before any transfer):
            InvalidInput: non-positive amount
            InsufficientBalance: source cannot cover amounts plus per-transfer fees
        """
        mode = mode or self.config.mode
        if isinstance(lamports_per_account, bool) or not isinstance(lamports_per_account, int):
            raise InvalidInput(f"lamports_per_account must be an integer, got {lamports_per_account!r}")
        if lamports_per_account <= 0:
            raise InvalidInput(f"lamports_per_account must be > 0, got {lamports_per_account}")
        if not destinations:
            return []

        Logger.section(f"FUND {lamports_per_account} LAMPORTS x {len(destinations)}")

        required = (lamports_per_account + self.config.tx_fee_lamports) * len(destinations)
        available = await self.ledger.get_balance(source.pubkey())
        if available < required:
            raise InsufficientBalance(str(source.pubkey()), required, available)

        results = []
        for i, destination in enumerate(destinations, 1):
            Logger.info(f"[FUND] {i}/{len(destinations)} {lamports_per_account} lamports -> {_short(destination)}")
            try:
                result = await self._transfer_sol(
                    "distribute_sol", str(destination), source, destination, lamports_per_account, mode
                )
            except Exception as e:
                Logger.error(f"[FUND] {_short(destination)} failed: {e}")
                result = failure_result("distribute_sol", str(destination), lamports_per_account, e)
            results.append(result)

        self._log_summary("FUND", results)
        return results

    async def sweep_sol(
        self,
        sources: Sequence[Keypair],
        destination: Pubkey,
        lamports_per_account: int,
        mode: Optional[TransactionMode] = None,
    ) -> List[AccountResult]:
        """
        Move `lamports_per_account` from each sub-account back to `destination`.

        A sub-account is SKIPPED when its balance is below
        amount + tx fee + rent-exempt minimum. Equal to the threshold is swept.
        """
        mode = mode or self.config.mode
        if isinstance(lamports_per_account, bool) or not isinstance(lamports_per_account, int):
            raise InvalidInput(f"lamports_per_account must be an integer, got {lamports_per_account!r}")
        if lamports_per_account <= 0:
            raise InvalidInput(f"lamports_per_account must be > 0, got {lamports_per_account}")

        threshold = lamports_per_account + self.config.tx_fee_lamports + self.config.rent_exempt_lamports
        Logger.section(f"SWEEP {lamports_per_account} LAMPORTS x {len(sources)}")

        results = []
        for i, source in enumerate(sources, 1):
            owner = source.pubkey()
            try:
                balance = await self.ledger.get_balance(owner)
                if balance < threshold:
                    Logger.info(
                        f"[SWEEP] {i}/{len(sources)} skipping {_short(owner)}: "
                        f"balance {balance} < {threshold}"
                    )
                    results.append(
                        skipped_result(
                            "sweep_sol",
                            str(owner),
                            ErrorCode.BELOW_THRESHOLD,
                            f"balance {balance} below threshold {threshold}",
                        )
                    )
                    continue

                Logger.info(f"[SWEEP] {i}/{len(sources)} {_short(owner)} -> {_short(destination)}")
                result = await self._transfer_sol(
                    "sweep_sol", str(owner), source, destination, lamports_per_account, mode
                )
            except Exception as e:
                Logger.error(f"[SWEEP] {_short(owner)} failed: {e}")
                result = failure_result("sweep_sol", str(owner), lamports_per_account, e)
            results.append(result)

        self._log_summary("SWEEP", results)
        return results

    # ═══════════════════════════════════════════════════════════════════
    # SELLS
    # ═══════════════════════════════════════════════════════════════════

    async def sell_all_from(
        self,
        sellers: Sequence[Keypair],
        mint: str,
        mode: Optional[TransactionMode] = None,
    ) -> List[AccountResult]:
        """Sell each sub-account's full token balance; zero balances are SKIPPED."""
        if self.trade_executor is None:
            raise InvalidInput("sell_all_from requires a TradeExecutor")
        mode = mode or self.config.mode

        Logger.section(f"SELL ALL x {len(sellers)}")

        results = []
        for i, seller in enumerate(sellers, 1):
            owner = str(seller.pubkey())
            Logger.info(f"[SELL] {i}/{len(sellers)} {_short(owner)}")
            try:
                trade = await self.trade_executor.sell_all_with_retry(seller, mint, mode)
                if trade.signature is not None:
                    result = success_result("sell_all", owner, trade.amount, trade.signature)
                else:
                    result = simulated_result("sell_all", owner, trade.amount, trade.simulation)
            except InsufficientBalance as e:
                result = skipped_result("sell_all", owner, ErrorCode.ZERO_BALANCE, str(e))
            except Exception as e:
                Logger.error(f"[SELL] {_short(owner)} failed: {e}")
                result = failure_result("sell_all", owner, 0, e)
            results.append(result)

        self._log_summary("SELL", results)
        return results

    def _log_summary(self, source: str, results: List[AccountResult]) -> None:
        summary = summarize(results)
        counts = ", ".join(f"{k}={v}" for k, v in summary["counts"].items() if v)
        if summary["failed_accounts"]:
            Logger.warning(f"[{source}] Done: {counts}. Failed: {summary['failed_accounts']}")
        else:
            Logger.success(f"[{source}] Done: {counts}")
