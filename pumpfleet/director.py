"""
Run Director
============
The end-to-end operator run:

    1. BEFORE balance report
    2. Create the funding token account if needed, then buy on the curve
       (with retry)                             <- failure aborts the run
    3. Distribute tokens to every sub-account
    4. Fund sub-accounts with SOL
    5. (optional) Sell everything from every sub-account
    6. (optional) Sweep SOL back to the funding account
    7. AFTER balance report

Stages 3-6 never abort the run; their errors are recorded on the report.
SOL funding runs before any sub-account sell so each seller can pay fees.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from solders.keypair import Keypair

from pumpfleet.config.infrastructure import AppConfig
from pumpfleet.execution.balance_reporter import BalanceReporter, WalletBalance
from pumpfleet.execution.distributor import DistributionOrchestrator
from pumpfleet.execution.trade_executor import TradeExecutor
from pumpfleet.shared.errors import InvalidInput
from pumpfleet.shared.execution.execution_result import AccountResult, TradeResult, TransactionMode
from pumpfleet.shared.infrastructure.key_store import parse_pubkey
from pumpfleet.shared.infrastructure.ledger_client import LedgerClient
from pumpfleet.shared.infrastructure.market_data import PumpMarketData
from pumpfleet.shared.system.logging import Logger


@dataclass(frozen=True)
class RunPlan:
    mint: str
    sol_in: int  # lamports spent on the buy
    sol_per_child: int  # lamports sent to each sub-account
    token_split: int = 10
    tokens_per_child: Optional[int] = None  # default: parent balance // token_split
    sell_children: bool = False
    sweep: bool = False
    sweep_lamports: Optional[int] = None  # default: sol_per_child

    def __post_init__(self):
        if self.sol_in <= 0:
            raise InvalidInput(f"sol_in must be > 0, got {self.sol_in}")
        if self.sol_per_child < 0:
            raise InvalidInput(f"sol_per_child must be >= 0, got {self.sol_per_child}")
        if self.token_split < 1:
            raise InvalidInput(f"token_split must be >= 1, got {self.token_split}")


@dataclass
class RunReport:
    mode: TransactionMode
    before: List[WalletBalance] = field(default_factory=list)
    buy: Optional[TradeResult] = None
    tokens: List[AccountResult] = field(default_factory=list)
    funding: List[AccountResult] = field(default_factory=list)
    sells: List[AccountResult] = field(default_factory=list)
    sweep: List[AccountResult] = field(default_factory=list)
    after: List[WalletBalance] = field(default_factory=list)
    stage_errors: Dict[str, str] = field(default_factory=dict)

    @property
    def failed_accounts(self) -> Dict[str, List[str]]:
        stages = {"tokens": self.tokens, "funding": self.funding, "sells": self.sells, "sweep": self.sweep}
        return {
            name: [r.account for r in results if r.failed]
            for name, results in stages.items()
            if any(r.failed for r in results)
        }


class RunDirector:
    """
    Usage:
        director = RunDirector.from_config(ledger, market, config, parent, children)
        report = await director.run(plan)
    """

    def __init__(
        self,
        parent: Keypair,
        children: Sequence[Keypair],
        trade_executor: TradeExecutor,
        distributor: DistributionOrchestrator,
        reporter: BalanceReporter,
        mode: TransactionMode = TransactionMode.EXECUTION,
    ):
        self.parent = parent
        self.children = list(children)
        self.trade_executor = trade_executor
        self.distributor = distributor
        self.reporter = reporter
        self.mode = mode

    @classmethod
    def from_config(
        cls,
        ledger: LedgerClient,
        market_data: PumpMarketData,
        config: AppConfig,
        parent: Keypair,
        children: Sequence[Keypair],
    ) -> "RunDirector":
        executor = TradeExecutor(ledger, market_data, config.trade, config.retry)
        distributor = DistributionOrchestrator(ledger, config.distribution, config.retry, executor)
        return cls(
            parent,
            children,
            executor,
            distributor,
            BalanceReporter(ledger),
            mode=config.trade.mode,
        )

    async def _report(self, title: str, mint: str) -> List[WalletBalance]:
        return await self.reporter.report(
            title, self.parent.pubkey(), [c.pubkey() for c in self.children], mint
        )

    async def run(self, plan: RunPlan) -> RunReport:
        report = RunReport(mode=self.mode)
        children = [c.pubkey() for c in self.children]
        Logger.info(f"[DIRECTOR] Run started ({self.mode.value}) for {plan.mint} with {len(children)} sub-accounts")

        report.before = await self._report("BEFORE OPERATIONS", plan.mint)

        Logger.section("BUY")
        if self.mode == TransactionMode.EXECUTION:
            await self.distributor.ensure_token_account(
                self.parent, self.parent.pubkey(), parse_pubkey(plan.mint, "mint")
            )
        report.buy = await self.trade_executor.buy_with_retry(self.parent, plan.mint, plan.sol_in, self.mode)

        # Tokens
        try:
            amount = plan.tokens_per_child
            if amount is None:
                parent_tokens = await self.reporter.token_balance(self.parent.pubkey(), plan.mint)
                amount = parent_tokens // plan.token_split
            if amount > 0:
                report.tokens = await self.distributor.distribute_tokens(
                    self.parent, children, plan.mint, amount, self.mode
                )
            else:
                Logger.warning("[DIRECTOR] No tokens to distribute, skipping")
        except Exception as e:
            Logger.error(f"[DIRECTOR] Token distribution aborted: {e}")
            report.stage_errors["tokens"] = str(e)

        # SOL for fees
        if plan.sol_per_child > 0:
            try:
                report.funding = await self.distributor.distribute_sol(
                    self.parent, children, plan.sol_per_child, self.mode
                )
            except Exception as e:
                Logger.error(f"[DIRECTOR] SOL funding aborted: {e}")
                report.stage_errors["funding"] = str(e)

        if plan.sell_children:
            try:
                report.sells = await self.distributor.sell_all_from(self.children, plan.mint, self.mode)
            except Exception as e:
                Logger.error(f"[DIRECTOR] Sub-account sells aborted: {e}")
                report.stage_errors["sells"] = str(e)

        if plan.sweep:
            try:
                lamports = plan.sweep_lamports if plan.sweep_lamports is not None else plan.sol_per_child
                report.sweep = await self.distributor.sweep_sol(
                    self.children, self.parent.pubkey(), lamports, self.mode
                )
            except Exception as e:
                Logger.error(f"[DIRECTOR] Sweep aborted: {e}")
                report.stage_errors["sweep"] = str(e)

        report.after = await self._report("AFTER OPERATIONS", plan.mint)

        failed = report.failed_accounts
        if failed or report.stage_errors:
            Logger.warning(f"[DIRECTOR] Run finished with issues. Failed: {failed} Stage errors: {report.stage_errors}")
        else:
            Logger.success("[DIRECTOR] All operations completed!")
        return report
