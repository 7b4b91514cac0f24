"""
PumpFleet CLI
=============
Typer + Rich command line for the trade engine.

Commands:
    pumpfleet run --mint <MINT> --sell --sweep
    pumpfleet buy --mint <MINT> --sol-in 0.001 --simulate
    pumpfleet sell --mint <MINT>
    pumpfleet distribute --mint <MINT> --amount 1000000
    pumpfleet fund --sol 0.001
    pumpfleet sweep --sol 0.001
    pumpfleet balances --mint <MINT>
    pumpfleet wallets

Every option defaults from .env (see pumpfleet.config.settings).
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import List, Optional

import httpx
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from solders.keypair import Keypair

from pumpfleet.config.infrastructure import AppConfig
from pumpfleet.config.settings import Settings
from pumpfleet.core.logger import setup_logging
from pumpfleet.director import RunDirector, RunPlan
from pumpfleet.execution.balance_reporter import BalanceReporter
from pumpfleet.execution.distributor import DistributionOrchestrator
from pumpfleet.execution.quote_calculator import sol_to_lamports
from pumpfleet.execution.trade_executor import TradeExecutor
from pumpfleet.shared.errors import InvalidInput, PumpFleetError
from pumpfleet.shared.execution.execution_result import AccountResult, TradeResult, TransactionMode
from pumpfleet.shared.infrastructure.key_store import keypair_from_base58, load_or_create_pool, parse_pubkey
from pumpfleet.shared.infrastructure.ledger_client import LedgerClient
from pumpfleet.shared.infrastructure.market_data import PumpMarketData
from pumpfleet.shared.system.logging import Logger

app = typer.Typer(
    name="pumpfleet",
    help="PumpFleet - pump.fun bonding-curve trading and sub-account distribution",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


# ═══════════════════════════════════════════════════════════════════════════════
# SHARED PLUMBING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Fleet:
    config: AppConfig
    ledger: LedgerClient
    market_data: PumpMarketData
    parent: Keypair
    children: List[Keypair]

    @property
    def mode(self) -> TransactionMode:
        return self.config.trade.mode

    def trade_executor(self) -> TradeExecutor:
        return TradeExecutor(self.ledger, self.market_data, self.config.trade, self.config.retry)

    def distributor(self) -> DistributionOrchestrator:
        return DistributionOrchestrator(
            self.ledger, self.config.distribution, self.config.retry, self.trade_executor()
        )


@asynccontextmanager
async def open_fleet(simulate: bool):
    """Config, funding key, sub-account pool and network clients for one command."""
    config = AppConfig.from_settings(TransactionMode.SIMULATION if simulate else None)
    infra = config.infrastructure

    parent = keypair_from_base58(Settings.PRIVATE_KEY)
    children = load_or_create_pool(infra.wallets_file, infra.wallet_count)

    async with httpx.AsyncClient(timeout=infra.market_data_timeout_s) as http_client:
        async with LedgerClient(infra.rpc_url, infra.rpc_timeout_s) as ledger:
            yield Fleet(
                config=config,
                ledger=ledger,
                market_data=PumpMarketData(infra.pump_api_url, infra.market_data_timeout_s, http_client),
                parent=parent,
                children=children,
            )


def _require_mint(mint: str) -> str:
    if not mint:
        raise InvalidInput("no mint given (use --mint or set MINT)")
    return mint


def _confirm_live(simulate: bool, yes: bool) -> None:
    try:
        mode = TransactionMode.SIMULATION if simulate else TransactionMode.parse(Settings.TX_MODE)
    except PumpFleetError as e:
        Logger.critical(f"[SYSTEM] {e}")
        raise typer.Exit(1)
    if mode == TransactionMode.SIMULATION or yes:
        return
    if not typer.confirm("\n⚠️  EXECUTION MODE - Real funds will move. Continue?", default=False):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(0)


def _run(coro) -> None:
    """Run a coroutine; PumpFleet errors end the process with exit code 1."""
    try:
        asyncio.run(coro)
    except PumpFleetError as e:
        Logger.critical(f"[SYSTEM] {e}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Shutdown requested.[/yellow]")
        raise typer.Exit(130)


def _print_trade(result: TradeResult) -> None:
    bound = "max_sol_cost" if result.side == "BUY" else "min_sol_out"
    line = f"{result.side} tokens={result.amount} {bound}={result.bound}"
    if result.simulated:
        sim = result.simulation
        status = "[cyan]SIMULATED[/]" if sim.ok else f"[red]SIMULATION ERROR[/] {sim.err}"
        console.print(f"{line} {status} units={sim.units_consumed}")
        for log in sim.logs:
            console.print(f"  {log}", style="dim", markup=False)
    else:
        console.print(f"{line} sig={result.signature}")


def _print_results(title: str, results: List[AccountResult]) -> None:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Account")
    table.add_column("Status")
    table.add_column("Amount", justify="right")
    table.add_column("Signature / Error")
    styles = {"SUCCESS": "green", "SIMULATED": "cyan", "SKIPPED": "yellow", "FAILED": "red"}
    for i, r in enumerate(results, 1):
        status = r.status.value
        table.add_row(
            str(i),
            r.account,
            f"[{styles[status]}]{status}[/]",
            str(r.amount),
            r.signature or r.error_message or "",
        )
    console.print(table)


@app.callback()
def main(
    silent: bool = typer.Option(Settings.SILENT_MODE, "--silent", help="Suppress console logging"),
    log_file: Optional[str] = typer.Option(
        Settings.LOG_FILE or None, "--log-file", help="Also write library logs (httpx, solana) to this file"
    ),
):
    """PumpFleet - buy, distribute, sell and sweep across a sub-account pool."""
    try:
        setup_logging(Settings.LOG_LEVEL, log_file)
    except PumpFleetError as e:
        Logger.critical(f"[SYSTEM] {e}")
        raise typer.Exit(1)
    Logger.set_silent(silent)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: RUN (full sequence)
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def run(
    mint: str = typer.Option(Settings.MINT, "--mint", help="Token mint address"),
    sol_in: float = typer.Option(Settings.SOL_IN, "--sol-in", help="SOL to spend on the buy"),
    sol_per_child: float = typer.Option(Settings.SOL_PER_CHILD, "--sol-per-child", help="SOL sent to each sub-account"),
    split: int = typer.Option(Settings.TOKEN_SPLIT, "--split", min=1, help="Per-child tokens = parent balance // split"),
    tokens_per_child: Optional[int] = typer.Option(None, "--tokens-per-child", help="Explicit raw tokens per child"),
    sell: bool = typer.Option(False, "--sell", help="Sell everything from every sub-account"),
    sweep: bool = typer.Option(False, "--sweep", help="Sweep SOL back to the funding wallet"),
    simulate: bool = typer.Option(False, "--simulate", help="Dry-run every transaction"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the execution-mode confirmation"),
):
    """
    Full operator run: report, buy, distribute, fund, [sell], [sweep], report.

    \b
    Examples:
        pumpfleet run --mint <MINT> --simulate
        pumpfleet run --mint <MINT> --sell --sweep --yes
    """
    _confirm_live(simulate, yes)

    async def _go():
        plan = RunPlan(
            mint=_require_mint(mint),
            sol_in=sol_to_lamports(sol_in),
            sol_per_child=sol_to_lamports(sol_per_child),
            token_split=split,
            tokens_per_child=tokens_per_child,
            sell_children=sell,
            sweep=sweep,
        )
        async with open_fleet(simulate) as fleet:
            console.print(Panel.fit(
                f"[bold cyan]PumpFleet run[/bold cyan]\nMint: {plan.mint} | Mode: {fleet.mode.value} | "
                f"Sub-accounts: {len(fleet.children)}",
                border_style="cyan",
            ))
            director = RunDirector.from_config(
                fleet.ledger, fleet.market_data, fleet.config, fleet.parent, fleet.children
            )
            report = await director.run(plan)
            for title, results in (
                ("Tokens", report.tokens),
                ("Funding", report.funding),
                ("Sells", report.sells),
                ("Sweep", report.sweep),
            ):
                if results:
                    _print_results(title, results)

    _run(_go())


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS: SINGLE TRADES
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def buy(
    mint: str = typer.Option(Settings.MINT, "--mint", help="Token mint address"),
    sol_in: float = typer.Option(Settings.SOL_IN, "--sol-in", help="SOL to spend"),
    simulate: bool = typer.Option(False, "--simulate", help="Dry-run the transaction"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the execution-mode confirmation"),
):
    """Buy from the bonding curve with the funding wallet."""
    _confirm_live(simulate, yes)

    async def _go():
        async with open_fleet(simulate) as fleet:
            mint_address = _require_mint(mint)
            if fleet.mode == TransactionMode.EXECUTION:
                await fleet.distributor().ensure_token_account(
                    fleet.parent, fleet.parent.pubkey(), parse_pubkey(mint_address, "mint")
                )
            result = await fleet.trade_executor().buy_with_retry(
                fleet.parent, mint_address, sol_to_lamports(sol_in)
            )
            _print_trade(result)

    _run(_go())


@app.command()
def sell(
    mint: str = typer.Option(Settings.MINT, "--mint", help="Token mint address"),
    amount: Optional[int] = typer.Option(None, "--amount", help="Raw token units (default: whole balance)"),
    simulate: bool = typer.Option(False, "--simulate", help="Dry-run the transaction"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the execution-mode confirmation"),
):
    """Sell to the bonding curve from the funding wallet."""
    _confirm_live(simulate, yes)

    async def _go():
        async with open_fleet(simulate) as fleet:
            executor = fleet.trade_executor()
            if amount is None:
                result = await executor.sell_all_with_retry(fleet.parent, _require_mint(mint))
            else:
                result = await executor.sell_with_retry(fleet.parent, _require_mint(mint), amount)
            _print_trade(result)

    _run(_go())


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS: DISTRIBUTION
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def distribute(
    mint: str = typer.Option(Settings.MINT, "--mint", help="Token mint address"),
    amount: int = typer.Option(..., "--amount", help="Raw token units per sub-account"),
    simulate: bool = typer.Option(False, "--simulate", help="Dry-run every transaction"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the execution-mode confirmation"),
):
    """Send a fixed token amount to every sub-account."""
    _confirm_live(simulate, yes)

    async def _go():
        async with open_fleet(simulate) as fleet:
            results = await fleet.distributor().distribute_tokens(
                fleet.parent, [c.pubkey() for c in fleet.children], _require_mint(mint), amount
            )
            _print_results("Tokens", results)

    _run(_go())


@app.command()
def fund(
    sol: float = typer.Option(Settings.SOL_PER_CHILD, "--sol", help="SOL per sub-account"),
    simulate: bool = typer.Option(False, "--simulate", help="Dry-run every transaction"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the execution-mode confirmation"),
):
    """Send a fixed SOL amount to every sub-account."""
    _confirm_live(simulate, yes)

    async def _go():
        async with open_fleet(simulate) as fleet:
            results = await fleet.distributor().distribute_sol(
                fleet.parent, [c.pubkey() for c in fleet.children], sol_to_lamports(sol)
            )
            _print_results("Funding", results)

    _run(_go())


@app.command()
def sweep(
    sol: float = typer.Option(Settings.SOL_PER_CHILD, "--sol", help="SOL to pull from each sub-account"),
    simulate: bool = typer.Option(False, "--simulate", help="Dry-run every transaction"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the execution-mode confirmation"),
):
    """Move SOL from every sub-account back to the funding wallet."""
    _confirm_live(simulate, yes)

    async def _go():
        async with open_fleet(simulate) as fleet:
            results = await fleet.distributor().sweep_sol(
                fleet.children, fleet.parent.pubkey(), sol_to_lamports(sol)
            )
            _print_results("Sweep", results)

    _run(_go())


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS: READ-ONLY
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def balances(
    mint: str = typer.Option(Settings.MINT, "--mint", help="Token mint address"),
):
    """Show token and SOL balances for the funding wallet and every sub-account."""

    async def _go():
        async with open_fleet(simulate=False) as fleet:
            await BalanceReporter(fleet.ledger).report(
                "BALANCES", fleet.parent.pubkey(), [c.pubkey() for c in fleet.children], _require_mint(mint)
            )

    _run(_go())


@app.command()
def wallets():
    """Load (or create once) the sub-account pool and list its addresses."""
    try:
        config = AppConfig.from_settings()
        pool = load_or_create_pool(config.infrastructure.wallets_file, config.infrastructure.wallet_count)
    except PumpFleetError as e:
        Logger.critical(f"[WALLET] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Sub-accounts ({config.infrastructure.wallets_file})")
    table.add_column("#", justify="right")
    table.add_column("Address", style="cyan")
    for i, kp in enumerate(pool, 1):
        table.add_row(str(i), str(kp.pubkey()))
    console.print(table)


if __name__ == "__main__":
    app()
