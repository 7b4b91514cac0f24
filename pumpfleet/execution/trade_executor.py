"""
Trade Executor
==============
One full buy or sell against the pump.fun bonding curve.

Per call:
    FetchMarketData -> ResolveHoldingAccount -> ComputeQuote
        -> BuildInstruction -> Submit | Simulate -> Confirmed | Failed

The executor never creates token accounts and never retries on its own.
Failures propagate unmodified; `buy_with_retry` / `sell_with_retry` wrap a
call in the shared RetryPolicy. A retried trade whose earlier submit landed
after its confirmation timed out returns that earlier result instead of
trading again.
"""

from __future__ import annotations

from typing import Awaitable, Callable, List, Optional

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from pumpfleet.config.infrastructure import TradeConfig
from pumpfleet.execution.instruction_factory import CurveAccounts, InstructionFactory
from pumpfleet.execution.quote_calculator import lamports_to_sol, quote_buy, quote_sell
from pumpfleet.shared.errors import HoldingAccountMissing, InsufficientBalance, TransactionFailed
from pumpfleet.shared.execution.execution_result import TradeResult, TransactionMode
from pumpfleet.shared.infrastructure.key_store import parse_pubkey
from pumpfleet.shared.infrastructure.ledger_client import LedgerClient
from pumpfleet.shared.infrastructure.market_data import PumpMarketData
from pumpfleet.shared.system.logging import Logger
from pumpfleet.shared.system.retry import RetryPolicy


class TradeExecutor:
    """
    Usage:
        executor = TradeExecutor(ledger, market, TradeConfig(), RetryPolicy())
        result = await executor.buy_with_retry(parent, mint, sol_in_lamports)
    """

    def __init__(
        self,
        ledger: LedgerClient,
        market_data: PumpMarketData,
        config: TradeConfig = None,
        retry: RetryPolicy = None,
        factory: InstructionFactory = None,
    ):
        self.ledger = ledger
        self.market_data = market_data
        self.config = config or TradeConfig()
        self.retry = retry or RetryPolicy()
        self.factory = factory or InstructionFactory()

    # ═══════════════════════════════════════════════════════════════════
    # STAGES
    # ═══════════════════════════════════════════════════════════════════

    async def _resolve_holding_account(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        token_account = get_associated_token_address(owner, mint)
        if not await self.ledger.account_exists(token_account):
            raise HoldingAccountMissing(str(owner), str(token_account))
        return token_account

    async def _submit(
        self,
        side: str,
        trader: Keypair,
        mint: Pubkey,
        amount: int,
        bound: int,
        main_ix,
        mode: TransactionMode,
        in_flight: Optional[List[TradeResult]] = None,
    ) -> TradeResult:
        instructions = self.factory.build_trade_instructions(
            main_ix,
            unit_limit=self.config.compute_unit_limit,
            priority_fee_sol=self.config.priority_fee_sol,
        )
        result = TradeResult(
            side=side,
            mode=mode,
            mint=str(mint),
            owner=str(trader.pubkey()),
            amount=amount,
            bound=bound,
        )
        label = f"{side.lower()} {str(mint)[:8]}..."

        if mode == TransactionMode.EXECUTION:
            try:
                result.signature = await self.ledger.send_and_confirm(instructions, trader, label=label)
            except TransactionFailed as e:
                if in_flight is not None and e.signature:
                    result.signature = e.signature
                    in_flight.append(result)
                raise
            Logger.success(f"[TRADE] {side} confirmed: {result.signature}")
        else:
            result.simulation = await self.ledger.simulate(instructions, trader, label=label)
            if result.simulation.ok:
                Logger.info(
                    f"[TRADE] {side} simulated OK ({result.simulation.units_consumed} CUs)"
                )
            else:
                Logger.warning(f"[TRADE] {side} simulation error: {result.simulation.err}")
        return result

    # ═══════════════════════════════════════════════════════════════════
    # BUY / SELL
    # ═══════════════════════════════════════════════════════════════════

    async def buy(
        self,
        payer: Keypair,
        mint: str,
        sol_in: int,
        mode: Optional[TransactionMode] = None,
    ) -> TradeResult:
        """
        Spend `sol_in` lamports on the curve.

        Raises:
            MarketDataUnavailable, HoldingAccountMissing, InvalidInput,
            InsufficientBalance (execution mode only), TransactionFailed
        """
        return await self._buy(payer, mint, sol_in, mode, None)

    async def _buy(self, payer, mint, sol_in, mode, in_flight) -> TradeResult:
        mode = mode or self.config.mode
        mint_pk = parse_pubkey(mint, "mint")
        owner = payer.pubkey()

        Logger.info(f"[TRADE] Buying {lamports_to_sol(sol_in)} SOL of {mint} ({mode.value})")
        snapshot = await self.market_data.fetch_snapshot(str(mint_pk))
        token_account = await self._resolve_holding_account(owner, mint_pk)

        quote = quote_buy(
            snapshot.virtual_sol_reserves,
            snapshot.virtual_token_reserves,
            sol_in,
            self.config.slippage,
        )
        Logger.debug(f"[QUOTE] buy token_out={quote.token_out} max_sol_cost={quote.max_sol_cost}")

        if mode == TransactionMode.EXECUTION:
            available = await self.ledger.get_balance(owner)
            if available < quote.max_sol_cost:
                raise InsufficientBalance(str(owner), quote.max_sol_cost, available)

        accounts = CurveAccounts(
            mint=mint_pk,
            bonding_curve=snapshot.bonding_curve,
            associated_bonding_curve=snapshot.associated_bonding_curve,
            trader_token_account=token_account,
            trader=owner,
        )
        ix = self.factory.build_buy_instruction(accounts, quote.token_out, quote.max_sol_cost)
        return await self._submit(
            "BUY", payer, mint_pk, quote.token_out, quote.max_sol_cost, ix, mode, in_flight
        )

    async def sell(
        self,
        seller: Keypair,
        mint: str,
        token_in: int,
        mode: Optional[TransactionMode] = None,
    ) -> TradeResult:
        """
        Sell `token_in` raw units back to the curve.

        Raises:
            MarketDataUnavailable, HoldingAccountMissing, InvalidInput, TransactionFailed
        """
        return await self._sell(seller, mint, token_in, mode, None)

    async def _sell(self, seller, mint, token_in, mode, in_flight) -> TradeResult:
        mode = mode or self.config.mode
        mint_pk = parse_pubkey(mint, "mint")
        owner = seller.pubkey()

        Logger.info(f"[SELL] Selling {token_in} tokens of {mint} from {str(owner)[:8]}... ({mode.value})")
        snapshot = await self.market_data.fetch_snapshot(str(mint_pk))
        token_account = await self._resolve_holding_account(owner, mint_pk)

        quote = quote_sell(
            snapshot.virtual_sol_reserves,
            snapshot.virtual_token_reserves,
            token_in,
            self.config.slippage,
        )
        Logger.debug(f"[QUOTE] sell token_in={quote.token_in} min_sol_out={quote.min_sol_out}")

        accounts = CurveAccounts(
            mint=mint_pk,
            bonding_curve=snapshot.bonding_curve,
            associated_bonding_curve=snapshot.associated_bonding_curve,
            trader_token_account=token_account,
            trader=owner,
        )
        ix = self.factory.build_sell_instruction(accounts, quote.token_in, quote.min_sol_out)
        return await self._submit(
            "SELL", seller, mint_pk, quote.token_in, quote.min_sol_out, ix, mode, in_flight
        )

    async def sell_all(
        self,
        seller: Keypair,
        mint: str,
        mode: Optional[TransactionMode] = None,
    ) -> TradeResult:
        """Sell the seller's whole current token balance."""
        return await self._sell_all(seller, mint, mode, None)

    async def _sell_all(self, seller, mint, mode, in_flight) -> TradeResult:
        mint_pk = parse_pubkey(mint, "mint")
        owner = seller.pubkey()
        token_account = await self._resolve_holding_account(owner, mint_pk)

        balance = await self.ledger.get_token_balance(token_account)
        if balance <= 0:
            raise InsufficientBalance(str(owner), 1, balance, unit="tokens")
        return await self._sell(seller, str(mint_pk), balance, mode, in_flight)

    # ═══════════════════════════════════════════════════════════════════
    # RETRY WRAPPERS
    # ═══════════════════════════════════════════════════════════════════

    async def _retry_trade(
        self,
        attempt: Callable[[List[TradeResult]], Awaitable[TradeResult]],
        name: str,
    ) -> TradeResult:
        in_flight: List[TradeResult] = []

        async def _once() -> TradeResult:
            for earlier in in_flight:
                if await self.ledger.signature_landed(earlier.signature):
                    Logger.warning(f"[RETRY] {name}: earlier attempt {earlier.signature} landed, not resending")
                    return earlier
            return await attempt(in_flight)

        return await self.retry.run(_once, name=name)

    async def buy_with_retry(
        self,
        payer: Keypair,
        mint: str,
        sol_in: int,
        mode: Optional[TransactionMode] = None,
    ) -> TradeResult:
        return await self._retry_trade(
            lambda in_flight: self._buy(payer, mint, sol_in, mode, in_flight),
            name=f"buy {str(payer.pubkey())[:8]}...",
        )

    async def sell_with_retry(
        self,
        seller: Keypair,
        mint: str,
        token_in: int,
        mode: Optional[TransactionMode] = None,
    ) -> TradeResult:
        return await self._retry_trade(
            lambda in_flight: self._sell(seller, mint, token_in, mode, in_flight),
            name=f"sell {str(seller.pubkey())[:8]}...",
        )

    async def sell_all_with_retry(
        self,
        seller: Keypair,
        mint: str,
        mode: Optional[TransactionMode] = None,
    ) -> TradeResult:
        return await self._retry_trade(
            lambda in_flight: self._sell_all(seller, mint, mode, in_flight),
            name=f"sell_all {str(seller.pubkey())[:8]}...",
        )
