"""
Ledger Client
=============
Thin async adapter over `solana.rpc.async_api.AsyncClient`.

Handles the messy real-world interaction with Solana:
- Assemble versioned transactions (MessageV0, signed by the payer)
- Submit and wait for `confirmed` commitment
- Dry-run (simulate) without landing anything
- Balance / account-existence reads

No retries live here. Callers wrap mutations in a RetryPolicy.
"""

from __future__ import annotations

from typing import List, Optional

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction
from solders.transaction_status import TransactionConfirmationStatus

from pumpfleet.shared.errors import TransactionFailed
from pumpfleet.shared.execution.execution_result import SimulationOutcome
from pumpfleet.shared.system.logging import Logger

_RPC_ERRORS = (SolanaRpcException, RPCException, UnconfirmedTxError)


class LedgerClient:
    """
    Usage:
        async with LedgerClient("https://api.mainnet-beta.solana.com") as ledger:
            lamports = await ledger.get_balance(owner)
            sig = await ledger.send_and_confirm([ix], payer)
    """

    def __init__(self, rpc_url: str, timeout_s: float = 30.0, client: AsyncClient = None):
        self.rpc_url = rpc_url
        self.client = client or AsyncClient(rpc_url, commitment=Confirmed, timeout=timeout_s)

    async def __aenter__(self) -> "LedgerClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.close()

    # ═══════════════════════════════════════════════════════════════════
    # READS
    # ═══════════════════════════════════════════════════════════════════

    async def get_balance(self, owner: Pubkey) -> int:
        """Native balance in lamports."""
        resp = await self.client.get_balance(owner, commitment=Confirmed)
        return resp.value

    async def account_exists(self, account: Pubkey) -> bool:
        resp = await self.client.get_account_info(account, commitment=Confirmed)
        return resp.value is not None

    async def get_token_balance(self, token_account: Pubkey) -> int:
        """Raw token units held by `token_account`; 0 when it does not exist."""
        if not await self.account_exists(token_account):
            return 0
        resp = await self.client.get_token_account_balance(token_account, commitment=Confirmed)
        return int(resp.value.amount)

    async def signature_landed(self, signature: str) -> bool:
        """
        True when `signature` reached at least `confirmed` without an on-chain
        error. Used before resending a submit whose confirmation timed out.
        """
        try:
            resp = await self.client.get_signature_statuses(
                [Signature.from_string(signature)], search_transaction_history=True
            )
        except _RPC_ERRORS as e:
            raise TransactionFailed("signature_status", str(e), signature) from e

        status = resp.value[0] if resp.value else None
        if status is None or status.err is not None:
            return False
        return status.confirmation_status != TransactionConfirmationStatus.Processed

    # ═══════════════════════════════════════════════════════════════════
    # TRANSACTIONS
    # ═══════════════════════════════════════════════════════════════════

    async def _build_transaction(
        self,
        instructions: List[Instruction],
        payer: Keypair,
    ) -> VersionedTransaction:
        bh_resp = await self.client.get_latest_blockhash(commitment=Confirmed)
        msg = MessageV0.try_compile(
            payer=payer.pubkey(),
            instructions=instructions,
            address_lookup_table_accounts=[],
            recent_blockhash=bh_resp.value.blockhash,
        )
        return VersionedTransaction(msg, [payer])

    async def send_and_confirm(
        self,
        instructions: List[Instruction],
        payer: Keypair,
        label: str = "transaction",
    ) -> str:
        """
        Sign, submit and wait for `confirmed` commitment.

        Returns:
            The transaction signature (base58)

        Raises:
            TransactionFailed: RPC rejection, confirmation timeout or on-chain error
        """
        tx = await self._build_transaction(instructions, payer)
        signature: Optional[str] = None
        try:
            resp = await self.client.send_transaction(
                tx, opts=TxOpts(skip_preflight=True, preflight_commitment=Confirmed)
            )
            signature = str(resp.value)
            Logger.debug(f"[LEDGER] {label} submitted: {signature}")

            conf = await self.client.confirm_transaction(resp.value, commitment=Confirmed)
        except _RPC_ERRORS as e:
            raise TransactionFailed(label, str(e), signature) from e

        status = conf.value[0] if conf.value else None
        if status is not None and status.err is not None:
            raise TransactionFailed(label, f"on-chain error: {status.err}", signature)
        return signature

    async def simulate(
        self,
        instructions: List[Instruction],
        payer: Keypair,
        label: str = "transaction",
    ) -> SimulationOutcome:
        """Sign and dry-run against current ledger state. Nothing lands."""
        tx = await self._build_transaction(instructions, payer)
        try:
            resp = await self.client.simulate_transaction(tx, commitment=Confirmed)
        except _RPC_ERRORS as e:
            raise TransactionFailed(label, f"simulation request failed: {e}") from e

        value = resp.value
        outcome = SimulationOutcome(
            err=str(value.err) if value.err is not None else None,
            logs=list(value.logs or []),
            units_consumed=value.units_consumed,
        )
        Logger.debug(f"[LEDGER] {label} simulated: err={outcome.err} units={outcome.units_consumed}")
        return outcome
