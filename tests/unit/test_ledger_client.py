"""
Ledger Client Unit Tests
========================
Transaction assembly and response handling over a mocked AsyncClient.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction
from solders.transaction_status import TransactionConfirmationStatus

from pumpfleet.shared.errors import TransactionFailed
from pumpfleet.shared.infrastructure.ledger_client import LedgerClient


@pytest.fixture
def rpc():
    client = AsyncMock()
    client.get_latest_blockhash.return_value = MagicMock(value=MagicMock(blockhash=Hash.default()))
    client.send_transaction.return_value = MagicMock(value=Signature.default())
    client.confirm_transaction.return_value = MagicMock(value=[MagicMock(err=None)])
    return client


@pytest.fixture
def payer():
    return Keypair()


def _transfer_ix(payer):
    return transfer(TransferParams(from_pubkey=payer.pubkey(), to_pubkey=Pubkey(bytes([8] * 32)), lamports=1_000))


@pytest.mark.unit
class TestReads:
    @pytest.mark.asyncio
    async def test_get_balance(self, rpc):
        rpc.get_balance.return_value = MagicMock(value=123_456)

        assert await LedgerClient("http://rpc", client=rpc).get_balance(Pubkey.default()) == 123_456

    @pytest.mark.asyncio
    async def test_token_balance_of_missing_account_is_zero(self, rpc):
        rpc.get_account_info.return_value = MagicMock(value=None)

        assert await LedgerClient("http://rpc", client=rpc).get_token_balance(Pubkey.default()) == 0
        rpc.get_token_account_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_balance_parses_raw_amount(self, rpc):
        rpc.get_account_info.return_value = MagicMock(value=MagicMock())
        rpc.get_token_account_balance.return_value = MagicMock(value=MagicMock(amount="5000000"))

        assert await LedgerClient("http://rpc", client=rpc).get_token_balance(Pubkey.default()) == 5_000_000


@pytest.mark.unit
class TestSendAndConfirm:
    @pytest.mark.asyncio
    async def test_signs_submits_and_confirms(self, rpc, payer):
        ledger = LedgerClient("http://rpc", client=rpc)

        sig = await ledger.send_and_confirm([_transfer_ix(payer)], payer)

        assert sig == str(Signature.default())
        tx = rpc.send_transaction.await_args.args[0]
        assert isinstance(tx, VersionedTransaction)
        assert tx.message.account_keys[0] == payer.pubkey()
        assert rpc.send_transaction.await_args.kwargs["opts"].skip_preflight is True
        rpc.confirm_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_on_chain_error_raises(self, rpc, payer):
        rpc.confirm_transaction.return_value = MagicMock(value=[MagicMock(err="InstructionError(0, Custom(1))")])

        with pytest.raises(TransactionFailed) as exc_info:
            await LedgerClient("http://rpc", client=rpc).send_and_confirm([_transfer_ix(payer)], payer, label="fund")

        assert exc_info.value.operation == "fund"
        assert exc_info.value.signature == str(Signature.default())
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_rpc_rejection_raises(self, rpc, payer):
        rpc.send_transaction.side_effect = RPCException("Blockhash not found")

        with pytest.raises(TransactionFailed) as exc_info:
            await LedgerClient("http://rpc", client=rpc).send_and_confirm([_transfer_ix(payer)], payer)

        assert exc_info.value.signature is None


@pytest.mark.unit
class TestSignatureLanded:
    @pytest.mark.asyncio
    async def test_confirmed_without_error(self, rpc):
        rpc.get_signature_statuses.return_value = MagicMock(
            value=[MagicMock(err=None, confirmation_status=TransactionConfirmationStatus.Confirmed)]
        )

        assert await LedgerClient("http://rpc", client=rpc).signature_landed(str(Signature.default()))
        assert rpc.get_signature_statuses.await_args.args[0] == [Signature.default()]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        [
            None,
            MagicMock(err="InstructionError(0, Custom(1))", confirmation_status=TransactionConfirmationStatus.Confirmed),
            MagicMock(err=None, confirmation_status=TransactionConfirmationStatus.Processed),
        ],
    )
    async def test_not_landed(self, rpc, status):
        rpc.get_signature_statuses.return_value = MagicMock(value=[status])

        assert not await LedgerClient("http://rpc", client=rpc).signature_landed(str(Signature.default()))

    @pytest.mark.asyncio
    async def test_rpc_error_is_a_transaction_failure(self, rpc):
        rpc.get_signature_statuses.side_effect = RPCException("node is behind")

        with pytest.raises(TransactionFailed):
            await LedgerClient("http://rpc", client=rpc).signature_landed(str(Signature.default()))


@pytest.mark.unit
class TestSimulate:
    @pytest.mark.asyncio
    async def test_maps_simulation_response(self, rpc, payer):
        rpc.simulate_transaction.return_value = MagicMock(
            value=MagicMock(err=None, logs=["Program log: ok"], units_consumed=1_234)
        )

        outcome = await LedgerClient("http://rpc", client=rpc).simulate([_transfer_ix(payer)], payer)

        assert outcome.ok
        assert outcome.logs == ["Program log: ok"]
        assert outcome.units_consumed == 1_234
        rpc.send_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_simulation_error_is_returned(self, rpc, payer):
        rpc.simulate_transaction.return_value = MagicMock(
            value=MagicMock(err="InsufficientFundsForFee", logs=None, units_consumed=0)
        )

        outcome = await LedgerClient("http://rpc", client=rpc).simulate([_transfer_ix(payer)], payer)

        assert not outcome.ok
        assert outcome.logs == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_context_manager_closes_client(rpc):
    async with LedgerClient("http://rpc", client=rpc):
        pass
    rpc.close.assert_awaited_once()
