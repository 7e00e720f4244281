"""Tests for anonymous transfers (ZkHoleClient)."""

import pytest

from zkhole.core.transfer import LAMPORTS_PER_SOL, ZkHoleClient
from zkhole.crypto.artifacts import is_proof_artifact, is_signature
from zkhole.exceptions import NetworkError, ValidationError, WalletError
from zkhole.models.schemas import TransactionParams, TransactionStatus
from zkhole.security.wallet import WatchOnlyWallet

RECIPIENT = "83astBRguLMdt2h5U1Tpdq5tjFoJ6noeGwaY3mDLVcri"


class TestConstruction:
    """Test constructor checks."""

    def test_requires_ledger(self, wallet, settings):
        with pytest.raises(ValidationError, match="Ledger connection is required"):
            ZkHoleClient(None, wallet, settings=settings)

    def test_requires_wallet(self, ledger, settings):
        with pytest.raises(ValidationError, match="Wallet is required"):
            ZkHoleClient(ledger, None, settings=settings)

    def test_rejects_unknown_network(self, ledger, wallet, settings):
        with pytest.raises(ValidationError, match="Invalid network"):
            ZkHoleClient(ledger, wallet, "localnet", settings=settings)

    @pytest.mark.parametrize("timeout", [0, -5, True, 1.5])
    def test_rejects_bad_timeout(self, ledger, wallet, settings, timeout):
        with pytest.raises(ValidationError, match="Timeout"):
            ZkHoleClient(ledger, wallet, timeout=timeout, settings=settings)

    def test_defaults_from_settings(self, ledger, wallet, settings):
        client = ZkHoleClient(ledger, wallet, settings=settings)
        assert client.get_network() == "devnet"
        assert client.timeout == 30000

    def test_explicit_network(self, ledger, wallet, settings):
        client = ZkHoleClient(ledger, wallet, "mainnet-beta", 5000, settings=settings)
        assert client.get_network() == "mainnet-beta"
        assert client.timeout == 5000

    def test_wallet_address(self, transfer_client, funded_wallet):
        assert transfer_client.get_wallet_address() == funded_wallet.public_key

    def test_disconnected_wallet_address(self, make_client):
        client = make_client(ZkHoleClient, WatchOnlyWallet(public_key=None))
        with pytest.raises(WalletError, match="Wallet not connected"):
            client.get_wallet_address()


class TestSendAnonymous:
    """Test the transfer pipeline."""

    @pytest.mark.asyncio
    async def test_send(self, transfer_client):
        tx = await transfer_client.send_anonymous(
            TransactionParams(recipient=RECIPIENT, amount=1.5, memo="rent")
        )
        assert tx.transaction_id.startswith("tx_")
        assert is_signature(tx.signature)
        assert is_proof_artifact(tx.zk_proof)
        assert tx.status is TransactionStatus.PENDING
        assert tx.amount == 1.5
        assert tx.recipient == RECIPIENT
        assert tx.memo == "rent"

    @pytest.mark.asyncio
    async def test_funds_move(self, transfer_client, local_ledger, funded_wallet):
        await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": 4})
        assert await local_ledger.get_balance(funded_wallet.public_key) == 6.0
        assert await local_ledger.get_balance(RECIPIENT) == 4.0

    @pytest.mark.asyncio
    async def test_proof_hides_recipient(self, transfer_client, prover):
        await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": 1})
        context = prover.contexts[0]
        assert context.statement == "transfer_validity"
        assert RECIPIENT not in context.to_bytes().decode()

    @pytest.mark.asyncio
    async def test_exact_balance_is_enough(self, transfer_client):
        tx = await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": 10})
        assert tx.amount == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -1])
    async def test_non_positive_amount(self, transfer_client, amount):
        with pytest.raises(ValidationError, match="greater than 0"):
            await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": amount})

    @pytest.mark.asyncio
    async def test_missing_params(self, transfer_client):
        with pytest.raises(ValidationError):
            await transfer_client.send_anonymous(None)


class TestReads:
    """Test balance, status, confirmation and history."""

    @pytest.mark.asyncio
    async def test_own_balance(self, transfer_client, funded_wallet):
        balance = await transfer_client.get_balance()
        assert balance.address == funded_wallet.public_key
        assert balance.sol == 10.0
        assert balance.lamports == 10 * LAMPORTS_PER_SOL

    @pytest.mark.asyncio
    async def test_other_balance(self, transfer_client):
        assert (await transfer_client.get_balance(RECIPIENT)).lamports == 0

    @pytest.mark.asyncio
    async def test_invalid_balance_address(self, transfer_client, ledger):
        with pytest.raises(ValidationError):
            await transfer_client.get_balance("not-hex")
        assert ledger.calls == []

    @pytest.mark.asyncio
    async def test_status_after_submit(self, transfer_client):
        tx = await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": 1})
        by_id = await transfer_client.get_transaction_status(tx.transaction_id)
        by_signature = await transfer_client.get_transaction_status(tx.signature)

        assert by_id.status is TransactionStatus.CONFIRMED
        assert by_id == by_signature
        # The original result record is never mutated.
        assert tx.status is TransactionStatus.PENDING

    @pytest.mark.asyncio
    async def test_status_is_idempotent(self, transfer_client):
        tx = await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": 1})
        first = await transfer_client.get_transaction_status(tx.transaction_id)
        second = await transfer_client.get_transaction_status(tx.transaction_id)
        assert first == second

    @pytest.mark.asyncio
    async def test_status_of_unknown_id(self, transfer_client):
        with pytest.raises(NetworkError):
            await transfer_client.get_transaction_status("tx_missing")

    @pytest.mark.asyncio
    async def test_unrecognised_ledger_status(self, transfer_client, local_ledger):
        tx = await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": 1})
        local_ledger.set_status(tx.transaction_id, "reorged")
        with pytest.raises(NetworkError, match="Failed to get transaction status"):
            await transfer_client.get_transaction_status(tx.transaction_id)
        with pytest.raises(NetworkError, match="Failed to fetch transaction history"):
            await transfer_client.get_transaction_history()

    @pytest.mark.asyncio
    async def test_status_of_non_transfer(self, transfer_client, make_client, funded_wallet):
        from zkhole.core.identity import HoleIDClient
        identity = await make_client(HoleIDClient, funded_wallet).create_identity({"username": "alice"})
        with pytest.raises(ValidationError, match="not a transfer"):
            await transfer_client.get_transaction_status(identity.hole_id)

    @pytest.mark.asyncio
    async def test_confirm(self, transfer_client):
        tx = await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": 1})
        confirmation = await transfer_client.confirm_transaction(tx.signature)
        assert confirmation.confirmed
        assert confirmation.signature == tx.signature

    @pytest.mark.asyncio
    async def test_confirm_requires_signature(self, transfer_client):
        with pytest.raises(ValidationError, match="Signature is required"):
            await transfer_client.confirm_transaction("")

    @pytest.mark.asyncio
    async def test_history(self, transfer_client):
        first = await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": 1, "memo": "one"})
        second = await transfer_client.send_anonymous({"recipient": RECIPIENT, "amount": 2})

        history = await transfer_client.get_transaction_history()
        assert [tx.transaction_id for tx in history] == [second.transaction_id, first.transaction_id]
        assert history[1].memo == "one"
        assert history[0].status is TransactionStatus.CONFIRMED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 101, True])
    async def test_history_limit(self, transfer_client, limit):
        with pytest.raises(ValidationError, match="Limit"):
            await transfer_client.get_transaction_history(limit)
