"""
Test suite for the transaction builder service.

Tests the full validate, build and sign pipeline for every kind.
"""

import pytest

from arktx.config import NETWORK_VERSIONS, ArkTxConfig, NetworkType
from arktx.core.errors import AddressMismatch, BuildFailure, InsufficientFunds, InvalidAddress
from arktx.core.request import BatchItem, LocalSigning, TransactionRequest
from arktx.core.service import TransactionBuilderService
from arktx.core.transaction import TransactionType
from arktx.crypto.ark import ArkCrypto, address_from_public_key, get_keys, verify_signature

from conftest import SENDER, FakeNode, batch_items, send_request


VOTE = "+" + "02" + "ef" * 32


def kind_request(kind: TransactionType, **kwargs) -> TransactionRequest:
    return TransactionRequest(kind=kind, from_address=SENDER, signer=LocalSigning("secret", "second"), **kwargs)


# ============================================================================
# Test Single Transactions
# ============================================================================

class TestSendTransactions:
    """Tests for single sends."""

    @pytest.mark.asyncio
    async def test_send_within_balance(self, service):
        """Balance 1000, fee 10, amount 500 succeeds."""
        tx = await service.create_send_transaction(send_request(amount=500))

        assert tx.fee == 10
        assert tx.amount == 500
        assert tx.sender_id == SENDER
        assert tx.type == TransactionType.SEND

    @pytest.mark.asyncio
    async def test_send_over_balance(self, service, fake_crypto):
        """995 + 10 > 1000 fails before any primitive is used."""
        with pytest.raises(InsufficientFunds):
            await service.create_send_transaction(send_request(amount=995))

        assert fake_crypto.build_calls == 0

    @pytest.mark.asyncio
    async def test_invalid_recipient(self, service, fake_crypto):
        with pytest.raises(InvalidAddress):
            await service.create_send_transaction(send_request(recipient="BOGUS"))

        assert fake_crypto.build_calls == 0

    @pytest.mark.asyncio
    async def test_address_mismatch(self, service):
        with pytest.raises(AddressMismatch):
            await service.create_send_transaction(send_request(signer=LocalSigning("wrong")))

    @pytest.mark.asyncio
    async def test_id_reproducible(self, service, fake_crypto):
        tx = await service.create_send_transaction(send_request())

        assert fake_crypto.compute_id(tx.payload()) == tx.id
        assert tx.to_dict()["id"] == tx.id

    @pytest.mark.asyncio
    async def test_signed_transaction_is_frozen(self, service):
        tx = await service.create_send_transaction(send_request())

        with pytest.raises(AttributeError):
            tx.amount = 1

    @pytest.mark.asyncio
    async def test_hardware_send(self, service, hardware_signer, device_signer):
        tx = await service.create_send_transaction(send_request(signer=device_signer))

        assert tx.signature == "HWSIG-0"
        assert len(hardware_signer.calls) == 1

    @pytest.mark.asyncio
    async def test_wrong_kind_rejected(self, service):
        with pytest.raises(ValueError):
            await service.create_vote_transaction(send_request())


class TestOtherKinds:
    """Tests for second passphrase, delegate and vote transactions."""

    @pytest.mark.asyncio
    async def test_second_passphrase(self, service):
        tx = await service.create_second_passphrase_transaction(
            kind_request(TransactionType.SECOND_SIGNATURE)
        )

        assert tx.fee == 50
        assert tx.asset["signature"]["publicKey"] == "PK-second"

    @pytest.mark.asyncio
    async def test_delegate(self, service):
        tx = await service.create_delegate_transaction(
            kind_request(TransactionType.DELEGATE, username="delegate_1")
        )

        assert tx.fee == 250
        assert tx.asset["delegate"]["username"] == "delegate_1"

    @pytest.mark.asyncio
    async def test_vote(self, service):
        tx = await service.create_vote_transaction(kind_request(TransactionType.VOTE, votes=(VOTE,)))

        assert tx.fee == 10
        assert tx.asset["votes"] == [VOTE]

    @pytest.mark.asyncio
    async def test_empty_vote_fails_to_build(self, service):
        with pytest.raises(BuildFailure):
            await service.create_vote_transaction(kind_request(TransactionType.VOTE))

    @pytest.mark.asyncio
    async def test_delegate_fee_floor(self, fake_crypto, hardware_signer, test_config):
        node = FakeNode(balance=249)
        service = TransactionBuilderService(node, node, fake_crypto, hardware_signer, test_config)

        with pytest.raises(InsufficientFunds):
            await service.create_delegate_transaction(
                kind_request(TransactionType.DELEGATE, username="delegate_1")
            )

        assert fake_crypto.build_calls == 0


# ============================================================================
# Test Batches
# ============================================================================

class TestMultipleSends:
    """Tests for the batch entry point."""

    @pytest.mark.asyncio
    async def test_batch_of_three(self, fake_crypto, hardware_signer, test_config, local_signer):
        node = FakeNode(balance=400)
        service = TransactionBuilderService(node, node, fake_crypto, hardware_signer, test_config)

        result = await service.create_multiple_send_transactions(
            SENDER, batch_items(100, 100, 100), local_signer
        )

        assert [tx.recipient_id for tx in result] == ["VALID-0", "VALID-1", "VALID-2"]

    @pytest.mark.asyncio
    async def test_batch_with_invalid_second_item(self, service, fake_crypto, local_signer):
        with pytest.raises(InvalidAddress):
            await service.create_multiple_send_transactions(
                SENDER, batch_items(100, 100, 100, invalid_at=1), local_signer
            )

        assert fake_crypto.build_calls == 0


# ============================================================================
# Test With ARK Cryptography
# ============================================================================

class TestWithArkCrypto:
    """End-to-end runs with the real primitives."""

    @pytest.fixture
    def ark_setup(self):
        config = ArkTxConfig(network=NetworkType.DEVNET, hardware_stagger_ms=0)
        version = NETWORK_VERSIONS[NetworkType.DEVNET]
        passphrase = "ark end to end passphrase"
        sender = address_from_public_key(get_keys(passphrase).public_key, version)
        recipients = [
            address_from_public_key(get_keys(f"recipient {i}").public_key, version)
            for i in range(3)
        ]
        node = FakeNode(balance=10_000_000_000)
        service = TransactionBuilderService(node, node, ArkCrypto(), config=config)
        return service, passphrase, sender, recipients

    @pytest.mark.asyncio
    async def test_signed_send(self, ark_setup):
        service, passphrase, sender, recipients = ark_setup
        request = TransactionRequest(
            kind=TransactionType.SEND,
            from_address=sender,
            signer=LocalSigning(passphrase),
            recipient=recipients[0],
            amount=100_000_000,
            memo="invoice 42",
        )

        tx = await service.create_send_transaction(request)

        assert verify_signature(tx.payload()) is True
        assert tx.to_dict()["vendorField"] == "invoice 42"
        assert ArkCrypto().compute_id(tx.payload()) == tx.id

    @pytest.mark.asyncio
    async def test_signed_batch(self, ark_setup):
        service, passphrase, sender, recipients = ark_setup
        items = [BatchItem(address=r, amount=(i + 1) * 1_000) for i, r in enumerate(recipients)]

        result = await service.create_multiple_send_transactions(sender, items, LocalSigning(passphrase))

        assert [tx.recipient_id for tx in result] == recipients
        assert all(verify_signature(tx.payload()) for tx in result)
        assert len({tx.id for tx in result}) == 3
