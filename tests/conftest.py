"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
import hashlib
import json
from typing import Any, Dict, List, Optional, Sequence

import pytest

from arktx.config import ArkTxConfig, NetworkType
from arktx.core.request import (
    Account,
    BatchItem,
    FeeSchedule,
    HardwareSigning,
    LocalSigning,
    TransactionRequest,
)
from arktx.core.service import TransactionBuilderService
from arktx.core.transaction import TransactionType, UnsignedTransaction
from arktx.crypto.interface import CryptoPrimitives
from arktx.hardware.interface import HardwareSigner, HardwareSignerError
from arktx.node.interface import AccountProvider, FeeResolver


PASSPHRASE = "secret"
SENDER = "ADDR-PK-secret"
DEVICE_PUBLIC_KEY = "PK-device"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> ArkTxConfig:
    """Create a test configuration."""
    return ArkTxConfig(
        network=NetworkType.DEVNET,
        hardware_stagger_ms=50,
        log_level="DEBUG",
    )


# ============================================================================
# Fake Collaborators
# ============================================================================

class FakeCrypto(CryptoPrimitives):
    """
    Deterministic stand-in for the crypto primitives.

    A passphrase ``p`` has public key ``PK-p`` and address ``ADDR-PK-p``.
    Addresses starting with ``VALID`` or ``ADDR-`` are valid.
    """

    def __init__(self):
        self.build_calls = 0
        self.fail_with: Optional[Exception] = None

    def derive_address(self, public_key: str, network_version: int) -> str:
        return f"ADDR-{public_key}"

    def is_valid_address(self, address: str, network_version: int) -> bool:
        return address.startswith(("VALID", "ADDR-"))

    def _make(self, tx: UnsignedTransaction, passphrase, second_passphrase) -> UnsignedTransaction:
        self.build_calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        if passphrase is not None:
            tx.sender_public_key = f"PK-{passphrase}"
            tx.signature = f"SIG-{passphrase}"
            if second_passphrase:
                tx.sign_signature = f"SIG2-{second_passphrase}"
        return tx

    def create_transfer(self, recipient_id, amount, vendor_field, fee,
                        passphrase=None, second_passphrase=None):
        tx = UnsignedTransaction(
            type=TransactionType.SEND,
            amount=amount,
            fee=fee,
            timestamp=1000,
            recipient_id=recipient_id,
            vendor_field=vendor_field,
        )
        return self._make(tx, passphrase, second_passphrase)

    def create_second_signature(self, fee, passphrase, second_passphrase):
        tx = UnsignedTransaction(
            type=TransactionType.SECOND_SIGNATURE,
            fee=fee,
            timestamp=1000,
            asset={"signature": {"publicKey": f"PK-{second_passphrase}"}},
        )
        return self._make(tx, passphrase, None)

    def create_delegate(self, username, fee, passphrase=None, second_passphrase=None):
        if not username:
            self.build_calls += 1
            raise ValueError("Delegate username is required")
        tx = UnsignedTransaction(
            type=TransactionType.DELEGATE,
            fee=fee,
            timestamp=1000,
            asset={"delegate": {"username": username}},
        )
        return self._make(tx, passphrase, second_passphrase)

    def create_vote(self, votes: Sequence[str], fee, passphrase=None, second_passphrase=None):
        if not votes:
            self.build_calls += 1
            raise ValueError("At least one vote is required")
        tx = UnsignedTransaction(
            type=TransactionType.VOTE,
            fee=fee,
            timestamp=1000,
            asset={"votes": list(votes)},
        )
        return self._make(tx, passphrase, second_passphrase)

    def compute_id(self, payload: Dict[str, Any]) -> str:
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()


class FakeNode(AccountProvider, FeeResolver):
    """In-memory account and fee source."""

    def __init__(self, balance: int = 1000, fees: Optional[FeeSchedule] = None):
        self.balance = balance
        self.fees = fees or FeeSchedule(send=10, secondsignature=50, delegate=250, vote=10)
        self.account_calls = 0
        self.fee_calls = 0

    async def get_account(self, address: str) -> Account:
        self.account_calls += 1
        return Account(address=address, balance=self.balance, public_key=None)

    async def get_fees(self) -> FeeSchedule:
        self.fee_calls += 1
        return self.fees


class FakeHardwareSigner(HardwareSigner):
    """Records dispatch times and payloads; fails on chosen calls."""

    def __init__(self, latency: float = 0.0, fail_on: Sequence[int] = ()):
        self.latency = latency
        self.fail_on = set(fail_on)
        self.calls: List[Dict[str, Any]] = []
        self.active = 0
        self.max_active = 0

    async def sign(self, device_ref: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        index = len(self.calls)
        self.calls.append({
            "device_ref": device_ref,
            "payload": payload,
            "time": asyncio.get_running_loop().time(),
        })
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            if index in self.fail_on:
                raise HardwareSignerError("Device rejected the request", device_ref)
            return {"signature": f"HWSIG-{index}"}
        finally:
            self.active -= 1


@pytest.fixture
def fake_crypto() -> FakeCrypto:
    return FakeCrypto()


@pytest.fixture
def fake_node() -> FakeNode:
    return FakeNode()


@pytest.fixture
def hardware_signer() -> FakeHardwareSigner:
    return FakeHardwareSigner()


@pytest.fixture
def service(fake_node, fake_crypto, hardware_signer, test_config) -> TransactionBuilderService:
    return TransactionBuilderService(
        fake_node,
        fake_node,
        fake_crypto,
        hardware_signer=hardware_signer,
        config=test_config,
    )


# ============================================================================
# Request Fixtures
# ============================================================================

@pytest.fixture
def local_signer() -> LocalSigning:
    return LocalSigning(PASSPHRASE)


@pytest.fixture
def device_signer() -> HardwareSigning:
    return HardwareSigning(device_ref="ledger-0", public_key=DEVICE_PUBLIC_KEY)


def send_request(amount: int = 500, recipient: str = "VALID", signer=None, **kwargs) -> TransactionRequest:
    """Create a send request from the default sender."""
    return TransactionRequest(
        kind=TransactionType.SEND,
        from_address=kwargs.pop("from_address", SENDER),
        signer=signer or LocalSigning(PASSPHRASE),
        recipient=recipient,
        amount=amount,
        **kwargs,
    )


def batch_items(*amounts: int, invalid_at: Optional[int] = None) -> List[BatchItem]:
    """Create batch items; the item at ``invalid_at`` gets a bad address."""
    return [
        BatchItem(
            address="BOGUS" if i == invalid_at else f"VALID-{i}",
            amount=amount,
        )
        for i, amount in enumerate(amounts)
    ]
