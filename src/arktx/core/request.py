"""
Request models.

Describes what the wallet asks for: the sender account snapshot, the fee
schedule, the signing method and the kind-specific request fields.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Union

from arktx.core.transaction import TransactionType


@dataclass(frozen=True)
class Account:
    """Point-in-time snapshot of a sender account (amounts in arktoshi)."""
    address: str
    balance: int
    public_key: Optional[str] = None


@dataclass(frozen=True)
class FeeSchedule:
    """Current fees per transaction kind (arktoshi)."""
    send: int
    secondsignature: int
    delegate: int
    vote: int

    def __post_init__(self):
        for name in ("send", "secondsignature", "delegate", "vote"):
            if getattr(self, name) < 0:
                raise ValueError(f"Fee for {name} must be non-negative")

    def fee_for(self, kind: TransactionType) -> int:
        return getattr(self, kind.fee_key)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeeSchedule":
        return cls(
            send=int(data["send"]),
            secondsignature=int(data["secondsignature"]),
            delegate=int(data["delegate"]),
            vote=int(data["vote"]),
        )


@dataclass(frozen=True)
class LocalSigning:
    """Sign with passphrases held by the caller."""
    master_passphrase: str = field(repr=False)
    second_passphrase: Optional[str] = field(default=None, repr=False)

    backend = "local"


@dataclass(frozen=True)
class HardwareSigning:
    """
    Sign on an external device.

    The device never reveals key material, so the sender public key has
    to be supplied alongside the device reference.
    """
    device_ref: str
    public_key: str

    backend = "hardware"


SigningMethod = Union[LocalSigning, HardwareSigning]


def signing_method_from_fields(
    master_passphrase: Optional[str] = None,
    second_passphrase: Optional[str] = None,
    hardware_signer_ref: Optional[str] = None,
    public_key: Optional[str] = None,
) -> SigningMethod:
    """
    Select the signing backend from flat request fields.

    A hardware signer reference selects the hardware backend; otherwise
    the local backend is used and requires the master passphrase.
    """
    if hardware_signer_ref:
        if not public_key:
            raise ValueError("Hardware signing requires the account public key")
        return HardwareSigning(device_ref=hardware_signer_ref, public_key=public_key)
    if not master_passphrase:
        raise ValueError("Local signing requires a master passphrase")
    return LocalSigning(master_passphrase, second_passphrase or None)


@dataclass(frozen=True)
class TransactionRequest:
    """
    A single transaction request.

    Attributes:
        kind: Transaction type to build
        from_address: Sender address the transaction is built for
        signer: Local or hardware signing method
        recipient: Destination address (send only)
        amount: Amount in arktoshi (send only)
        memo: Optional vendor field (send only)
        username: Delegate name (delegate registration only)
        votes: Signed public keys, e.g. ``+02ab...`` (vote only)
    """

    kind: TransactionType
    from_address: str
    signer: SigningMethod
    recipient: Optional[str] = None
    amount: int = 0
    memo: Optional[str] = None
    username: Optional[str] = None
    votes: Sequence[str] = ()

    @classmethod
    def from_fields(
        cls,
        kind: TransactionType,
        from_address: str,
        master_passphrase: Optional[str] = None,
        second_passphrase: Optional[str] = None,
        hardware_signer_ref: Optional[str] = None,
        public_key: Optional[str] = None,
        recipient: Optional[str] = None,
        amount: int = 0,
        memo: Optional[str] = None,
        username: Optional[str] = None,
        votes: Union[str, Sequence[str], None] = None,
    ) -> "TransactionRequest":
        """Create a request from the flat wallet input."""
        if isinstance(votes, str):
            votes = [v.strip() for v in votes.split(",") if v.strip()]
        signer = signing_method_from_fields(
            master_passphrase=master_passphrase,
            second_passphrase=second_passphrase,
            hardware_signer_ref=hardware_signer_ref,
            public_key=public_key,
        )
        return cls(
            kind=TransactionType(kind),
            from_address=from_address,
            signer=signer,
            recipient=recipient,
            amount=amount,
            memo=memo,
            username=username,
            votes=tuple(votes or ()),
        )

    @property
    def uses_hardware(self) -> bool:
        return isinstance(self.signer, HardwareSigning)


@dataclass(frozen=True)
class BatchItem:
    """One recipient of a multi-send batch (amount in arktoshi)."""
    address: str
    amount: int
    memo: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BatchItem":
        return cls(
            address=data["address"],
            amount=data["amount"],
            memo=data.get("smartbridge", data.get("memo")),
        )
