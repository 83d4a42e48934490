"""
Transaction models.

Unsigned transactions are the mutable working records produced by the
factory; signed transactions are the frozen, id-bearing results of the
signing coordinator.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, Optional


class TransactionType(IntEnum):
    """ARK v1 transaction types (wire values)."""
    SEND = 0
    SECOND_SIGNATURE = 1
    DELEGATE = 2
    VOTE = 3

    @property
    def fee_key(self) -> str:
        """Key of this type in the node's fee schedule."""
        return _FEE_KEYS[self]


_FEE_KEYS = {
    TransactionType.SEND: "send",
    TransactionType.SECOND_SIGNATURE: "secondsignature",
    TransactionType.DELEGATE: "delegate",
    TransactionType.VOTE: "vote",
}


def _record(tx: Any, include_id: bool) -> Dict[str, Any]:
    data = {
        "type": int(tx.type),
        "amount": tx.amount,
        "fee": tx.fee,
        "recipientId": tx.recipient_id,
        "senderId": tx.sender_id,
        "senderPublicKey": tx.sender_public_key,
        "timestamp": tx.timestamp,
        "asset": tx.asset,
    }
    if tx.vendor_field is not None:
        data["vendorField"] = tx.vendor_field
    if tx.signature is not None:
        data["signature"] = tx.signature
    if tx.sign_signature is not None:
        data["signSignature"] = tx.sign_signature
    if include_id and getattr(tx, "id", None) is not None:
        data["id"] = tx.id
    return data


@dataclass
class UnsignedTransaction:
    """
    A transaction under construction.

    Built by the crypto primitives, completed with fee and sender by the
    factory and finalized by the signing coordinator. A locally built
    transaction already carries its signature; a hardware one does not.
    """

    type: TransactionType
    amount: int = 0
    fee: int = 0
    timestamp: int = 0
    recipient_id: Optional[str] = None
    sender_id: Optional[str] = None
    sender_public_key: Optional[str] = None
    vendor_field: Optional[str] = None
    asset: Dict[str, Any] = field(default_factory=dict)
    signature: Optional[str] = None
    sign_signature: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.type, int):
            self.type = TransactionType(self.type)

    @property
    def is_signed(self) -> bool:
        return self.signature is not None

    def payload(self) -> Dict[str, Any]:
        """Wire record of the transaction (no id)."""
        return _record(self, include_id=False)


@dataclass(frozen=True)
class SignedTransaction:
    """
    A finalized transaction.

    ``id`` is derived from all other fields; any change to them requires a
    new SignedTransaction with a recomputed id.
    """

    type: TransactionType
    amount: int
    fee: int
    timestamp: int
    recipient_id: Optional[str]
    sender_id: str
    sender_public_key: str
    signature: str
    id: str
    vendor_field: Optional[str] = None
    asset: Dict[str, Any] = field(default_factory=dict)
    sign_signature: Optional[str] = None

    @classmethod
    def from_unsigned(cls, tx: UnsignedTransaction, tx_id: str) -> "SignedTransaction":
        """Freeze a fully signed working transaction under its computed id."""
        values = {f.name: getattr(tx, f.name) for f in fields(tx)}
        values["asset"] = dict(tx.asset)
        return cls(id=tx_id, **values)

    def payload(self) -> Dict[str, Any]:
        """Wire record without the id (the input of the id function)."""
        return _record(self, include_id=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the ARK v1 JSON transaction record."""
        return _record(self, include_id=True)


class TransactionStage(str, Enum):
    """Stage of a single transaction in the pipeline."""
    VALIDATING = "validating"
    BUILDING = "building"
    SIGNING = "signing"
    FINALIZED = "finalized"
    FAILED = "failed"


_TRANSITIONS = {
    TransactionStage.VALIDATING: {TransactionStage.BUILDING, TransactionStage.FAILED},
    TransactionStage.BUILDING: {TransactionStage.SIGNING, TransactionStage.FAILED},
    TransactionStage.SIGNING: {TransactionStage.FINALIZED, TransactionStage.FAILED},
    TransactionStage.FINALIZED: set(),
    TransactionStage.FAILED: set(),
}


@dataclass
class TransactionLifecycle:
    """
    Tracks one transaction through validating, building and signing.

    FINALIZED and FAILED are terminal; there is no way back to
    VALIDATING or BUILDING once SIGNING is entered.
    """

    kind: TransactionType
    stage: TransactionStage = TransactionStage.VALIDATING
    backend: Optional[str] = None
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.stage]

    def _advance(self, stage: TransactionStage) -> None:
        if stage not in _TRANSITIONS[self.stage]:
            raise RuntimeError(
                f"Invalid transition {self.stage.value} -> {stage.value}"
            )
        self.stage = stage
        self.updated_at = datetime.utcnow()

    def mark_building(self) -> None:
        self._advance(TransactionStage.BUILDING)

    def mark_signing(self, backend: str) -> None:
        self._advance(TransactionStage.SIGNING)
        self.backend = backend

    def mark_finalized(self, transaction_id: str) -> None:
        self._advance(TransactionStage.FINALIZED)
        self.transaction_id = transaction_id

    def mark_failed(self, error: str) -> None:
        self._advance(TransactionStage.FAILED)
        self.error_message = error
