"""
ARK v1 cryptography.

secp256k1 keys derived from passphrases, Base58Check addresses, the v1
transaction byte layout, signatures and transaction ids.
"""

import hashlib
import re
import struct
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Sequence

import base58
import structlog
from Crypto.Hash import RIPEMD160
from ecdsa import BadSignatureError, SECP256k1, SigningKey, VerifyingKey
from ecdsa.util import sigdecode_der, sigencode_der_canonize

from arktx.core.transaction import TransactionType, UnsignedTransaction
from arktx.crypto.interface import CryptoPrimitives

logger = structlog.get_logger(__name__)


ARK_EPOCH = datetime(2017, 3, 21, 13, 0, 0, tzinfo=timezone.utc)

ADDRESS_LENGTH = 21
VENDOR_FIELD_LENGTH = 64
USERNAME_MAX_LENGTH = 20

_USERNAME_PATTERN = re.compile(r"^[a-z0-9!@$&_.]+$")
_VOTE_PATTERN = re.compile(r"^[+-][0-9a-fA-F]{66}$")


# ============================================================================
# KEYS AND ADDRESSES
# ============================================================================

@dataclass(frozen=True)
class KeyPair:
    """secp256k1 key pair derived from a passphrase."""
    signing_key: SigningKey
    public_key: str  # compressed, hex


def get_keys(passphrase: str) -> KeyPair:
    """Derive the key pair of a passphrase (sha256 of the UTF-8 text)."""
    secret = hashlib.sha256(passphrase.encode("utf-8")).digest()
    signing_key = SigningKey.from_string(secret, curve=SECP256k1)
    public_key = signing_key.get_verifying_key().to_string("compressed").hex()
    return KeyPair(signing_key=signing_key, public_key=public_key)


def ripemd160(data: bytes) -> bytes:
    return RIPEMD160.new(data).digest()


def address_from_public_key(public_key: str, network_version: int) -> str:
    """Base58Check of the version byte followed by RIPEMD160(public key)."""
    key_hash = ripemd160(bytes.fromhex(public_key))
    return base58.b58encode_check(bytes([network_version]) + key_hash).decode("ascii")


def validate_address(address: str, network_version: int) -> bool:
    if not isinstance(address, str) or not address:
        return False
    try:
        decoded = base58.b58decode_check(address)
    except ValueError:
        return False
    return len(decoded) == ADDRESS_LENGTH and decoded[0] == network_version


def get_timestamp(now: Optional[datetime] = None) -> int:
    """Seconds elapsed since the ARK epoch."""
    now = now or datetime.now(timezone.utc)
    return int((now - ARK_EPOCH).total_seconds())


# ============================================================================
# SERIALIZATION
# ============================================================================

def _asset_bytes(payload: Dict[str, Any]) -> bytes:
    tx_type = payload["type"]
    asset = payload.get("asset") or {}

    if tx_type == TransactionType.SECOND_SIGNATURE:
        return bytes.fromhex(asset["signature"]["publicKey"])
    if tx_type == TransactionType.DELEGATE:
        return asset["delegate"]["username"].encode("utf-8")
    if tx_type == TransactionType.VOTE:
        return "".join(asset["votes"]).encode("utf-8")
    return b""


def get_bytes(
    payload: Dict[str, Any],
    skip_signature: bool = False,
    skip_second_signature: bool = False,
) -> bytes:
    """
    Serialize a transaction record to the ARK v1 byte layout.

    type (1) | timestamp (4, LE) | sender public key (33) |
    recipient (21) | vendor field (64) | amount (8, LE) | fee (8, LE) |
    asset | signature | second signature
    """
    sender_public_key = payload.get("senderPublicKey")
    if not sender_public_key:
        raise ValueError("Transaction has no sender public key")

    buf = bytearray()
    buf += struct.pack("<B", int(payload["type"]))
    buf += struct.pack("<I", payload["timestamp"])
    buf += bytes.fromhex(sender_public_key)

    recipient_id = payload.get("recipientId")
    if recipient_id:
        buf += base58.b58decode_check(recipient_id)
    else:
        buf += bytes(ADDRESS_LENGTH)

    vendor_field = payload.get("vendorField")
    vendor_bytes = vendor_field.encode("utf-8") if vendor_field else b""
    buf += vendor_bytes.ljust(VENDOR_FIELD_LENGTH, b"\x00")

    buf += struct.pack("<Q", payload["amount"])
    buf += struct.pack("<Q", payload["fee"])
    buf += _asset_bytes(payload)

    if not skip_signature and payload.get("signature"):
        buf += bytes.fromhex(payload["signature"])
    if not skip_second_signature and payload.get("signSignature"):
        buf += bytes.fromhex(payload["signSignature"])

    return bytes(buf)


def get_hash(
    payload: Dict[str, Any],
    skip_signature: bool = False,
    skip_second_signature: bool = False,
) -> bytes:
    return hashlib.sha256(get_bytes(payload, skip_signature, skip_second_signature)).digest()


def sign_hash(digest: bytes, keys: KeyPair) -> str:
    """Deterministic, low-S DER signature in hex."""
    signature = keys.signing_key.sign_digest_deterministic(
        digest,
        hashfunc=hashlib.sha256,
        sigencode=sigencode_der_canonize,
    )
    return signature.hex()


def verify_signature(payload: Dict[str, Any], public_key: Optional[str] = None) -> bool:
    """Check the first signature of a transaction record."""
    signature = payload.get("signature")
    public_key = public_key or payload.get("senderPublicKey")
    if not signature or not public_key:
        return False

    digest = get_hash(payload, skip_signature=True, skip_second_signature=True)
    verifying_key = VerifyingKey.from_string(bytes.fromhex(public_key), curve=SECP256k1)
    try:
        return verifying_key.verify_digest(
            bytes.fromhex(signature),
            digest,
            sigdecode=sigdecode_der,
        )
    except BadSignatureError:
        return False


# ============================================================================
# PRIMITIVES
# ============================================================================

class ArkCrypto(CryptoPrimitives):
    """
    ARK v1 implementation of the cryptographic primitives.

    Usage:
        ```python
        crypto = ArkCrypto()
        tx = crypto.create_transfer(recipient, 10_000_000, None, fee, passphrase)
        tx_id = crypto.compute_id(tx.payload())
        ```
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the primitives.

        Args:
            clock: Source of the current time (defaults to UTC now)
        """
        self._clock = clock

    def _timestamp(self) -> int:
        return get_timestamp(self._clock() if self._clock else None)

    def derive_address(self, public_key: str, network_version: int) -> str:
        return address_from_public_key(public_key, network_version)

    def is_valid_address(self, address: str, network_version: int) -> bool:
        return validate_address(address, network_version)

    def _sign(
        self,
        tx: UnsignedTransaction,
        passphrase: Optional[str],
        second_passphrase: Optional[str],
    ) -> UnsignedTransaction:
        # No passphrase: the payload is left for an external signer
        if passphrase is None:
            return tx

        keys = get_keys(passphrase)
        tx.sender_public_key = keys.public_key
        tx.signature = sign_hash(
            get_hash(tx.payload(), skip_signature=True, skip_second_signature=True),
            keys,
        )

        if second_passphrase:
            tx.sign_signature = sign_hash(
                get_hash(tx.payload(), skip_second_signature=True),
                get_keys(second_passphrase),
            )

        logger.debug(
            "transaction_signed_locally",
            type=tx.type.name,
            second_signature=tx.sign_signature is not None,
        )
        return tx

    def create_transfer(
        self,
        recipient_id: str,
        amount: int,
        vendor_field: Optional[str],
        fee: int,
        passphrase: Optional[str] = None,
        second_passphrase: Optional[str] = None,
    ) -> UnsignedTransaction:
        if vendor_field and len(vendor_field.encode("utf-8")) > VENDOR_FIELD_LENGTH:
            raise ValueError(f"Vendor field exceeds {VENDOR_FIELD_LENGTH} bytes")

        tx = UnsignedTransaction(
            type=TransactionType.SEND,
            amount=amount,
            fee=fee,
            timestamp=self._timestamp(),
            recipient_id=recipient_id,
            vendor_field=vendor_field or None,
        )
        return self._sign(tx, passphrase, second_passphrase)

    def create_second_signature(
        self,
        fee: int,
        passphrase: Optional[str],
        second_passphrase: str,
    ) -> UnsignedTransaction:
        if not second_passphrase:
            raise ValueError("A second passphrase is required")

        tx = UnsignedTransaction(
            type=TransactionType.SECOND_SIGNATURE,
            fee=fee,
            timestamp=self._timestamp(),
            asset={"signature": {"publicKey": get_keys(second_passphrase).public_key}},
        )
        # The registration itself carries only the first signature
        return self._sign(tx, passphrase, None)

    def create_delegate(
        self,
        username: str,
        fee: int,
        passphrase: Optional[str] = None,
        second_passphrase: Optional[str] = None,
    ) -> UnsignedTransaction:
        if not username:
            raise ValueError("Delegate username is required")
        if len(username) > USERNAME_MAX_LENGTH:
            raise ValueError(f"Delegate username exceeds {USERNAME_MAX_LENGTH} characters")
        if not _USERNAME_PATTERN.match(username):
            raise ValueError("Delegate username may only contain a-z, 0-9 and !@$&_.")

        delegate = {"username": username}
        if passphrase is not None:
            delegate["publicKey"] = get_keys(passphrase).public_key

        tx = UnsignedTransaction(
            type=TransactionType.DELEGATE,
            fee=fee,
            timestamp=self._timestamp(),
            asset={"delegate": delegate},
        )
        return self._sign(tx, passphrase, second_passphrase)

    def create_vote(
        self,
        votes: Sequence[str],
        fee: int,
        passphrase: Optional[str] = None,
        second_passphrase: Optional[str] = None,
    ) -> UnsignedTransaction:
        votes = list(votes)
        if not votes:
            raise ValueError("At least one vote is required")
        for vote in votes:
            if not _VOTE_PATTERN.match(vote):
                raise ValueError(f"Malformed vote: {vote!r}")

        tx = UnsignedTransaction(
            type=TransactionType.VOTE,
            fee=fee,
            timestamp=self._timestamp(),
            asset={"votes": votes},
        )
        return self._sign(tx, passphrase, second_passphrase)

    def compute_id(self, payload: Dict[str, Any]) -> str:
        return hashlib.sha256(get_bytes(payload)).hexdigest()
