"""
Abstract interface for the cryptographic primitives.

Defines the contract for key, address, payload and identifier operations
the transaction pipeline relies on.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence

from arktx.core.transaction import UnsignedTransaction


class CryptoPrimitives(ABC):
    """
    Abstract interface for network cryptography.

    The ``create_*`` builders sign the payload when a passphrase is
    given. Without one they return the unsigned payload, leaving the
    sender public key and signature for an external signer.
    """

    @abstractmethod
    def derive_address(self, public_key: str, network_version: int) -> str:
        """
        Derive the address of a public key.

        Args:
            public_key: Compressed public key in hex
            network_version: Address version byte of the network

        Returns:
            Encoded address
        """
        pass

    @abstractmethod
    def is_valid_address(self, address: str, network_version: int) -> bool:
        """Check that an address is well-formed for a network."""
        pass

    @abstractmethod
    def create_transfer(
        self,
        recipient_id: str,
        amount: int,
        vendor_field: Optional[str],
        fee: int,
        passphrase: Optional[str] = None,
        second_passphrase: Optional[str] = None,
    ) -> UnsignedTransaction:
        """Build a send transaction."""
        pass

    @abstractmethod
    def create_second_signature(
        self,
        fee: int,
        passphrase: Optional[str],
        second_passphrase: str,
    ) -> UnsignedTransaction:
        """Build a second passphrase registration."""
        pass

    @abstractmethod
    def create_delegate(
        self,
        username: str,
        fee: int,
        passphrase: Optional[str] = None,
        second_passphrase: Optional[str] = None,
    ) -> UnsignedTransaction:
        """Build a delegate registration."""
        pass

    @abstractmethod
    def create_vote(
        self,
        votes: Sequence[str],
        fee: int,
        passphrase: Optional[str] = None,
        second_passphrase: Optional[str] = None,
    ) -> UnsignedTransaction:
        """Build a vote transaction."""
        pass

    @abstractmethod
    def compute_id(self, payload: Dict[str, Any]) -> str:
        """
        Compute the transaction identifier.

        Args:
            payload: Wire record of the transaction, signatures included

        Returns:
            Identifier in hex; equal payloads give equal identifiers
        """
        pass
