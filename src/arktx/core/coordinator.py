"""
Signing Coordinator - finalizes built transactions.

Selects the local or hardware backend from the request's signing method
and produces id-bearing signed transactions.
"""

import asyncio
from typing import Callable, Dict, Optional

import structlog

from arktx.config import ArkTxConfig, get_config
from arktx.core.errors import AddressMismatch, SigningCancelled, SigningFailure
from arktx.core.request import HardwareSigning, LocalSigning, TransactionRequest
from arktx.core.transaction import SignedTransaction, TransactionType, UnsignedTransaction
from arktx.crypto.interface import CryptoPrimitives
from arktx.hardware.interface import HardwareSigner

logger = structlog.get_logger(__name__)


class CancellationToken:
    """
    Cooperative cancellation flag shared by the signing tasks of a batch.

    Cancelling never interrupts a request the device is already
    processing; it only stops requests that have not been dispatched.
    """

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason


class SigningCoordinator:
    """
    Produces signed transactions from built ones.

    Local backend: the transaction is already signed by the primitives;
    the address derived from its sender public key must match the
    requested sender.

    Hardware backend: the transaction is completed with the externally
    supplied public key and sent to the device. Device access goes
    through a single-slot lock since the device handles one request at
    a time. The device-reported key is not checked against the sender.
    """

    def __init__(
        self,
        crypto: CryptoPrimitives,
        hardware_signer: Optional[HardwareSigner] = None,
        config: Optional[ArkTxConfig] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            crypto: Cryptographic primitives
            hardware_signer: Device signer (required for hardware requests)
            config: Configuration (network version)
        """
        self.crypto = crypto
        self.hardware_signer = hardware_signer
        self.config = config or get_config()
        self._device_lock = asyncio.Lock()
        self._hardware_finalizers: Dict[
            TransactionType,
            Callable[[UnsignedTransaction, TransactionRequest, HardwareSigning], None],
        ] = {
            TransactionType.VOTE: self._finalize_vote,
            TransactionType.DELEGATE: self._finalize_delegate,
        }

    async def sign(
        self,
        transaction: UnsignedTransaction,
        request: TransactionRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SignedTransaction:
        """
        Sign and finalize a transaction.

        Args:
            transaction: Transaction built for the request
            request: The originating request
            cancel_token: Token that stops a not-yet-dispatched device request

        Returns:
            Finalized transaction with its id

        Raises:
            AddressMismatch: If a local passphrase belongs to another account
            SigningFailure: If no signature could be obtained
        """
        signer = request.signer
        if isinstance(signer, HardwareSigning):
            return await self._sign_with_hardware(transaction, request, signer, cancel_token)
        if isinstance(signer, LocalSigning):
            return self._sign_locally(transaction, request)
        raise TypeError(f"Unsupported signing method: {type(signer).__name__}")

    def _finalize(self, transaction: UnsignedTransaction) -> SignedTransaction:
        tx_id = self.crypto.compute_id(transaction.payload())
        return SignedTransaction.from_unsigned(transaction, tx_id)

    def _sign_locally(
        self,
        transaction: UnsignedTransaction,
        request: TransactionRequest,
    ) -> SignedTransaction:
        if not transaction.is_signed or not transaction.sender_public_key:
            raise SigningFailure("Locally built transaction carries no signature")

        derived = self.crypto.derive_address(
            transaction.sender_public_key,
            self.config.network_version,
        )
        if derived != request.from_address:
            logger.warning(
                "passphrase_address_mismatch",
                expected=request.from_address,
                derived=derived,
            )
            raise AddressMismatch(request.from_address, derived)

        signed = self._finalize(transaction)
        logger.debug("transaction_finalized", backend="local", tx_id=signed.id[:16] + "...")
        return signed

    @staticmethod
    def _finalize_vote(transaction, request, signer) -> None:
        transaction.recipient_id = request.from_address

    @staticmethod
    def _finalize_delegate(transaction, request, signer) -> None:
        delegate = dict(transaction.asset.get("delegate", {}))
        delegate["publicKey"] = signer.public_key
        transaction.asset = {**transaction.asset, "delegate": delegate}

    async def _sign_with_hardware(
        self,
        transaction: UnsignedTransaction,
        request: TransactionRequest,
        signer: HardwareSigning,
        cancel_token: Optional[CancellationToken],
    ) -> SignedTransaction:
        if self.hardware_signer is None:
            raise SigningFailure("No hardware signer configured", signer.device_ref)

        transaction.signature = None
        transaction.sign_signature = None
        transaction.sender_public_key = signer.public_key

        finalizer = self._hardware_finalizers.get(transaction.type)
        if finalizer:
            finalizer(transaction, request, signer)

        async with self._device_lock:
            if cancel_token is not None and cancel_token.cancelled:
                logger.info(
                    "hardware_signing_skipped",
                    device=signer.device_ref,
                    reason=cancel_token.reason,
                )
                raise SigningCancelled(
                    f"Signing request cancelled: {cancel_token.reason}",
                    signer.device_ref,
                )

            logger.info(
                "hardware_signing_requested",
                device=signer.device_ref,
                kind=transaction.type.name,
            )
            try:
                response = await self.hardware_signer.sign(signer.device_ref, transaction.payload())
            except Exception as e:
                logger.error(
                    "hardware_signing_failed",
                    device=signer.device_ref,
                    error=str(e),
                )
                raise SigningFailure(f"Hardware signing failed: {e}", signer.device_ref) from e

        signature = (response or {}).get("signature")
        if not signature:
            logger.error("hardware_signing_failed", device=signer.device_ref, error="empty signature")
            raise SigningFailure("Hardware signer returned no signature", signer.device_ref)

        transaction.signature = signature
        signed = self._finalize(transaction)
        logger.info("transaction_finalized", backend="hardware", tx_id=signed.id[:16] + "...")
        return signed
