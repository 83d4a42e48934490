"""
Transaction Builder Service.

Coordinates validation, construction and signing for the wallet.
"""

import asyncio
from typing import List, Optional, Tuple

import structlog

from arktx.config import ArkTxConfig, get_config
from arktx.core.batch import BatchOrchestrator, BatchResult
from arktx.core.coordinator import SigningCoordinator
from arktx.core.errors import TransactionError
from arktx.core.factory import TransactionFactory
from arktx.core.request import (
    Account,
    BatchItem,
    FeeSchedule,
    SigningMethod,
    TransactionRequest,
)
from arktx.core.transaction import SignedTransaction, TransactionLifecycle, TransactionType
from arktx.core.validator import TransactionRequestValidator
from arktx.crypto.interface import CryptoPrimitives
from arktx.hardware.interface import HardwareSigner
from arktx.node.interface import AccountProvider, FeeResolver

logger = structlog.get_logger(__name__)


class TransactionBuilderService:
    """
    Entry point for building signed transactions.

    Wires the validator, factory, signing coordinator and batch
    orchestrator to the account, fee and crypto collaborators.

    Usage:
        ```python
        service = TransactionBuilderService(node, node, ArkCrypto())
        tx = await service.create_send_transaction(request)
        ```
    """

    def __init__(
        self,
        account_provider: AccountProvider,
        fee_resolver: FeeResolver,
        crypto: CryptoPrimitives,
        hardware_signer: Optional[HardwareSigner] = None,
        config: Optional[ArkTxConfig] = None,
    ):
        """
        Initialize the service.

        Args:
            account_provider: Source of sender account snapshots
            fee_resolver: Source of the fee schedule
            crypto: Cryptographic primitives
            hardware_signer: Device signer for hardware requests
            config: Configuration
        """
        self.config = config or get_config()
        self.account_provider = account_provider
        self.fee_resolver = fee_resolver

        self.validator = TransactionRequestValidator(crypto, self.config)
        self.factory = TransactionFactory(crypto)
        self.coordinator = SigningCoordinator(crypto, hardware_signer, self.config)
        self.batch_orchestrator = BatchOrchestrator(
            account_provider=account_provider,
            fee_resolver=fee_resolver,
            validator=self.validator,
            factory=self.factory,
            coordinator=self.coordinator,
            config=self.config,
        )

    async def _snapshot(self, address: str) -> Tuple[Account, FeeSchedule]:
        account, fees = await asyncio.gather(
            self.account_provider.get_account(address),
            self.fee_resolver.get_fees(),
        )
        return account, fees

    async def create_transaction(self, request: TransactionRequest) -> SignedTransaction:
        """
        Validate, build and sign a single transaction.

        Args:
            request: The transaction request

        Returns:
            Finalized transaction

        Raises:
            TransactionError: On validation, build or signing failure
        """
        lifecycle = TransactionLifecycle(kind=request.kind)
        account, fees = await self._snapshot(request.from_address)

        try:
            self.validator.validate(request, account, fees)

            lifecycle.mark_building()
            transaction = self.factory.build(request, fees.fee_for(request.kind))

            lifecycle.mark_signing(request.signer.backend)
            signed = await self.coordinator.sign(transaction, request)

            lifecycle.mark_finalized(signed.id)
        except TransactionError as e:
            lifecycle.mark_failed(str(e))
            logger.info(
                "transaction_failed",
                kind=request.kind.name,
                stage=lifecycle.stage.value,
                error=type(e).__name__,
            )
            raise

        logger.info(
            "transaction_created",
            kind=request.kind.name,
            backend=lifecycle.backend,
            tx_id=signed.id[:16] + "...",
        )
        return signed

    def _check_kind(self, request: TransactionRequest, kind: TransactionType) -> None:
        if request.kind != kind:
            raise ValueError(f"Expected a {kind.name} request, got {request.kind.name}")

    async def create_send_transaction(self, request: TransactionRequest) -> SignedTransaction:
        self._check_kind(request, TransactionType.SEND)
        return await self.create_transaction(request)

    async def create_second_passphrase_transaction(
        self,
        request: TransactionRequest,
    ) -> SignedTransaction:
        self._check_kind(request, TransactionType.SECOND_SIGNATURE)
        return await self.create_transaction(request)

    async def create_delegate_transaction(self, request: TransactionRequest) -> SignedTransaction:
        self._check_kind(request, TransactionType.DELEGATE)
        return await self.create_transaction(request)

    async def create_vote_transaction(self, request: TransactionRequest) -> SignedTransaction:
        self._check_kind(request, TransactionType.VOTE)
        return await self.create_transaction(request)

    async def create_multiple_send_transactions(
        self,
        from_address: str,
        items: List[BatchItem],
        signer: SigningMethod,
    ) -> BatchResult:
        """Build one signed send per item; see BatchOrchestrator.build_batch."""
        return await self.batch_orchestrator.build_batch(from_address, items, signer)
