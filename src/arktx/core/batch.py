"""
Batch Orchestrator - multi-recipient send construction.

Validates a whole batch before building anything, then signs every item,
pacing hardware requests so the device sees them one at a time.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional

import structlog

from arktx.config import ArkTxConfig, get_config
from arktx.core.coordinator import CancellationToken, SigningCoordinator
from arktx.core.errors import SigningCancelled
from arktx.core.factory import TransactionFactory
from arktx.core.request import (
    BatchItem,
    HardwareSigning,
    SigningMethod,
    TransactionRequest,
)
from arktx.core.transaction import SignedTransaction, TransactionType
from arktx.core.validator import TransactionRequestValidator
from arktx.node.interface import AccountProvider, FeeResolver

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BatchResult:
    """
    Signed transactions of a batch, in the order of the input items.

    Only ever created when every item was signed.
    """

    transactions: List[SignedTransaction]
    total: int
    batch_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __iter__(self) -> Iterator[SignedTransaction]:
        return iter(self.transactions)

    def __len__(self) -> int:
        return len(self.transactions)

    def __getitem__(self, index: int) -> SignedTransaction:
        return self.transactions[index]

    @property
    def total_amount(self) -> int:
        return sum(tx.amount for tx in self.transactions)

    @property
    def total_fee(self) -> int:
        return sum(tx.fee for tx in self.transactions)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "batch_id": self.batch_id,
            "size": len(self.transactions),
            "total": self.total,
            "created_at": self.created_at.isoformat(),
            "transactions": [tx.to_dict() for tx in self.transactions],
        }


class BatchOrchestrator:
    """
    Builds multi-send batches.

    Validation is all-or-nothing: one invalid recipient or an
    insufficient balance for the batch total rejects the batch before
    any transaction is built. Hardware items are dispatched no earlier
    than ``index * hardware_stagger_ms`` after the batch starts and queue
    on the coordinator's device lock; local items are signed right away.
    """

    def __init__(
        self,
        account_provider: AccountProvider,
        fee_resolver: FeeResolver,
        validator: TransactionRequestValidator,
        factory: TransactionFactory,
        coordinator: SigningCoordinator,
        config: Optional[ArkTxConfig] = None,
    ):
        self.account_provider = account_provider
        self.fee_resolver = fee_resolver
        self.validator = validator
        self.factory = factory
        self.coordinator = coordinator
        self.config = config or get_config()

    async def build_batch(
        self,
        from_address: str,
        items: List[BatchItem],
        signer: SigningMethod,
    ) -> BatchResult:
        """
        Build and sign one send transaction per item.

        Args:
            from_address: Sender of every transaction
            items: Recipients, amounts and memos
            signer: Local passphrases or hardware device for the sender

        Returns:
            Batch result aligned with ``items``

        Raises:
            InvalidAddress: If any recipient is invalid (nothing is built)
            InsufficientFunds: If the batch total exceeds the balance
            TransactionError: The first failing item's error
        """
        items = list(items)

        account, fees = await asyncio.gather(
            self.account_provider.get_account(from_address),
            self.fee_resolver.get_fees(),
        )

        total = self.validator.validate_batch(from_address, items, account, fees)

        logger.info(
            "building_batch",
            address=from_address,
            size=len(items),
            total=total,
            backend=signer.backend,
        )

        requests = [
            TransactionRequest(
                kind=TransactionType.SEND,
                from_address=from_address,
                signer=signer,
                recipient=item.address,
                amount=item.amount,
                memo=item.memo,
            )
            for item in items
        ]
        transactions = [self.factory.build(request, fees.send) for request in requests]

        token = CancellationToken()
        hardware = isinstance(signer, HardwareSigning)
        stagger = self.config.hardware_stagger_seconds
        loop = asyncio.get_running_loop()
        started = loop.time()

        async def sign_item(index: int) -> SignedTransaction:
            if hardware:
                delay = started + index * stagger - loop.time()
                if delay > 0:
                    await asyncio.sleep(delay)
            return await self.coordinator.sign(transactions[index], requests[index], token)

        def on_done(task: asyncio.Task) -> None:
            if self.config.cancel_batch_on_failure and not task.cancelled() and task.exception():
                token.cancel(f"sibling failed: {task.exception()}")

        tasks = []
        for index in range(len(items)):
            task = asyncio.ensure_future(sign_item(index))
            task.add_done_callback(on_done)
            tasks.append(task)

        # Failures do not cancel siblings already in flight; wait for all of them
        results = await asyncio.gather(*tasks, return_exceptions=True)

        errors = [(i, r) for i, r in enumerate(results) if isinstance(r, BaseException)]
        if errors:
            index, error = next(
                ((i, e) for i, e in errors if not isinstance(e, SigningCancelled)),
                errors[0],
            )
            logger.error(
                "batch_failed",
                address=from_address,
                failed_item=index,
                failures=len(errors),
                error=str(error),
            )
            raise error

        result = BatchResult(transactions=list(results), total=total)
        logger.info(
            "batch_built",
            address=from_address,
            batch_id=result.batch_id[:8] + "...",
            size=len(result),
        )
        return result
