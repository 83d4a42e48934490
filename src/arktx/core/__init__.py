"""
Core pipeline components.

Request validation, transaction construction, signing coordination and
batch orchestration.
"""

from arktx.core.batch import BatchOrchestrator, BatchResult
from arktx.core.coordinator import CancellationToken, SigningCoordinator
from arktx.core.errors import (
    AddressMismatch,
    BuildFailure,
    InsufficientFunds,
    InvalidAddress,
    InvalidAmount,
    SigningCancelled,
    SigningFailure,
    TransactionError,
)
from arktx.core.factory import TransactionFactory
from arktx.core.service import TransactionBuilderService
from arktx.core.validator import TransactionRequestValidator

__all__ = [
    "BatchOrchestrator",
    "BatchResult",
    "CancellationToken",
    "SigningCoordinator",
    "TransactionFactory",
    "TransactionRequestValidator",
    "TransactionBuilderService",
    "TransactionError",
    "InvalidAddress",
    "InvalidAmount",
    "InsufficientFunds",
    "AddressMismatch",
    "BuildFailure",
    "SigningFailure",
    "SigningCancelled",
]
