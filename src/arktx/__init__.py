"""
arktx

Transaction construction and signing for ARK wallets.
Validates requests against account state and fees, builds transactions,
signs them locally or on a hardware device and finalizes their ids.
"""

__version__ = "0.1.0"

from arktx.core.batch import BatchResult
from arktx.core.request import (
    Account,
    BatchItem,
    FeeSchedule,
    HardwareSigning,
    LocalSigning,
    TransactionRequest,
)
from arktx.core.service import TransactionBuilderService
from arktx.core.transaction import SignedTransaction, TransactionType

__all__ = [
    "TransactionBuilderService",
    "TransactionRequest",
    "TransactionType",
    "SignedTransaction",
    "BatchItem",
    "BatchResult",
    "Account",
    "FeeSchedule",
    "LocalSigning",
    "HardwareSigning",
]
