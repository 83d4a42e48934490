"""
Transaction Request Validator - checks requests before anything is built.

Rejects invalid recipients and insufficient balances without side effects.
"""

from typing import List, Optional

import structlog

from arktx.config import ArkTxConfig, get_config
from arktx.core.errors import InsufficientFunds, InvalidAddress, InvalidAmount
from arktx.core.request import Account, BatchItem, FeeSchedule, TransactionRequest
from arktx.core.transaction import TransactionType
from arktx.crypto.interface import CryptoPrimitives

logger = structlog.get_logger(__name__)


class TransactionRequestValidator:
    """
    Validates transaction requests against an account snapshot and fees.

    Sends are checked for a valid recipient and for ``amount + fee`` not
    exceeding the balance. Second passphrase, delegate and vote requests
    carry no amount and only need the balance to cover their fee.
    """

    def __init__(
        self,
        crypto: CryptoPrimitives,
        config: Optional[ArkTxConfig] = None,
    ):
        self.crypto = crypto
        self.config = config or get_config()

    def _check_address(self, address: Optional[str]) -> None:
        if not address or not self.crypto.is_valid_address(address, self.config.network_version):
            raise InvalidAddress(address)

    @staticmethod
    def _check_amount(amount) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmount(amount)

    def validate(
        self,
        request: TransactionRequest,
        account: Account,
        fees: FeeSchedule,
    ) -> None:
        """
        Validate a single request.

        Args:
            request: The request to check
            account: Sender account snapshot
            fees: Current fee schedule

        Raises:
            InvalidAddress: If the recipient is not valid for the network
            InvalidAmount: If the send amount is not a positive integer
            InsufficientFunds: If the balance cannot cover amount and fee
        """
        fee = fees.fee_for(request.kind)

        if request.kind == TransactionType.SEND:
            self._check_address(request.recipient)
            self._check_amount(request.amount)
            required = request.amount + fee
        else:
            required = fee

        if required > account.balance:
            logger.info(
                "insufficient_funds",
                kind=request.kind.name,
                address=request.from_address,
                required=required,
                balance=account.balance,
            )
            raise InsufficientFunds(request.from_address, required, account.balance)

    def validate_batch(
        self,
        from_address: str,
        items: List[BatchItem],
        account: Account,
        fees: FeeSchedule,
    ) -> int:
        """
        Validate a multi-send batch as a whole.

        Every recipient is checked before the batch total, and the total
        includes one send fee per item.

        Returns:
            Total amount plus fees of the batch
        """
        if not items:
            raise ValueError("Cannot validate an empty batch")

        for item in items:
            self._check_address(item.address)

        for item in items:
            self._check_amount(item.amount)

        total = sum(item.amount + fees.send for item in items)
        if total > account.balance:
            logger.info(
                "insufficient_funds",
                kind="batch",
                address=from_address,
                required=total,
                balance=account.balance,
                items=len(items),
            )
            raise InsufficientFunds(from_address, total, account.balance)

        return total
