"""
Transaction Factory - builds unsigned transactions.

Dispatches a request to the builder of its kind and attaches the fee and
sender identity.
"""

from typing import Callable, Dict, Optional, Tuple

import structlog

from arktx.core.errors import BuildFailure
from arktx.core.request import LocalSigning, TransactionRequest
from arktx.core.transaction import TransactionType, UnsignedTransaction
from arktx.crypto.interface import CryptoPrimitives

logger = structlog.get_logger(__name__)


class TransactionFactory:
    """
    Builds transactions through the crypto primitives.

    Local requests hand their passphrases to the primitives, which return
    a signed payload. Hardware requests hand over none and get the bare
    payload back.
    """

    def __init__(self, crypto: CryptoPrimitives):
        self.crypto = crypto
        self._builders: Dict[
            TransactionType,
            Callable[[TransactionRequest, int, Optional[str], Optional[str]], UnsignedTransaction],
        ] = {
            TransactionType.SEND: self._build_send,
            TransactionType.SECOND_SIGNATURE: self._build_second_signature,
            TransactionType.DELEGATE: self._build_delegate,
            TransactionType.VOTE: self._build_vote,
        }

    @staticmethod
    def _passphrases(request: TransactionRequest) -> Tuple[Optional[str], Optional[str]]:
        if isinstance(request.signer, LocalSigning):
            return request.signer.master_passphrase, request.signer.second_passphrase
        return None, None

    def _build_send(self, request, fee, passphrase, second_passphrase):
        return self.crypto.create_transfer(
            request.recipient,
            request.amount,
            request.memo,
            fee,
            passphrase,
            second_passphrase,
        )

    def _build_second_signature(self, request, fee, passphrase, second_passphrase):
        if not second_passphrase:
            raise ValueError("Second passphrase registration requires a local second passphrase")
        return self.crypto.create_second_signature(fee, passphrase, second_passphrase)

    def _build_delegate(self, request, fee, passphrase, second_passphrase):
        return self.crypto.create_delegate(request.username, fee, passphrase, second_passphrase)

    def _build_vote(self, request, fee, passphrase, second_passphrase):
        return self.crypto.create_vote(request.votes, fee, passphrase, second_passphrase)

    def build(self, request: TransactionRequest, fee: int) -> UnsignedTransaction:
        """
        Build the transaction of a request.

        Args:
            request: A validated request
            fee: Fee for the request's kind

        Returns:
            Transaction with fee and sender id attached

        Raises:
            BuildFailure: If the primitive rejects the request's fields
        """
        builder = self._builders.get(request.kind)
        if builder is None:
            raise BuildFailure(str(request.kind), "unsupported transaction type")

        passphrase, second_passphrase = self._passphrases(request)

        try:
            transaction = builder(request, fee, passphrase, second_passphrase)
        except Exception as e:
            logger.warning(
                "transaction_build_failed",
                kind=request.kind.name,
                address=request.from_address,
                error=str(e),
            )
            raise BuildFailure(request.kind.name, str(e)) from e

        transaction.fee = fee
        transaction.sender_id = request.from_address

        logger.debug(
            "transaction_built",
            kind=request.kind.name,
            address=request.from_address,
            signed=transaction.is_signed,
        )
        return transaction
