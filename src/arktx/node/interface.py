"""
Abstract interfaces for account and fee data.

Defines the contract for the chain data the transaction pipeline reads.
"""

from abc import ABC, abstractmethod

from arktx.core.request import Account, FeeSchedule


class AccountProvider(ABC):
    """Supplies sender account snapshots."""

    @abstractmethod
    async def get_account(self, address: str) -> Account:
        """
        Get the current state of an account.

        Args:
            address: Account address

        Returns:
            Snapshot with address, balance and public key (if known)
        """
        pass


class FeeResolver(ABC):
    """Supplies the current fee schedule."""

    @abstractmethod
    async def get_fees(self) -> FeeSchedule:
        """
        Get current fees per transaction kind.

        Returns:
            Fee schedule in arktoshi
        """
        pass


class NodeConnectionError(Exception):
    """Raised when the node API cannot be reached or answers with an error."""
    pass
