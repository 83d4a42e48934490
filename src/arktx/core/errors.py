"""
Transaction pipeline errors.

Every error carries the offending values as attributes so callers can
format their own messages (token naming, localization) at the boundary.
"""

from typing import Optional


class TransactionError(Exception):
    """Base class for all transaction construction and signing failures."""
    pass


class InvalidAddress(TransactionError):
    """Raised when a recipient address is not valid for the network."""

    def __init__(self, address: Optional[str]):
        super().__init__(f"The destination address {address} is erroneous")
        self.address = address


class InvalidAmount(TransactionError):
    """Raised when a send amount is not a positive integer."""

    def __init__(self, amount):
        super().__init__(f"Invalid amount: {amount!r}")
        self.amount = amount


class InsufficientFunds(TransactionError):
    """Raised when the account balance cannot cover amount plus fees."""

    def __init__(self, address: str, required: int, available: int):
        super().__init__(
            f"Not enough funds on account {address}: "
            f"required {required}, available {available}"
        )
        self.address = address
        self.required = required
        self.available = available

    @property
    def shortfall(self) -> int:
        return self.required - self.available


class AddressMismatch(TransactionError):
    """Raised when the signing passphrase does not belong to the sender account."""

    def __init__(self, expected: str, derived: Optional[str]):
        super().__init__(f"Passphrase is not corresponding to account {expected}")
        self.expected = expected
        self.derived = derived


class BuildFailure(TransactionError):
    """Raised when the primitive builder rejects kind-specific input."""

    def __init__(self, kind, reason: str):
        super().__init__(f"Failed to build {kind} transaction: {reason}")
        self.kind = kind
        self.reason = reason


class SigningFailure(TransactionError):
    """Raised when a signature could not be obtained."""

    def __init__(self, reason: str, device_ref: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.device_ref = device_ref


class SigningCancelled(SigningFailure):
    """Raised when a pending signing request was skipped by its cancellation token."""
    pass
