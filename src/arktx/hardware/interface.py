"""
Abstract interface for hardware signers.

The device holds the private key and signs transaction payloads on
request. It handles one request at a time.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class HardwareSigner(ABC):
    """Abstract interface for an external signing device."""

    @abstractmethod
    async def sign(self, device_ref: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sign a transaction payload on the device.

        Args:
            device_ref: Reference of the device (and account path) to use
            payload: Wire record of the transaction, without signature

        Returns:
            Mapping holding the hex ``signature``

        Raises:
            HardwareSignerError: If the device fails or the user rejects
        """
        pass


class HardwareSignerError(Exception):
    """Raised when the device fails or rejects a signing request."""

    def __init__(self, message: str, device_ref: Optional[str] = None):
        super().__init__(message)
        self.device_ref = device_ref
