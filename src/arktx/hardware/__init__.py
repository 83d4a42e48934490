"""
Hardware signer integration.

Contract for external devices that sign payloads without exposing keys.
"""

from arktx.hardware.interface import HardwareSigner, HardwareSignerError

__all__ = [
    "HardwareSigner",
    "HardwareSignerError",
]
