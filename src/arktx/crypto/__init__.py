"""
Cryptographic primitives.

Key derivation, addresses, transaction payloads and identifiers.
"""

from arktx.crypto.interface import CryptoPrimitives
from arktx.crypto.ark import ArkCrypto

__all__ = [
    "CryptoPrimitives",
    "ArkCrypto",
]
