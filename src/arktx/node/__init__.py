"""
Node Integration Layer.

Provides account snapshots and fee schedules from an ARK node.
"""

from arktx.node.interface import AccountProvider, FeeResolver, NodeConnectionError
from arktx.node.ark_api import ArkNodeClient

__all__ = [
    "AccountProvider",
    "FeeResolver",
    "NodeConnectionError",
    "ArkNodeClient",
]
