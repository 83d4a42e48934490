"""
ARK node API adapter.

Provides account snapshots and fees via the ARK v1 public REST API.
"""

from typing import Any, Optional

import httpx
import structlog

from arktx.config import ArkTxConfig, get_config
from arktx.core.request import Account, FeeSchedule
from arktx.node.interface import AccountProvider, FeeResolver, NodeConnectionError

logger = structlog.get_logger(__name__)


class ArkNodeClient(AccountProvider, FeeResolver):
    """
    ARK v1 API adapter.

    Implements AccountProvider and FeeResolver. Nothing is cached: every
    call reads the node's current state.
    """

    def __init__(
        self,
        config: Optional[ArkTxConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the adapter.

        Args:
            config: Configuration. Uses global config if not provided.
            transport: Custom httpx transport (for testing)
        """
        self.config = config or get_config()
        self.base_url = self.config.node_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Create the HTTP client."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=self.config.request_timeout_seconds,
            transport=self._transport,
        )
        logger.info("ark_node_connected", base_url=self.base_url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("ark_node_disconnected")

    async def __aenter__(self) -> "ArkNodeClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Make an API request and return the decoded body."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error("ark_node_request_error", path=path, error=str(e))
            raise NodeConnectionError(f"ARK node request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "ark_node_request_failed",
                path=path,
                status=response.status_code,
                error=response.text,
            )
            raise NodeConnectionError(f"ARK node API error ({response.status_code}): {response.text}")

        try:
            return response.json()
        except ValueError as e:
            raise NodeConnectionError(f"ARK node returned invalid JSON for {path}") from e

    async def get_account(self, address: str) -> Account:
        """Get the account snapshot; unknown accounts have a zero balance."""
        data = await self._request("GET", "/api/accounts", params={"address": address})

        if not data.get("success"):
            error = data.get("error", "")
            if "not found" in error.lower():
                logger.debug("account_not_found", address=address[:12] + "...")
                return Account(address=address, balance=0)
            raise NodeConnectionError(f"Failed to fetch account {address}: {error}")

        account = data["account"]
        return Account(
            address=account.get("address", address),
            balance=int(account.get("balance", 0)),
            public_key=account.get("publicKey") or None,
        )

    async def get_fees(self) -> FeeSchedule:
        """Get the current fee schedule."""
        data = await self._request("GET", "/api/blocks/getFees")

        if not data.get("success") or "fees" not in data:
            raise NodeConnectionError(f"Failed to fetch fees: {data.get('error', 'no fees')}")

        try:
            fees = FeeSchedule.from_dict(data["fees"])
        except (KeyError, TypeError, ValueError) as e:
            raise NodeConnectionError(f"Malformed fee schedule: {e}") from e

        logger.debug("fees_fetched", send=fees.send, vote=fees.vote)
        return fees
