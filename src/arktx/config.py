"""
Configuration management for arktx.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NetworkType(str, Enum):
    """ARK network types."""
    MAINNET = "mainnet"
    DEVNET = "devnet"


# Address version byte per network
NETWORK_VERSIONS = {
    NetworkType.MAINNET: 0x17,
    NetworkType.DEVNET: 0x1E,
}

NETWORK_TOKENS = {
    NetworkType.MAINNET: "ARK",
    NetworkType.DEVNET: "DARK",
}

NETWORK_PORTS = {
    NetworkType.MAINNET: 4001,
    NetworkType.DEVNET: 4002,
}


class ArkTxConfig(BaseSettings):
    """
    Configuration settings for transaction construction and signing.

    All settings can be configured via environment variables with the ARKTX_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARKTX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Network settings
    network: NetworkType = Field(
        default=NetworkType.MAINNET,
        description="ARK network to build transactions for"
    )
    network_version_override: Optional[int] = Field(
        default=None,
        ge=0,
        le=255,
        description="Custom address version byte (for private networks)"
    )
    token_symbol_override: Optional[str] = Field(
        default=None,
        description="Custom token symbol used in user-facing messages"
    )

    # Node settings
    node_base_url: Optional[str] = Field(
        default=None,
        description="Custom ARK node API base URL (optional)"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for node API requests"
    )

    # Hardware signing
    hardware_stagger_ms: int = Field(
        default=2000,
        ge=0,
        description="Delay between consecutive hardware signing requests in a batch"
    )
    cancel_batch_on_failure: bool = Field(
        default=False,
        description="Skip not-yet-dispatched hardware requests once a batch item fails"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def network_version(self) -> int:
        """Get the address version byte for the configured network."""
        if self.network_version_override is not None:
            return self.network_version_override
        return NETWORK_VERSIONS[self.network]

    @property
    def token_symbol(self) -> str:
        """Get the token symbol for the configured network."""
        return self.token_symbol_override or NETWORK_TOKENS[self.network]

    @property
    def node_url(self) -> str:
        """Get the node API URL based on network."""
        if self.node_base_url:
            return self.node_base_url
        return f"http://localhost:{NETWORK_PORTS[self.network]}"

    @property
    def hardware_stagger_seconds(self) -> float:
        return self.hardware_stagger_ms / 1000


# Global config instance
_config: Optional[ArkTxConfig] = None


def get_config() -> ArkTxConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = ArkTxConfig()
    return _config


def set_config(config: ArkTxConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
