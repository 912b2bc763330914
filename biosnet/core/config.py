"""
Network configuration.

Values come from keyword arguments or, through ``NetworkConfig.from_env``,
from ``BIOS_*`` environment variables.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field


DEFAULT_STALENESS_SECONDS = 120.0


class NetworkConfig(BaseModel):
    """Peer graph configuration."""

    cache_path: Path = Field(
        default=Path("./.bios-cache"),
        description="Directory holding one file per cached reference",
    )
    discovery_file: Path = Field(
        default=Path("./my_discovery_file.yaml"),
        description="Our own discovery document (root of the graph)",
    )
    use_cache: bool = Field(
        default=False,
        description="Resolve peer names from the cache instead of the network when possible",
    )
    staleness_seconds: float = Field(
        default=DEFAULT_STALENESS_SECONDS,
        ge=0,
        description="Minimum interval between graph rebuild attempts",
    )
    broken_discovery_path: Path = Field(
        default=Path("broken_discovery.yaml"),
        description="Where undecodable discovery documents are dumped for inspection",
    )

    # IPFS settings
    ipfs_api: str = Field(
        default="/ip4/127.0.0.1/tcp/5001",
        description="API endpoint of the IPFS node (multiaddr format)",
    )
    ipfs_timeout: int = Field(default=60, gt=0, description="IPFS call timeout in seconds")
    ipfs_retry_attempts: int = Field(default=3, ge=1, description="Attempts per IPFS call")

    @classmethod
    def from_env(cls) -> "NetworkConfig":
        """Build a config from ``BIOS_*`` environment variables."""
        return cls(
            cache_path=Path(os.getenv("BIOS_CACHE_PATH", "./.bios-cache")),
            discovery_file=Path(os.getenv("BIOS_DISCOVERY_FILE", "./my_discovery_file.yaml")),
            use_cache=os.getenv("BIOS_USE_CACHE", "false").lower() == "true",
            staleness_seconds=float(
                os.getenv("BIOS_STALENESS_SECONDS", str(DEFAULT_STALENESS_SECONDS))
            ),
            broken_discovery_path=Path(
                os.getenv("BIOS_BROKEN_DISCOVERY_PATH", "broken_discovery.yaml")
            ),
            ipfs_api=os.getenv("BIOS_IPFS_API", "/ip4/127.0.0.1/tcp/5001"),
            ipfs_timeout=int(os.getenv("BIOS_IPFS_TIMEOUT", "60")),
            ipfs_retry_attempts=int(os.getenv("BIOS_IPFS_RETRY_ATTEMPTS", "3")),
        )
