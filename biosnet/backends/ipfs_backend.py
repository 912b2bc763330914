"""
IPFS discovery store.

Fetches discovery documents (by IPNS name) and launch artifacts (by
``/ipfs/`` path) from an IPFS node, and publishes our own discovery
document for others to find.
"""

from typing import Optional, Tuple
import logging
import time

import ipfshttpclient

from ..core.content_addressing import ContentRef, NameRef, is_content_ref, is_local_name_ref

logger = logging.getLogger(__name__)


class IPFSDiscoveryStore:
    """
    DiscoveryStore backed by the HTTP API of an IPFS daemon.

    Content refs are read with ``cat``; names are resolved through IPNS
    first and then read. Transient failures are retried with exponential
    backoff before the last error is re-raised to the caller.
    """

    def __init__(
        self,
        ipfs_addr: str = "/ip4/127.0.0.1/tcp/5001",
        timeout: int = 60,
        retry_attempts: int = 3,
        retry_backoff: float = 0.5,
        client=None,
    ):
        """
        Initialize the IPFS store.

        Args:
            ipfs_addr: IPFS daemon API address (multiaddr format)
            timeout: Timeout for IPFS operations (seconds)
            retry_attempts: Number of tries for transient IPFS failures
            retry_backoff: Base backoff (seconds) between retries
            client: Pre-built ipfshttpclient client (skips connecting)
        """
        self.ipfs_addr = ipfs_addr
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.retry_backoff = max(0.1, retry_backoff)
        self.client = client

        if self.client is None:
            self._connect()

        logger.info(f"Initialized IPFS discovery store at {self.ipfs_addr}")

    @classmethod
    def from_config(cls, config) -> "IPFSDiscoveryStore":
        """Build a store from a NetworkConfig."""
        return cls(
            ipfs_addr=config.ipfs_api,
            timeout=config.ipfs_timeout,
            retry_attempts=config.ipfs_retry_attempts,
        )

    def _connect(self):
        """Connect to IPFS daemon."""
        try:
            self.client = ipfshttpclient.connect(self.ipfs_addr, timeout=self.timeout)

            version = self._execute_with_retries(self.client.version)
            logger.info(f"Connected to IPFS {version['Version']}")

        except Exception as e:
            logger.error(f"Failed to connect to IPFS daemon: {e}")
            logger.error(
                "Make sure IPFS daemon is running: ipfs daemon\n"
                "Install IPFS: https://docs.ipfs.tech/install/"
            )
            raise ConnectionError(f"IPFS connection failed: {e}") from e

    def get_by_hash(self, ref: ContentRef) -> bytes:
        """
        Fetch immutable content.

        Args:
            ref: ``/ipfs/<hash>`` reference

        Returns:
            Raw bytes
        """
        if not is_content_ref(ref):
            raise ValueError(f"not an ipfs path: {ref!r}")

        data = self._execute_with_retries(self.client.cat, ref)
        logger.debug(f"Fetched {ref} ({len(data)} bytes)")
        return data

    def get_by_name(self, ref: NameRef) -> bytes:
        """
        Fetch the document currently published under an IPNS name.

        Args:
            ref: ``/ipns/<key>`` name (a bare key is accepted too)

        Returns:
            Raw bytes of the resolved document
        """
        if is_local_name_ref(ref):
            raise ValueError(f"local name {ref!r} cannot be resolved over IPFS")

        name = ref if ref.startswith("/ipns/") else f"/ipns/{ref}"
        resolved = self._execute_with_retries(self.client.name.resolve, name)
        path = resolved["Path"]

        logger.debug(f"Resolved {name} -> {path}")

        return self._execute_with_retries(self.client.cat, path)

    def publish(self, data: bytes, key: Optional[str] = None) -> Tuple[ContentRef, NameRef]:
        """
        Add a discovery document and point our IPNS name at it.

        Args:
            data: Raw document bytes
            key: IPNS key name (node's own key when omitted)

        Returns:
            (content ref as reported by IPFS, IPNS name it was published under)
        """
        cid = self._execute_with_retries(self.client.add_bytes, data)
        ref = f"/ipfs/{cid}"

        kwargs = {"key": key} if key else {}
        result = self._execute_with_retries(self.client.name.publish, ref, **kwargs)
        name = f"/ipns/{result['Name']}"

        logger.info(f"Published {ref} under {name}")

        return ref, name

    def _execute_with_retries(self, func, *args, **kwargs):
        """Execute a function with retry and backoff for transient IPFS errors."""
        attempt = 0
        last_exc = None
        while attempt < self.retry_attempts:
            try:
                return func(*args, **kwargs)
            except Exception as exc:  # network client errors vary
                last_exc = exc
                attempt += 1
                if attempt >= self.retry_attempts:
                    break
                delay = self.retry_backoff * (2 ** (attempt - 1))
                logger.warning(
                    f"IPFS operation failed (attempt {attempt}/{self.retry_attempts}): {exc}. "
                    f"Retrying in {delay:.2f}s"
                )
                time.sleep(delay)
        raise last_exc
