"""
Content and name references.

Every published artifact is identified by the multihash of its bytes,
written the way IPFS paths are written: ``/ipfs/<base58 multihash>``.
References received from the network are never trusted; they are always
recomputed from the bytes that actually arrived.
"""

import hashlib
from dataclasses import dataclass
import logging

import base58

logger = logging.getLogger(__name__)


ContentRef = str
NameRef = str

IPFS_PREFIX = "/ipfs/"
LOCAL_PREFIX = "local "

# Multihash header for sha2-256: function code 0x12, digest length 32
SHA2_256_CODE = 0x12
SHA2_256_LENGTH = 32


@dataclass(frozen=True)
class ContentID:
    """Content identifier (multihash of data)."""
    hash_algorithm: str  # e.g., "sha2-256"
    hash_value: bytes    # Binary digest

    @property
    def hex(self) -> str:
        """Get hex representation of the digest."""
        return self.hash_value.hex()

    @property
    def multihash(self) -> bytes:
        """Digest prefixed with its multihash header."""
        return bytes([SHA2_256_CODE, len(self.hash_value)]) + self.hash_value

    @property
    def base58(self) -> str:
        """Get base58 representation (IPFS CIDv0 style, starts with Qm)."""
        return base58.b58encode(self.multihash).decode("ascii")

    @property
    def ref(self) -> ContentRef:
        """Path form used in discovery documents."""
        return f"{IPFS_PREFIX}{self.base58}"

    def __str__(self) -> str:
        return self.ref

    def __repr__(self) -> str:
        return f"ContentID({self.hash_algorithm}:{self.hex[:16]}...)"


def compute_content_id(data: bytes) -> ContentID:
    """
    Compute the content ID for raw bytes.

    Args:
        data: Exact bytes as received or read from disk

    Returns:
        ContentID with the sha2-256 digest
    """
    return ContentID(
        hash_algorithm="sha2-256",
        hash_value=hashlib.sha256(data).digest(),
    )


def to_content_ref(data: bytes) -> ContentRef:
    """Hash ``data`` into its ``/ipfs/...`` reference."""
    return compute_content_id(data).ref


def parse_content_ref(ref: ContentRef) -> ContentID:
    """
    Decode an ``/ipfs/...`` reference back into a ContentID.

    Raises:
        ValueError: if the reference is not a sha2-256 multihash path
    """
    if not is_content_ref(ref):
        raise ValueError(f"ipfs ref should start with {IPFS_PREFIX!r}: {ref!r}")

    try:
        raw = base58.b58decode(ref[len(IPFS_PREFIX):])
    except ValueError as e:
        raise ValueError(f"not base58: {ref!r}") from e
    if len(raw) != SHA2_256_LENGTH + 2 or raw[0] != SHA2_256_CODE or raw[1] != SHA2_256_LENGTH:
        raise ValueError(f"not a sha2-256 multihash: {ref!r}")

    return ContentID(hash_algorithm="sha2-256", hash_value=raw[2:])


def is_content_ref(ref: str) -> bool:
    return ref.startswith(IPFS_PREFIX)


def local_name_ref(path) -> NameRef:
    """Sentinel name for the root document read from ``path``."""
    return NameRef(f"{LOCAL_PREFIX}{path}")


def is_local_name_ref(ref: NameRef) -> bool:
    return ref.startswith(LOCAL_PREFIX)
