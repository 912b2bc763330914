"""
Interface of the distributed store the graph is discovered from.
"""

from typing import Protocol

from ..core.content_addressing import ContentRef, NameRef


class DiscoveryStore(Protocol):
    """Anything that can resolve references to bytes."""

    def get_by_hash(self, ref: ContentRef) -> bytes:
        """Fetch immutable content by its ``/ipfs/...`` reference."""
        ...

    def get_by_name(self, ref: NameRef) -> bytes:
        """Fetch the document currently published under a name."""
        ...
