"""
Storage backends for biosnet.

Local reference cache and the IPFS discovery store.
"""

from .base import DiscoveryStore
from .local import ContentCache
from .ipfs_backend import IPFSDiscoveryStore

__all__ = ["DiscoveryStore", "ContentCache", "IPFSDiscoveryStore"]
