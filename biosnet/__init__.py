"""
biosnet - Launch network discovery

Bootstraps agreement on the genesis configuration of a new chain: every
organization publishes a discovery document to IPFS and vouches for others
with weighted links. biosnet walks that trust graph from our own document,
caches every referenced artifact, ranks the peers by the weight they
received and picks the launch data to boot with.

Quick Start:
    >>> from biosnet import Network, NetworkConfig, IPFSDiscoveryStore
    >>>
    >>> config = NetworkConfig(discovery_file="my_discovery_file.yaml")
    >>> net = Network(config, store=IPFSDiscoveryStore.from_config(config))
    >>>
    >>> # Traverse, verify and rank (at most once every 2 minutes)
    >>> net.update_graph()
    >>> net.print_ordered_peers()
    >>>
    >>> if net.reached_consensus():
    ...     launch_data = net.consensus_launch_data()
"""

from biosnet.core.config import NetworkConfig
from biosnet.core.consensus import ConsensusPolicy, ConsensusSelector, QuorumPolicy, TopWeightPolicy
from biosnet.core.content_addressing import ContentRef, NameRef, to_content_ref
from biosnet.core.discovery import ContractRef, Discovery, LaunchData, Peer, PeerLink
from biosnet.core.errors import BiosNetworkError
from biosnet.core.network import Network
from biosnet.backends.local import ContentCache
from biosnet.backends.ipfs_backend import IPFSDiscoveryStore

__version__ = "0.1.0"

__all__ = [
    "Network",
    "NetworkConfig",
    "ConsensusPolicy",
    "ConsensusSelector",
    "QuorumPolicy",
    "TopWeightPolicy",
    "ContentRef",
    "NameRef",
    "to_content_ref",
    "ContractRef",
    "Discovery",
    "LaunchData",
    "Peer",
    "PeerLink",
    "BiosNetworkError",
    "ContentCache",
    "IPFSDiscoveryStore",
]
