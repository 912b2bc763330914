"""
biosnet Core Module

Peer graph functionality:
- Content addressing (sha2-256 multihash, /ipfs/ paths)
- Discovery documents (YAML schema, validation)
- Graph traversal (work-list walk with per-build memo)
- Verification, weight aggregation and ranking
- Consensus selection (pluggable policy)
"""

from biosnet.core.config import NetworkConfig
from biosnet.core.consensus import ConsensusPolicy, ConsensusSelector, QuorumPolicy, TopWeightPolicy
from biosnet.core.content_addressing import ContentID, compute_content_id, to_content_ref
from biosnet.core.discovery import ContractRef, Discovery, LaunchData, Peer, PeerLink, parse_discovery
from biosnet.core.network import Network
from biosnet.core.ranking import calculate_weights, order_peers, verify_graph
from biosnet.core.traversal import GraphBuild, GraphTraverser
from biosnet.core.validation import validate_discovery

__all__ = [
    "NetworkConfig",
    "ConsensusPolicy",
    "ConsensusSelector",
    "QuorumPolicy",
    "TopWeightPolicy",
    "ContentID",
    "compute_content_id",
    "to_content_ref",
    "ContractRef",
    "Discovery",
    "LaunchData",
    "Peer",
    "PeerLink",
    "parse_discovery",
    "Network",
    "calculate_weights",
    "order_peers",
    "verify_graph",
    "GraphBuild",
    "GraphTraverser",
    "validate_discovery",
]
