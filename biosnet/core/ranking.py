"""
Graph verification, weight aggregation and peer ordering.

Runs on a finished GraphBuild:

1. verify_graph: every account name is claimed by exactly one discovery file
2. calculate_weights: each peer's total incoming vote weight
3. order_peers: weight descending, discovery file ascending on ties

Aggregation collects every valid contribution first and sums each peer's
votes with math.fsum, which is correctly rounded, so totals and ties do not
depend on the order peers or links are visited in.
"""

from collections import defaultdict
from typing import Dict, List
import logging
import math

from .content_addressing import ContentRef
from .discovery import Peer
from .errors import DanglingReferenceError, DuplicateIdentityError
from .traversal import GraphBuild

logger = logging.getLogger(__name__)


def verify_graph(build: GraphBuild) -> None:
    """
    Make sure no two discovery files claim the same account name.

    Raises:
        DuplicateIdentityError: naming the account and both discovery files
    """
    seen: Dict[str, ContentRef] = {}

    for peer in build.peers.values():
        claimed_by = seen.get(peer.account_name)
        if claimed_by is not None and claimed_by != peer.discovery_file:
            raise DuplicateIdentityError(
                f"two peers claim the eosio_account_name {peer.account_name!r}: "
                f"{claimed_by!r} and {peer.discovery_file!r}",
                peer=peer.account_name,
            )
        seen[peer.account_name] = peer.discovery_file


def calculate_weights(build: GraphBuild) -> None:
    """
    Sum every peer's incoming link weights into ``total_weight``.

    Links with a weight outside [0.0, 1.0] and links a peer casts for itself
    (same discovery file or same account name) are ignored.

    Raises:
        DanglingReferenceError: if a valid link was never resolved
    """
    votes: Dict[ContentRef, List[float]] = defaultdict(list)

    for peer in build.peers.values():
        for link in peer.launch_data.peers:
            if not link.has_valid_weight():
                continue

            resolved_ref = build.resolved_names.get(link.discovery_link)
            if resolved_ref is None:
                raise DanglingReferenceError(
                    f"{link.discovery_link!r} was never resolved",
                    peer=peer.account_name,
                    link=link.discovery_link,
                )

            if resolved_ref == peer.discovery_file:
                # Can't vouch for yourself
                continue

            target = build.peers.get(resolved_ref)
            if target is None:
                raise DanglingReferenceError(
                    f"couldn't find {resolved_ref!r} (resolved peer ref) in list of peers",
                    peer=peer.account_name,
                    link=link.discovery_link,
                )

            if target.account_name == peer.account_name:
                # Same account republished under another name
                continue

            logger.debug(
                f"{peer.account_name!r} adds {link.weight:.2f} to {target.account_name!r}"
            )
            votes[resolved_ref].append(link.weight)

    for ref, peer in build.peers.items():
        peer.total_weight = math.fsum(votes.get(ref, ()))


def order_peers(build: GraphBuild) -> List[Peer]:
    """Rank peers by total weight, ties broken by discovery file."""
    return sorted(
        build.peers.values(),
        key=lambda peer: (-peer.total_weight, peer.discovery_file),
    )
