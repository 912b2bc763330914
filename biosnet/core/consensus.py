"""
Selecting the launch data everyone should boot with.

Ranking by weight is treated as agreement for now: the top-ranked peer's
launch data wins. The decision of whether agreement has been reached sits
behind ConsensusPolicy so a quorum-based rule can replace it without
touching traversal or aggregation.
"""

from typing import Protocol, Sequence
import logging

from .discovery import LaunchData, Peer
from .errors import EmptyGraphError

logger = logging.getLogger(__name__)


class ConsensusPolicy(Protocol):
    """Decides whether a ranking is good enough to launch from."""

    def reached(self, ranked: Sequence[Peer]) -> bool:
        ...


class TopWeightPolicy:
    """The most vouched-for peer wins, unconditionally."""

    def reached(self, ranked: Sequence[Peer]) -> bool:
        return True


class QuorumPolicy:
    """
    Agreement once the top peer holds a share of all weight cast.

    Args:
        threshold: Fraction (0.0 - 1.0] of the total graph weight the
            top-ranked peer must hold
    """

    def __init__(self, threshold: float = 2 / 3):
        if not 0.0 < threshold <= 1.0:
            raise ValueError(f"threshold must be in (0, 1], got {threshold}")
        self.threshold = threshold

    def reached(self, ranked: Sequence[Peer]) -> bool:
        if not ranked:
            return False

        total = sum(peer.total_weight for peer in ranked)
        if total == 0:
            # Nobody voted: a lone root is its own quorum
            return len(ranked) == 1

        share = ranked[0].total_weight / total
        logger.debug(f"Top peer holds {share:.2%} of the weight (need {self.threshold:.2%})")
        return share >= self.threshold


class ConsensusSelector:
    """Reads a ranked peer list through a policy."""

    def __init__(self, policy: ConsensusPolicy = None):
        self.policy = policy or TopWeightPolicy()

    def reached_consensus(self, ranked: Sequence[Peer]) -> bool:
        return self.policy.reached(ranked)

    def consensus_launch_data(self, ranked: Sequence[Peer]) -> LaunchData:
        """
        Launch data of the highest-ranked peer.

        Raises:
            EmptyGraphError: if no peers have been discovered
        """
        if not ranked:
            raise EmptyGraphError("no peers discovered yet")
        return ranked[0].launch_data
