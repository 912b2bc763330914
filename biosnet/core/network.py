"""
Peer network orchestrator.

This is the primary API: it rebuilds the peer graph (traverse, verify,
aggregate, order), keeps the last good ranking, and answers which launch
data the network agrees on.

Quick Start:
    >>> from biosnet import Network, NetworkConfig, IPFSDiscoveryStore
    >>>
    >>> config = NetworkConfig.from_env()
    >>> net = Network(config, store=IPFSDiscoveryStore.from_config(config))
    >>> net.update_graph()
    >>> net.print_ordered_peers()
    >>> launch_data = net.consensus_launch_data()
"""

from typing import Callable, Dict, List, Optional
import logging
import threading
import time

from .config import NetworkConfig
from .consensus import ConsensusPolicy, ConsensusSelector
from .content_addressing import ContentRef, NameRef
from .discovery import LaunchData, Peer
from .errors import BiosNetworkError
from .ranking import calculate_weights, order_peers, verify_graph
from .traversal import GraphBuild, GraphTraverser, Validator
from .validation import validate_discovery
from ..backends.local import ContentCache

logger = logging.getLogger(__name__)


TOP_TIER_SIZE = 21  # appointed block producers after the BIOS node


class Network:
    """
    The discovered peer graph and its ranking.

    A rebuild only replaces the committed graph once every stage succeeded;
    a failed rebuild leaves the previous graph in place. Rebuild attempts
    closer together than ``staleness_seconds`` are skipped.
    """

    def __init__(
        self,
        config: NetworkConfig,
        store,
        cache: Optional[ContentCache] = None,
        validator: Validator = validate_discovery,
        policy: Optional[ConsensusPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the network.

        Args:
            config: Paths, cache and staleness settings
            store: DiscoveryStore used to fetch what is not cached
            cache: Reference cache (defaults to one at ``config.cache_path``)
            validator: Semantic checks for every discovery document
            policy: Consensus policy (defaults to top-weight wins)
            clock: Monotonic seconds, for the staleness window
        """
        self.config = config
        self.store = store
        self.cache = cache or ContentCache(config.cache_path)
        self.selector = ConsensusSelector(policy)
        self.clock = clock

        self.traverser = GraphTraverser(
            cache=self.cache,
            store=store,
            discovery_file=config.discovery_file,
            use_cache=config.use_cache,
            broken_discovery_path=config.broken_discovery_path,
            validator=validator,
        )

        self._graph: Optional[GraphBuild] = None
        self._ordered_peers: List[Peer] = []
        self._last_attempt: Optional[float] = None
        self._lock = threading.Lock()

        logger.info(f"Initialized peer network rooted at {config.discovery_file}")

    @property
    def use_cache(self) -> bool:
        return self.traverser.use_cache

    @use_cache.setter
    def use_cache(self, value: bool):
        self.traverser.use_cache = value

    def update_graph(self, force: bool = False) -> bool:
        """
        Rebuild the peer graph from scratch.

        Args:
            force: Ignore the staleness window

        Returns:
            True if the graph was rebuilt, False if the last attempt is
            still fresh

        Raises:
            BiosNetworkError: from the failing stage, with ``phase`` set to
                traverse, verify or aggregate
        """
        with self._lock:
            now = self.clock()
            if (
                not force
                and self._last_attempt is not None
                and now - self._last_attempt < self.config.staleness_seconds
            ):
                logger.debug("Peer graph is fresh, skipping rebuild")
                return False

            self._last_attempt = now

            build = self._run_phase("traverse", self.traverser.traverse_graph)
            self._run_phase("verify", verify_graph, build)
            self._run_phase("aggregate", calculate_weights, build)
            ordered = order_peers(build)

            self._graph = build
            self._ordered_peers = ordered

            logger.info(f"Peer graph rebuilt: {len(ordered)} peer(s) ranked")

            return True

    # Read accessors

    @property
    def my_peer(self) -> Optional[Peer]:
        """Our own peer in the committed graph."""
        return self._graph.root if self._graph else None

    @property
    def peer_count(self) -> int:
        return len(self._ordered_peers)

    def ordered_peers(self) -> List[Peer]:
        """Committed ranking, best first."""
        return list(self._ordered_peers)

    def resolved_names(self) -> Dict[NameRef, ContentRef]:
        """Names resolved during the committed build."""
        return dict(self._graph.resolved_names) if self._graph else {}

    def reached_consensus(self) -> bool:
        return self.selector.reached_consensus(self._ordered_peers)

    def consensus_launch_data(self) -> LaunchData:
        """
        Launch data of the highest-ranked peer.

        Raises:
            EmptyGraphError: if no graph has been committed
        """
        return self.selector.consensus_launch_data(self._ordered_peers)

    def ranking_table(self) -> str:
        """Ranking as an aligned table: BIOS node, appointed producers, then the rest."""
        rows = [
            ["Role", "IPNS Link", "Account", "Organization", "Weight"],
            ["----", "---------", "-------", "------------", "------"],
        ]
        for i, peer in enumerate(self._ordered_peers):
            if i == 0:
                role = "BIOS NODE"
            elif i <= TOP_TIER_SIZE:
                role = f"ABP {i:02d}"
            else:
                role = f"Part. {i:02d}"
            rows.append([role] + peer.columns())

        return _columnize(rows)

    def print_ordered_peers(self):
        """Log the ranking table."""
        banner = "#" * 95
        logger.info(banner)
        logger.info(f"{'PEER NETWORK':^95}")
        for line in self.ranking_table().splitlines():
            logger.info(line)
        logger.info(banner)

    # Internal methods

    def _run_phase(self, phase: str, func, *args):
        try:
            return func(*args)
        except BiosNetworkError as e:
            e.phase = phase
            logger.error(f"Peer graph rebuild failed: {e}")
            raise


def _columnize(rows: List[List[str]]) -> str:
    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]))]
    lines = []
    for row in rows:
        cells = [cell.ljust(width) for cell, width in zip(row, widths)]
        lines.append("  ".join(cells).rstrip())
    return "\n".join(lines)
