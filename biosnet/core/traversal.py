"""
Peer graph traversal.

Starting from our own discovery document, follows every weighted peer link,
downloading each discovered organization's discovery document and launch
artifacts into the local cache.

The walk is depth-first, in link order, driven by an explicit stack of
pending-link iterators, one per peer being visited. All state produced by
one walk lives in a fresh ``GraphBuild`` so that a failed walk never touches
the graph that was committed before it.
"""

from typing import Callable, Dict, Iterator, List, Optional, Tuple
from dataclasses import dataclass, field
from pathlib import Path
import logging

from .content_addressing import (
    ContentRef,
    NameRef,
    is_content_ref,
    local_name_ref,
    parse_content_ref,
    to_content_ref,
)
from .discovery import Discovery, Peer, PeerLink, parse_discovery
from .errors import (
    BiosNetworkError,
    EmptyReferenceError,
    FetchError,
    LocalIOError,
    MalformedReferenceError,
    ParseError,
)
from .validation import validate_discovery

logger = logging.getLogger(__name__)


Validator = Callable[[Discovery], None]


@dataclass
class GraphBuild:
    """Everything one traversal discovers."""
    root: Optional[Peer] = None
    # IPNS name -> content ref it resolved to during this build
    resolved_names: Dict[NameRef, ContentRef] = field(default_factory=dict)
    # content ref -> peer, at most one peer per discovery file
    peers: Dict[ContentRef, Peer] = field(default_factory=dict)

    def resolve(self, name_ref: NameRef) -> Optional[Peer]:
        """Peer a name resolved to in this build, if any."""
        content_ref = self.resolved_names.get(name_ref)
        if content_ref is None:
            return None
        return self.peers.get(content_ref)


class GraphTraverser:
    """
    Builds a GraphBuild by walking peer links from the root document.

    Collaborators:
    - cache: ContentCache holding fetched bytes and name mappings
    - store: DiscoveryStore used for anything not already cached
    - validator: semantic checks run on every document before it is used
    """

    def __init__(
        self,
        cache,
        store,
        discovery_file: Path,
        use_cache: bool = False,
        broken_discovery_path: Path = Path("broken_discovery.yaml"),
        validator: Validator = validate_discovery,
    ):
        self.cache = cache
        self.store = store
        self.discovery_file = Path(discovery_file)
        self.use_cache = use_cache
        self.broken_discovery_path = Path(broken_discovery_path)
        self.validator = validator

    def traverse_graph(self) -> GraphBuild:
        """
        Walk the whole graph from our own discovery document.

        Returns:
            A complete GraphBuild

        Raises:
            BiosNetworkError: on the first failure anywhere in the walk
        """
        build = GraphBuild()

        self.cache.ensure_exists()

        try:
            raw = self.discovery_file.read_bytes()
        except OSError as e:
            raise LocalIOError(f"reading {self.discovery_file}: {e}") from e

        content_ref = to_content_ref(raw)
        self.cache.write(content_ref, raw, strict=True)

        disco = parse_discovery(raw)

        build.root = Peer(
            discovery=disco,
            discovery_link=local_name_ref(self.discovery_file),
            discovery_file=content_ref,
        )
        build.peers[content_ref] = build.root

        root = self.traverse_peer(build, disco, build.root.discovery_link, content_ref)
        stack: List[Iterator[PeerLink]] = [iter(root.launch_data.peers)]

        while stack:
            link = next(stack[-1], None)
            if link is None:
                stack.pop()
                continue

            try:
                found = self.fetch_peer(build, link)
                if found is not None:
                    disco, name_ref, ref = found
                    peer = self.traverse_peer(build, disco, name_ref, ref)
                    stack.append(iter(peer.launch_data.peers))
            except BiosNetworkError as e:
                if e.link is None:
                    e.link = link.discovery_link
                raise

        logger.info(
            f"Traversal complete: {len(build.peers)} peer(s), "
            f"{len(build.resolved_names)} name(s) resolved"
        )

        return build

    def traverse_peer(
        self,
        build: GraphBuild,
        disco: Discovery,
        name_ref: NameRef,
        content_ref: ContentRef,
    ) -> Peer:
        """
        Validate a document, fetch its artifacts and register it.

        Returns:
            The registered peer; its links are visited by the caller
        """
        logger.info(
            f"Loading launch data from {disco.account_name!r} "
            f"({disco.organization_name!r}, {name_ref})..."
        )

        try:
            self.validator(disco)
            self._download_artifacts(disco)
        except BiosNetworkError as e:
            if e.peer is None:
                e.peer = disco.account_name
            raise

        peer = Peer(discovery=disco, discovery_link=name_ref, discovery_file=content_ref)
        build.peers[content_ref] = peer
        if build.root is not None and build.root.discovery_file == content_ref:
            build.root = peer

        logger.info(f"- has {len(disco.launch_data.peers)} peer(s)")

        return peer

    def fetch_peer(
        self,
        build: GraphBuild,
        link: PeerLink,
    ) -> Optional[Tuple[Discovery, NameRef, ContentRef]]:
        """
        Resolve one peer link.

        Returns:
            (document, name, content ref) when the link leads to a peer not yet
            in the graph, None when there is nothing new to traverse
        """
        name_ref = link.discovery_link
        logger.info(f"  - peer {name_ref} comment={link.comment!r}, weight={link.weight:.2f}")

        if not link.has_valid_weight():
            logger.info("    - weight not between 0.0 and 1.0, not including in graph")
            return None

        if name_ref in build.resolved_names:
            logger.info("    - traversed already!")
            return None

        raw = self._read_discovery(name_ref)

        content_ref = to_content_ref(raw)
        self.cache.write(content_ref, raw)
        self.cache.write(name_ref, content_ref.encode("utf-8"))

        try:
            disco = parse_discovery(raw)
        except ParseError:
            self._dump_broken_discovery(raw)
            raise

        build.resolved_names[name_ref] = content_ref

        if content_ref in build.peers:
            logger.info(f"    - already added {disco.account_name!r}")
            return None

        logger.info(f"    - adding {disco.account_name!r} ({disco.organization_name!r})")

        return disco, name_ref, content_ref

    def download_content_ref(self, ref: ContentRef):
        """
        Make sure an artifact is in the cache.

        Raises:
            EmptyReferenceError: if no reference was given
            MalformedReferenceError: if it is not an ``/ipfs/`` sha2-256 multihash path
            FetchError: if the store could not deliver it
        """
        if not ref:
            raise EmptyReferenceError("no hash provided")
        if not is_content_ref(ref):
            raise MalformedReferenceError(f"ipfs ref should start with '/ipfs/': {ref!r}")
        try:
            parse_content_ref(ref)
        except ValueError as e:
            raise MalformedReferenceError(str(e)) from e

        if self.cache.exists(ref):
            return

        try:
            data = self.store.get_by_hash(ref)
        except Exception as e:
            raise FetchError(f"fetching {ref}: {e}") from e

        self.cache.write(ref, data)

    # Internal methods

    def _download_artifacts(self, disco: Discovery):
        """Fetch everything a document points to; first failure wins."""
        launch = disco.launch_data

        artifacts = [
            ("boot_sequence", launch.boot_sequence),
            ("snapshot", launch.snapshot),
        ]
        for name, contract in launch.contracts.items():
            artifacts.append((f"contract {name!r} abi", contract.abi))
            artifacts.append((f"contract {name!r} code", contract.code))

        for artifact, ref in artifacts:
            try:
                self.download_content_ref(ref)
            except FetchError as e:
                e.artifact = artifact
                raise

    def _read_discovery(self, name_ref: NameRef) -> bytes:
        """Raw discovery bytes for a name, from cache when allowed."""
        if self.use_cache and self.cache.exists(name_ref):
            content_ref = self.cache.read(name_ref).decode("utf-8").strip()
            if self.cache.exists(content_ref):
                logger.debug(f"    - {name_ref} served from cache ({content_ref})")
                return self.cache.read(content_ref)

        try:
            return self.store.get_by_name(name_ref)
        except Exception as e:
            raise FetchError(f"resolving {name_ref}: {e}") from e

    def _dump_broken_discovery(self, raw: bytes):
        try:
            self.broken_discovery_path.write_bytes(raw)
        except OSError as e:
            logger.error(f"Could not write {self.broken_discovery_path}: {e}")
            return
        logger.error(
            f"BROKEN DISCOVERY FILE. Wrote to `{self.broken_discovery_path}`. Please inspect!"
        )
