"""
Discovery documents.

A discovery document is what an organization publishes to say who it is,
which genesis artifacts it wants to launch with, and which other
organizations it vouches for (weighted peer links).
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
import logging

import yaml

from .content_addressing import ContentRef, NameRef
from .errors import ParseError

logger = logging.getLogger(__name__)


MIN_WEIGHT = 0.0
MAX_WEIGHT = 1.0


@dataclass
class ContractRef:
    """ABI and code of one contract to load at genesis."""
    abi: ContentRef = ""
    code: ContentRef = ""


@dataclass
class PeerLink:
    """A directed, weighted vote: the publisher vouches for the target."""
    discovery_link: NameRef
    weight: float = 0.0
    comment: str = ""

    def has_valid_weight(self) -> bool:
        """Only weights in [0.0, 1.0] count toward the graph."""
        return MIN_WEIGHT <= self.weight <= MAX_WEIGHT


@dataclass
class LaunchData:
    """Genesis configuration plus outgoing peer links."""
    boot_sequence: ContentRef = ""
    snapshot: ContentRef = ""
    contracts: Dict[str, ContractRef] = field(default_factory=dict)
    peers: List[PeerLink] = field(default_factory=list)


@dataclass
class Discovery:
    """A peer's published document."""
    organization_name: str
    account_name: str
    launch_data: LaunchData = field(default_factory=LaunchData)


@dataclass
class Peer:
    """A node of the trust graph, owning the document it was built from."""
    discovery: Discovery
    discovery_link: NameRef
    discovery_file: ContentRef
    total_weight: float = 0.0

    @property
    def account_name(self) -> str:
        return self.discovery.account_name

    @property
    def organization_name(self) -> str:
        return self.discovery.organization_name

    @property
    def launch_data(self) -> LaunchData:
        return self.discovery.launch_data

    def columns(self) -> List[str]:
        """Cells for the ranking table (link, account, org, weight)."""
        return [
            str(self.discovery_link),
            self.account_name,
            self.organization_name,
            f"{self.total_weight:.2f}",
        ]


def parse_discovery(raw: bytes) -> Discovery:
    """
    Decode a YAML discovery document.

    Missing optional fields fall back to empty values; structurally wrong
    documents (not a mapping, wrong field types) are rejected.

    Args:
        raw: Exact document bytes

    Returns:
        Parsed Discovery

    Raises:
        ParseError: if the bytes are not a usable discovery document
    """
    try:
        doc = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ParseError(f"invalid YAML: {e}") from e

    if not isinstance(doc, dict):
        raise ParseError("document is not a mapping")

    launch = _mapping(doc.get("launch_data"), "launch_data")

    contracts = {}
    for name, contract in _mapping(launch.get("contracts"), "launch_data.contracts").items():
        contract = _mapping(contract, f"contract {name!r}")
        contracts[str(name)] = ContractRef(
            abi=_string(contract.get("abi"), f"contract {name!r} abi"),
            code=_string(contract.get("code"), f"contract {name!r} code"),
        )

    peers_raw = launch.get("peers") or []
    if not isinstance(peers_raw, list):
        raise ParseError("launch_data.peers is not a list")

    peers = [_parse_peer_link(item, i) for i, item in enumerate(peers_raw)]

    return Discovery(
        organization_name=_string(doc.get("organization_name"), "organization_name"),
        account_name=_string(doc.get("eosio_account_name"), "eosio_account_name"),
        launch_data=LaunchData(
            boot_sequence=_string(launch.get("boot_sequence"), "boot_sequence"),
            snapshot=_string(launch.get("snapshot"), "snapshot"),
            contracts=contracts,
            peers=peers,
        ),
    )


def dump_discovery(disco: Discovery) -> bytes:
    """Encode a Discovery back into the published YAML layout."""
    launch = disco.launch_data
    doc = {
        "organization_name": disco.organization_name,
        "eosio_account_name": disco.account_name,
        "launch_data": {
            "boot_sequence": launch.boot_sequence,
            "snapshot": launch.snapshot,
            "contracts": {
                name: {"abi": c.abi, "code": c.code}
                for name, c in launch.contracts.items()
            },
            "peers": [
                {
                    "discovery_link": p.discovery_link,
                    "weight": p.weight,
                    "comment": p.comment,
                }
                for p in launch.peers
            ],
        },
    }
    return yaml.safe_dump(doc, sort_keys=False).encode("utf-8")


# Internal helpers

def _parse_peer_link(item: Any, index: int) -> PeerLink:
    item = _mapping(item, f"peer #{index}")

    weight = item.get("weight", 0.0)
    if isinstance(weight, bool):
        raise ParseError(f"peer #{index} weight is not a number: {weight!r}")
    try:
        weight = float(weight)
    except (TypeError, ValueError) as e:
        raise ParseError(f"peer #{index} weight is not a number: {weight!r}") from e

    return PeerLink(
        discovery_link=_string(item.get("discovery_link"), f"peer #{index} discovery_link"),
        weight=weight,
        comment=_string(item.get("comment"), f"peer #{index} comment"),
    )


def _mapping(value: Any, what: str) -> Dict[Any, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ParseError(f"{what} is not a mapping")
    return value


def _string(value: Optional[Any], what: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ParseError(f"{what} is not a scalar")
    return str(value)
