"""
Shared fixtures for biosnet tests.

FakeDiscoveryStore stands in for IPFS: blobs are addressed by their real
content ref, names map to whatever bytes were last published under them.
"""

import pytest
from pathlib import Path

from biosnet.core.config import NetworkConfig
from biosnet.core.content_addressing import to_content_ref
from biosnet.core.discovery import ContractRef, Discovery, LaunchData, PeerLink, dump_discovery
from biosnet.core.network import Network
from biosnet.backends.local import ContentCache


class FakeDiscoveryStore:
    """In-memory DiscoveryStore that counts every fetch."""

    def __init__(self):
        self.blobs = {}
        self.names = {}
        self.hash_calls = []
        self.name_calls = []
        self.offline = False

    def add_blob(self, data: bytes) -> str:
        ref = to_content_ref(data)
        self.blobs[ref] = data
        return ref

    def publish(self, name: str, data: bytes):
        self.names[name] = data

    def get_by_hash(self, ref):
        self.hash_calls.append(ref)
        if self.offline:
            raise ConnectionError("store offline")
        return self.blobs[ref]

    def get_by_name(self, ref):
        self.name_calls.append(ref)
        if self.offline:
            raise ConnectionError("store offline")
        return self.names[ref]


@pytest.fixture
def store():
    return FakeDiscoveryStore()


@pytest.fixture
def artifacts(store):
    """Boot sequence, snapshot and one contract, all fetchable."""
    return {
        "boot_sequence": store.add_blob(b"boot_sequence:\n- op: create.accounts\n"),
        "snapshot": store.add_blob(b"eos1abc,eosio.a,1000.0000 EOS\n"),
        "abi": store.add_blob(b'{"version": "eosio::abi/1.0"}'),
        "code": store.add_blob(b"\x00asm\x01\x00\x00\x00"),
    }


@pytest.fixture
def make_doc(artifacts):
    """Build discovery document bytes: make_doc(account, [(link, weight), ...])."""

    def _make(account, links=(), organization=None, **overrides):
        launch = LaunchData(
            boot_sequence=overrides.get("boot_sequence", artifacts["boot_sequence"]),
            snapshot=overrides.get("snapshot", artifacts["snapshot"]),
            contracts=overrides.get(
                "contracts",
                {"eosio.system": ContractRef(abi=artifacts["abi"], code=artifacts["code"])},
            ),
            peers=[
                PeerLink(discovery_link=link, weight=weight, comment=f"vouching {link}")
                for link, weight in links
            ],
        )
        disco = Discovery(
            organization_name=organization or f"Org {account}",
            account_name=account,
            launch_data=launch,
        )
        return dump_discovery(disco)

    return _make


@pytest.fixture
def temp_dir(tmp_path):
    return Path(tmp_path)


@pytest.fixture
def make_network(temp_dir, store):
    """Network rooted at a local file holding ``root_bytes``."""

    def _make(root_bytes, clock=None, **config_overrides):
        discovery_file = temp_dir / "my_discovery_file.yaml"
        discovery_file.write_bytes(root_bytes)

        settings = {
            "cache_path": temp_dir / "cache",
            "discovery_file": discovery_file,
            "broken_discovery_path": temp_dir / "broken_discovery.yaml",
        }
        settings.update(config_overrides)
        config = NetworkConfig(**settings)

        kwargs = {"clock": clock} if clock is not None else {}
        return Network(config, store=store, cache=ContentCache(config.cache_path), **kwargs)

    return _make
