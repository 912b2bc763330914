"""
Unit tests for verification, weight aggregation and ordering.

Graphs are assembled by hand so that every edge case (including ones a
successful traversal can never produce) can be reached directly.
"""

import itertools
import random

import pytest

from biosnet.core.discovery import Discovery, LaunchData, Peer, PeerLink
from biosnet.core.errors import DanglingReferenceError, DuplicateIdentityError
from biosnet.core.ranking import calculate_weights, order_peers, verify_graph
from biosnet.core.traversal import GraphBuild


def make_peer(account, ref, links=()):
    disco = Discovery(
        organization_name=f"Org {account}",
        account_name=account,
        launch_data=LaunchData(
            peers=[PeerLink(discovery_link=name, weight=w) for name, w in links],
        ),
    )
    return Peer(discovery=disco, discovery_link=f"/ipns/{account}", discovery_file=ref)


def make_build(peers, resolved):
    build = GraphBuild(root=peers[0])
    for peer in peers:
        build.peers[peer.discovery_file] = peer
    build.resolved_names.update(resolved)
    return build


@pytest.fixture
def diamond():
    """a -> b, a -> c, b -> d, c -> d, d -> a."""
    peers = [
        make_peer("a", "/ipfs/QmA", [("/ipns/b", 0.4), ("/ipns/c", 0.6)]),
        make_peer("b", "/ipfs/QmB", [("/ipns/d", 0.5), ("/ipns/x", 3.0)]),
        make_peer("c", "/ipfs/QmC", [("/ipns/d", 0.5), ("/ipns/c", 1.0)]),
        make_peer("d", "/ipfs/QmD", [("/ipns/a", 0.9)]),
    ]
    resolved = {
        "/ipns/a": "/ipfs/QmA",
        "/ipns/b": "/ipfs/QmB",
        "/ipns/c": "/ipfs/QmC",
        "/ipns/d": "/ipfs/QmD",
    }
    return peers, resolved


@pytest.mark.unit
class TestVerifyGraph:

    def test_unique_accounts_pass(self, diamond):
        verify_graph(make_build(*diamond))

    def test_duplicate_account_fails(self):
        build = make_build(
            [make_peer("x", "/ipfs/QmC"), make_peer("x", "/ipfs/QmD")], {}
        )

        with pytest.raises(DuplicateIdentityError) as exc_info:
            verify_graph(build)

        assert "/ipfs/QmC" in str(exc_info.value)
        assert "/ipfs/QmD" in str(exc_info.value)

    def test_duplicate_detected_across_many_peers(self):
        peers = [make_peer(f"p{i}", f"/ipfs/Qm{i}") for i in range(1, 6)]
        peers.append(make_peer("p3", "/ipfs/QmLate"))

        with pytest.raises(DuplicateIdentityError):
            verify_graph(make_build(peers, {}))


@pytest.mark.unit
class TestCalculateWeights:

    def test_sums(self, diamond):
        build = make_build(*diamond)
        calculate_weights(build)

        w = {p.account_name: p.total_weight for p in build.peers.values()}
        assert w["a"] == pytest.approx(0.9)
        assert w["b"] == pytest.approx(0.4)
        # c's self link (1.0) never counts
        assert w["c"] == pytest.approx(0.6)
        assert w["d"] == pytest.approx(1.0)

    def test_out_of_range_links_are_not_resolved(self, diamond):
        # b's 3.0 link to /ipns/x was never resolved; must not be dangling
        build = make_build(*diamond)
        calculate_weights(build)

    def test_same_account_under_other_file_gets_nothing(self):
        peers = [
            make_peer("a", "/ipfs/QmA", [("/ipns/a-new", 0.8), ("/ipns/b", 0.1)]),
            make_peer("a", "/ipfs/QmA2"),
            make_peer("b", "/ipfs/QmB"),
        ]
        build = make_build(peers, {"/ipns/a-new": "/ipfs/QmA2", "/ipns/b": "/ipfs/QmB"})

        calculate_weights(build)

        assert build.peers["/ipfs/QmA2"].total_weight == 0.0
        assert build.peers["/ipfs/QmB"].total_weight == pytest.approx(0.1)

    def test_unresolved_link_is_dangling(self):
        build = make_build([make_peer("a", "/ipfs/QmA", [("/ipns/ghost", 0.5)])], {})

        with pytest.raises(DanglingReferenceError) as exc_info:
            calculate_weights(build)

        assert exc_info.value.link == "/ipns/ghost"

    def test_resolved_to_unknown_peer_is_dangling(self):
        build = make_build(
            [make_peer("a", "/ipfs/QmA", [("/ipns/b", 0.5)])],
            {"/ipns/b": "/ipfs/QmGone"},
        )

        with pytest.raises(DanglingReferenceError):
            calculate_weights(build)

    def test_starts_from_zero(self, diamond):
        build = make_build(*diamond)
        for peer in build.peers.values():
            peer.total_weight = 42.0

        calculate_weights(build)

        assert build.peers["/ipfs/QmB"].total_weight == pytest.approx(0.4)

    def test_visit_order_does_not_matter(self, diamond):
        peers, resolved = diamond
        expected_totals = None
        expected_order = None

        rng = random.Random(7)
        for _ in range(20):
            shuffled = [
                make_peer(
                    p.account_name,
                    p.discovery_file,
                    rng.sample(
                        [(l.discovery_link, l.weight) for l in p.launch_data.peers],
                        len(p.launch_data.peers),
                    ),
                )
                for p in rng.sample(peers, len(peers))
            ]
            build = make_build(shuffled, resolved)
            calculate_weights(build)

            totals = {ref: p.total_weight for ref, p in build.peers.items()}
            order = [p.discovery_file for p in order_peers(build)]
            if expected_totals is None:
                expected_totals, expected_order = totals, order
            assert totals == expected_totals
            assert order == expected_order

    def test_exact_ties_survive_any_visit_order(self):
        # 0.1 + 0.2 + 0.3 summed left to right is 0.6000000000000001
        voters = [
            make_peer("b", "/ipfs/QmB", [("/ipns/x", 0.1)]),
            make_peer("c", "/ipfs/QmC", [("/ipns/x", 0.2)]),
            make_peer("d", "/ipfs/QmD", [("/ipns/x", 0.3)]),
            make_peer("e", "/ipfs/QmE", [("/ipns/y", 0.6)]),
        ]
        resolved = {"/ipns/x": "/ipfs/QmZ", "/ipns/y": "/ipfs/QmY"}

        for perm in itertools.permutations(voters):
            peers = [make_peer("x", "/ipfs/QmZ"), *perm, make_peer("y", "/ipfs/QmY")]
            build = make_build(peers, resolved)
            calculate_weights(build)

            assert build.peers["/ipfs/QmZ"].total_weight == 0.6
            assert build.peers["/ipfs/QmY"].total_weight == 0.6
            assert [p.discovery_file for p in order_peers(build)] == [
                "/ipfs/QmY", "/ipfs/QmZ", "/ipfs/QmB", "/ipfs/QmC", "/ipfs/QmD", "/ipfs/QmE",
            ]

    def test_link_order_within_one_peer_does_not_matter(self):
        resolved = {
            "/ipns/x1": "/ipfs/QmZ",
            "/ipns/x2": "/ipfs/QmZ",
            "/ipns/x3": "/ipfs/QmZ",
            "/ipns/y": "/ipfs/QmY",
        }
        links = [("/ipns/x1", 0.1), ("/ipns/x2", 0.2), ("/ipns/x3", 0.3)]

        for perm in itertools.permutations(links):
            build = make_build(
                [
                    make_peer("a", "/ipfs/QmA", list(perm) + [("/ipns/y", 0.6)]),
                    make_peer("x", "/ipfs/QmZ"),
                    make_peer("y", "/ipfs/QmY"),
                ],
                resolved,
            )
            calculate_weights(build)

            assert build.peers["/ipfs/QmZ"].total_weight == 0.6
            assert [p.account_name for p in order_peers(build)] == ["y", "x", "a"]


@pytest.mark.unit
class TestOrderPeers:

    def test_weight_descending_then_ref_ascending(self):
        peers = [
            make_peer("a", "/ipfs/QmZ"),
            make_peer("b", "/ipfs/QmB"),
            make_peer("c", "/ipfs/QmA"),
            make_peer("d", "/ipfs/QmC"),
        ]
        peers[0].total_weight = 0.5
        peers[1].total_weight = 0.9
        peers[2].total_weight = 0.5
        peers[3].total_weight = 0.0
        build = make_build(peers, {})

        ranked = order_peers(build)

        assert [p.account_name for p in ranked] == ["b", "c", "a", "d"]

    def test_ranking_is_independent_of_discovery_order(self):
        peers = [make_peer(f"p{i}", f"/ipfs/Qm{i}") for i in range(1, 5)]
        for peer, weight in zip(peers, [0.3, 0.3, 0.1, 0.3]):
            peer.total_weight = weight

        rankings = {
            tuple(p.discovery_file for p in order_peers(make_build(list(perm), {})))
            for perm in itertools.permutations(peers)
        }

        assert rankings == {("/ipfs/Qm1", "/ipfs/Qm2", "/ipfs/Qm4", "/ipfs/Qm3")}

    def test_total_order(self, diamond):
        build = make_build(*diamond)
        calculate_weights(build)
        ranked = order_peers(build)

        def key(p):
            return (-p.total_weight, p.discovery_file)

        for x, y in zip(ranked, ranked[1:]):
            # strictly increasing keys: irreflexive, transitive and total
            assert key(x) < key(y)
