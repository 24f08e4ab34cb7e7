"""
NodePool Unit Tests
===================
Node list validation and rotation strategies.
"""

import json
import random

import pytest

from tangle_promoter.shared.errors import InvalidInput
from tangle_promoter.shared.infrastructure.node_pool import (
    NodePool,
    RotationStrategy,
    is_valid_node_url,
    load_nodes,
)

NODES = ["https://node-a.example:443", "https://node-b.example:443", "http://node-c.example:14265"]


class TestLoadNodes:

    def test_comma_separated(self):
        nodes = load_nodes(" https://node-a.example:443 , http://node-c.example:14265/ ")
        assert nodes == ["https://node-a.example:443", "http://node-c.example:14265"]

    def test_list_is_deduplicated(self):
        assert load_nodes([NODES[0], NODES[0], NODES[1]]) == NODES[:2]

    def test_invalid_entries_skipped(self):
        nodes = load_nodes(["ftp://node.example", "not a url", "https://node-a.example:443"])
        assert nodes == ["https://node-a.example:443"]

    def test_json_file(self, tmp_path):
        path = tmp_path / "nodes.json"
        path.write_text(json.dumps(NODES))
        assert load_nodes(str(path)) == NODES

    def test_json_file_must_hold_array(self, tmp_path):
        path = tmp_path / "nodes.json"
        path.write_text(json.dumps({"nodes": NODES}))
        with pytest.raises(InvalidInput):
            load_nodes(str(path))

    @pytest.mark.parametrize("raw", [None, "", [], ["nope"]])
    def test_nothing_valid_raises(self, raw):
        with pytest.raises(InvalidInput):
            load_nodes(raw)

    @pytest.mark.parametrize("url, valid", [
        ("https://nodes.thetangle.org:443", True),
        ("http://localhost:14265", True),
        ("https://node.example:99999", False),
        ("https://node.example:abc", False),
        ("wss://node.example", False),
        ("https://", False),
    ])
    def test_url_validation(self, url, valid):
        assert is_valid_node_url(url) is valid


class TestRotation:

    def test_round_robin_cycles(self):
        pool = NodePool(NODES, "round-robin")
        picks = [pool.select_endpoint() for _ in range(6)]
        assert picks == NODES + NODES

    def test_random_never_repeats_previous(self):
        pool = NodePool(NODES, "random", rng=random.Random(7))
        picks = [pool.select_endpoint() for _ in range(50)]
        assert all(a != b for a, b in zip(picks, picks[1:]))
        assert len(set(picks)) > 1

    def test_single_node_pool(self):
        pool = NodePool(NODES[:1], RotationStrategy.RANDOM)
        assert pool.select_endpoint() == NODES[0]
        assert pool.select_endpoint() == NODES[0]

    def test_request_counts(self):
        pool = NodePool(NODES[:2])
        for _ in range(4):
            pool.select_endpoint()
        assert pool.request_counts == {NODES[0]: 2, NODES[1]: 2}
        assert pool.last_selected == NODES[1]

    def test_strategy_parsing(self):
        assert RotationStrategy.parse("ROUND_ROBIN") is RotationStrategy.ROUND_ROBIN
        assert RotationStrategy.parse("random") is RotationStrategy.RANDOM
        with pytest.raises(InvalidInput):
            RotationStrategy.parse("weighted")

    def test_empty_pool_rejected(self):
        with pytest.raises(InvalidInput):
            NodePool([])
