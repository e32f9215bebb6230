"""Tests for clusterer module."""

import random

import pytest

from facegroup.clusterer import Clusterer, compare_rows, hash_distance
from facegroup.config import Config
from facegroup.errors import InvalidArgument

BASE = 0xF0F0_1234_ABCD_8001


def flip(value: int, *bits: int) -> int:
    """Flip the given bit positions (0 = least significant)."""
    for bit in bits:
        value ^= 1 << bit
    return value


class TestHashDistance:
    def test_reflexive(self):
        assert hash_distance(BASE, BASE) == 0.0

    def test_symmetric(self):
        other = flip(BASE, 3, 17, 40)
        assert hash_distance(BASE, other) == hash_distance(other, BASE)

    def test_one_bit(self):
        assert hash_distance(BASE, flip(BASE, 63)) == pytest.approx(1 / 64)

    def test_three_bits(self):
        assert hash_distance(BASE, flip(BASE, 0, 1, 2)) == pytest.approx(3 / 64)

    def test_all_bits(self):
        assert hash_distance(0, (1 << 64) - 1) == 1.0


class TestBuildGraph:
    def test_default_threshold(self):
        assert Config().SIMILARITY_THRESHOLD == 0.03125

    def test_one_bit_linked(self):
        graph = Clusterer().build_graph({0: BASE, 1: flip(BASE, 5)})
        assert graph.has_edge(0, 1)
        assert graph.edges[0, 1]['distance'] == pytest.approx(1 / 64)

    def test_two_bits_linked_at_threshold(self):
        graph = Clusterer().build_graph({0: BASE, 1: flip(BASE, 5, 6)})
        assert graph.has_edge(0, 1)

    def test_three_bits_not_linked(self):
        graph = Clusterer().build_graph({0: BASE, 1: flip(BASE, 5, 6, 7)})
        assert not graph.has_edge(0, 1)
        assert set(graph.nodes) == {0, 1}

    def test_isolated_nodes_kept(self):
        graph = Clusterer().build_graph({0: BASE, 1: ~BASE & ((1 << 64) - 1), 2: BASE})
        assert set(graph.nodes) == {0, 1, 2}
        assert list(graph.edges) == [(0, 2)]

    def test_no_self_loops(self):
        graph = Clusterer().build_graph({0: BASE, 1: BASE, 2: BASE})
        assert all(u != v for u, v in graph.edges)
        assert graph.number_of_edges() == 3

    def test_explicit_threshold(self):
        graph = Clusterer().build_graph({0: BASE, 1: flip(BASE, 5, 6, 7)}, threshold=4 / 64)
        assert graph.has_edge(0, 1)

    def test_invalid_threshold(self):
        with pytest.raises(InvalidArgument):
            Clusterer().build_graph({0: BASE}, threshold=1.5)

    def test_parallel_matches_sequential(self):
        rng = random.Random(7)
        seeds = [rng.getrandbits(64) for _ in range(10)]
        fingerprints = {}
        for i in range(80):
            fingerprints[i] = flip(seeds[i % 10], rng.randrange(64))

        sequential = Clusterer(Config(MAX_WORKERS=1)).build_graph(fingerprints)
        parallel = Clusterer(Config(MAX_WORKERS=4, PARALLEL_MIN_PAIRS=1)).build_graph(fingerprints)

        assert set(parallel.nodes) == set(sequential.nodes)
        assert {frozenset(e) for e in parallel.edges} == {frozenset(e) for e in sequential.edges}


class TestCompareRows:
    def test_interleaved_chunks_cover_all_pairs(self):
        items = [(i, flip(BASE, i % 3)) for i in range(9)]
        whole = compare_rows(items, 2 / 64, range(9))
        chunked = compare_rows(items, 2 / 64, range(0, 9, 2)) + compare_rows(items, 2 / 64, range(1, 9, 2))
        assert sorted(chunked) == sorted(whole)
        assert len(whole) == 36


class TestCluster:
    def test_empty(self):
        assert Clusterer().cluster_by_similarity({}) == []

    def test_single(self):
        assert Clusterer().cluster_by_similarity({0: BASE}) == [[0]]

    def test_transitive_grouping(self):
        # 0-1 and 1-2 are 2 bits apart, 0-2 is 4 bits apart
        fingerprints = {0: BASE, 1: flip(BASE, 1, 2), 2: flip(BASE, 1, 2, 3, 4)}
        clusterer = Clusterer()
        graph = clusterer.build_graph(fingerprints)
        assert graph.has_edge(0, 1) and graph.has_edge(1, 2)
        assert not graph.has_edge(0, 2)
        assert clusterer.cluster(graph) == [[0, 1, 2]]

    def test_two_groups_in_index_order(self):
        other = 0x0123_4567_89AB_CDEF
        fingerprints = {
            0: BASE,
            1: flip(BASE, 9),
            2: other,
            3: flip(other, 0),
            4: flip(other, 1),
        }
        assert Clusterer().cluster_by_similarity(fingerprints) == [[0, 1], [2, 3, 4]]

    def test_interleaved_members_sorted(self):
        other = 0x0123_4567_89AB_CDEF
        fingerprints = {0: other, 1: BASE, 2: flip(other, 4), 3: flip(BASE, 4), 4: other}
        assert Clusterer().cluster_by_similarity(fingerprints) == [[0, 2, 4], [1, 3]]

    def test_partition_and_determinism(self):
        rng = random.Random(11)
        seeds = [rng.getrandbits(64) for _ in range(6)]
        fingerprints = {i: flip(seeds[rng.randrange(6)], rng.randrange(64)) for i in range(40)}

        first = Clusterer().cluster_by_similarity(fingerprints)
        second = Clusterer().cluster_by_similarity(fingerprints)

        assert first == second
        members = [i for group in first for i in group]
        assert sorted(members) == list(range(40))
        assert len(members) == len(set(members))
        assert [g[0] for g in first] == sorted(g[0] for g in first)

    def test_non_contiguous_indices(self):
        fingerprints = {3: BASE, 7: flip(BASE, 0), 9: ~BASE & ((1 << 64) - 1)}
        assert Clusterer().cluster_by_similarity(fingerprints) == [[3, 7], [9]]
