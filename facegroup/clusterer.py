"""Group face fingerprints by linking near-identical hashes and walking the resulting graph."""
import logging
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from typing import Iterable, List, Mapping, Sequence, Tuple

import networkx as nx

from facegroup.config import Config
from facegroup.errors import InvalidArgument

logger = logging.getLogger(__name__)

Edge = Tuple[int, int, float]


def hash_distance(hash1: int, hash2: int) -> float:
    """Normalized Hamming distance between two 64-bit fingerprints."""
    return bin(hash1 ^ hash2).count('1') / Config.HASH_BITS


def compare_rows(items: Sequence[Tuple[int, int]], threshold: float,
                 rows: Iterable[int]) -> List[Edge]:
    """Compare each row's fingerprint against every later one."""
    edges: List[Edge] = []
    for i in rows:
        node1, hash1 = items[i]
        for node2, hash2 in items[i + 1:]:
            distance = hash_distance(hash1, hash2)
            if distance <= threshold:
                edges.append((node1, node2, distance))
    return edges


class Clusterer:
    """Group face fingerprints into connected components of a similarity graph."""

    def __init__(self, config: Config = None):
        self.config = config or Config()

    def build_graph(self, fingerprints: Mapping[int, int], threshold: float = None) -> nx.Graph:
        """
        Build the undirected "same person" graph over fingerprints.

        Args:
            fingerprints: Node id (input position) -> fingerprint, in input order
            threshold: Maximum normalized distance for an edge; defaults to
                SIMILARITY_THRESHOLD

        Returns:
            Graph with one node per fingerprint and an edge for every pair within
            threshold, annotated with its distance
        """
        if threshold is None:
            threshold = self.config.SIMILARITY_THRESHOLD
        if not 0.0 <= threshold <= 1.0:
            raise InvalidArgument(f"threshold must be in [0, 1], got {threshold}")

        items = list(fingerprints.items())
        n = len(items)
        G = nx.Graph()
        G.add_nodes_from(node for node, _ in items)

        pairs = n * (n - 1) // 2
        workers = min(self.config.MAX_WORKERS, n)
        if workers <= 1 or pairs < self.config.PARALLEL_MIN_PAIRS:
            partials = [compare_rows(items, threshold, range(n))]
        else:
            # Interleaved rows give each worker a similar share of the triangle
            chunks = [range(w, n, workers) for w in range(workers)]
            with ProcessPoolExecutor(max_workers=workers) as executor:
                partials = list(executor.map(partial(compare_rows, items, threshold), chunks))

        for edges in partials:
            for i, j, d in edges:
                G.add_edge(i, j, distance=d)
                logger.debug(f"Linked {i} and {j} (distance: {d:.4f})")

        logger.info(f"Compared {pairs} pairs across {n} fingerprints: {G.number_of_edges()} edges")
        return G

    def cluster(self, graph: nx.Graph) -> List[List[int]]:
        """Connected components, discovered and ordered by ascending node id."""
        groups: List[List[int]] = []
        visited = set()
        for start in sorted(graph.nodes):
            if start in visited:
                continue
            visited.add(start)
            stack = [start]
            component = []
            while stack:
                node = stack.pop()
                component.append(node)
                for neighbor in sorted(graph.adj[node], reverse=True):
                    if neighbor not in visited:
                        visited.add(neighbor)
                        stack.append(neighbor)
            groups.append(sorted(component))
        return groups

    def cluster_by_similarity(self, fingerprints: Mapping[int, int],
                              threshold: float = None) -> List[List[int]]:
        """Build the similarity graph and return its groups of the same face."""
        graph = self.build_graph(fingerprints, threshold)
        groups = self.cluster(graph)
        logger.info(f"Found {len(groups)} groups")
        return groups
