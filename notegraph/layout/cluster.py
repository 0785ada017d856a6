"""K-means grouping of laid-out nodes, used to coarsen dense graphs for display."""

from __future__ import annotations

import math
import random

from ..models import Cluster, Node


def cluster_nodes(
    nodes: list[Node],
    k: int,
    *,
    iterations: int = 10,
    rng: random.Random | None = None,
) -> list[Cluster]:
    """Partition nodes into at most ``k`` clusters by position.

    With ``len(nodes) <= k`` every node gets its own cluster. Otherwise ``k``
    distinct nodes seed the centroids and a fixed number of assign/update
    rounds follow. A centroid that loses all members keeps its position.

    Node identity is untouched; clusters only group nodes for display.
    """
    if k < 1:
        raise ValueError("k must be >= 1")

    if len(nodes) <= k:
        return [Cluster(x=n.x, y=n.y, nodes=[n]) for n in nodes]

    rng = rng or random.Random()
    clusters = [Cluster(x=n.x, y=n.y) for n in rng.sample(nodes, k)]

    for _ in range(iterations):
        for cluster in clusters:
            cluster.nodes = []

        for node in nodes:
            nearest = min(
                range(len(clusters)),
                key=lambda i: math.hypot(node.x - clusters[i].x, node.y - clusters[i].y),
            )
            clusters[nearest].nodes.append(node)

        for cluster in clusters:
            if cluster.nodes:
                cluster.x = sum(n.x for n in cluster.nodes) / len(cluster.nodes)
                cluster.y = sum(n.y for n in cluster.nodes) / len(cluster.nodes)

    return clusters
