"""Link graph construction from a document corpus."""

from __future__ import annotations

import logging
import random

from ..models import Graph, Node
from .loader import Corpus, read_note
from .parser import extract_links

logger = logging.getLogger(__name__)


def build_graph(corpus: Corpus, *, seed: int | None = None, spread: float = 200.0) -> Graph:
    """Build a link graph from every eligible document in the corpus.

    Nodes start at uniformly random positions in [-spread, spread]² with zero
    velocity, so the layout never begins from a degenerate all-at-origin state.
    Links to notes that do not exist are dropped and never become edges.

    Args:
        corpus: Document source (exclusions already applied)
        seed: Seed for initial positions; a fixed seed makes the build reproducible
        spread: Half-width of the initial placement square

    Returns:
        The graph. It may be empty; callers decide whether that is an error.
    """
    rng = random.Random(seed)
    graph = Graph(root=corpus.root)

    docs = corpus.enumerate()

    # Add all nodes first
    texts = {}
    for doc in docs:
        if doc.identifier in graph.nodes:
            logger.warning(
                "Duplicate note name %r: keeping %s, ignoring %s",
                doc.identifier,
                graph.nodes[doc.identifier].path,
                doc.path,
            )
            continue

        note = read_note(doc)
        texts[doc.identifier] = note
        graph.nodes[doc.identifier] = Node(
            id=doc.identifier,
            path=doc.path,
            x=rng.uniform(-spread, spread),
            y=rng.uniform(-spread, spread),
            title=note.title if note else doc.identifier,
            tags=note.tags if note else [],
        )

    # Build edges
    for node_id, note in texts.items():
        if note is None:
            continue
        for target in extract_links(note.text, node_id, corpus.extension):
            if target in graph.nodes:
                graph.add_edge(node_id, target)

    logger.info("Graph built: %d notes, %d connections", len(graph.nodes), len(graph.edges))
    return graph


def top_by_degree(graph: Graph, *, kind: str, top: int) -> list[dict]:
    """Rows of {name, in_degree, out_degree} sorted by the chosen degree."""
    rows = [
        {"name": n.id, "in_degree": len(n.backlinks), "out_degree": len(n.links)}
        for n in graph.nodes.values()
    ]
    key = "in_degree" if kind == "in" else "out_degree"
    rows.sort(key=lambda r: (r[key], r["name"]), reverse=True)
    return rows[: max(0, top)]
