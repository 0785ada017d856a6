"""Pytest configuration and fixtures."""

from dataclasses import replace
from pathlib import Path

import pytest

from notegraph.config import AnimationConfig, GraphConfig
from notegraph.models import Graph, Node
from notegraph.vault.loader import InMemoryCorpus


def write_note(vault: Path, name: str, body: str = "") -> Path:
    """Write ``<vault>/<name>.md``, creating subdirectories in ``name``."""
    path = vault / f"{name}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(body, encoding="utf-8")
    return path


def make_graph(positions: dict[str, tuple[float, float]], links: list[tuple[str, str]] = ()) -> Graph:
    """Graph with nodes at fixed positions and the given (source, target) links."""
    graph = Graph()
    for node_id, (x, y) in positions.items():
        graph.nodes[node_id] = Node(id=node_id, path=Path(f"{node_id}.md"), x=x, y=y)
    for source, target in links:
        graph.add_edge(source, target)
    return graph


@pytest.fixture
def triangle_corpus() -> InMemoryCorpus:
    """Three notes where every note has two links."""
    return InMemoryCorpus(
        {
            "Alpha.md": "See [[Beta]] and [[Gamma]].",
            "Beta.md": "Back to [[Gamma|the third]].",
            "Gamma.md": "# Gamma\n\nNo links here.",
        }
    )


@pytest.fixture
def sample_vault(tmp_path: Path) -> Path:
    """A small vault on disk with a hub, a chain and an isolated note."""
    vault = tmp_path / "vault"
    vault.mkdir()
    write_note(vault, "Index", "\n".join(f"- [[Topic {i}]]" for i in range(6)))
    for i in range(6):
        write_note(vault, f"topics/Topic {i}", f"# Topic {i}\n\nUp: [Index](../Index.md)")
    write_note(vault, "Lonely", "Nobody links here.")
    write_note(vault, "templates/Daily", "[[Index]]")
    return vault


@pytest.fixture
def fast_config() -> GraphConfig:
    """Short, sleep-free animation with reproducible positions."""
    config = GraphConfig(seed=42, animation=AnimationConfig(interval_ms=0, render_every=3, recenter_at=(2,)))
    return replace(config, physics=replace(config.physics, iterations=6))
