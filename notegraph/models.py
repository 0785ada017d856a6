"""Data models for the link graph and its view."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class StyleClass(str, Enum):
    """Style tags emitted by the canvas renderer.

    The renderer never deals in colors; the surface resolves each tag.
    """

    STRONG_LINK = "strong_link"
    MEDIUM_LINK = "medium_link"
    LIGHT_LINK = "light_link"
    CURRENT_NODE = "current_node"
    SELECTED_NODE = "selected_node"
    HUB_NODE = "hub_node"
    REGULAR_NODE = "regular_node"
    MINOR_NODE = "minor_node"
    CLUSTER_NODE = "cluster_node"
    HALO = "halo"
    LABEL = "label"
    COUNT = "count"
    HEADER = "header"
    LEGEND = "legend"
    MESSAGE = "message"
    HINT = "hint"


class RenderMode(str, Enum):
    CANVAS = "canvas"
    WEB = "web"


@dataclass
class Node:
    """A note in the graph.

    Positions and velocities are mutated in place by the layout engine.
    """

    id: str  # filename without extension
    path: Path | None  # handle back to the document
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    links: list[str] = field(default_factory=list)  # outbound ids, repeats allowed
    backlinks: list[str] = field(default_factory=list)  # inbound ids
    title: str = ""  # frontmatter title or first H1, display only
    tags: list[str] = field(default_factory=list)

    @property
    def degree(self) -> int:
        return len(self.links) + len(self.backlinks)


@dataclass(frozen=True)
class Edge:
    source: str
    target: str


@dataclass
class Graph:
    """Nodes keyed by id plus the edge list, in build order."""

    nodes: dict[str, Node] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    root: Path | None = None  # vault directory, None for in-memory corpora

    def get(self, node_id: str | None) -> Node | None:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def add_edge(self, source: str, target: str) -> Edge:
        """Record one link occurrence. Both endpoints must already exist."""
        edge = Edge(source, target)
        self.nodes[source].links.append(target)
        self.nodes[target].backlinks.append(source)
        self.edges.append(edge)
        return edge

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def is_empty(self) -> bool:
        return not self.nodes


@dataclass
class ViewState:
    """Pan, zoom, filter and selection for one open session."""

    offset_x: float = 0.0
    offset_y: float = 0.0
    zoom: float = 1.0
    filter_text: str = ""
    selected: str | None = None
    current: str | None = None
    transparency: int = 20
    show_isolated: bool = False
    render_mode: RenderMode = RenderMode.CANVAS


@dataclass
class Cluster:
    """A k-means group of nodes. Recomputed on every clustering run."""

    x: float
    y: float
    nodes: list[Node] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)
