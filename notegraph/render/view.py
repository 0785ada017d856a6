"""Pure view computations: filtering, display thresholds and screen projection.

None of these mutate the graph or the view state.
"""

from __future__ import annotations

import math

from ..config import DisplayConfig
from ..models import Edge, Graph, Node, ViewState


def filter_candidates(graph: Graph, filter_text: str) -> list[Node]:
    """Nodes whose id contains the filter text, case-insensitively. Empty filter keeps all."""
    if not filter_text:
        return list(graph.nodes.values())
    needle = filter_text.lower()
    return [n for n in graph.nodes.values() if needle in n.id.lower()]


def edges_between(graph: Graph, nodes: list[Node]) -> list[Edge]:
    """Edges whose endpoints are both in ``nodes``, in graph order."""
    ids = {n.id for n in nodes}
    return [e for e in graph.edges if e.source in ids and e.target in ids]


def select_display_nodes(candidates: list[Node], view: ViewState, display: DisplayConfig) -> list[Node]:
    """Apply the importance threshold to the filtered candidates.

    A node is shown when it is the current note, the selected note, or has at
    least ``min_connections`` links. If that leaves nothing, every linked
    candidate is shown instead. ``show_isolated`` shows all candidates.
    """
    if view.show_isolated:
        return list(candidates)

    shown = [
        n
        for n in candidates
        if n.id == view.current or n.id == view.selected or n.degree >= display.min_connections
    ]
    if not shown:
        shown = [n for n in candidates if n.degree > 0]
    return shown


def visible_graph(graph: Graph, view: ViewState, display: DisplayConfig) -> tuple[list[Node], list[Edge]]:
    """Displayed nodes and the edges among them."""
    nodes = select_display_nodes(filter_candidates(graph, view.filter_text), view, display)
    return nodes, edges_between(graph, nodes)


# Any cell with a negative index is off-screen.
OFF_SCREEN = (-1, -1)


def project(x: float, y: float, view: ViewState, width: int, height: int) -> tuple[int, int]:
    """Map simulation coordinates to an integer cell (column, row).

    Non-finite results (overflowing zoom or offsets) map to ``OFF_SCREEN``.
    """
    col = width / 2 + x * view.zoom / 10 + view.offset_x
    row = height / 2 + y * view.zoom / 10 + view.offset_y
    if not (math.isfinite(col) and math.isfinite(row)):
        return OFF_SCREEN
    return math.floor(col), math.floor(row)


def on_screen(col: int, row: int, width: int, height: int) -> bool:
    return 0 <= col < width and 0 <= row < height
