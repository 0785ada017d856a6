"""Character-grid renderer for the link graph.

Draws edges first (Bresenham lines whose glyph reflects connection strength),
then nodes weighted by importance, then a header and legend. The result is a
grid of single characters plus a parallel grid of style classes.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field

from ..config import DisplayConfig
from ..errors import EmptyViewWarning
from ..layout.cluster import cluster_nodes
from ..models import Cluster, Graph, Node, StyleClass, ViewState
from .view import edges_between, filter_candidates, on_screen, project, select_display_nodes

NO_CONNECTED_NOTES = "No connected notes to display"
NO_DOCUMENTS = "No markdown files found"
LINK_HINT = "Try creating links between notes using [[note-name]]"

# Higher wins when two lines cross the same cell.
_LINK_PRIORITY = {
    None: 0,
    StyleClass.LIGHT_LINK: 1,
    StyleClass.MEDIUM_LINK: 2,
    StyleClass.STRONG_LINK: 3,
}


@dataclass(frozen=True)
class NodeHit:
    """Screen position of a drawn node, for click hit-testing."""

    node_id: str
    col: int
    row: int
    radius: int

    def contains(self, col: int, row: int) -> bool:
        return abs(self.col - col) <= self.radius and abs(self.row - row) <= self.radius


@dataclass
class CanvasFrame:
    width: int
    height: int
    cells: list[list[str]]
    styles: list[list[StyleClass | None]]
    hits: list[NodeHit] = field(default_factory=list)
    header: str = ""
    footer: str = ""
    displayed: list[str] = field(default_factory=list)
    edge_count: int = 0
    hub_count: int = 0
    clusters: list[Cluster] = field(default_factory=list)
    notice: EmptyViewWarning | None = None

    def lines(self) -> list[str]:
        return ["".join(row) for row in self.cells]

    def text(self) -> str:
        return "\n".join(self.lines())

    def hit_test(self, col: int, row: int) -> str | None:
        """Id of the first drawn node within its hit radius of (col, row).

        Known limitation: overlapping hit areas resolve by draw order only.
        """
        for hit in self.hits:
            if hit.contains(col, row):
                return hit.node_id
        return None


class _Canvas:
    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.cells = [[" "] * width for _ in range(height)]
        self.styles: list[list[StyleClass | None]] = [[None] * width for _ in range(height)]

    def set(self, col: int, row: int, char: str, style: StyleClass | None = None) -> None:
        if on_screen(col, row, self.width, self.height):
            self.cells[row][col] = char
            if style is not None:
                self.styles[row][col] = style

    def text(self, col: int, row: int, text: str, style: StyleClass | None) -> None:
        for i, char in enumerate(text):
            self.set(col + i, row, char, style)

    def centered(self, col: int, row: int, text: str, style: StyleClass | None) -> None:
        self.text(col - len(text) // 2, row, text, style)

    def overwrite_row(self, row: int, text: str, style: StyleClass) -> None:
        """Replace a whole row with ``text`` clipped and padded to the width."""
        if not 0 <= row < self.height:
            return
        clipped = text[: self.width]
        self.cells[row] = list(clipped.ljust(self.width))
        self.styles[row] = [style] * len(clipped) + [None] * (self.width - len(clipped))

    def draw_line(self, c0: int, r0: int, c1: int, r1: int, density: float, style: StyleClass) -> None:
        """Bresenham line from (c0, r0) to (c1, r1).

        The first and last quarter of the line are always drawn; the middle
        half is thinned according to ``density``.
        """
        dx = abs(c1 - c0)
        dy = abs(r1 - r0)
        sx = 1 if c0 < c1 else -1
        sy = 1 if r0 < r1 else -1
        err = dx - dy
        total = max(dx, dy)
        char = _link_glyph(style, dx, dy, sx == sy)
        priority = _LINK_PRIORITY[style]
        stride = math.ceil(1.5 / density) if density > 0 else 0

        col, row = c0, r0
        step = 0
        while True:
            step += 1
            near_end = step <= total * 0.25 or step >= total * 0.75
            if near_end or density >= 1.0:
                draw = True
            else:
                draw = stride > 0 and step % stride == 0

            if draw and on_screen(col, row, self.width, self.height):
                if priority >= _LINK_PRIORITY.get(self.styles[row][col], 4):
                    self.cells[row][col] = char
                    self.styles[row][col] = style

            if col == c1 and row == r1:
                break
            e2 = 2 * err
            if e2 > -dy:
                err -= dy
                col += sx
            if e2 < dx:
                err += dx
                row += sy


def _link_glyph(style: StyleClass, dx: int, dy: int, same_direction: bool) -> str:
    if style is StyleClass.STRONG_LINK:
        if dx > dy * 2:
            return "─"
        if dy > dx * 2:
            return "│"
        return "╲" if same_direction else "╱"
    if style is StyleClass.MEDIUM_LINK:
        if dx > dy * 2:
            return "━"
        if dy > dx * 2:
            return "┃"
        return "·"
    return "·"


def link_style(strength: int, display: DisplayConfig) -> StyleClass:
    """Style class for an edge whose busier endpoint has ``strength`` links."""
    if strength >= display.strong_link_degree:
        return StyleClass.STRONG_LINK
    if strength >= display.medium_link_degree:
        return StyleClass.MEDIUM_LINK
    return StyleClass.LIGHT_LINK


def _coarsen(shown: list[Node], view: ViewState, display: DisplayConfig) -> tuple[list[Node], list[Cluster]]:
    """Keep current, selected and hub nodes; fold the rest into clusters."""
    keep = [
        n for n in shown if n.id == view.current or n.id == view.selected or n.degree >= display.hub_degree
    ]
    kept_ids = {n.id for n in keep}
    rest = [n for n in shown if n.id not in kept_ids]
    if not rest:
        return keep, []
    k = max(1, display.max_visible_nodes - len(keep))
    clusters = cluster_nodes(rest, k, rng=random.Random(display.cluster_seed))
    return keep, [c for c in clusters if c.nodes]


def _draw_node(canvas: _Canvas, node: Node, col: int, row: int, view: ViewState, display: DisplayConfig) -> None:
    degree = node.degree
    is_current = node.id == view.current
    is_selected = node.id == view.selected

    if is_current or is_selected:
        style = StyleClass.CURRENT_NODE if is_current else StyleClass.SELECTED_NODE
        canvas.set(col - 1, row, "◦", StyleClass.HALO)
        canvas.set(col, row, "●", style)
        canvas.set(col + 1, row, "◦", StyleClass.HALO)
        canvas.centered(col, row - 2, node.id[: display.label_width], style)
        canvas.centered(col, row + 2, str(degree), StyleClass.COUNT)
        return

    if degree >= display.hub_degree:
        canvas.set(col - 1, row, "·", StyleClass.HALO)
        canvas.set(col, row, "○", StyleClass.HUB_NODE)
        canvas.set(col + 1, row, "·", StyleClass.HALO)
    elif degree >= display.medium_link_degree:
        canvas.set(col, row, "●", StyleClass.REGULAR_NODE)
    else:
        canvas.set(col, row, "○", StyleClass.MINOR_NODE)

    if degree >= display.label_hub_degree:
        canvas.centered(col, row + 2, node.id[: display.hub_label_width], StyleClass.LABEL)


def render_canvas(
    graph: Graph,
    view: ViewState,
    width: int,
    height: int,
    display: DisplayConfig | None = None,
) -> CanvasFrame:
    """Render the graph into a ``width`` x ``height`` character frame.

    Pure: the graph and view are only read, so identical inputs always give
    identical frames.
    """
    display = display or DisplayConfig()
    width = max(0, width)
    height = max(0, height)
    canvas = _Canvas(width, height)

    candidates = filter_candidates(graph, view.filter_text)
    shown = select_display_nodes(candidates, view, display)

    clusters: list[Cluster] = []
    if len(shown) > display.max_visible_nodes:
        shown, clusters = _coarsen(shown, view, display)

    # Rows 0 and height - 1 hold the header and legend
    positions: dict[str, tuple[int, int]] = {}
    for node in shown:
        col, row = project(node.x, node.y, view, width, height)
        if on_screen(col, row, width, height) and 0 < row < height - 1:
            positions[node.id] = (col, row)

    shown_ids = {n.id for n in shown}
    edges = [e for e in edges_between(graph, candidates) if e.source in shown_ids and e.target in shown_ids]

    # Edges first so nodes paint over them
    for edge in edges:
        if edge.source not in positions or edge.target not in positions:
            continue
        strength = max(graph.nodes[edge.source].degree, graph.nodes[edge.target].degree)
        (c0, r0), (c1, r1) = positions[edge.source], positions[edge.target]
        canvas.draw_line(c0, r0, c1, r1, display.line_density, link_style(strength, display))

    for cluster in clusters:
        col, row = project(cluster.x, cluster.y, view, width, height)
        canvas.set(col, row, "◎", StyleClass.CLUSTER_NODE)

    hits = []
    for node in shown:
        if node.id not in positions:
            continue
        col, row = positions[node.id]
        _draw_node(canvas, node, col, row, view, display)
        hits.append(NodeHit(node.id, col, row, display.hit_radius))

    hub_count = sum(1 for n in shown if n.degree >= display.hub_degree)
    filter_info = f" [Filter: {view.filter_text}]" if view.filter_text else ""
    cluster_info = f", {sum(len(c) for c in clusters)} notes in {len(clusters)} clusters" if clusters else ""
    header = f" Note Graph: {len(shown)} nodes ({hub_count} hubs), {len(edges)} connections{cluster_info}{filter_info}"
    scope = "all notes" if view.show_isolated else f"showing {display.min_connections}+ connections"
    footer = f"  ◦●◦ Current  ·○· Hub  ● Node  ─ Strong · Light  [{scope}]"

    canvas.overwrite_row(0, header, StyleClass.HEADER)
    if height > 1:
        canvas.overwrite_row(height - 1, footer, StyleClass.LEGEND)

    notice = None
    if not shown and not clusters:
        mid = height // 2
        canvas.centered(width // 2, mid, NO_CONNECTED_NOTES, StyleClass.MESSAGE)
        if graph.is_empty:
            hint = f"{NO_DOCUMENTS} in: {graph.root}" if graph.root else NO_DOCUMENTS
        else:
            hint = LINK_HINT
        canvas.centered(width // 2, mid + 2, hint, StyleClass.HINT)
        notice = EmptyViewWarning(f"{NO_CONNECTED_NOTES}. {hint}")

    return CanvasFrame(
        width=width,
        height=height,
        cells=canvas.cells,
        styles=canvas.styles,
        hits=hits,
        header=header[:width],
        footer=footer[:width],
        displayed=[n.id for n in shown],
        edge_count=len(edges),
        hub_count=hub_count,
        clusters=clusters,
        notice=notice,
    )
