"""Force-directed layout: springs along edges, pairwise repulsion, damped integration."""

from __future__ import annotations

import math
from collections.abc import Iterable

from ..config import PhysicsConfig
from ..models import Graph, Node, ViewState


class LayoutEngine:
    """Runs the physics simulation on a graph, mutating node positions in place.

    The engine runs for a fixed number of ticks; there is no convergence-based
    early exit, so run time depends only on graph size and the budget.
    """

    def __init__(self, graph: Graph, physics: PhysicsConfig | None = None):
        self.graph = graph
        self.physics = physics or PhysicsConfig()
        self.ticks = 0

    @property
    def done(self) -> bool:
        return self.ticks >= self.physics.iterations

    def reset(self) -> None:
        """Zero all velocities and the tick counter before a fresh run."""
        for node in self.graph.nodes.values():
            node.vx = 0.0
            node.vy = 0.0
        self.ticks = 0

    def step(self) -> None:
        """Advance the simulation by one tick."""
        self._apply_spring_forces()
        self._apply_repulsion_forces()
        self._integrate()
        self.ticks += 1

    def run(self, iterations: int | None = None) -> None:
        """Run the remaining budget, or exactly ``iterations`` more ticks."""
        remaining = self.physics.iterations - self.ticks if iterations is None else iterations
        for _ in range(max(0, remaining)):
            self.step()

    def _apply_spring_forces(self) -> None:
        rest = self.physics.spring_length
        strength = self.physics.spring_strength
        nodes = self.graph.nodes

        for edge in self.graph.edges:
            source = nodes.get(edge.source)
            target = nodes.get(edge.target)
            if source is None or target is None:
                continue

            dx = target.x - source.x
            dy = target.y - source.y
            dist = math.hypot(dx, dy)
            if dist == 0:
                continue

            force = (dist - rest) * strength
            fx = dx / dist * force
            fy = dy / dist * force
            source.vx += fx
            source.vy += fy
            target.vx -= fx
            target.vy -= fy

    def _apply_repulsion_forces(self) -> None:
        repulsion = self.physics.repulsion
        cutoff = self.physics.repulsion_cutoff
        nodes = list(self.graph.nodes.values())

        # O(n²) with a cutoff; fine for a few hundred notes.
        for i, n1 in enumerate(nodes):
            for n2 in nodes[i + 1 :]:
                dx = n2.x - n1.x
                dy = n2.y - n1.y
                dist = math.hypot(dx, dy)
                # Coincident nodes get no force here; springs or neighbours separate them later.
                if dist == 0 or dist >= cutoff:
                    continue

                force = repulsion / (dist * dist)
                fx = dx / dist * force
                fy = dy / dist * force
                n1.vx -= fx
                n1.vy -= fy
                n2.vx += fx
                n2.vy += fy

    def _integrate(self) -> None:
        damping = self.physics.damping
        for node in self.graph.nodes.values():
            node.vx *= damping
            node.vy *= damping
            node.x += node.vx
            node.y += node.vy


def bounding_box(nodes: Iterable[Node]) -> tuple[float, float, float, float]:
    """Return (min_x, max_x, min_y, max_y) over all positions, zeros when empty."""
    nodes = list(nodes)
    if not nodes:
        return 0.0, 0.0, 0.0, 0.0
    xs = [n.x for n in nodes]
    ys = [n.y for n in nodes]
    return min(xs), max(xs), min(ys), max(ys)


def fit_view(
    view: ViewState,
    nodes: Iterable[Node],
    width: int,
    height: int,
    *,
    fill: float = 0.8,
    max_zoom: float = 2.0,
) -> bool:
    """Center and scale the view so every node fits ``fill`` of the viewport.

    Screen projection divides positions by 10, hence the factor here. Returns
    False (view untouched) when the bounding box is degenerate.
    """
    min_x, max_x, min_y, max_y = bounding_box(nodes)
    graph_width = max_x - min_x
    graph_height = max_y - min_y
    if graph_width == 0 or graph_height == 0:
        return False

    center_x = (min_x + max_x) / 2
    center_y = (min_y + max_y) / 2

    scale_x = (width * fill) / (graph_width / 10)
    scale_y = (height * fill) / (graph_height / 10)
    scale = min(scale_x, scale_y, max_zoom)

    view.offset_x = -center_x * scale / 10
    view.offset_y = -center_y * scale / 10
    view.zoom = scale
    return True
