"""Rendering targets: character canvas, terminal surface and web export."""

from .canvas import CanvasFrame, NodeHit, render_canvas
from .view import filter_candidates, project, select_display_nodes, visible_graph
from .web import export_html, launch, write_html

__all__ = [
    "CanvasFrame",
    "NodeHit",
    "export_html",
    "filter_candidates",
    "launch",
    "project",
    "render_canvas",
    "select_display_nodes",
    "visible_graph",
    "write_html",
]
