"""Graph layout: force simulation and clustering."""

from .cluster import cluster_nodes
from .engine import LayoutEngine, bounding_box, fit_view

__all__ = ["LayoutEngine", "bounding_box", "cluster_nodes", "fit_view"]
