"""Web export: a standalone HTML page with a D3 force layout of the visible graph."""

from __future__ import annotations

import html
import json
import logging
import webbrowser
from pathlib import Path

from ..errors import RenderTargetError
from ..models import Edge, Node

logger = logging.getLogger(__name__)


def graph_payload(nodes: list[Node], edges: list[Edge], current: str | None = None) -> dict:
    """JSON-ready data for the page. Positions are only a starting point for the browser layout."""
    return {
        "nodes": [
            {
                "id": n.id,
                "title": n.title or n.id,
                "tags": list(n.tags),
                "degree": n.degree,
                "x": round(n.x, 1),
                "y": round(n.y, 1),
            }
            for n in nodes
        ],
        "edges": [{"source": e.source, "target": e.target} for e in edges],
        "current": current or "",
    }


def _script_literal(data: dict) -> str:
    # json.dumps escapes quotes; "</" would still end the <script> element early.
    return json.dumps(data, ensure_ascii=False).replace("</", "<\\/")


def export_html(
    nodes: list[Node],
    edges: list[Edge],
    current: str | None = None,
    *,
    title: str = "Note Graph",
) -> str:
    """Build the self-contained page for the given (already filtered) nodes and edges."""
    t = html.escape(title, quote=True)
    data = _script_literal(graph_payload(nodes, edges, current))
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        f"  <meta charset=\"utf-8\" />\n  <title>{t}</title>\n"
        "  <style>\n"
        "    body { margin: 0; padding: 0; overflow: hidden; background: #1e1e2e; font-family: monospace; }\n"
        "    svg { width: 100vw; height: 100vh; }\n"
        "    .links line { stroke: #45475a; stroke-opacity: 0.6; stroke-width: 1.5px; }\n"
        "    .nodes circle { stroke: #fff; stroke-width: 1.5px; cursor: pointer; }\n"
        "    .nodes circle:hover { stroke-width: 3px; }\n"
        "    .labels text { fill: #cdd6f4; font-size: 10px; pointer-events: none; text-anchor: middle; }\n"
        "    .tooltip { position: absolute; background: #313244; color: #cdd6f4; padding: 8px; border-radius: 4px;\n"
        "               font-size: 12px; pointer-events: none; opacity: 0; transition: opacity 0.3s; white-space: pre; }\n"
        "    .info { position: absolute; top: 10px; left: 10px; background: #313244; color: #cdd6f4; padding: 10px;\n"
        "            border-radius: 4px; font-size: 12px; }\n"
        "  </style>\n"
        "</head>\n"
        "<body>\n"
        "  <div class=\"info\">\n"
        f"    <div>{t}</div>\n"
        "    <div>Notes: <span id=\"node-count\"></span></div>\n"
        "    <div>Links: <span id=\"edge-count\"></span></div>\n"
        "    <div>Drag nodes | Scroll to zoom</div>\n"
        "  </div>\n"
        "  <div class=\"tooltip\" id=\"tooltip\"></div>\n"
        "  <svg></svg>\n"
        "  <script src=\"https://d3js.org/d3.v7.min.js\"></script>\n"
        f"  <script id=\"graph-data\" type=\"application/json\">{data}</script>\n"
        "  <script>\n"
        "    const data = JSON.parse(document.getElementById('graph-data').textContent);\n"
        "    const width = window.innerWidth;\n"
        "    const height = window.innerHeight;\n"
        "    const svg = d3.select('svg');\n"
        "    const g = svg.append('g');\n"
        "\n"
        "    svg.call(d3.zoom().scaleExtent([0.1, 10]).on('zoom', (event) => g.attr('transform', event.transform)));\n"
        "\n"
        "    const simulation = d3.forceSimulation(data.nodes)\n"
        "      .force('link', d3.forceLink(data.edges).id(d => d.id).distance(100))\n"
        "      .force('charge', d3.forceManyBody().strength(-300))\n"
        "      .force('center', d3.forceCenter(width / 2, height / 2))\n"
        "      .force('collision', d3.forceCollide().radius(20));\n"
        "\n"
        "    const link = g.append('g').attr('class', 'links')\n"
        "      .selectAll('line').data(data.edges).enter().append('line');\n"
        "\n"
        "    const tooltip = d3.select('#tooltip');\n"
        "    const showTooltip = (event, text) => tooltip\n"
        "      .style('left', (event.pageX + 10) + 'px').style('top', (event.pageY + 10) + 'px')\n"
        "      .style('opacity', 1).text(text);\n"
        "    const hideTooltip = () => tooltip.style('opacity', 0);\n"
        "\n"
        "    const node = g.append('g').attr('class', 'nodes')\n"
        "      .selectAll('circle').data(data.nodes).enter().append('circle')\n"
        "      .attr('r', d => d.id === data.current ? 8 : 4 + Math.min(6, d.degree / 2))\n"
        "      .attr('fill', d => d.id === data.current ? '#ff006e' : (d.degree >= 5 ? '#ff8c00' : '#00d4ff'))\n"
        "      .call(d3.drag()\n"
        "        .on('start', (event) => {\n"
        "          if (!event.active) simulation.alphaTarget(0.3).restart();\n"
        "          event.subject.fx = event.subject.x;\n"
        "          event.subject.fy = event.subject.y;\n"
        "        })\n"
        "        .on('drag', (event) => { event.subject.fx = event.x; event.subject.fy = event.y; })\n"
        "        .on('end', (event) => {\n"
        "          if (!event.active) simulation.alphaTarget(0);\n"
        "          event.subject.fx = null;\n"
        "          event.subject.fy = null;\n"
        "        }))\n"
        "      .on('click', (event, d) => {\n"
        "        navigator.clipboard.writeText(d.id);\n"
        "        showTooltip(event, 'Copied: ' + d.id);\n"
        "      })\n"
        "      .on('mouseover', (event, d) => {\n"
        "        const tags = d.tags.length ? '\\n#' + d.tags.join(' #') : '';\n"
        "        showTooltip(event, `${d.title}\\n${d.degree} connections${tags}`);\n"
        "      })\n"
        "      .on('mouseout', hideTooltip);\n"
        "\n"
        "    const label = g.append('g').attr('class', 'labels')\n"
        "      .selectAll('text').data(data.nodes.filter(d => d.id === data.current || d.degree >= 6))\n"
        "      .enter().append('text').text(d => d.id.substring(0, 30)).attr('dy', -12);\n"
        "\n"
        "    simulation.on('tick', () => {\n"
        "      link.attr('x1', d => d.source.x).attr('y1', d => d.source.y)\n"
        "          .attr('x2', d => d.target.x).attr('y2', d => d.target.y);\n"
        "      node.attr('cx', d => d.x).attr('cy', d => d.y);\n"
        "      label.attr('x', d => d.x).attr('y', d => d.y);\n"
        "    });\n"
        "\n"
        "    document.getElementById('node-count').textContent = data.nodes.length;\n"
        "    document.getElementById('edge-count').textContent = data.edges.length;\n"
        "  </script>\n"
        "</body>\n"
        "</html>\n"
    )


def write_html(document: str, path: Path) -> Path:
    """Write the page, creating parent directories.

    Raises:
        RenderTargetError: if the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(document, encoding="utf-8")
    except OSError as e:
        raise RenderTargetError(f"Failed to write web view to {path}: {e}") from e
    logger.debug("Wrote web view to %s", path)
    return path


def launch(path: Path) -> None:
    """Open the written page in the default browser.

    Raises:
        RenderTargetError: if no browser is available on this host
    """
    url = path.resolve().as_uri()
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        raise RenderTargetError(f"No browser available to open {url}: {e}") from e
    if not opened:
        raise RenderTargetError(f"No browser available to open {url}")
