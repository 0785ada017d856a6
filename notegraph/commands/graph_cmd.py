"""Graph commands - summarize, view, export and cluster the vault link graph."""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Callable

import click
from rich.console import Console
from rich.table import Table

from ..config import GraphConfig
from ..layout.cluster import cluster_nodes
from ..layout.engine import LayoutEngine
from ..models import Graph
from ..render.surface import TerminalSurface
from ..scheduler import LoopScheduler
from ..session import (
    Close,
    Command,
    ExportWeb,
    Filter,
    FocusCurrent,
    GraphSession,
    OpenSelected,
    Pan,
    Resize,
    SelectAt,
    ToggleIsolated,
    ToggleTransparency,
    Zoom,
)
from ..vault.graph import build_graph, top_by_degree
from ..vault.loader import VaultCorpus

PAN_STEP = 5.0
ZOOM_STEP = 1.2

INTERACTIVE_HELP = (
    "h/j/k/l pan  + - zoom  /text filter  s COL ROW select  o open  "
    "i isolated  t transparency  c current  w web  r W H resize  q quit"
)


def corpus_for(vault_path: Path, config: GraphConfig) -> VaultCorpus:
    return VaultCorpus(vault_path, exclude=config.vault.exclude, extension=config.vault.extension)


def run_stats(
    vault_path: Path,
    config: GraphConfig,
    *,
    fmt: str = "md",
    out: Path | None = None,
    top: int = 25,
) -> int:
    """Output node/edge counts and the most linked notes."""
    console = Console(stderr=True)

    graph = build_graph(corpus_for(vault_path, config), seed=config.seed)
    payload = _summarize_graph(graph, config, title=f"Note graph: {vault_path.name}", top=top)

    if fmt == "rich":
        if out:
            rich_console = Console(record=True)
            _print_rich(payload, console=rich_console)
            out.write_text(rich_console.export_text(), encoding="utf-8")
            console.print(f"Wrote graph output to {out}", style="green")
        else:
            _print_rich(payload, console=Console())
        return 0

    if fmt == "json":
        text = json.dumps(payload, indent=2, sort_keys=True) + "\n"
    else:
        text = _to_markdown(payload)

    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote graph output to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")

    return 0


def run_view(
    vault_path: Path,
    config: GraphConfig,
    *,
    current: str | None = None,
    filter_text: str = "",
    show_isolated: bool = False,
    width: int | None = None,
    height: int | None = None,
    interactive: bool = False,
    viewer: Callable[[Path], None] | None = None,
    prompt: Callable[[], str] | None = None,
    surface: TerminalSurface | None = None,
) -> int:
    """Animate the layout in the terminal, then optionally take commands.

    Raises:
        BuildError: if the vault cannot be read
        EmptyGraphWarning: if the vault has no notes
    """
    surface = surface or TerminalSurface(config)
    scheduler = LoopScheduler()
    session = GraphSession(
        corpus_for(vault_path, config),
        config,
        scheduler=scheduler,
        viewer=viewer,
        on_render=surface.show,
        export_dir=vault_path,
    )

    size = surface.console.size
    width = width or size.width
    height = height or max(1, size.height - 2)

    request = session.open(current, width=width, height=height)
    if filter_text:
        request = session.handle(Filter(filter_text))
    if show_isolated != session.view.show_isolated:
        request = session.handle(ToggleIsolated())

    surface.start()
    try:
        surface.show(request)
        scheduler.run()
    except KeyboardInterrupt:
        session.close()
        return 130
    finally:
        surface.stop()

    if not interactive:
        session.close()
        return 0

    prompt = prompt or _prompt_line
    surface.status.print(INTERACTIVE_HELP, style="dim")
    while session.is_open:
        try:
            line = prompt()
        except (EOFError, KeyboardInterrupt, click.Abort):
            session.close()
            break

        command = parse_command(line)
        if command is None:
            surface.status.print(f"Unknown command: {line.strip()}", style="yellow")
            surface.status.print(INTERACTIVE_HELP, style="dim")
            continue

        try:
            surface.show(session.handle(command))
        except ValueError as e:
            surface.status.print(f"Error: {e}", style="red")

    return 0


def run_export(
    vault_path: Path,
    config: GraphConfig,
    *,
    out: Path | None = None,
    current: str | None = None,
    filter_text: str = "",
    show_isolated: bool = False,
    open_browser: bool = True,
) -> int:
    """Lay the graph out and write the interactive web page."""
    console = Console(stderr=True)

    session = GraphSession(corpus_for(vault_path, config), config, export_dir=vault_path)
    session.open(current)
    try:
        if filter_text:
            session.handle(Filter(filter_text))
        if show_isolated != session.view.show_isolated:
            session.handle(ToggleIsolated())
        request = session.handle(ExportWeb(path=out, open_browser=open_browser))
    finally:
        session.close()

    if request.error is not None:
        console.print(f"Error: {request.error}", style="red")
        return 1

    console.print(f"Wrote web view to {request.export_path}", style="green")
    return 0


def run_clusters(
    vault_path: Path,
    config: GraphConfig,
    *,
    k: int = 8,
    fmt: str = "rich",
    out: Path | None = None,
) -> int:
    """Run the layout to completion and group the notes by position."""
    if k < 1:
        raise ValueError("k must be >= 1")

    console = Console(stderr=True)

    graph = build_graph(corpus_for(vault_path, config), seed=config.seed, spread=config.physics.initial_spread)
    if graph.is_empty:
        console.print(f"No markdown files found in: {vault_path}", style="yellow")
        return 1

    LayoutEngine(graph, config.physics).run()
    clusters = cluster_nodes(list(graph.nodes.values()), k, rng=random.Random(config.seed))
    clusters.sort(key=lambda c: (-len(c), min((n.id for n in c.nodes), default="")))

    payload = {
        "node_count": len(graph.nodes),
        "k": k,
        "clusters": [
            {
                "x": round(c.x, 1),
                "y": round(c.y, 1),
                "size": len(c),
                "members": sorted(n.id for n in c.nodes),
            }
            for c in clusters
            if c.nodes
        ],
    }

    if fmt == "json":
        text = json.dumps(payload, indent=2, sort_keys=True) + "\n"
        if out:
            out.write_text(text, encoding="utf-8")
            console.print(f"Wrote cluster output to {out}", style="green")
        else:
            print(text, end="")
        return 0

    target = Console(record=True) if out else Console()
    t = Table(title=f"Clusters ({len(payload['clusters'])} of k={k})", show_header=True, header_style="bold")
    t.add_column("#", justify="right")
    t.add_column("Size", justify="right")
    t.add_column("Center")
    t.add_column("Members", style="cyan")
    for i, c in enumerate(payload["clusters"], start=1):
        members = ", ".join(c["members"][:8])
        if len(c["members"]) > 8:
            members += f", ... (+{len(c['members']) - 8})"
        t.add_row(str(i), str(c["size"]), f"({c['x']}, {c['y']})", members)
    target.print(t)

    if out:
        out.write_text(target.export_text(), encoding="utf-8")
        console.print(f"Wrote cluster output to {out}", style="green")
    return 0


def parse_command(line: str) -> Command | None:
    """Map one prompt line to a session command, or None if it is not one."""
    parts = line.strip().split()
    if not parts:
        return None
    head, args = parts[0], parts[1:]

    if head.startswith("/"):
        return Filter(line.strip()[1:].strip())

    simple: dict[str, Command] = {
        "h": Pan(-PAN_STEP, 0),
        "l": Pan(PAN_STEP, 0),
        "k": Pan(0, -PAN_STEP),
        "j": Pan(0, PAN_STEP),
        "+": Zoom(ZOOM_STEP),
        "-": Zoom(1 / ZOOM_STEP),
        "o": OpenSelected(),
        "i": ToggleIsolated(),
        "t": ToggleTransparency(),
        "c": FocusCurrent(),
        "w": ExportWeb(),
        "q": Close(),
        "quit": Close(),
    }
    if head in simple and not args:
        return simple[head]

    if head in ("s", "r") and len(args) == 2:
        try:
            a, b = int(args[0]), int(args[1])
        except ValueError:
            return None
        return SelectAt(a, b) if head == "s" else Resize(a, b)

    return None


def _prompt_line() -> str:
    return click.prompt("notegraph", default="", show_default=False, prompt_suffix="> ", err=True)


def _summarize_graph(graph: Graph, config: GraphConfig, *, title: str, top: int) -> dict:
    display = config.display
    return {
        "title": title,
        "node_count": len(graph.nodes),
        "edge_count": len(graph.edges),
        "hub_count": sum(1 for n in graph.nodes.values() if n.degree >= display.hub_degree),
        "isolated_count": sum(1 for n in graph.nodes.values() if n.degree == 0),
        "top_in_degree": top_by_degree(graph, kind="in", top=top),
        "top_out_degree": top_by_degree(graph, kind="out", top=top),
    }


def _to_markdown(payload: dict) -> str:
    lines: list[str] = []
    lines.append(f"## {payload['title']}")
    lines.append("")
    lines.append(f"- Nodes: {payload['node_count']}")
    lines.append(f"- Edges: {payload['edge_count']}")
    lines.append(f"- Hubs: {payload['hub_count']}")
    lines.append(f"- Isolated: {payload['isolated_count']}")
    lines.append("")

    def table(title: str, rows: list[dict]) -> None:
        lines.append(f"### {title}")
        lines.append("")
        lines.append("| Note | In-degree | Out-degree |")
        lines.append("|---|---:|---:|")
        for r in rows:
            lines.append(f"| `{r['name']}` | {r['in_degree']} | {r['out_degree']} |")
        lines.append("")

    table("Top in-degree", payload["top_in_degree"])
    table("Top out-degree", payload["top_out_degree"])

    return "\n".join(lines).rstrip() + "\n"


def _print_rich(payload: dict, *, console: Console) -> None:
    console.print(f"[bold]{payload['title']}[/bold]")
    console.print(
        f"Nodes: {payload['node_count']}  Edges: {payload['edge_count']}  "
        f"Hubs: {payload['hub_count']}  Isolated: {payload['isolated_count']}"
    )
    console.print()

    def render_table(title: str, rows: list[dict]) -> None:
        t = Table(title=title, show_header=True, header_style="bold")
        t.add_column("Note", style="cyan", no_wrap=True)
        t.add_column("In", justify="right")
        t.add_column("Out", justify="right")
        for r in rows:
            t.add_row(str(r["name"]), str(r["in_degree"]), str(r["out_degree"]))
        console.print(t)
        console.print()

    render_table("Top in-degree", payload["top_in_degree"])
    render_table("Top out-degree", payload["top_out_degree"])
