"""CLI entrypoint for notegraph."""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from pathlib import Path

import click

from . import __version__
from .config import GraphConfig, find_config, load_config
from .errors import ConfigError, NoteGraphError

DEFAULT_VAULT = Path.home() / "Documents" / "Notes"


def _open_in_editor(path: Path) -> None:
    """Open a note in $EDITOR, or the system handler when no editor works."""
    try:
        click.edit(filename=str(path))
    except click.ClickException:
        click.launch(str(path))


def _with_overrides(config: GraphConfig, *, seed: int | None = None, iterations: int | None = None) -> GraphConfig:
    if seed is not None:
        config = replace(config, seed=seed)
    if iterations is not None:
        if iterations < 0:
            raise click.BadParameter("must be >= 0", param_hint="--iterations")
        config = replace(config, physics=replace(config.physics, iterations=iterations))
    return config


def _run(fn, *args, **kwargs) -> int:
    try:
        return fn(*args, **kwargs)
    except NoteGraphError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(__version__, prog_name="notegraph")
@click.option(
    "--vault",
    "-v",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    envvar="OBSIDIAN_VAULT",
    default=None,
    help="Path to the notes directory (defaults to $OBSIDIAN_VAULT, then ~/Documents/Notes)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (defaults to <vault>/.notegraph.toml when present)",
)
@click.option("--verbose", is_flag=True, help="Log build and layout progress to stderr")
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, config_path: Path | None, verbose: bool) -> None:
    """notegraph - Visualize the links between your markdown notes.

    Builds a graph from [[wiki-links]] and [text](note.md) links, lays it out
    with a force simulation and draws it in the terminal or a browser.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    vault = vault or DEFAULT_VAULT
    if not vault.exists() or not vault.is_dir():
        raise click.BadParameter(f"Directory '{vault}' does not exist.", param_hint="--vault / -v")

    config_path = config_path or find_config(vault)
    try:
        config = load_config(config_path) if config_path else GraphConfig()
    except ConfigError as e:
        raise click.ClickException(f"Invalid config: {e}") from e

    ctx.obj["vault"] = vault.resolve()
    ctx.obj["config"] = config


@cli.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "md", "json"]),
    default="md",
    show_default=True,
    help="Output format",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
@click.option("--top", type=int, default=25, show_default=True, help="How many notes to show in top lists")
@click.pass_context
def stats(ctx: click.Context, fmt: str, out: Path | None, top: int) -> None:
    """Summarize the link graph: counts and most linked notes."""
    from .commands.graph_cmd import run_stats

    exit_code = _run(run_stats, ctx.obj["vault"], ctx.obj["config"], fmt=fmt, out=out, top=top)
    sys.exit(exit_code)


@cli.command()
@click.option("--current", type=str, default=None, help="Note to highlight as the one being edited")
@click.option("--filter", "filter_text", type=str, default="", help="Only show notes whose name contains this text")
@click.option("--show-isolated", is_flag=True, help="Include notes with few or no links")
@click.option("--width", type=click.IntRange(min=1), default=None, help="Canvas width (defaults to terminal width)")
@click.option("--height", type=click.IntRange(min=1), default=None, help="Canvas height (defaults to terminal height)")
@click.option("--seed", type=int, default=None, help="Seed for the initial layout")
@click.option("--iterations", type=int, default=None, help="Simulation steps to animate")
@click.option("--interactive", "-i", is_flag=True, help="Keep the session open and read commands")
@click.pass_context
def view(
    ctx: click.Context,
    current: str | None,
    filter_text: str,
    show_isolated: bool,
    width: int | None,
    height: int | None,
    seed: int | None,
    iterations: int | None,
    interactive: bool,
) -> None:
    """Animate the graph layout in the terminal.

    Examples:

        notegraph view --current "Project Ideas"

        notegraph -v ~/notes view --filter daily --show-isolated -i
    """
    from .commands.graph_cmd import run_view

    config = _with_overrides(ctx.obj["config"], seed=seed, iterations=iterations)
    exit_code = _run(
        run_view,
        ctx.obj["vault"],
        config,
        current=current,
        filter_text=filter_text,
        show_isolated=show_isolated or config.display.show_isolated,
        width=width,
        height=height,
        interactive=interactive,
        viewer=_open_in_editor,
    )
    sys.exit(exit_code)


@cli.command()
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Where to write the page")
@click.option("--current", type=str, default=None, help="Note to highlight")
@click.option("--filter", "filter_text", type=str, default="", help="Only export notes whose name contains this text")
@click.option("--show-isolated", is_flag=True, help="Include notes with few or no links")
@click.option("--seed", type=int, default=None, help="Seed for the initial layout")
@click.option("--open/--no-open", "open_browser", default=True, show_default=True, help="Open the page in a browser")
@click.pass_context
def export(
    ctx: click.Context,
    out: Path | None,
    current: str | None,
    filter_text: str,
    show_isolated: bool,
    seed: int | None,
    open_browser: bool,
) -> None:
    """Write an interactive HTML view of the graph."""
    from .commands.graph_cmd import run_export

    config = _with_overrides(ctx.obj["config"], seed=seed)
    exit_code = _run(
        run_export,
        ctx.obj["vault"],
        config,
        out=out,
        current=current,
        filter_text=filter_text,
        show_isolated=show_isolated or config.display.show_isolated,
        open_browser=open_browser,
    )
    sys.exit(exit_code)


@cli.command()
@click.option("-k", "k", type=click.IntRange(min=1), default=8, show_default=True, help="Number of clusters")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json"]),
    default="rich",
    show_default=True,
    help="Output format",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
@click.option("--seed", type=int, default=None, help="Seed for layout and clustering")
@click.pass_context
def clusters(ctx: click.Context, k: int, fmt: str, out: Path | None, seed: int | None) -> None:
    """Lay out the graph and group notes into k clusters by position."""
    from .commands.graph_cmd import run_clusters

    config = _with_overrides(ctx.obj["config"], seed=seed)
    exit_code = _run(run_clusters, ctx.obj["vault"], config, k=k, fmt=fmt, out=out)
    sys.exit(exit_code)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
