"""Interactive graph session: view state, command dispatch and layout animation.

A session is CLOSED until ``open()`` builds the graph, and returns to CLOSED on
``Close`` or after handing a note to the viewer. Every command except
``Close`` re-renders the canvas synchronously; the returned RenderRequest is
for the caller to display. Animation frames go to ``on_render``.
"""

from __future__ import annotations

import logging
import math
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Union

from .config import GraphConfig
from .errors import EmptyGraphWarning, NoteGraphError, RenderTargetError, SessionClosedError
from .layout.engine import LayoutEngine, fit_view
from .models import Graph, RenderMode, ViewState
from .render.canvas import CanvasFrame, render_canvas
from .render.view import filter_candidates, visible_graph
from .render.web import export_html, launch, write_html
from .scheduler import Job, Scheduler
from .vault.graph import build_graph
from .vault.loader import Corpus

logger = logging.getLogger(__name__)

# Pan and zoom limits
MIN_ZOOM = 1e-6
MAX_ZOOM = 1e6
MAX_OFFSET = 1e9


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class SessionState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


@dataclass(frozen=True)
class Pan:
    dx: float
    dy: float


@dataclass(frozen=True)
class Zoom:
    factor: float


@dataclass(frozen=True)
class Filter:
    text: str


@dataclass(frozen=True)
class SelectAt:
    col: int
    row: int


@dataclass(frozen=True)
class OpenSelected:
    pass


@dataclass(frozen=True)
class ToggleIsolated:
    pass


@dataclass(frozen=True)
class ToggleTransparency:
    pass


@dataclass(frozen=True)
class FocusCurrent:
    pass


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class ExportWeb:
    path: Path | None = None
    open_browser: bool = True


@dataclass(frozen=True)
class Close:
    pass


Command = Union[
    Pan, Zoom, Filter, SelectAt, OpenSelected, ToggleIsolated, ToggleTransparency, FocusCurrent, Resize, ExportWeb, Close
]


@dataclass
class RenderRequest:
    """What the surface should show after a command or animation frame."""

    frame: CanvasFrame | None = None
    document: str | None = None  # web page, when one was exported
    export_path: Path | None = None
    messages: list[tuple[str, str]] = field(default_factory=list)  # (level, text)
    error: NoteGraphError | None = None
    transparency: int | None = None
    closed: bool = False

    def info(self, text: str) -> "RenderRequest":
        self.messages.append(("info", text))
        return self

    def warn(self, text: str) -> "RenderRequest":
        self.messages.append(("warning", text))
        return self


class GraphSession:
    """Owns the graph and view state of one visualization."""

    def __init__(
        self,
        corpus: Corpus,
        config: GraphConfig | None = None,
        *,
        scheduler: Scheduler | None = None,
        viewer: Callable[[Path], None] | None = None,
        on_render: Callable[[RenderRequest], None] | None = None,
        export_dir: Path | None = None,
    ):
        self.corpus = corpus
        self.config = config or GraphConfig()
        self.scheduler = scheduler
        self.viewer = viewer
        self.on_render = on_render
        self.export_dir = export_dir

        self.state = SessionState.CLOSED
        self.graph: Graph | None = None
        self.view: ViewState | None = None
        self.engine: LayoutEngine | None = None
        self.frame: CanvasFrame | None = None
        self.width = 80
        self.height = 24
        self._job: Job | None = None
        self._iteration = 0

        self._handlers: dict[type, Callable] = {
            Pan: self._pan,
            Zoom: self._zoom,
            Filter: self._filter,
            SelectAt: self._select_at,
            OpenSelected: self._open_selected,
            ToggleIsolated: self._toggle_isolated,
            ToggleTransparency: self._toggle_transparency,
            FocusCurrent: self._focus_current,
            Resize: self._resize,
            ExportWeb: self._export_web,
        }

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    @property
    def animating(self) -> bool:
        return self._job is not None

    # -- lifecycle ---------------------------------------------------------

    def open(self, current: str | None = None, *, width: int = 80, height: int = 24) -> RenderRequest:
        """Build the graph, reset the view and start the layout.

        With a scheduler the layout animates tick by tick; without one it runs
        to completion before the first render.

        Raises:
            BuildError: if the corpus cannot be read (session stays closed)
            EmptyGraphWarning: if there are no eligible documents (session stays closed)
        """
        if self.is_open:
            raise NoteGraphError("Session is already open")
        if width < 1 or height < 1:
            raise ValueError("Viewport must be at least 1x1")

        physics = self.config.physics
        graph = build_graph(self.corpus, seed=self.config.seed, spread=physics.initial_spread)
        if graph.is_empty:
            where = f" in: {graph.root}" if graph.root else ""
            raise EmptyGraphWarning(f"No markdown files found{where}")

        display = self.config.display
        view = ViewState(transparency=display.transparency, show_isolated=display.show_isolated)
        if current is not None and current in graph.nodes:
            view.current = current
        view.selected = view.current or next(iter(graph.nodes))

        self.graph = graph
        self.view = view
        self.engine = LayoutEngine(graph, physics)
        self.width = width
        self.height = height
        self._iteration = 0
        self.state = SessionState.OPEN
        logger.info("Session opened: %d notes, %d connections", len(graph.nodes), len(graph.edges))

        if self.scheduler is not None and physics.iterations > 0:
            self._job = self.scheduler.schedule_repeating(self.config.animation.interval_ms / 1000, self._tick)
        else:
            self.engine.run()
            self.recenter()

        request = self.render(transparency=view.transparency)
        request.info(f"Graph built: {len(graph.nodes)} notes, {len(graph.edges)} connections")
        if current is not None and view.current is None:
            request.warn(f"Current note not in graph: {current}")
        return request

    def close(self) -> RenderRequest:
        """Stop the animation, then release the graph and view."""
        self._stop_animation()
        self.state = SessionState.CLOSED
        self.graph = None
        self.view = None
        self.engine = None
        self.frame = None
        logger.info("Session closed")
        return RenderRequest(closed=True)

    def restart_layout(self) -> None:
        """Re-run the layout from the current positions with zeroed velocities."""
        self._require_open()
        self._stop_animation()
        self.engine.reset()
        self._iteration = 0
        if self.scheduler is not None and self.config.physics.iterations > 0:
            self._job = self.scheduler.schedule_repeating(self.config.animation.interval_ms / 1000, self._tick)
        else:
            self.engine.run()
            self.recenter()

    def _stop_animation(self) -> None:
        if self._job is not None:
            if self.scheduler is not None:
                self.scheduler.cancel(self._job)
            self._job = None

    def _tick(self) -> None:
        if not self.is_open:
            self._stop_animation()
            return

        self._iteration += 1
        animation = self.config.animation
        iterations = self.config.physics.iterations

        if self._iteration <= iterations:
            self.engine.step()
            if self._iteration in animation.recenter_at or self._iteration == iterations:
                self.recenter()
            if self._iteration % animation.render_every == 0:
                self._emit(self.render())
        else:
            self.recenter()
            self._emit(self.render())
            self._stop_animation()

    def _emit(self, request: RenderRequest) -> None:
        if self.on_render is not None:
            self.on_render(request)

    # -- rendering ---------------------------------------------------------

    def recenter(self) -> bool:
        """Fit every node into the viewport (bookkeeping outside the force model)."""
        self._require_open()
        return fit_view(self.view, self.graph.nodes.values(), self.width, self.height)

    def render(self, **extra) -> RenderRequest:
        self._require_open()
        self.frame = render_canvas(self.graph, self.view, self.width, self.height, self.config.display)
        self.view.render_mode = RenderMode.CANVAS
        request = RenderRequest(frame=self.frame, **extra)
        if self.frame.notice is not None:
            logger.debug("Empty view: %s", self.frame.notice)
        return request

    # -- commands ----------------------------------------------------------

    def handle(self, command: Command) -> RenderRequest:
        """Apply one command and return what to display.

        Raises:
            SessionClosedError: if the session is not open
        """
        self._require_open()
        if isinstance(command, Close):
            return self.close()
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unknown command: {command!r}")
        return handler(command)

    def _require_open(self) -> None:
        if not self.is_open:
            raise SessionClosedError("Graph session is not open")

    def _pan(self, command: Pan) -> RenderRequest:
        if not (math.isfinite(command.dx) and math.isfinite(command.dy)):
            raise ValueError("Pan offsets must be finite")
        self.view.offset_x = _clamp(self.view.offset_x + command.dx, -MAX_OFFSET, MAX_OFFSET)
        self.view.offset_y = _clamp(self.view.offset_y + command.dy, -MAX_OFFSET, MAX_OFFSET)
        return self.render()

    def _zoom(self, command: Zoom) -> RenderRequest:
        if not math.isfinite(command.factor) or command.factor <= 0:
            raise ValueError("Zoom factor must be a positive finite number")
        self.view.zoom = _clamp(self.view.zoom * command.factor, MIN_ZOOM, MAX_ZOOM)
        return self.render()

    def _filter(self, command: Filter) -> RenderRequest:
        self.view.filter_text = command.text or ""
        request = self.render()
        shown = len(filter_candidates(self.graph, self.view.filter_text))
        return request.info(f"Showing {shown}/{len(self.graph.nodes)} notes")

    def _select_at(self, command: SelectAt) -> RenderRequest:
        hit = self.frame.hit_test(command.col, command.row) if self.frame else None
        if hit is None:
            return self.render()
        self.view.selected = hit
        node = self.graph.nodes[hit]
        return self.render().info(f"Selected: {hit} ({node.degree} connections)")

    def _open_selected(self, command: OpenSelected) -> RenderRequest:
        node = self.graph.get(self.view.selected)
        if node is None:
            return self.render().warn("No node selected")
        if self.viewer is None:
            request = self.render()
            request.error = RenderTargetError("No document viewer configured")
            return request

        path = node.path
        request = self.close()
        self.viewer(path)
        return request.info(f"Opened: {node.id}")

    def _toggle_isolated(self, command: ToggleIsolated) -> RenderRequest:
        self.view.show_isolated = not self.view.show_isolated
        status = "Showing all notes" if self.view.show_isolated else "Showing only connected notes"
        return self.render().info(status)

    def _toggle_transparency(self, command: ToggleTransparency) -> RenderRequest:
        level = self.config.display.transparency or 20
        self.view.transparency = level if self.view.transparency == 0 else 0
        request = self.render(transparency=self.view.transparency)
        if self.view.transparency == 0:
            return request.info("Transparency disabled")
        return request.info(f"Transparency set to {self.view.transparency}%")

    def _focus_current(self, command: FocusCurrent) -> RenderRequest:
        current = self.view.current
        if current is None or current not in self.graph.nodes:
            return self.render().warn("No current note open")
        self.view.selected = current
        self.view.offset_x = 0.0
        self.view.offset_y = 0.0
        self.view.zoom = 1.0
        return self.render().info(f"Focused on: {current}")

    def _resize(self, command: Resize) -> RenderRequest:
        if command.width < 1 or command.height < 1:
            raise ValueError("Viewport must be at least 1x1")
        self.width = command.width
        self.height = command.height
        return self.render()

    def _export_web(self, command: ExportWeb) -> RenderRequest:
        nodes, edges = visible_graph(self.graph, self.view, self.config.display)
        document = export_html(nodes, edges, self.view.current, title=self._title())
        request = self.render()

        path = command.path or self._default_export_path()
        try:
            write_html(document, path)
            if command.open_browser:
                launch(path)
        except RenderTargetError as e:
            logger.warning("Web view failed: %s", e)
            request.error = e
            return request

        self.view.render_mode = RenderMode.WEB
        request.document = document
        request.export_path = path
        if command.open_browser:
            return request.info("Opening graph in browser...")
        return request.info(f"Wrote web view to {path}")

    def _default_export_path(self) -> Path:
        base = self.export_dir or Path(tempfile.gettempdir())
        return base / f"notegraph-{os.getpid()}.html"

    def _title(self) -> str:
        root = self.graph.root
        return f"Note Graph - {root.name}" if root else "Note Graph"
