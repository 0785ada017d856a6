"""Terminal render surface: resolves style classes to rich styles and displays frames."""

from __future__ import annotations

from rich.console import Console
from rich.live import Live
from rich.style import Style
from rich.text import Text

from ..config import GraphConfig
from ..models import StyleClass
from .canvas import CanvasFrame

_BOLD = {StyleClass.CURRENT_NODE, StyleClass.SELECTED_NODE, StyleClass.HUB_NODE, StyleClass.HEADER, StyleClass.COUNT}
_DIM = {StyleClass.HALO, StyleClass.LEGEND, StyleClass.MINOR_NODE}
_MESSAGE_STYLES = {"info": "green", "warning": "yellow"}


def build_palette(config: GraphConfig, transparency: int) -> tuple[dict[StyleClass, Style], Style]:
    """Return (style per class, base style).

    With transparency 0 every cell gets the configured background; otherwise
    the terminal background shows through.
    """
    base = Style(bgcolor=config.background) if transparency == 0 else Style()
    palette = {}
    for style_class, color in config.colors.items():
        palette[style_class] = base + Style(
            color=color,
            bold=style_class in _BOLD,
            dim=style_class in _DIM,
        )
    return palette, base


def frame_to_text(frame: CanvasFrame, palette: dict[StyleClass, Style], base: Style | None = None) -> Text:
    """Convert a frame to rich Text, one styled span per run of equal style."""
    base = base or Style()
    text = Text(no_wrap=True, overflow="crop", end="")
    last_row = len(frame.cells) - 1
    for r, row in enumerate(frame.cells):
        styles = frame.styles[r]
        start = 0
        for c in range(1, len(row) + 1):
            if c == len(row) or styles[c] != styles[start]:
                tag = styles[start]
                text.append("".join(row[start:c]), style=palette.get(tag, base) if tag else base)
                start = c
        if r < last_row:
            text.append("\n", style=base)
    return text


class TerminalSurface:
    """Shows render requests on a rich console, inside a Live region when one is active."""

    def __init__(self, config: GraphConfig, console: Console | None = None, status: Console | None = None):
        self.config = config
        self.console = console or Console()
        self.status = status or Console(stderr=True)
        self.live: Live | None = None
        self.last_frame: CanvasFrame | None = None
        self.transparency = config.display.transparency

    def start(self) -> Live:
        self.live = Live(console=self.console, auto_refresh=False, transient=False)
        self.live.start()
        return self.live

    def stop(self) -> None:
        if self.live is not None:
            self.live.stop()
            self.live = None

    def render(self, frame: CanvasFrame) -> Text:
        palette, base = build_palette(self.config, self.transparency)
        return frame_to_text(frame, palette, base)

    def show(self, request) -> None:
        """Display a RenderRequest: frame, messages, then any error."""
        if request.transparency is not None:
            self.transparency = request.transparency
        if request.frame is not None:
            self.last_frame = request.frame
            text = self.render(request.frame)
            if self.live is not None:
                self.live.update(text, refresh=True)
            else:
                self.console.print(text)
        for level, message in request.messages:
            self.status.print(message, style=_MESSAGE_STYLES.get(level, "dim"))
        if request.error is not None:
            self.status.print(f"Error: {request.error}", style="red")
