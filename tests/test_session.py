from dataclasses import replace
from pathlib import Path

import pytest

from notegraph import session as session_module
from notegraph.config import GraphConfig
from notegraph.errors import BuildError, EmptyGraphWarning, RenderTargetError, SessionClosedError
from notegraph.models import RenderMode
from notegraph.scheduler import ManualScheduler
from notegraph.session import (
    Close,
    ExportWeb,
    Filter,
    FocusCurrent,
    GraphSession,
    OpenSelected,
    Pan,
    Resize,
    SelectAt,
    SessionState,
    ToggleIsolated,
    ToggleTransparency,
    Zoom,
)
from notegraph.vault.loader import InMemoryCorpus, VaultCorpus


def test_open_selects_first_node_and_renders(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    request = session.open(width=60, height=20)

    assert session.state is SessionState.OPEN
    assert session.view.selected == "Alpha"
    assert session.view.current is None
    assert request.frame is not None
    assert (request.frame.width, request.frame.height) == (60, 20)
    assert ("info", "Graph built: 3 notes, 3 connections") in request.messages
    assert session.engine.ticks == fast_config.physics.iterations


def test_open_with_current_note(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open("Gamma")

    assert session.view.current == "Gamma"
    assert session.view.selected == "Gamma"


def test_open_with_unknown_current_note_warns(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    request = session.open("Nope")

    assert session.view.current is None
    assert ("warning", "Current note not in graph: Nope") in request.messages


def test_empty_corpus_keeps_session_closed(fast_config: GraphConfig) -> None:
    session = GraphSession(InMemoryCorpus({}), fast_config)

    with pytest.raises(EmptyGraphWarning):
        session.open()
    assert session.state is SessionState.CLOSED
    with pytest.raises(SessionClosedError):
        session.handle(Pan(1, 1))


def test_unreadable_vault_keeps_session_closed(tmp_path: Path, fast_config: GraphConfig) -> None:
    session = GraphSession(VaultCorpus(tmp_path / "missing"), fast_config)

    with pytest.raises(BuildError):
        session.open()
    assert not session.is_open


def test_animation_renders_every_few_ticks_then_stops(
    triangle_corpus: InMemoryCorpus, fast_config: GraphConfig
) -> None:
    scheduler = ManualScheduler()
    frames = []
    session = GraphSession(triangle_corpus, fast_config, scheduler=scheduler, on_render=frames.append)
    session.open()

    assert session.animating
    assert session.engine.ticks == 0

    scheduler.advance(6)
    assert session.engine.ticks == 6
    assert len(frames) == 2
    assert session.animating

    scheduler.advance()
    assert len(frames) == 3
    assert not session.animating
    assert not scheduler.active

    scheduler.advance(5)
    assert len(frames) == 3


def test_close_cancels_animation(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    scheduler = ManualScheduler()
    frames = []
    session = GraphSession(triangle_corpus, fast_config, scheduler=scheduler, on_render=frames.append)
    session.open()
    scheduler.advance(2)

    request = session.handle(Close())

    assert request.closed
    assert session.state is SessionState.CLOSED
    assert session.graph is None and session.view is None
    assert not scheduler.active
    assert scheduler.advance(10) == 0
    with pytest.raises(SessionClosedError):
        session.handle(Zoom(2.0))


def test_restart_layout_runs_budget_again(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()
    session.restart_layout()
    assert session.engine.ticks == fast_config.physics.iterations


def test_pan_and_zoom(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()
    x, y, zoom = session.view.offset_x, session.view.offset_y, session.view.zoom

    request = session.handle(Pan(5, -3))
    assert (session.view.offset_x, session.view.offset_y) == (x + 5, y - 3)
    assert request.frame is session.frame

    session.handle(Zoom(2.0))
    assert session.view.zoom == pytest.approx(zoom * 2.0)

    with pytest.raises(ValueError):
        session.handle(Zoom(0))


def test_filter_reports_counts(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()

    request = session.handle(Filter("bet"))
    assert session.view.filter_text == "bet"
    assert ("info", "Showing 1/3 notes") in request.messages
    assert request.frame.displayed == ["Beta"]

    request = session.handle(Filter(""))
    assert ("info", "Showing 3/3 notes") in request.messages


def test_select_at_picks_drawn_node(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()
    hit = session.frame.hits[-1]

    request = session.handle(SelectAt(hit.col, hit.row))

    assert session.view.selected == session.frame.hit_test(hit.col, hit.row)
    assert request.messages and request.messages[0][1].startswith("Selected: ")


def test_select_at_empty_cell_keeps_selection(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()
    session.handle(Pan(10000, 10000))

    session.handle(SelectAt(0, 0))
    assert session.view.selected == "Alpha"


def test_open_selected_hands_path_to_viewer_and_closes(fast_config: GraphConfig, tmp_path: Path) -> None:
    vault = tmp_path / "vault"
    vault.mkdir()
    (vault / "Alpha.md").write_text("[[Beta]]", encoding="utf-8")
    (vault / "Beta.md").write_text("[[Alpha]]", encoding="utf-8")
    opened = []
    session = GraphSession(VaultCorpus(vault), fast_config, viewer=opened.append)
    session.open("Beta")

    request = session.handle(OpenSelected())

    assert opened == [vault / "Beta.md"]
    assert request.closed
    assert session.state is SessionState.CLOSED


def test_open_selected_without_viewer_reports_error(
    triangle_corpus: InMemoryCorpus, fast_config: GraphConfig
) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()

    request = session.handle(OpenSelected())
    assert isinstance(request.error, RenderTargetError)
    assert session.is_open


def test_toggles(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()

    session.handle(ToggleIsolated())
    assert session.view.show_isolated
    assert "[all notes]" in session.frame.footer

    request = session.handle(ToggleTransparency())
    assert session.view.transparency == 0
    assert request.transparency == 0
    request = session.handle(ToggleTransparency())
    assert session.view.transparency == 20
    assert request.transparency == 20


def test_focus_current(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()
    request = session.handle(FocusCurrent())
    assert request.messages == [("warning", "No current note open")]

    session.close()
    session.open("Beta")
    session.view.selected = "Alpha"
    session.handle(Pan(7, 7))
    session.handle(Zoom(3.0))

    session.handle(FocusCurrent())
    assert session.view.selected == "Beta"
    assert (session.view.offset_x, session.view.offset_y, session.view.zoom) == (0.0, 0.0, 1.0)


def test_resize_changes_frame(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()

    request = session.handle(Resize(40, 10))
    assert (request.frame.width, request.frame.height) == (40, 10)
    with pytest.raises(ValueError):
        session.handle(Resize(0, 10))


def test_export_web_writes_document(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig, tmp_path: Path) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open("Alpha")
    target = tmp_path / "graph.html"

    request = session.handle(ExportWeb(path=target, open_browser=False))

    assert request.error is None
    assert request.export_path == target
    assert target.read_text(encoding="utf-8") == request.document
    assert '"current": "Alpha"' in request.document
    assert session.view.render_mode is RenderMode.WEB


def test_export_web_launches_browser(
    triangle_corpus: InMemoryCorpus, fast_config: GraphConfig, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    launched = []
    monkeypatch.setattr(session_module, "launch", launched.append)
    session = GraphSession(triangle_corpus, fast_config, export_dir=tmp_path)
    session.open()

    request = session.handle(ExportWeb())

    assert launched == [request.export_path]
    assert request.export_path.parent == tmp_path
    assert ("info", "Opening graph in browser...") in request.messages


def test_export_web_failure_keeps_canvas_session(
    triangle_corpus: InMemoryCorpus, fast_config: GraphConfig, tmp_path: Path
) -> None:
    blocker = tmp_path / "file.txt"
    blocker.write_text("x", encoding="utf-8")
    session = GraphSession(triangle_corpus, fast_config)
    session.open()

    request = session.handle(ExportWeb(path=blocker / "graph.html", open_browser=False))

    assert isinstance(request.error, RenderTargetError)
    assert request.frame is not None
    assert session.is_open
    assert session.view.render_mode is RenderMode.CANVAS


def test_sessions_with_different_config_coexist(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    strict = replace(fast_config, display=replace(fast_config.display, min_connections=5))
    loose = GraphSession(triangle_corpus, fast_config)
    tight = GraphSession(triangle_corpus, strict)

    loose.open()
    tight.open()

    assert len(loose.frame.displayed) == 3
    # Only the selected note passes the stricter threshold
    assert tight.frame.displayed == ["Alpha"]


def test_extreme_zoom_is_clamped_and_still_renders(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()

    request = session.handle(Zoom(1e308))
    assert session.view.zoom == session_module.MAX_ZOOM
    assert request.frame is not None

    session.handle(Zoom(1e-308))
    session.handle(Zoom(1e-308))
    assert session.view.zoom == session_module.MIN_ZOOM


@pytest.mark.parametrize("factor", [float("nan"), float("inf"), -2.0])
def test_invalid_zoom_factor_is_rejected(
    triangle_corpus: InMemoryCorpus, fast_config: GraphConfig, factor: float
) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()
    zoom = session.view.zoom

    with pytest.raises(ValueError):
        session.handle(Zoom(factor))
    assert session.view.zoom == zoom


def test_huge_pan_is_clamped_and_still_renders(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()

    session.handle(Pan(1e308, 0))
    request = session.handle(Pan(1e308, -1e308))

    assert session.view.offset_x == session_module.MAX_OFFSET
    assert session.view.offset_y == -session_module.MAX_OFFSET
    assert request.frame.hits == []


def test_non_finite_pan_is_rejected(triangle_corpus: InMemoryCorpus, fast_config: GraphConfig) -> None:
    session = GraphSession(triangle_corpus, fast_config)
    session.open()

    with pytest.raises(ValueError):
        session.handle(Pan(float("nan"), 0))
    with pytest.raises(ValueError):
        session.handle(Pan(0, float("-inf")))
