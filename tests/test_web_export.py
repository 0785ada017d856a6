import json
from pathlib import Path

import pytest
from conftest import make_graph

from notegraph.errors import RenderTargetError
from notegraph.render import web
from notegraph.render.web import export_html, graph_payload, launch, write_html

DATA_OPEN = '<script id="graph-data" type="application/json">'


def _embedded_data(document: str) -> dict:
    start = document.index(DATA_OPEN) + len(DATA_OPEN)
    end = document.index("</script>", start)
    return json.loads(document[start:end])


def test_payload_lists_nodes_edges_and_current() -> None:
    graph = make_graph({"A": (1.04, 2.0), "B": (3.0, 4.0)}, [("A", "B")])
    payload = graph_payload(list(graph.nodes.values()), graph.edges, "A")

    assert payload["current"] == "A"
    assert payload["edges"] == [{"source": "A", "target": "B"}]
    assert payload["nodes"][0] == {"id": "A", "title": "A", "tags": [], "degree": 1, "x": 1.0, "y": 2.0}


def test_document_embeds_graph_and_d3() -> None:
    graph = make_graph({"A": (0.0, 0.0), "B": (10.0, 0.0)}, [("A", "B")])
    document = export_html(list(graph.nodes.values()), graph.edges, "B", title="My Notes")

    assert document.startswith("<!DOCTYPE html>")
    assert "<title>My Notes</title>" in document
    assert "d3.v7.min.js" in document
    assert "forceSimulation" in document
    data = _embedded_data(document)
    assert [n["id"] for n in data["nodes"]] == ["A", "B"]
    assert data["current"] == "B"


def test_hostile_names_cannot_break_out_of_script() -> None:
    name = 'Say "hi"</script><script>alert(1)</script>'
    graph = make_graph({name: (0.0, 0.0), "Other": (5.0, 5.0)}, [(name, "Other")])
    document = export_html(list(graph.nodes.values()), graph.edges, name, title="<b>Vault</b>")

    # d3 include, data block and page script
    assert document.count("</script>") == 3
    assert "<title>&lt;b&gt;Vault&lt;/b&gt;</title>" in document
    data = _embedded_data(document)
    assert data["nodes"][0]["id"] == name
    assert data["current"] == name


def test_write_html_creates_parents(tmp_path: Path) -> None:
    target = tmp_path / "out" / "graph.html"
    assert write_html("<html></html>", target) == target
    assert target.read_text(encoding="utf-8") == "<html></html>"


def test_write_html_failure_is_render_target_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file.txt"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(RenderTargetError):
        write_html("<html></html>", blocker / "graph.html")


def test_launch_reports_missing_browser(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    page = tmp_path / "graph.html"
    page.write_text("<html></html>", encoding="utf-8")
    monkeypatch.setattr(web.webbrowser, "open", lambda url: False)

    with pytest.raises(RenderTargetError):
        launch(page)


def test_launch_opens_file_uri(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    page = tmp_path / "graph.html"
    page.write_text("<html></html>", encoding="utf-8")
    opened = []
    monkeypatch.setattr(web.webbrowser, "open", lambda url: opened.append(url) or True)

    launch(page)
    assert opened == [page.resolve().as_uri()]
