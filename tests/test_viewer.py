import os
from types import SimpleNamespace

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
viewer = pytest.importorskip("mdview.viewer")

from mdview.errors import RenderError  # noqa: E402


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args)


def fake_window(current_file, request_id=1):
    status = Recorder()
    window = SimpleNamespace(
        current_file=current_file,
        config_path=None,
        _render_request_id=request_id,
        _active_render_workers=set(),
        preview=SimpleNamespace(setHtml=Recorder()),
        load_document=Recorder(),
        _open_in_new_window=Recorder(),
        status=status,
    )
    window.statusBar = lambda: SimpleNamespace(showMessage=status)
    return window


@pytest.fixture
def docs(tmp_path):
    current = tmp_path / "index.md"
    current.write_text("# Index", encoding="utf-8")
    (tmp_path / "next.md").write_text("# Next", encoding="utf-8")
    (tmp_path / "my notes.md").write_text("# Notes", encoding="utf-8")
    return current


class TestRenderResults:
    def test_stale_result_is_dropped(self, docs):
        window = fake_window(docs, request_id=2)
        viewer.MdviewWindow._on_render_finished(window, 1, str(docs), "<html>old</html>", "")
        assert window.preview.setHtml.calls == []

    def test_current_result_is_shown(self, docs):
        window = fake_window(docs, request_id=2)
        viewer.MdviewWindow._on_render_finished(window, 2, str(docs), "<html>new</html>", "")
        (html_doc, base_url), = window.preview.setHtml.calls
        assert html_doc == "<html>new</html>"
        assert base_url.toLocalFile() == f"{docs.parent.resolve()}/"

    def test_read_failure_shows_placeholder(self, docs):
        window = fake_window(docs)
        viewer.MdviewWindow._on_render_finished(window, 1, str(docs), "", "permission denied")
        (html_doc, _), = window.preview.setHtml.calls
        assert "permission denied" in html_doc
        assert "Could not read" in window.status.calls[0][0]


class TestLinkClicks:
    def test_left_click_loads_in_place(self, docs):
        window = fake_window(docs)
        viewer.MdviewWindow._on_link_clicked(window, "next.md", viewer.LEFT_BUTTON)
        assert window.load_document.calls == [((docs.parent / "next.md").resolve(),)]
        assert window._open_in_new_window.calls == []

    def test_middle_click_opens_new_window(self, docs):
        window = fake_window(docs)
        viewer.MdviewWindow._on_link_clicked(window, "next.md", viewer.MIDDLE_BUTTON)
        assert window._open_in_new_window.calls == [((docs.parent / "next.md").resolve(),)]
        assert window.load_document.calls == []

    def test_missing_target_reports_status(self, docs):
        window = fake_window(docs)
        viewer.MdviewWindow._on_link_clicked(window, "gone.md", viewer.LEFT_BUTTON)
        assert window.load_document.calls == []
        assert "Link target not found: gone.md" in window.status.calls[0][0]

    def test_percent_encoded_target(self, docs):
        assert viewer.resolve_link_target(docs, "my%20notes.md") == (docs.parent / "my notes.md").resolve()


class TestPreviewRenderWorker:
    def run_worker(self, path):
        results = []
        worker = viewer.PreviewRenderWorker(path, 7, [], [])
        worker.signals.finished.connect(lambda *args: results.append(args))
        worker.run()
        return results

    def test_renders_page(self, docs):
        ((request_id, path_text, page, error),) = self.run_worker(docs)
        assert (request_id, path_text, error) == (7, str(docs), "")
        assert "<h1>Index</h1>" in page

    def test_render_error_falls_back_to_plain_text(self, docs, monkeypatch):
        def broken(markdown, base_path):
            raise RenderError("broken")

        monkeypatch.setattr(viewer, "render_to_html", broken)
        ((_, _, page, error),) = self.run_worker(docs)
        assert error == "broken"
        assert '<pre class="plain-text"># Index</pre>' in page

    def test_unreadable_file(self, tmp_path):
        ((_, _, page, error),) = self.run_worker(tmp_path / "absent.md")
        assert page == ""
        assert error
