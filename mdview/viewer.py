"""Qt preview window for a single markdown document."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger
from PySide6.QtCore import QObject, QRunnable, QThreadPool, QUrl, Signal
from PySide6.QtGui import QAction, QDesktopServices, QKeySequence
from PySide6.QtWebEngineCore import QWebEnginePage
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QApplication, QMainWindow

from mdview.config import mathjax_script_sources, mermaid_script_sources, save_last_document
from mdview.engine import render_to_html
from mdview.errors import RenderError
from mdview.page import build_page, parse_link_url, placeholder_page, plain_text_page
from mdview.postprocess import local_path

LEFT_BUTTON = 0
MIDDLE_BUTTON = 1


def resolve_link_target(current_file: Path, link: str) -> Path | None:
    """Existing file a clicked link points at, relative to the open document."""
    try:
        return (current_file.parent / local_path(link)).resolve(strict=True)
    except (OSError, RuntimeError, ValueError):
        return None


class PreviewRenderWorkerSignals(QObject):
    """Signals emitted by background preview rendering workers."""

    finished = Signal(int, str, str, str)


class PreviewRenderWorker(QRunnable):
    """Render markdown HTML in a worker thread to keep UI responsive."""

    def __init__(self, path: Path, request_id: int, mathjax_sources: list[str], mermaid_sources: list[str]):
        super().__init__()
        self.path = path
        self.request_id = request_id
        self.mathjax_sources = mathjax_sources
        self.mermaid_sources = mermaid_sources
        self.signals = PreviewRenderWorkerSignals()

    def run(self) -> None:
        # Only the finished page string crosses back to the UI thread.
        try:
            markdown_text = self.path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            self.signals.finished.emit(self.request_id, str(self.path), "", str(exc))
            return

        try:
            fragment = render_to_html(markdown_text, self.path)
        except RenderError as exc:
            logger.warning("falling back to plain text for {}: {}", self.path, exc)
            page = plain_text_page(markdown_text, self.path.name)
            self.signals.finished.emit(self.request_id, str(self.path), page, str(exc))
            return

        page = build_page(
            fragment,
            self.path.name,
            mathjax_sources=self.mathjax_sources,
            mermaid_sources=self.mermaid_sources,
        )
        self.signals.finished.emit(self.request_id, str(self.path), page, "")


class LinkInterceptPage(QWebEnginePage):
    """Web page that routes local-link bridge navigations back to Qt."""

    link_clicked = Signal(str, int)

    def acceptNavigationRequest(self, url: QUrl, nav_type, is_main_frame: bool) -> bool:  # noqa: N802
        parsed = parse_link_url(bytes(url.toEncoded()).decode("ascii", errors="replace"))
        if parsed is not None:
            self.link_clicked.emit(*parsed)
            return False
        if url.scheme() in {"http", "https"} and nav_type == QWebEnginePage.NavigationType.NavigationTypeLinkClicked:
            QDesktopServices.openUrl(url)
            return False
        return super().acceptNavigationRequest(url, nav_type, is_main_frame)


class MdviewWindow(QMainWindow):
    # Windows opened by middle-click; kept referenced so Qt does not drop them.
    _open_windows: set[MdviewWindow] = set()

    def __init__(self, path: Path | None, config_path: Path | None = None):
        super().__init__()
        self.config_path = config_path
        self.current_file: Path | None = None
        self._mathjax_sources = mathjax_script_sources()
        self._mermaid_sources = mermaid_script_sources()
        self._render_pool = QThreadPool(self)
        self._render_pool.setMaxThreadCount(1)
        self._render_request_id = 0
        self._active_render_workers: set[PreviewRenderWorker] = set()

        self.page = LinkInterceptPage(self)
        self.page.link_clicked.connect(self._on_link_clicked)
        self.preview = QWebEngineView(self)
        self.preview.setPage(self.page)
        self.setCentralWidget(self.preview)
        self.resize(1000, 800)

        reload_action = QAction("Reload", self)
        reload_action.setShortcut(QKeySequence.StandardKey.Refresh)
        reload_action.triggered.connect(self._reload)
        self.addAction(reload_action)

        if path is None:
            self.setWindowTitle("mdview")
            self.preview.setHtml(placeholder_page("No markdown document selected."))
        else:
            self.load_document(path)

    def load_document(self, path: Path) -> None:
        self.current_file = path
        self.setWindowTitle(f"{path.name} - mdview")
        self.statusBar().showMessage(f"Rendering markdown: {path.name}...")
        if self.config_path is not None:
            save_last_document(path, self.config_path)

        self._render_request_id += 1
        worker = PreviewRenderWorker(path, self._render_request_id, self._mathjax_sources, self._mermaid_sources)
        worker.signals.finished.connect(self._on_render_finished)
        self._active_render_workers.add(worker)
        self._render_pool.start(worker)

    def _reload(self) -> None:
        if self.current_file is not None:
            self.load_document(self.current_file)

    def _on_render_finished(self, request_id: int, path_text: str, html_doc: str, error_text: str) -> None:
        """Apply finished background render if it is still the active request."""
        self._active_render_workers = {w for w in self._active_render_workers if w.request_id != request_id}
        if request_id != self._render_request_id or self.current_file is None:
            return

        path = Path(path_text)
        if not html_doc:
            self.statusBar().showMessage(f"Could not read {path.name}: {error_text}", 5000)
            html_doc = placeholder_page(f"Could not read {path.name}: {error_text}")
        elif error_text:
            self.statusBar().showMessage(f"Preview render failed, showing plain text: {error_text}", 5000)
        else:
            self.statusBar().showMessage(f"Preview rendered: {path.name}")
        base_url = QUrl.fromLocalFile(f"{path.parent.resolve()}/")
        self.preview.setHtml(html_doc, base_url)

    def _on_link_clicked(self, link: str, button: int) -> None:
        if self.current_file is None:
            return
        logger.info("markdown link clicked: {} (button {})", link, button)
        target = resolve_link_target(self.current_file, link)
        if target is None:
            self.statusBar().showMessage(f"Link target not found: {link}", 5000)
            return

        if button == LEFT_BUTTON:
            self.load_document(target)
        elif button == MIDDLE_BUTTON:
            self._open_in_new_window(target)

    def _open_in_new_window(self, path: Path) -> None:
        window = MdviewWindow(path, self.config_path)
        MdviewWindow._open_windows.add(window)
        window.show()

    def closeEvent(self, event) -> None:  # noqa: N802
        MdviewWindow._open_windows.discard(self)
        super().closeEvent(event)


def run_viewer(path: Path | None, config_path: Path | None) -> int:
    app = QApplication(sys.argv)
    app.setApplicationName("mdview")
    app.setDesktopFileName("mdview")
    window = MdviewWindow(path, config_path)
    window.show()
    return app.exec()
