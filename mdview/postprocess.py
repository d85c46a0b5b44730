"""Streaming rewrite of ``img[src]`` and ``a[href]`` tags in rendered HTML.

Local images are inlined as base64 data URIs so the web view never touches
the filesystem. Links to local files become ``<span class="md-link">``
elements whose mousedown handler hands the path to the host application
through ``window.handleMarkdownLinkClick``.

Everything that is not rewritten is copied from the source text unchanged.
"""

from __future__ import annotations

import base64
import re
from enum import Enum
from html.parser import HTMLParser
from pathlib import Path, PurePosixPath
from urllib.parse import unquote

from loguru import logger

LINK_BRIDGE_FUNCTION = "handleMarkdownLinkClick"
MARKDOWN_EXTENSIONS = {"md", "markdown"}

MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "ico": "image/x-icon",
}
DEFAULT_MIME_TYPE = "image/png"


class UrlKind(Enum):
    HTTP = "http"
    DATA_URI = "data"
    LOCAL_PATH = "local"


def classify_url(url: str) -> UrlKind:
    if url.startswith(("http://", "https://")):
        return UrlKind.HTTP
    if url.startswith("data:"):
        return UrlKind.DATA_URI
    return UrlKind.LOCAL_PATH


def mime_type_for(path: Path) -> str:
    """Infer an image MIME type from the file extension alone."""
    return MIME_TYPES.get(path.suffix.lower().lstrip("."), DEFAULT_MIME_TYPE)


def local_path(url: str) -> str:
    """Filesystem path for a local URL; the parser percent-encodes link targets."""
    return unquote(url)


def embed_image(src: str, base_dir: Path) -> str | None:
    """Return a data URI for a local image, or ``None`` if it cannot be read."""
    try:
        resolved = (base_dir / local_path(src)).resolve(strict=True)
        data = resolved.read_bytes()
    except (OSError, RuntimeError, ValueError) as exc:
        logger.debug("leaving image {!r} as is: {}", src, exc)
        return None
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type_for(resolved)};base64,{encoded}"


def link_extension(href: str) -> str | None:
    """Extension of the last path segment of ``href``, without the dot."""
    suffix = PurePosixPath(href).suffix
    return suffix[1:] if suffix else None


def escape_js_string(value: str) -> str:
    """Escape ``value`` for a single-quoted JavaScript string literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def link_click_script(href: str) -> str:
    return (
        "if (event.button === 0 || event.button === 1) { "
        "event.preventDefault(); "
        f"window.{LINK_BRIDGE_FUNCTION}('{escape_js_string(href)}', event.button); "
        "}"
    )


def link_classes(extension: str) -> str:
    if extension in MARKDOWN_EXTENSIONS:
        return "md-link"
    return "md-link md-link-invalid"


def _quote_attr(value: str) -> str:
    escaped = value.replace("&", "&amp;").replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")
    return f'"{escaped}"'


def _set_attr(attrs: list[tuple[str, str | None]], name: str, value: str) -> None:
    for index, (existing, _) in enumerate(attrs):
        if existing == name:
            attrs[index] = (name, value)
            return
    attrs.append((name, value))


def _get_attr(attrs: list[tuple[str, str | None]], name: str) -> tuple[bool, str]:
    for existing, value in attrs:
        if existing == name:
            return True, value or ""
    return False, ""


def _serialize_start(tag: str, attrs: list[tuple[str, str | None]], self_closing: bool) -> str:
    attr_chunks: list[str] = []
    for name, value in attrs:
        if value is None:
            attr_chunks.append(f" {name}")
        else:
            attr_chunks.append(f" {name}={_quote_attr(value)}")
    closing = " /" if self_closing else ""
    return f"<{tag}{''.join(attr_chunks)}{closing}>"


def rewrite_image(attrs: list[tuple[str, str | None]], base_dir: Path) -> list[tuple[str, str | None]] | None:
    """New attributes for an ``img`` tag, or ``None`` to keep it unchanged."""
    has_src, src = _get_attr(attrs, "src")
    if not has_src or classify_url(src) is not UrlKind.LOCAL_PATH:
        return None
    data_uri = embed_image(src, base_dir)
    if data_uri is None:
        return None
    rewritten = list(attrs)
    _set_attr(rewritten, "src", data_uri)
    return rewritten


def rewrite_anchor(attrs: list[tuple[str, str | None]]) -> list[tuple[str, str | None]] | None:
    """Span attributes for an ``a`` tag, or ``None`` to keep it an anchor."""
    has_href, href = _get_attr(attrs, "href")
    if not has_href or classify_url(href) is UrlKind.HTTP:
        return None
    extension = link_extension(href)
    if extension is None:
        # No extension: an in-document anchor such as "#section".
        return None
    rewritten = [(name, value) for name, value in attrs if name != "href"]
    _set_attr(rewritten, "class", link_classes(extension))
    _set_attr(rewritten, "onmousedown", link_click_script(href))
    logger.debug("local link {!r} -> {}", href, link_classes(extension))
    return rewritten


class _TagRewriter(HTMLParser):
    """Splices rewritten tags into the source; all other bytes are copied."""

    def __init__(self, source: str, base_dir: Path) -> None:
        super().__init__(convert_charrefs=False)
        self._source = source
        self._line_starts = [0] + [match.end() for match in re.finditer("\n", source)]
        self._base_dir = base_dir
        self._chunks: list[str] = []
        # Source offset up to which output has been settled.
        self._copied = 0
        # One entry per open <a>; True when it was renamed to <span>.
        self._anchors: list[bool] = []

    def _cursor(self) -> int:
        lineno, offset = self.getpos()
        return self._line_starts[lineno - 1] + offset

    def _replace(self, start: int, end: int, text: str) -> None:
        self._chunks.append(self._source[self._copied:start])
        self._chunks.append(text)
        self._copied = end

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._rewrite_start(tag, attrs, False)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._rewrite_start(tag, attrs, True)

    def handle_endtag(self, tag: str) -> None:
        if tag != "a" or not self._anchors or not self._anchors.pop():
            return
        start = self._cursor()
        end = self._source.find(">", start)
        self._replace(start, end + 1 if end != -1 else len(self._source), "</span>")

    def _rewrite_start(self, tag: str, attrs: list[tuple[str, str | None]], self_closing: bool) -> None:
        replacement = None
        if tag == "img":
            rewritten = rewrite_image(attrs, self._base_dir)
            if rewritten is not None:
                replacement = _serialize_start(tag, rewritten, self_closing)
        elif tag == "a":
            rewritten = rewrite_anchor(attrs)
            if not self_closing:
                self._anchors.append(rewritten is not None)
            if rewritten is not None:
                replacement = _serialize_start("span", rewritten, self_closing)
        if replacement is None:
            return
        start = self._cursor()
        self._replace(start, start + len(self.get_starttag_text() or ""), replacement)

    def get_html(self) -> str:
        return "".join(self._chunks) + self._source[self._copied:]


def post_process(html: str, base_dir: Path) -> str:
    """Embed local images and convert local-file links in ``html``."""
    lowered = html.lower()
    if "<img" not in lowered and "<a" not in lowered:
        return html
    rewriter = _TagRewriter(html, Path(base_dir))
    rewriter.feed(html)
    rewriter.close()
    return rewriter.get_html()
