"""GitHub-style alert blockquotes (``> [!NOTE]`` and friends).

Alerts are rendered to HTML before the markdown parser sees the document.
The quoted body is rendered as markdown on its own, so alerts may carry
their own formatting, code, math, and even nested alerts.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from mdview.events import Event, RawHtml


class AlertKind(Enum):
    NOTE = "NOTE"
    TIP = "TIP"
    IMPORTANT = "IMPORTANT"
    WARNING = "WARNING"
    CAUTION = "CAUTION"

    @property
    def css_name(self) -> str:
        return self.value.lower()

    @property
    def marker(self) -> str:
        return f"> [!{self.value}]"


@dataclass
class AlertBlock:
    kind: AlertKind
    body_lines: list[str] = field(default_factory=list)
    title: str = ""

    def __post_init__(self) -> None:
        if not self.title:
            self.title = self.kind.value


def alert_icon_placeholder(kind: AlertKind) -> str:
    """Empty icon slot; the page script injects the actual glyph."""
    return f'<span class="alert-icon" data-alert-type="{kind.css_name}"></span>'


def parse_alert_start(line: str) -> tuple[AlertKind, str] | None:
    """Return the alert kind and the rest of the marker line, if any."""
    for kind in AlertKind:
        if line.startswith(kind.marker):
            return kind, line[len(kind.marker):]
    return None


def _strip_quote(line: str) -> str:
    content = line[1:]
    if content.startswith(" "):
        content = content[1:]
    return content


def collect_alert(lines: list[str], start: int) -> tuple[AlertBlock, int] | None:
    """Gather the alert opened at ``lines[start]``.

    Returns the block and the index of the first line after it, or ``None``
    when ``lines[start]`` does not open an alert.
    """
    parsed = parse_alert_start(lines[start])
    if parsed is None:
        return None
    kind, rest = parsed
    block = AlertBlock(kind)
    if rest.strip():
        block.body_lines.append(rest.strip())

    index = start + 1
    while index < len(lines) and lines[index].startswith(">"):
        block.body_lines.append(_strip_quote(lines[index]))
        index += 1
    return block, index


def render_alert(block: AlertBlock, render_nested: Callable[[str], str]) -> str:
    css_name = block.kind.css_name
    parts = [
        f'<div class="markdown-alert markdown-alert-{css_name}" dir="auto">',
        f'<p class="markdown-alert-title" dir="auto">{alert_icon_placeholder(block.kind)}{block.title}</p>',
    ]
    if block.body_lines:
        # A trailing newline here would leave a blank line before </div> and
        # end the surrounding HTML block early.
        parts.append(render_nested("\n".join(block.body_lines)).rstrip("\n"))
    parts.append("</div>")
    return "\n".join(parts)


def _rewrite_alerts(
    markdown: str,
    render_nested: Callable[[str], str] | None,
    emit: Callable[[str], str],
) -> str:
    if render_nested is None:
        from mdview.engine import render_fragment as render_nested

    lines = markdown.split("\n")
    result: list[str] = []
    index = 0
    while index < len(lines):
        collected = collect_alert(lines, index)
        if collected is None:
            result.append(lines[index])
            index += 1
            continue
        block, index = collected
        logger.debug("alert {} with {} body line(s)", block.kind.value, len(block.body_lines))
        result.append(emit(render_alert(block, render_nested)))
    return "\n".join(result)


def preprocess_alerts(markdown: str, render_nested: Callable[[str], str] | None = None) -> str:
    """Replace alert blockquotes with alert HTML, leaving other lines untouched.

    ``render_nested`` turns an alert body into HTML; it defaults to the
    engine's fragment renderer.
    """
    return _rewrite_alerts(markdown, render_nested, lambda html: html)


def stash_alerts(
    markdown: str, render_nested: Callable[[str], str] | None = None
) -> tuple[str, dict[str, str]]:
    """Like :func:`preprocess_alerts`, but leave a one-line comment in place of
    each alert and return the alert HTML keyed by that comment.

    An alert body may render to HTML with blank lines (code blocks), which
    would end a raw HTML block early if it went through the parser inline.
    """
    stash: dict[str, str] = {}

    def emit(html: str) -> str:
        placeholder = f"<!--mdview-alert-{len(stash)}-->"
        stash[placeholder] = html
        return placeholder

    return _rewrite_alerts(markdown, render_nested, emit), stash


def restore_alerts(events: Iterable[Event], stash: dict[str, str]) -> Iterator[Event]:
    """Swap alert placeholders left by :func:`stash_alerts` for the alert HTML."""
    for event in events:
        if isinstance(event, RawHtml) and event.content.strip() in stash:
            yield RawHtml(stash[event.content.strip()])
        else:
            yield event
