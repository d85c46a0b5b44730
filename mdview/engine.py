"""Markdown rendering engine: markdown text in, embeddable HTML fragment out.

Stages, in order:
1. alert blockquotes rendered and stashed behind placeholders (alerts.stash_alerts)
2. markdown-it parse into events (events.parse_events), alert HTML restored
   as raw HTML events (alerts.restore_alerts)
3. mermaid and math fenced blocks collapsed (fenced.extract_fenced)
4. math events turned into placeholders (mathexpr.transform_math)
5. events serialized to HTML (events.render_events)
6. local images embedded and local links converted (postprocess.post_process)

The engine is synchronous and keeps no state between calls; it does blocking
reads for referenced images, so UI callers should run it off their event loop.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from mdview.alerts import restore_alerts, stash_alerts
from mdview.errors import RenderError
from mdview.events import parse_events, render_events
from mdview.fenced import extract_fenced
from mdview.mathexpr import transform_math
from mdview.postprocess import post_process

FENCED_LANGUAGES = ("mermaid", "math")


def base_dir_for(base_path: Path) -> Path:
    """Directory that relative image and link paths resolve against."""
    return Path(base_path).parent


def render_fragment(markdown: str) -> str:
    """Run stages 1-5 on ``markdown``; alert bodies re-enter here."""
    env: dict = {}
    text, alerts = stash_alerts(markdown, render_nested=render_fragment)
    events = restore_alerts(parse_events(text, env), alerts)
    for language in FENCED_LANGUAGES:
        events = extract_fenced(events, language)
    events = transform_math(events)
    return render_events(events, env)


def render_to_html(markdown: str, base_path: Path) -> str:
    """Render ``markdown`` loaded from ``base_path`` to an HTML fragment.

    ``base_path`` does not have to exist; only its parent directory is used.
    Raises :class:`RenderError` if the document cannot be rendered at all.
    Unreadable images are left as they are.
    """
    base_dir = base_dir_for(base_path)
    logger.debug("rendering {} chars relative to {}", len(markdown), base_dir)
    try:
        return post_process(render_fragment(markdown), base_dir)
    except RenderError:
        raise
    except Exception as exc:
        raise RenderError(f"Failed to render markdown: {exc}") from exc
