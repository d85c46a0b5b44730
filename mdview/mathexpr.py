"""Turn math events into placeholders for the client-side typesetter."""

from __future__ import annotations

import html
from collections.abc import Iterable, Iterator

from mdview.events import DisplayMath, Event, InlineMath, RawHtml


def inline_math_html(expr: str) -> str:
    return f'<span class="preprocessed-math-inline" data-original-content="{html.escape(expr)}">{expr}</span>'


def display_math_html(expr: str) -> str:
    return f'<div class="preprocessed-math-display" data-original-content="{html.escape(expr)}">{expr}</div>'


def transform_math(events: Iterable[Event]) -> Iterator[Event]:
    for event in events:
        if isinstance(event, InlineMath):
            yield RawHtml(inline_math_html(event.content))
        elif isinstance(event, DisplayMath):
            yield RawHtml(display_math_html(event.content))
        else:
            yield event
