"""Collapse fenced code blocks of one language into a single HTML event.

The client script needs both the raw source (to feed Mermaid or MathJax) and
an escaped copy it can read back from an attribute, so a matching block
becomes::

    <pre class="preprocessed-{lang}" data-original-content="{escaped}">{raw}</pre>

The transform is a fold of :func:`step` over the event stream, threading an
explicit ``Outside`` / ``Buffering`` state value.
"""

from __future__ import annotations

import html
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from loguru import logger

from mdview.events import CODE_BLOCK, End, Event, RawHtml, Start, Text


@dataclass(frozen=True)
class Outside:
    pass


@dataclass(frozen=True)
class Buffering:
    language: str
    buffer: str = ""


FenceState = Outside | Buffering

OUTSIDE = Outside()


def preprocessed_block_html(language: str, content: str) -> str:
    return (
        f'<pre class="preprocessed-{language}" '
        f'data-original-content="{html.escape(content)}">{content}</pre>'
    )


def step(state: FenceState, event: Event, target_language: str) -> tuple[FenceState, tuple[Event, ...]]:
    """Advance the fence state machine by one event.

    Returns the next state and the events to emit for this input.
    """
    if isinstance(state, Outside):
        if isinstance(event, Start) and event.tag == CODE_BLOCK and event.language == target_language:
            return Buffering(target_language), ()
        return state, (event,)

    if isinstance(event, Text):
        return Buffering(state.language, state.buffer + event.content), ()
    if isinstance(event, End) and event.tag == CODE_BLOCK:
        return OUTSIDE, (RawHtml(preprocessed_block_html(state.language, state.buffer)),)
    return state, ()


def extract_fenced(events: Iterable[Event], target_language: str) -> Iterator[Event]:
    """Replace every ``target_language`` fenced block with one ``RawHtml`` event.

    A block that is never closed is dropped.
    """
    state: FenceState = OUTSIDE
    for event in events:
        state, emitted = step(state, event, target_language)
        yield from emitted
    if isinstance(state, Buffering):
        logger.debug("dropping unterminated {} block ({} chars)", target_language, len(state.buffer))
