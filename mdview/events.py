"""Markdown event stream on top of markdown-it-py.

markdown-it produces a flat list of block tokens whose inline content hangs off
``inline`` tokens as children. The rendering stages want one ordered stream of
typed events instead, so this module flattens the token list into events and
rebuilds tokens from a (transformed) event stream for HTML serialization.

Configured syntax:
- CommonMark base with raw HTML passthrough
- GFM tables, strikethrough, autolinks (linkify) and task lists
- Footnotes
- Dollar math ($inline$, $$display$$, and inline $$...$$)
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from mdview.errors import RenderError

INLINE = "inline"
CODE_BLOCK = "code_block"

_DISPLAY_MATH_TYPES = {"math_block", "math_block_label", "math_inline_double"}


@dataclass(frozen=True)
class Start:
    tag: str
    info: str = ""
    token: Token | None = field(default=None, compare=False, repr=False)

    @property
    def language(self) -> str:
        """First word of a fence info string (``mermaid`` for ```` ```mermaid {x} ````)."""
        parts = self.info.split(maxsplit=1)
        return parts[0] if parts else ""


@dataclass(frozen=True)
class End:
    tag: str
    token: Token | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Text:
    content: str


@dataclass(frozen=True)
class InlineMath:
    content: str


@dataclass(frozen=True)
class DisplayMath:
    content: str


@dataclass(frozen=True)
class RawHtml:
    content: str


@dataclass(frozen=True)
class TokenEvent:
    """Any other parser token, passed along untouched."""

    token: Token = field(compare=False)


Event = Start | End | Text | InlineMath | DisplayMath | RawHtml | TokenEvent


def create_parser() -> MarkdownIt:
    """Create configured markdown-it parser."""
    md = MarkdownIt(
        "commonmark",
        {"html": True, "linkify": True, "typographer": True},
    )
    md.enable("table")
    md.enable("strikethrough")
    md.enable("linkify")
    # Math must be tokenized before emphasis/underscore rules run so TeX
    # survives untouched.
    dollarmath_plugin(md, double_inline=True)
    footnote_plugin(md)
    tasklists_plugin(md)
    return md


# Singleton parser instance
_parser: MarkdownIt | None = None


def get_parser() -> MarkdownIt:
    """Get or create the singleton parser instance."""
    global _parser
    if _parser is None:
        _parser = create_parser()
    return _parser


def parse_events(text: str, env: dict | None = None) -> Iterator[Event]:
    """Parse markdown text into an ordered event stream.

    ``env`` is markdown-it's per-document scratch space (footnotes keep their
    references there); pass the same dict to :func:`render_events`.
    """
    tokens = get_parser().parse(text, {} if env is None else env)
    for token in tokens:
        if token.type == "inline":
            yield Start(INLINE, token=token)
            for child in token.children or []:
                yield _inline_event(child)
            yield End(INLINE, token=token)
        else:
            yield from _block_events(token)


def _block_events(token: Token) -> Iterator[Event]:
    if token.type == "fence":
        yield Start(CODE_BLOCK, info=token.info.strip(), token=token)
        yield Text(token.content)
        yield End(CODE_BLOCK, token=token)
    elif token.type in _DISPLAY_MATH_TYPES:
        yield DisplayMath(token.content)
    elif token.type == "html_block":
        yield RawHtml(token.content)
    else:
        yield TokenEvent(token)


def _inline_event(token: Token) -> Event:
    if token.type == "math_inline":
        return InlineMath(token.content)
    if token.type in _DISPLAY_MATH_TYPES:
        return DisplayMath(token.content)
    if token.type == "html_inline":
        return RawHtml(token.content)
    if token.type == "text":
        return Text(token.content)
    return TokenEvent(token)


class _TokenBuilder:
    """Reassembles markdown-it tokens from an event stream."""

    def __init__(self) -> None:
        self.tokens: list[Token] = []
        self._inline_token: Token | None = None
        self._inline_children: list[Token] = []
        self._fence_token: Token | None = None
        self._fence_parts: list[str] = []

    @property
    def in_inline(self) -> bool:
        return self._inline_token is not None

    def _append(self, token: Token) -> None:
        if self._inline_token is not None:
            self._inline_children.append(token)
        else:
            self.tokens.append(token)

    def feed(self, event: Event) -> None:
        if isinstance(event, Start):
            self._start(event)
        elif isinstance(event, End):
            self._end(event)
        elif isinstance(event, Text):
            if self._fence_token is not None:
                self._fence_parts.append(event.content)
            else:
                self._append(Token("text", "", 0, content=event.content))
        elif isinstance(event, RawHtml):
            if self.in_inline:
                self._append(Token("html_inline", "", 0, content=event.content))
            else:
                content = event.content if event.content.endswith("\n") else event.content + "\n"
                self._append(Token("html_block", "", 0, content=content, block=True))
        elif isinstance(event, InlineMath):
            self._append(Token("math_inline", "math", 0, content=event.content, markup="$"))
        elif isinstance(event, DisplayMath):
            if self.in_inline:
                self._append(Token("math_inline_double", "math", 0, content=event.content, markup="$$"))
            else:
                self._append(Token("math_block", "math", 0, content=event.content, markup="$$", block=True))
        else:
            self._append(event.token)

    def _start(self, event: Start) -> None:
        if event.tag == INLINE:
            self._inline_token = event.token or Token("inline", "", 0)
            self._inline_children = []
        elif event.tag == CODE_BLOCK:
            self._fence_token = event.token or Token("fence", "code", 0, info=event.info, markup="```", block=True)
            self._fence_parts = []
        else:
            raise RenderError(f"Unsupported start event: {event.tag!r}")

    def _end(self, event: End) -> None:
        if event.tag == INLINE and self._inline_token is not None:
            self.tokens.append(self._inline_token.copy(children=self._inline_children))
            self._inline_token = None
            self._inline_children = []
        elif event.tag == CODE_BLOCK and self._fence_token is not None:
            self._append(self._fence_token.copy(content="".join(self._fence_parts)))
            self._fence_token = None
            self._fence_parts = []
        else:
            raise RenderError(f"Unmatched end event: {event.tag!r}")

    def finish(self) -> list[Token]:
        if self._inline_token is not None or self._fence_token is not None:
            raise RenderError("Event stream ended inside an open block")
        return self.tokens


def render_events(events: Iterable[Event], env: dict | None = None) -> str:
    """Serialize an event stream to HTML with the parser's renderer."""
    builder = _TokenBuilder()
    for event in events:
        builder.feed(event)
    md = get_parser()
    return md.renderer.render(builder.finish(), md.options, {} if env is None else env)
