"""Exception types raised by the rendering engine."""

from __future__ import annotations


class MdviewError(Exception):
    """Base class for mdview failures."""


class RenderError(MdviewError):
    """Markdown could not be turned into HTML.

    Raised for the whole document only; per-tag embedding problems never
    surface here.
    """
