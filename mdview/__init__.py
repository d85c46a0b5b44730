"""Render a markdown document to an HTML fragment for an embedded web view."""

from loguru import logger

from mdview.engine import render_fragment, render_to_html
from mdview.errors import MdviewError, RenderError

__version__ = "0.1.0"

__all__ = ["MdviewError", "RenderError", "render_fragment", "render_to_html"]

# Silent as a library until an entry point calls log.configure_logging().
logger.disable("mdview")
