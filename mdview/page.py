"""HTML page shell hosting a rendered fragment inside the web view.

The shell supplies what the fragment expects from its host: styling, the
``handleMarkdownLinkClick`` bridge, alert icons, and loaders that hand the
``preprocessed-*`` placeholders to Mermaid and MathJax.
"""

from __future__ import annotations

import html
import json
from urllib.parse import parse_qs, quote, unquote, urlsplit

LINK_SCHEME = "mdview-link"

ALERT_ICONS = {
    "note": "ℹ️",
    "tip": "\U0001f4a1",
    "important": "❗",
    "warning": "⚠️",
    "caution": "⛔",
}

PAGE_CSS = """
    :root {
      color-scheme: light dark;
      --fg: #1f2937;
      --bg: #f9fafb;
      --code-bg: #e5e7eb;
      --border: #d1d5db;
      --link: #0b57d0;
      --invalid-link: #9ca3af;
      --alert-note: #2563eb;
      --alert-tip: #16a34a;
      --alert-important: #7c3aed;
      --alert-warning: #d97706;
      --alert-caution: #dc2626;
    }
    @media (prefers-color-scheme: dark) {
      :root {
        --fg: #e5e7eb;
        --bg: #111827;
        --code-bg: #1f2937;
        --border: #374151;
        --link: #8ab4f8;
        --invalid-link: #6b7280;
        --alert-note: #60a5fa;
        --alert-tip: #4ade80;
        --alert-important: #a78bfa;
        --alert-warning: #fbbf24;
        --alert-caution: #f87171;
      }
    }
    html, body {
      margin: 0;
      padding: 0;
      background: var(--bg);
      color: var(--fg);
      font-family: "Noto Sans", "DejaVu Sans", sans-serif;
      line-height: 1.55;
      font-size: 16px;
    }
    article.markdown-body {
      max-width: 980px;
      margin: 0 auto;
      padding: 1.1rem 1.4rem 4rem 1.4rem;
    }
    a, .md-link {
      color: var(--link);
    }
    .md-link {
      cursor: pointer;
      text-decoration: underline;
    }
    .md-link-invalid {
      color: var(--invalid-link);
      text-decoration-style: dotted;
    }
    pre, code {
      font-family: "Noto Sans Mono", "DejaVu Sans Mono", monospace;
    }
    code {
      background: var(--code-bg);
      border-radius: 4px;
      padding: 0.1rem 0.35rem;
    }
    pre {
      background: var(--code-bg);
      border: 1px solid var(--border);
      border-radius: 6px;
      padding: 0.8rem;
      overflow: auto;
    }
    pre > code {
      background: transparent;
      padding: 0;
    }
    table {
      border-collapse: collapse;
    }
    th, td {
      border: 1px solid var(--border);
      padding: 0.4rem 0.6rem;
    }
    img {
      max-width: 100%;
    }
    .mermaid svg {
      max-width: 100%;
      height: auto;
    }
    .markdown-alert {
      margin: 0.8rem 0;
      padding: 0.45rem 0.9rem;
      border-left: 0.32rem solid var(--alert-note);
      border-radius: 4px;
    }
    .markdown-alert-title {
      font-weight: 650;
      margin: 0.2rem 0;
    }
    .alert-icon {
      margin-right: 0.4rem;
    }
    .markdown-alert-tip { border-left-color: var(--alert-tip); }
    .markdown-alert-important { border-left-color: var(--alert-important); }
    .markdown-alert-warning { border-left-color: var(--alert-warning); }
    .markdown-alert-caution { border-left-color: var(--alert-caution); }
"""

CLIENT_SCRIPT = """
    window.handleMarkdownLinkClick = (path, button) => {
      window.location.href = "__SCHEME__:" + encodeURIComponent(path) + "?button=" + button;
    };

    const loadScript = async (sources, ready) => {
      for (const src of sources) {
        try {
          await new Promise((resolve, reject) => {
            const script = document.createElement("script");
            script.src = src;
            script.onload = () => resolve(true);
            script.onerror = () => reject(new Error(`Failed to load ${src}`));
            document.head.appendChild(script);
          });
          if (ready()) {
            return true;
          }
        } catch (error) {
          console.error("mdview script load failed:", src, error);
        }
      }
      return false;
    };

    const fillAlertIcons = () => {
      for (const icon of document.querySelectorAll("span.alert-icon")) {
        const glyph = window.__mdviewAlertIcons[icon.dataset.alertType];
        if (glyph && !icon.textContent) {
          icon.textContent = glyph;
        }
      }
    };

    const renderMermaid = async () => {
      const blocks = document.querySelectorAll("pre.preprocessed-mermaid");
      if (!blocks.length) {
        return;
      }
      if (!(await loadScript(window.__mdviewMermaidSources, () => !!window.mermaid))) {
        return;
      }
      const dark = window.matchMedia("(prefers-color-scheme: dark)").matches;
      mermaid.initialize({ startOnLoad: false, theme: dark ? "dark" : "default" });
      for (const block of blocks) {
        const target = document.createElement("div");
        target.className = "mermaid";
        target.textContent = block.getAttribute("data-original-content") || "";
        block.replaceWith(target);
      }
      await mermaid.run({ querySelector: "div.mermaid" });
    };

    const renderMath = async () => {
      const inline = document.querySelectorAll(".preprocessed-math-inline");
      const display = document.querySelectorAll(".preprocessed-math-display, pre.preprocessed-math");
      if (!inline.length && !display.length) {
        return;
      }
      for (const node of inline) {
        node.textContent = "\\\\(" + (node.getAttribute("data-original-content") || "") + "\\\\)";
      }
      for (const node of display) {
        const target = document.createElement("div");
        target.className = "math-display";
        target.textContent = "\\\\[" + (node.getAttribute("data-original-content") || "") + "\\\\]";
        node.replaceWith(target);
      }
      window.MathJax = { startup: { typeset: false } };
      if (await loadScript(window.__mdviewMathJaxSources, () => !!(window.MathJax && MathJax.typesetPromise))) {
        await MathJax.typesetPromise();
      }
    };

    document.addEventListener("DOMContentLoaded", () => {
      fillAlertIcons();
      renderMermaid().catch((error) => console.error("mdview mermaid render failed:", error));
      renderMath().catch((error) => console.error("mdview math render failed:", error));
    });
"""


def build_page(
    fragment: str,
    title: str,
    *,
    mathjax_sources: list[str] | None = None,
    mermaid_sources: list[str] | None = None,
) -> str:
    """Wrap a rendered fragment in a complete HTML document."""
    script = CLIENT_SCRIPT.replace("__SCHEME__", LINK_SCHEME)
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{html.escape(title)}</title>
  <style>{PAGE_CSS}  </style>
  <script>
    window.__mdviewAlertIcons = {json.dumps(ALERT_ICONS)};
    window.__mdviewMathJaxSources = {json.dumps(mathjax_sources or [])};
    window.__mdviewMermaidSources = {json.dumps(mermaid_sources or [])};
{script}  </script>
</head>
<body>
<article class="markdown-body">
{fragment}
</article>
</body>
</html>
"""


def placeholder_page(message: str) -> str:
    """Render an empty-state page."""
    escaped = html.escape(message)
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <style>
    html, body {{
      margin: 0;
      height: 100%;
      background: #0f172a;
      color: #cbd5e1;
      font-family: "Noto Sans", "DejaVu Sans", sans-serif;
    }}
    main {{
      height: 100%;
      display: grid;
      place-items: center;
      font-size: 1rem;
    }}
  </style>
</head>
<body><main>{escaped}</main></body>
</html>
"""


def plain_text_page(text: str, title: str) -> str:
    """Fallback page showing the raw document when rendering fails."""
    fragment = f'<pre class="plain-text">{html.escape(text)}</pre>'
    return build_page(fragment, title)


def link_url(path: str, button: int) -> str:
    """Bridge URL for a link click, as built by the page script."""
    return f"{LINK_SCHEME}:{quote_component(path)}?button={button}"


def quote_component(value: str) -> str:
    """Percent-encode like JavaScript's ``encodeURIComponent``."""
    return quote(value, safe="-_.!~*'()")


def parse_link_url(url: str) -> tuple[str, int] | None:
    """Decode a bridge URL into ``(path, button)``; ``None`` for other URLs."""
    parts = urlsplit(url)
    if parts.scheme != LINK_SCHEME:
        return None
    query = parse_qs(parts.query)
    try:
        button = int(query.get("button", ["0"])[0])
    except ValueError:
        button = 0
    return unquote(parts.path), button
