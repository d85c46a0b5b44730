"""User configuration: last opened document and client script locations.

The config file is a single line holding the path of the last document that
was opened. Environment variables point at local Mermaid/MathJax bundles; the
CDN copies are used as fallbacks.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILE_NAME = ".mdview.cfg"
MATHJAX_ENV = "MDVIEW_MATHJAX_JS"
MERMAID_ENV = "MDVIEW_MERMAID_JS"
LOG_LEVEL_ENV = "MDVIEW_LOG_LEVEL"
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")
MATHJAX_CDN_SOURCES = (
    "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-svg.js",
    "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js",
)
MERMAID_CDN_SOURCES = ("https://cdn.jsdelivr.net/npm/mermaid@11/dist/mermaid.min.js",)


def config_file_path() -> Path:
    return Path.home() / CONFIG_FILE_NAME


def load_last_document(cfg_path: Path | None = None) -> Path | None:
    """Return the remembered document if it still exists."""
    cfg_path = cfg_path or config_file_path()
    try:
        if not cfg_path.exists():
            return None
        raw = cfg_path.read_text(encoding="utf-8").strip()
        if not raw:
            return None
        candidate = Path(raw).expanduser()
        if candidate.is_file():
            return candidate.resolve()
    except (OSError, ValueError):
        # Any read/parse/access issue means there is nothing to restore.
        pass
    return None


def save_last_document(path: Path, cfg_path: Path | None = None) -> bool:
    cfg_path = cfg_path or config_file_path()
    try:
        cfg_path.write_text(f"{path.resolve()}\n", encoding="utf-8")
    except OSError:
        return False
    return True


def log_level() -> str:
    level = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    return level if level in LOG_LEVELS else "WARNING"


def _resolve_local_script(env_name: str, relative_candidates: list[Path], system_candidates: list[Path]) -> Path | None:
    """Locate a local script bundle from env, the app directory, or system paths."""
    env_value = os.environ.get(env_name, "").strip()
    candidates: list[Path] = []
    if env_value:
        candidates.append(Path(env_value).expanduser())

    app_dir = Path(__file__).resolve().parent
    candidates.extend(app_dir / candidate for candidate in relative_candidates)
    candidates.extend(system_candidates)

    for candidate in candidates:
        try:
            if candidate.is_file():
                return candidate.resolve()
        except OSError:
            continue
    return None


def resolve_local_mathjax_script() -> Path | None:
    return _resolve_local_script(
        MATHJAX_ENV,
        [
            Path("vendor/mathjax/es5/tex-svg.js"),
            Path("vendor/mathjax/es5/tex-mml-chtml.js"),
        ],
        [
            Path("/usr/share/javascript/mathjax/es5/tex-svg.js"),
            Path("/usr/share/mathjax/es5/tex-svg.js"),
            Path("/usr/share/nodejs/mathjax/es5/tex-svg.js"),
        ],
    )


def resolve_local_mermaid_script() -> Path | None:
    return _resolve_local_script(
        MERMAID_ENV,
        [
            Path("vendor/mermaid/mermaid.min.js"),
            Path("vendor/mermaid/dist/mermaid.min.js"),
        ],
        [
            Path("/usr/share/javascript/mermaid/mermaid.min.js"),
            Path("/usr/share/nodejs/mermaid/dist/mermaid.min.js"),
        ],
    )


def _script_sources(local: Path | None, cdn_sources: tuple[str, ...]) -> list[str]:
    sources: list[str] = []
    if local is not None:
        sources.append(local.as_uri())
    sources.extend(cdn_sources)
    # Keep order while dropping duplicates.
    return list(dict.fromkeys(sources))


def mathjax_script_sources() -> list[str]:
    """Return local-first MathJax script URLs with CDN fallback."""
    return _script_sources(resolve_local_mathjax_script(), MATHJAX_CDN_SOURCES)


def mermaid_script_sources() -> list[str]:
    """Return local-first Mermaid script URLs with CDN fallback."""
    return _script_sources(resolve_local_mermaid_script(), MERMAID_CDN_SOURCES)
