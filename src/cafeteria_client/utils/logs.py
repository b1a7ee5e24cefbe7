from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    What it does:
    - Configures root logging for command-line runs.

    Behavior:
    - Unknown level names fall back to INFO.
    - Playwright's own logger is capped at WARNING so request traces stay readable.
    """
    numeric = logging.getLevelName(str(level).upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    logging.basicConfig(level=numeric, format=_FORMAT, datefmt="%H:%M:%S")
    logging.getLogger("playwright").setLevel(max(numeric, logging.WARNING))


def html_snippet(html: str, limit: int = 300) -> str:
    """Collapses whitespace and truncates an HTML page for log messages."""
    text = " ".join((html or "").split())
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
