"""Text helpers shared by the prompt templates."""

import re

SANITIZE_MAX_CHARS = 500

_NEWLINES = re.compile(r"[\n\r]+")


def truncate(text: str | None, limit: int) -> str:
    """Cut text to at most ``limit`` characters."""
    return (text or "")[:limit]


def sanitize_for_prompt(value: object, limit: int = SANITIZE_MAX_CHARS) -> str:
    """Flatten a value onto one line for interpolation into a prompt.

    Newlines are collapsed to single spaces and the result is capped at
    ``limit`` characters, so page-controlled strings cannot inject
    extra prompt lines.

    Examples:
        >>> sanitize_for_prompt("Home\\nAbout")
        'Home About'
    """
    if value is None:
        return ""
    return _NEWLINES.sub(" ", str(value))[:limit]


def url_header(url: str | None) -> str:
    """Leading ``URL:`` block, empty when no URL is known."""
    return f"URL: {url}\n\n" if url else ""
