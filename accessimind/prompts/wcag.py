"""WCAG accessibility audit prompt template.

Produces either an element-by-element WCAG 2.1 AA audit or a list of
concrete improvement suggestions for the current page.

Examples:
    >>> from accessimind.prompts.wcag import get_prompt, WCAGMode
    >>> prompt = get_prompt("https://example.com", html=page_html, mode=WCAGMode.IMPROVEMENTS)
"""

import json
import logging
from enum import Enum
from typing import Any

from accessimind.prompts.utils import sanitize_for_prompt, truncate

logger = logging.getLogger(__name__)

HTML_MAX_CHARS = 8000
TEXT_MAX_CHARS = 6000
SNAPSHOT_MAX_CHARS = 8000

TARGET_LEVEL = "AA"


class WCAGMode(str, Enum):
    """Audit output modes."""

    ELEMENTS = "elements"
    IMPROVEMENTS = "improvements"


MODE_TASKS: dict[WCAGMode, str] = {
    WCAGMode.ELEMENTS: "Perform an element-level WCAG 2.1 audit and identify the issues.",
    WCAGMode.IMPROVEMENTS: "Produce actionable improvement suggestions for element-level issues.",
}

OUTPUT_FORMAT = """Required Output Format:
- Title: "WCAG Element Analysis" or "WCAG Improvement Suggestions"
- A bulleted list of issues/suggestions
- For each item: Element (tag/role/id or text), related WCAG criterion (e.g. 1.1.1, 2.4.4), Impact (High/Medium/Low), Description, Recommendation
- A short summary and prioritized to-do list
Constraints: Do not guess color contrast values that are not given; evaluate from the text and snapshot."""


def parse_mode(value: str | WCAGMode | None) -> WCAGMode:
    """Map a raw mode to the enum; anything but improvements means elements."""
    try:
        return WCAGMode(value)
    except ValueError:
        return WCAGMode.ELEMENTS


def _snapshot_json(snapshot: Any) -> str:
    if not snapshot:
        return ""
    try:
        return json.dumps(snapshot, ensure_ascii=False, default=str)[:SNAPSHOT_MAX_CHARS]
    except (TypeError, ValueError) as e:
        logger.debug(f"Accessibility snapshot not serializable: {e}")
        return ""


def get_prompt(
    url: str,
    html: str | None = None,
    text: str | None = None,
    snapshot: Any = None,
    mode: str | WCAGMode | None = WCAGMode.ELEMENTS,
) -> str:
    """Get the prompt for a WCAG audit.

    Args:
        url: Page URL
        html: Page HTML (truncated to 8000 characters)
        text: Visible page text (truncated to 6000 characters)
        snapshot: Accessibility snapshot, serialized as JSON (truncated to 8000)
        mode: elements or improvements

    Returns:
        Formatted prompt
    """
    html = truncate(html, HTML_MAX_CHARS)
    text = truncate(text, TEXT_MAX_CHARS)
    snapshot_str = _snapshot_json(snapshot)

    parts = [
        f"URL: {sanitize_for_prompt(url)}\nWCAG Target Level: {TARGET_LEVEL}\n\n",
        f"Task: {MODE_TASKS[parse_mode(mode)]}\n",
        "Context: This is an accessibility-focused browser. Give the results in TURKISH.\n\n",
    ]
    if html:
        parts.append(f"HTML (first 8000):\n{html}\n\n")
    if text:
        parts.append(f"Text (first 6000):\n{text}\n\n")
    if snapshot_str:
        parts.append(f"Accessibility Snapshot (summary):\n{snapshot_str}\n\n")
    parts.append(OUTPUT_FORMAT)
    return "".join(parts)
