"""Agent browsing step prompt template.

Asks the model to pick the single next action that moves the agent
closest to its goal, answering with JSON only. Every page-controlled
string is flattened to one line before it is interpolated.

Examples:
    >>> from accessimind.prompts.agent_step import get_prompt
    >>> prompt = get_prompt("find the contact page", url, page_text, links)

Tests:
    - tests/unit/test_prompts.py::TestAgentStepPrompt
"""

from collections.abc import Iterable, Mapping
from typing import Any

from accessimind.prompts.utils import sanitize_for_prompt, truncate
from accessimind.schemas.agent import PageLink

TEXT_MAX_CHARS = 2000
MAX_LINKS = 30

NO_LINKS = "- (no links found)"

USER_PROMPT_TEMPLATE = """You are an accessibility-focused web browsing agent. Goal: "{goal}".
URL: {url}
Text Excerpt (first ~2000 characters):
{text}

Available Links (first 30):
{links}

Plan only the next action and RETURN it as JSON. DO NOT add any other text.
Available actions and params:
- CLICK_LINK_BY_TEXT {{ "text": "..." }}
- SCROLL_DOWN {{}}
- SCROLL_UP {{}}
- TYPE_IN_INPUT_AND_SUBMIT {{ "query": "field name/placeholder/label", "value": "..." }}
- WAIT {{ "ms": 800 }}
- DONE {{}}
Response schema:
{{ "action": "...", "params": {{ ... }}, "explanation": "(short reason and expected outcome)" }}
Selection criterion: choose the single step that advances the goal the most."""


def _as_link(link: PageLink | Mapping[str, Any] | str) -> PageLink:
    if isinstance(link, PageLink):
        return link
    if isinstance(link, Mapping):
        return PageLink(text=str(link.get("text") or ""), href=str(link.get("href") or ""))
    # Bare entries are treated as hrefs
    return PageLink(href=str(link))


def format_links(links: Iterable[PageLink | Mapping[str, Any] | str] | None) -> str:
    """Render at most 30 links as a numbered list."""
    lines = []
    for i, link in enumerate(list(links or [])[:MAX_LINKS], start=1):
        link = _as_link(link)
        lines.append(
            f"- [{i}] {sanitize_for_prompt(link.text)} => {sanitize_for_prompt(link.href)}"
        )
    return "\n".join(lines) or NO_LINKS


def get_prompt(
    goal: str,
    url: str | None = None,
    text: str | None = None,
    links: Iterable[PageLink | Mapping[str, Any] | str] | None = None,
) -> str:
    """Get the prompt for planning the next agent step.

    Args:
        goal: What the user wants the agent to achieve
        url: Current page URL
        text: Visible page text (excerpt of 2000 characters is used)
        links: Links on the page, as PageLink, ``{"text", "href"}`` dicts or bare hrefs

    Returns:
        Formatted prompt
    """
    return USER_PROMPT_TEMPLATE.format(
        goal=sanitize_for_prompt(goal),
        url=sanitize_for_prompt(url),
        text=sanitize_for_prompt(truncate(text, TEXT_MAX_CHARS), TEXT_MAX_CHARS),
        links=format_links(links),
    )
