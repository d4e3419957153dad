"""Page summary prompt templates.

Examples:
    >>> from accessimind.prompts.summarize import get_prompt, SummaryType
    >>> prompt = get_prompt(page_text, "https://example.com", SummaryType.DETAILED)
"""

from enum import Enum

from accessimind.prompts.utils import truncate, url_header

CONTENT_MAX_CHARS = 8000


class SummaryType(str, Enum):
    """Summary styles offered in the toolbar."""

    BRIEF = "brief"
    DETAILED = "detailed"
    KEY_POINTS = "key-points"


BRIEF_TEMPLATE = """{header}Summarize the following web page briefly and clearly.

Content (first 8000 characters):
{content}

Requirements:
- 3-5 sentences
- Turkish, plain language"""

DETAILED_TEMPLATE = """{header}Write a detailed summary of the following web page content.

Content (first 8000 characters):
{content}

Requirements:
- Split into sections
- Highlight the important points
- Add examples and explanations"""

KEY_POINTS_TEMPLATE = """{header}Extract the key points of the following content as a bulleted list.

Content (first 8000 characters):
{content}

Requirements:
- Short, clear bullet points
- At most 10 bullets"""

TEMPLATES: dict[SummaryType, str] = {
    SummaryType.BRIEF: BRIEF_TEMPLATE,
    SummaryType.DETAILED: DETAILED_TEMPLATE,
    SummaryType.KEY_POINTS: KEY_POINTS_TEMPLATE,
}


def parse_summary_type(value: str | SummaryType | None) -> SummaryType:
    """Map a raw summary type to the enum; unknown values mean brief."""
    try:
        return SummaryType(value)
    except ValueError:
        return SummaryType.BRIEF


def get_prompt(
    content: str,
    url: str | None = None,
    summary_type: str | SummaryType | None = SummaryType.BRIEF,
) -> str:
    """Get the prompt for summarizing a page.

    Args:
        content: Page text
        url: Page URL (optional)
        summary_type: brief, detailed or key-points

    Returns:
        Formatted prompt
    """
    template = TEMPLATES[parse_summary_type(summary_type)]
    return template.format(
        header=url_header(url),
        content=truncate(content, CONTENT_MAX_CHARS),
    )
