"""Content analysis prompt templates.

Examples:
    >>> from accessimind.prompts.analyze import get_prompt, AnalysisType
    >>> prompt = get_prompt(page_text, analysis_type=AnalysisType.SENTIMENT)
"""

from enum import Enum

from accessimind.prompts.utils import truncate, url_header

CONTENT_MAX_CHARS = 5000


class AnalysisType(str, Enum):
    """Analysis modes offered in the toolbar."""

    GENERAL = "general"
    SENTIMENT = "sentiment"
    KEYPOINTS = "keypoints"
    STRUCTURE = "structure"


# (task line, requirement lines)
INSTRUCTIONS: dict[AnalysisType, tuple[str, str]] = {
    AnalysisType.GENERAL: (
        "Give a general analysis of the following web page content.",
        "- Topic, purpose and important points",
    ),
    AnalysisType.SENTIMENT: (
        "Analyze the sentiment of the following content (positive/negative/neutral).",
        "- Sentiment classification\n- Short explanation",
    ),
    AnalysisType.KEYPOINTS: (
        "Extract the key points of the following content.",
        "- Bulleted, short and concise",
    ),
    AnalysisType.STRUCTURE: (
        "Analyze the structure of the following content (headings, sections, flow).",
        "- Structural summary\n- Assessment of the logical flow",
    ),
}

USER_PROMPT_TEMPLATE = """{header}{task}

Content (first 5000 characters):
{content}

Requirements:
{requirements}"""


def parse_analysis_type(value: str | AnalysisType | None) -> AnalysisType:
    """Map a raw analysis type to the enum; unknown values mean general."""
    try:
        return AnalysisType(value)
    except ValueError:
        return AnalysisType.GENERAL


def get_prompt(
    content: str,
    url: str | None = None,
    analysis_type: str | AnalysisType | None = AnalysisType.GENERAL,
) -> str:
    """Get the prompt for analyzing page content.

    Args:
        content: Page text
        url: Page URL (optional)
        analysis_type: general, sentiment, keypoints or structure

    Returns:
        Formatted prompt
    """
    task, requirements = INSTRUCTIONS[parse_analysis_type(analysis_type)]
    return USER_PROMPT_TEMPLATE.format(
        header=url_header(url),
        task=task,
        content=truncate(content, CONTENT_MAX_CHARS),
        requirements=requirements,
    )
