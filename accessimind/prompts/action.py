"""Free-form page action prompt template.

Asks the model to carry out a user-described operation on the page
content and return the result directly.

Examples:
    >>> from accessimind.prompts.action import get_prompt
    >>> prompt = get_prompt(page_text, "List every price on this page", url)
"""

from accessimind.prompts.utils import truncate

CONTENT_MAX_CHARS = 8000

CANNOT_PERFORM = "This cannot be done with the page content"

USER_PROMPT_TEMPLATE = """Perform the requested operation on the following web page content:

URL: {url}
Requested Operation: {action}

Content (first 8000 characters):
{content}

Please:
1. Give the result directly without explaining the steps
2. If the operation cannot be done on the page, say "{cannot_perform}"
3. Present the result clearly and in a usable form"""


def get_prompt(content: str, action: str, url: str | None = None) -> str:
    """Get the prompt for performing an operation on a page.

    Args:
        content: Page text
        action: What the user wants done with the content
        url: Page URL (optional)

    Returns:
        Formatted prompt
    """
    return USER_PROMPT_TEMPLATE.format(
        url=url or "",
        action=action,
        content=truncate(content, CONTENT_MAX_CHARS),
        cannot_perform=CANNOT_PERFORM,
    )
