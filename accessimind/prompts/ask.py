"""Question-answering prompt template."""

from accessimind.prompts.utils import truncate, url_header

CONTENT_MAX_CHARS = 8000

USER_PROMPT_TEMPLATE = """{header}Answer the question based on the following web page content.

Question:
{question}

Content (first 8000 characters):
{content}

Requirements:
- A clear and accurate answer
- Use evidence or quotes from the content
- If the page does not contain the answer, say so"""


def get_prompt(question: str, content: str, url: str | None = None) -> str:
    """Get the prompt for answering a question about a page.

    Args:
        question: The user's question
        content: Page text
        url: Page URL (optional)

    Returns:
        Formatted prompt
    """
    return USER_PROMPT_TEMPLATE.format(
        header=url_header(url),
        question=question,
        content=truncate(content, CONTENT_MAX_CHARS),
    )
