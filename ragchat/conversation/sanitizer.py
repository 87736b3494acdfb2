"""
Cleans chat message text before it is sent to a model.

Messages typed in the rich-text chat input arrive as HTML: paragraphs, file
mention spans and pasted images. Those are reduced to plain text. Messages
that are already plain text (model replies, CLI input) are left alone apart
from directive removal, so code such as ``List<String>`` survives.
"""

import re

from bs4 import BeautifulSoup

from ..context.directives import strip_directives

# Markup produced by the chat input rather than by code in a message
_EDITOR_MARKUP = re.compile(
    r'^\s*<(p|div|pre|span|img|br|h[1-6]|ul|ol|blockquote)\b'
    r'|<img\b'
    r'|<span[^>]*data-type="mention"',
    re.IGNORECASE
)

_BLOCK_TAGS = ["p", "div", "pre", "li", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"]


def is_editor_markup(text: str) -> bool:
    """
    Whether ``text`` came from the rich-text chat input.

    Only such text is parsed as HTML, so entities are unescaped there alone.
    Plain text keeps ``&amp;`` and friends as typed; unescaping it too would
    turn ``&amp;lt;`` into ``<`` over two passes.
    """
    return bool(_EDITOR_MARKUP.search(text))


def html_to_text(markup: str) -> str:
    """Plain text of chat-input HTML with images dropped and mentions collapsed."""
    soup = BeautifulSoup(markup, "html.parser")

    for img in soup.find_all("img"):
        img.decompose()

    for mention in soup.find_all("span", attrs={"data-type": "mention"}):
        mention.replace_with(mention.get_text())

    for br in soup.find_all("br"):
        br.replace_with("\n")

    for block in soup.find_all(_BLOCK_TAGS):
        block.append("\n")

    # get_text() also unescapes entities
    return soup.get_text()


def sanitize_text(text: str) -> str:
    """
    Reduce message text to what the model should see.

    Applying this to its own output returns the same string.
    """
    if not text:
        return ""
    if is_editor_markup(text):
        text = html_to_text(text)
    return strip_directives(text).strip()
