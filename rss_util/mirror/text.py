"""
Text helpers for the structured mirror.

- html_to_text: article HTML -> readable plain text
- sanitize_filename: display names -> filesystem-safe file names
"""

import re

from bs4 import BeautifulSoup, Comment

# Tags that start a new paragraph
BLOCK_TAGS = [
    "p", "div", "section", "article", "header", "footer", "main", "aside", "nav",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "blockquote", "pre", "ul", "ol", "dl", "table", "figure", "figcaption",
    "hr", "address",
]

# Tags that end a line
LINE_TAGS = ["li", "dt", "dd", "tr"]

DROP_TAGS = ["script", "style", "noscript", "template"]

_WHITESPACE = re.compile(r"\s+")
_BLANK_RUNS = re.compile(r"\n{3,}")
_INLINE_SPACE = re.compile(r"[ \t\f\v]+")

# Characters not allowed in file names on common filesystems
_FORBIDDEN_CHARS = re.compile(r'[/\\:"*?<>|\x00-\x1f\x7f]')
_SEPARATOR_RUNS = re.compile(r"-{2,}")
_RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    *(f"COM{i}" for i in range(1, 10)),
    *(f"LPT{i}" for i in range(1, 10)),
}

MAX_FILENAME_LENGTH = 100
# Filesystems cap names at 255 bytes; leave room for "-N" and ".md"
MAX_FILENAME_BYTES = 200
FALLBACK_FILENAME = "untitled"


def _tidy(text: str) -> str:
    """Trim each line and keep at most one blank line between paragraphs."""
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")
    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in text.split("\n")]
    text = "\n".join(lines)
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip()


def html_to_text(html: str | None) -> str:
    """
    Convert HTML to plain text, preserving paragraph and line breaks.

    Block-level tags become blank lines, <br> and list items become single
    newlines, inline tags are stripped and character references decoded.
    """
    if not html:
        return ""
    if "<" not in html and "&" not in html:
        return _tidy(html)

    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(DROP_TAGS):
        tag.decompose()

    # Source whitespace is insignificant outside <pre>
    for node in soup.find_all(string=True):
        if isinstance(node, Comment):
            node.extract()
        elif node.find_parent("pre") is None:
            node.replace_with(_WHITESPACE.sub(" ", str(node)))

    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(LINE_TAGS):
        tag.insert_after("\n")
    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_before("\n\n")
        tag.insert_after("\n\n")

    return _tidy(soup.get_text())


def _truncate_bytes(text: str, limit: int) -> str:
    """Cut text to at most limit UTF-8 bytes without splitting a character."""
    encoded = text.encode("utf-8")
    if len(encoded) <= limit:
        return text
    return encoded[:limit].decode("utf-8", errors="ignore")


def sanitize_filename(name: str | None, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """
    Make a display name safe to use as a file or directory name.

    Forbidden characters become "-", whitespace runs become a single "-",
    the result is truncated to max_length characters and MAX_FILENAME_BYTES
    bytes of UTF-8 and is never empty.

    >>> sanitize_filename("A/B: Test")
    'A-B-Test'
    """
    text = _FORBIDDEN_CHARS.sub("-", name or "")
    text = _WHITESPACE.sub("-", text)
    text = _SEPARATOR_RUNS.sub("-", text)
    text = text.strip("-. ")
    text = _truncate_bytes(text[:max_length], MAX_FILENAME_BYTES).rstrip("-. ")
    if not text:
        return FALLBACK_FILENAME
    if text.split(".")[0].upper() in _RESERVED_NAMES:
        text = f"_{text}"
    return text


def unique_name(base: str, taken: set[str]) -> str:
    """
    Pick base, base-2, base-3 ... avoiding names already in taken.

    Comparison is case-insensitive; the chosen name is added to taken.
    """
    candidate = base
    counter = 2
    while candidate.lower() in taken:
        candidate = f"{base}-{counter}"
        counter += 1
    taken.add(candidate.lower())
    return candidate
