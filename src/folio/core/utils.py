"""Text helpers shared across the pipeline."""

import html
import re
from unicodedata import normalize

from markupsafe import Markup

_TAG_RE = re.compile(r"<[^>]+>")
_WORD_RE = re.compile(r"[\w'’-]+")
_XML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}
_XML_RE = re.compile("[&<>\"']")


def slugify(text: str, max_len: int = 60) -> str:
    """Convert text to a safe URL-friendly slug.

    Args:
        text: Input text to slugify
        max_len: Maximum length of output slug (default 60)

    Returns:
        Safe slug string suitable for filenames and URLs

    Examples:
        >>> slugify("Hello World")
        'hello-world'
        >>> slugify("Café")
        'cafe'
        >>> slugify("A" * 100, max_len=20)
        'aaaaaaaaaaaaaaaaaaaa'

    """
    # Normalize unicode (NFKD) and convert to ASCII
    normalized = normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()

    slug = re.sub(r"[^a-z0-9]+", "-", normalized)
    slug = slug.strip("-")
    slug = re.sub(r"-+", "-", slug)

    if not slug:
        return "untitled"

    if len(slug) > max_len:
        slug = slug[:max_len].rstrip("-")

    return slug


def heading_slug(text: str) -> str:
    """Build the fragment identifier used for heading anchors.

    Unlike :func:`slugify`, ampersands become ``-and-``, commas and dots are
    dropped instead of turned into separators, and underscores survive.

    Examples:
        >>> heading_slug("Tips & Tricks")
        'tips-and-tricks'
        >>> heading_slug("Using `ng.module`, again")
        'using-ngmodule-again'

    """
    text = html.unescape(text).replace("`", "")
    text = normalize("NFKD", text).encode("ascii", "ignore").decode("ascii").lower()
    text = text.replace(",", "").replace(".", "")
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"[/:;·]", "-", text)
    text = text.replace("&", "-and-")
    text = re.sub(r"[^\w-]+", "", text)
    text = re.sub(r"-{2,}", "-", text)
    return text.strip("-")


def tag_key(tag: str) -> str:
    """Return the case-insensitive identity of a tag."""
    return tag.strip().lower()


def escape_xml(value: object) -> Markup:
    """Escape the five XML-reserved characters.

    Returns a :class:`~markupsafe.Markup` so autoescaping templates do not
    escape the result a second time.
    """
    text = "" if value is None else str(value)
    return Markup(_XML_RE.sub(lambda match: _XML_ESCAPES[match.group(0)], text))


def strip_tags(markup: str) -> str:
    """Return the text content of an HTML fragment."""
    return html.unescape(_TAG_RE.sub(" ", markup))


def count_words(text: str) -> int:
    return len(_WORD_RE.findall(text))


def first_paragraph(markup: str, max_length: int = 200) -> str:
    """Extract a plain-text summary from the first ``<p>`` of rendered HTML."""
    match = re.search(r"<p>(.*?)</p>", markup, re.DOTALL)
    if not match:
        return ""
    text = " ".join(strip_tags(match.group(1)).split())
    if len(text) > max_length:
        text = text[: max_length - 3].rsplit(" ", 1)[0] + "..."
    return text
