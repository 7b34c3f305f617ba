"""Fenced code annotations and code block HTML.

An annotation is the fence info string, ``lang{ranges}:filename [title=Label]``,
where every part after the language is optional but must appear in that
order. ``ranges`` is a comma-separated list of line numbers or ``a-b`` spans,
e.g. ``ts{1,3-4}:app.ts [title=App]``.
"""

import hashlib
import re
from dataclasses import dataclass

from markdown_it.common.utils import escapeHtml

DEFAULT_LANGUAGE = "txt"

LANGUAGE_ICONS = {
    "bash": "shell",
    "sh": "shell",
    "ps": "shell",
    "html": "code-purple",
    "sv": "code-purple",
    "js": "code-purple",
    "css": "code-purple",
    "graphql": "code-purple",
    "ts": "typescript",
    "json": "brackets-purple",
    "xml": "brackets-purple",
    "txt": "text",
    "diff": "text",
    "yml": "yaml",
    "yaml": "yaml",
    "cs": "csharp",
    "sql": "database",
    "svelte": "svelte",
    "md": "markdown",
}
DEFAULT_ICON = "code-purple"

HIGHLIGHT_ALIASES = {
    "cs": "csharp",
    "yml": "yaml",
}

_TITLE_RE = re.compile(r"\s*\[title=(?P<title>[^\]]*)\]\s*$")
_ANNOTATION_RE = re.compile(
    r"^(?P<language>[\w#+.-]*)\s*"
    r"(?P<ranges>(?:\{[^{}]*\}\s*)*)"
    r"(?::\s*(?P<filename>[^{}\s][^{}]*?)?\s*(?P<file_ranges>(?:\{[^{}]*\}\s*)*))?$"
)
_BRACES_RE = re.compile(r"\{([^{}]*)\}")
_SPAN_RE = re.compile(r"^(\d+)(?:\s*-\s*(\d+))?$")


class AnnotationError(ValueError):
    """Raised when a fence info string does not follow the annotation grammar."""

    def __init__(self, info: str, reason: str) -> None:
        self.info = info
        self.reason = reason
        super().__init__(f"Cannot parse code annotation '{info}': {reason}")


@dataclass(frozen=True)
class CodeAnnotation:
    language: str = DEFAULT_LANGUAGE
    filename: str | None = None
    highlight: tuple[int, ...] = ()
    title: str | None = None

    @property
    def tab_label(self) -> str:
        """Label used when the block sits in a code group."""
        return self.title or self.filename or self.language

    @property
    def highlight_language(self) -> str:
        return HIGHLIGHT_ALIASES.get(self.language, self.language)

    @property
    def icon(self) -> str:
        return LANGUAGE_ICONS.get(self.language, DEFAULT_ICON)


def _parse_ranges(info: str, groups: str) -> set[int]:
    lines: set[int] = set()
    for body in _BRACES_RE.findall(groups):
        if not body.strip():
            raise AnnotationError(info, "empty line range")
        for part in body.split(","):
            match = _SPAN_RE.match(part.strip())
            if not match:
                raise AnnotationError(info, f"invalid line range '{part.strip()}'")
            start = int(match.group(1))
            end = int(match.group(2) or start)
            if start < 1 or end < start:
                raise AnnotationError(info, f"invalid line range '{part.strip()}'")
            lines.update(range(start, end + 1))
    return lines


def parse_annotation(info: str | None) -> CodeAnnotation:
    """Parse a fence info string.

    Raises:
        AnnotationError: If the info string does not follow the grammar.

    """
    text = (info or "").strip()
    if not text:
        return CodeAnnotation()

    title: str | None = None
    title_match = _TITLE_RE.search(text)
    if title_match:
        title = title_match.group("title").strip() or None
        text = text[: title_match.start()]

    match = _ANNOTATION_RE.match(text)
    if match is None:
        raise AnnotationError(info or "", "unexpected characters")

    highlight = _parse_ranges(text, match.group("ranges") or "")
    highlight |= _parse_ranges(text, match.group("file_ranges") or "")
    filename = (match.group("filename") or "").strip() or None

    return CodeAnnotation(
        language=match.group("language") or DEFAULT_LANGUAGE,
        filename=filename,
        highlight=tuple(sorted(highlight)),
        title=title,
    )


def code_block_id(source: str) -> str:
    """Stable id derived from the block's content."""
    return hashlib.md5(source.encode("utf-8"), usedforsecurity=False).hexdigest()


def _source_lines(source: str) -> list[str]:
    return source.removesuffix("\n").split("\n")


def render_code_block(source: str, annotation: CodeAnnotation) -> str:
    """Render an annotated code block.

    Colouring is left to the client: each source line becomes one
    ``<span class="line">`` and highlighted lines add ``highlight``.
    """
    block_id = code_block_id(source)
    attributes = [
        f'id="{block_id}"',
        f'class="language-{escapeHtml(annotation.highlight_language)}"',
        f'data-language="{escapeHtml(annotation.language)}"',
        f'data-icon="{annotation.icon}"',
    ]
    if annotation.filename:
        attributes.append(f'data-file="{escapeHtml(annotation.filename)}"')
    if annotation.highlight:
        attributes.append(f'data-highlight="{",".join(map(str, annotation.highlight))}"')
    if annotation.title:
        attributes.append(f'data-title="{escapeHtml(annotation.title)}"')
    attributes.append('tabindex="-1"')

    heading_parts = [f'<span class="code-icon" data-icon="{annotation.icon}"></span>']
    if annotation.filename:
        heading_parts.append(f'<span class="file-name">{escapeHtml(annotation.filename)}</span>')
    heading_parts.append(
        f'<button class="copy-code" data-ref="{block_id}" aria-label="Copy code">content_paste</button>'
    )
    heading = f'<div class="code-heading">{" ".join(heading_parts)}</div>'

    highlighted = set(annotation.highlight)
    rendered_lines = []
    for number, line in enumerate(_source_lines(source), start=1):
        classes = ["line"]
        if number in highlighted:
            classes.append("highlight")
        if not line.strip():
            classes.append("empty")
        rendered_lines.append(f'<span class="{" ".join(classes)}">{escapeHtml(line)}</span>')

    code_class = ' class="dim"' if highlighted else ""
    code = f"<code{code_class}>" + "\n".join(rendered_lines) + "</code>"
    return f"<pre {' '.join(attributes)}>{heading}{code}</pre>\n"


def render_plain_block(source: str) -> str:
    """Render a code block without any annotation metadata."""
    return f"<pre><code>{escapeHtml(source)}</code></pre>\n"
