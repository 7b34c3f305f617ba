"""Splitting a source file into its canonical document and alternates.

An alternate is a translated or superseded variant kept in the same file
below a sentinel line. It carries its own front matter, is rendered with the
document, and is never listed, fed or mapped on its own.
"""

from collections.abc import Collection

from folio.core.types import FrontMatter

_FENCE_MARKERS = ("```", "~~~")


def split_alternates(raw: str, sentinel: str) -> list[str]:
    """Split ``raw`` on sentinel lines outside fenced code.

    Returns:
        The non-empty segments in source order. The first one is the
        canonical document. Empty when the text holds nothing but sentinels
        and whitespace.

    """
    marker = sentinel.strip()
    segments: list[list[str]] = [[]]
    fence: str | None = None

    for line in raw.splitlines(keepends=True):
        stripped = line.strip()
        if fence is None:
            opening = next((m for m in _FENCE_MARKERS if stripped.startswith(m)), None)
            if opening is not None:
                fence = opening
            elif stripped == marker:
                segments.append([])
                continue
        elif stripped.startswith(fence):
            fence = None
        segments[-1].append(line)

    return [text for text in ("".join(lines) for lines in segments) if text.strip()]


def alternate_label(front_matter: FrontMatter, index: int, taken: Collection[str]) -> str:
    """Key for the ``index``-th alternate (1-based).

    Uses the alternate's ``language``, then its ``label``, then
    ``alternate-N``. A key already in ``taken`` gets a numeric suffix.
    """
    base = front_matter.language or front_matter.label or f"alternate-{index}"
    label = base
    suffix = 2
    while label in taken:
        label = f"{base}-{suffix}"
        suffix += 1
    return label
