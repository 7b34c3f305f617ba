"""Document reader: finds content items on disk and reads their raw text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from folio.core.exceptions import (
    FolioWarning,
    MissingPrimaryDocumentWarning,
    SourceNotFoundError,
    UnreadableDocumentWarning,
)

if TYPE_CHECKING:
    from folio.core.config import PathsSettings
    from folio.core.types import DocumentKind

logger = logging.getLogger(__name__)

PRIMARY_FILENAME = "index.md"
TLDR_FILENAME = "tldr.md"
IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".avif"})


@dataclass(frozen=True)
class SourceItem:
    """One content item directory and the files that belong to it."""

    kind: DocumentKind
    directory: Path
    primary_path: Path
    tldr_path: Path | None = None
    assets: frozenset[str] = frozenset()

    @property
    def name(self) -> str:
        return self.directory.name


@dataclass(frozen=True)
class RawSource:
    text: str
    tldr_text: str | None = None


def _primary_file(directory: Path) -> Path | str:
    """Return the primary markdown file, or the reason there is none."""
    index = directory / PRIMARY_FILENAME
    if index.is_file():
        return index
    candidates = sorted(
        path for path in directory.glob("*.md") if path.is_file() and path.name != TLDR_FILENAME
    )
    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        return "no markdown document in directory"
    return f"{len(candidates)} markdown files and no {PRIMARY_FILENAME}"


def _assets(directory: Path) -> frozenset[str]:
    return frozenset(
        path.relative_to(directory).as_posix()
        for path in directory.rglob("*")
        if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES
    )


def discover_items(kind_dir: Path, kind: DocumentKind) -> tuple[list[SourceItem], list[FolioWarning]]:
    """List the content items of one kind.

    Every sub-directory of ``kind_dir`` is an item. Directories without a
    primary document are skipped with a warning. A missing ``kind_dir`` is an
    empty collection.
    """
    items: list[SourceItem] = []
    warnings: list[FolioWarning] = []
    if not kind_dir.is_dir():
        logger.debug("No %s directory at %s", kind.value, kind_dir)
        return items, warnings

    for directory in sorted(kind_dir.iterdir()):
        if not directory.is_dir() or directory.name.startswith((".", "_")):
            continue
        primary = _primary_file(directory)
        if isinstance(primary, str):
            warnings.append(MissingPrimaryDocumentWarning(str(directory), primary))
            continue
        tldr = directory / TLDR_FILENAME
        items.append(
            SourceItem(
                kind=kind,
                directory=directory,
                primary_path=primary,
                tldr_path=tldr if tldr.is_file() else None,
                assets=_assets(directory),
            )
        )
    return items, warnings


def read_source(item: SourceItem) -> tuple[RawSource | None, list[FolioWarning]]:
    """Read an item's primary document and its TL;DR.

    Returns:
        ``(None, warnings)`` when the primary file cannot be read or is not
        UTF-8. An unreadable TL;DR only drops the TL;DR.

    """
    warnings: list[FolioWarning] = []
    try:
        text = item.primary_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        warnings.append(UnreadableDocumentWarning(str(item.primary_path), str(exc)))
        return None, warnings

    tldr_text: str | None = None
    if item.tldr_path is not None:
        try:
            tldr_text = item.tldr_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            warnings.append(UnreadableDocumentWarning(str(item.tldr_path), str(exc)))
    return RawSource(text=text, tldr_text=tldr_text), warnings


def read_content_root(paths: PathsSettings, kind: DocumentKind) -> tuple[list[SourceItem], list[FolioWarning]]:
    """Discover the items of ``kind`` below the configured content root.

    Raises:
        SourceNotFoundError: If the content root does not exist.

    """
    root = paths.abs_content_dir
    if not root.is_dir():
        raise SourceNotFoundError(str(root))
    return discover_items(paths.kind_dir(kind), kind)
