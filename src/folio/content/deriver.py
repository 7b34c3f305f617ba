"""Metadata derivation: everything a Document knows beyond its front matter."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from folio.content.alternates import alternate_label
from folio.content.history import NullHistory, load_contributors_file
from folio.content.tags import tag_color
from folio.core.exceptions import FolioWarning, MissingAssetWarning
from folio.core.types import Alternate, Document, FrontMatter, Translation
from folio.core.utils import first_paragraph, slugify

if TYPE_CHECKING:
    from folio.content.markdown.renderer import RenderResult
    from folio.content.reader import SourceItem
    from folio.core.config import FolioConfig
    from folio.core.ports import HistoryService

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 120
BANNER_STEM = "banner"


def reading_time(word_count: int, words_per_minute: int = 200) -> int:
    """Minutes needed to read ``word_count`` words, rounded up.

    Examples:
        >>> reading_time(0)
        0
        >>> reading_time(1)
        1
        >>> reading_time(401)
        3

    """
    if word_count <= 0:
        return 0
    return max(1, math.ceil(word_count / words_per_minute))


def humanize_slug(slug: str) -> str:
    text = slug.replace("-", " ").replace("_", " ").strip()
    return text[:1].upper() + text[1:]


def merge_contributors(author: str, *sources: Sequence[str]) -> list[str]:
    """Author first, then every other name once, compared case-insensitively."""
    names: list[str] = []
    seen: set[str] = set()
    for name in (author, *(name for source in sources for name in source)):
        name = name.strip()
        if name and name.casefold() not in seen:
            seen.add(name.casefold())
            names.append(name)
    return names


class MetadataDeriver:
    """Derives Document fields from front matter, rendered output and the item on disk."""

    def __init__(self, config: FolioConfig, history: HistoryService | None = None) -> None:
        self.config = config
        self.history = history or NullHistory()

    def slug_for(self, front_matter: FrontMatter, item: SourceItem) -> str:
        """Explicit front matter slug, else the directory name."""
        return slugify(front_matter.slug or item.name, max_len=SLUG_MAX_LENGTH)

    def translations(self, front_matter: FrontMatter) -> list[Translation]:
        names = self.config.content.language_names
        return [
            t.model_copy(update={"language": names.get(t.language, t.language)}) if t.language else t
            for t in front_matter.translations
        ]

    def contributors(self, author: str, item: SourceItem) -> list[str]:
        return merge_contributors(
            author,
            load_contributors_file(item.directory),
            self.history.contributors(item.primary_path),
        )

    def alternates(self, rendered: Sequence[tuple[FrontMatter, str]]) -> list[Alternate]:
        """Key rendered alternates by language, label or position."""
        alternates: list[Alternate] = []
        taken: set[str] = set()
        for index, (front_matter, html) in enumerate(rendered, start=1):
            label = alternate_label(front_matter, index, taken)
            taken.add(label)
            alternates.append(Alternate(label=label, front_matter=front_matter, html=html))
        return alternates

    def _asset_url(
        self,
        value: str | None,
        item: SourceItem,
        slug: str,
        warnings: list[FolioWarning],
    ) -> str | None:
        if not value:
            return None
        if "://" in value or value.startswith("/"):
            return value
        asset = str(PurePosixPath(value.removeprefix("./")))
        if asset not in item.assets:
            warnings.append(MissingAssetWarning(str(item.primary_path), f"missing image '{asset}'"))
        return f"/{item.kind.route}/{slug}/{asset}"

    def _default_banner(self, item: SourceItem) -> str | None:
        return next((a for a in sorted(item.assets) if PurePosixPath(a).stem == BANNER_STEM), None)

    def derive(
        self,
        item: SourceItem,
        front_matter: FrontMatter,
        body: str,
        rendered: RenderResult,
        *,
        slug: str,
        tldr_html: str | None = None,
        alternates: Sequence[Alternate] = (),
    ) -> tuple[Document, list[FolioWarning]]:
        """Assemble the Document for one content item.

        Args:
            item: The item on disk.
            front_matter: Parsed front matter of the canonical segment.
            body: Markdown body of the canonical segment.
            rendered: Rendered canonical body.
            slug: Slug from :meth:`slug_for`.
            tldr_html: Rendered TL;DR, if the item has one.
            alternates: Keyed alternates from :meth:`alternates`.

        Returns:
            The document and any warnings raised while deriving it.

        """
        warnings: list[FolioWarning] = []
        site = self.config.site
        content = self.config.content

        author = front_matter.author or site.author
        word_count = rendered.word_count
        minutes = reading_time(word_count, content.words_per_minute)
        if body.strip() and minutes == 0:
            minutes = 1

        modified = front_matter.modified
        if modified is None:
            modified = self.history.last_modified(item.primary_path)

        banner = self._asset_url(front_matter.banner or self._default_banner(item), item, slug, warnings)

        document = Document(
            kind=item.kind,
            slug=slug,
            title=front_matter.title or humanize_slug(slug),
            description=front_matter.description or first_paragraph(rendered.html),
            author=author,
            date=front_matter.date,
            modified_date=modified,
            tags=front_matter.tags,
            published=front_matter.published,
            raw_body=body,
            html=rendered.html,
            tldr_html=tldr_html,
            word_count=word_count,
            reading_time_minutes=minutes,
            color=tag_color(front_matter.tags, content.tag_colors),
            canonical=f"{site.root_url}/{item.kind.route}/{slug}",
            banner=banner,
            image=self._asset_url(front_matter.image, item, slug, warnings),
            toc=rendered.toc,
            outgoing_slugs=rendered.outgoing_slugs,
            translations=self.translations(front_matter),
            alternates=list(alternates),
            contributors=self.contributors(author, item),
            assets=sorted(item.assets),
            series=front_matter.series,
            extra=front_matter.extra,
            source_path=item.primary_path,
        )
        logger.debug("Derived %s/%s (%d words)", item.kind.value, slug, word_count)
        return document, warnings
