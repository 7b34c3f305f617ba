"""The content pipeline: read, parse, render and derive every document.

Items are processed independently on a thread pool. Once every worker has
finished, the pipeline sorts the documents, drops duplicate slugs, links
documents to each other, attaches series navigation and builds the tag index
on a single thread, so the result does not depend on scheduling.
"""

from __future__ import annotations

import datetime as dt
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from folio.content.alternates import split_alternates
from folio.content.deriver import MetadataDeriver
from folio.content.frontmatter import parse_front_matter
from folio.content.history import GitHistory
from folio.content.markdown import MarkdownRenderer, RenderContext
from folio.content.reader import SourceItem, read_content_root, read_source
from folio.content.tags import build_tag_index
from folio.core.cache import ContentCache
from folio.core.exceptions import DuplicateSlugWarning, FolioWarning
from folio.core.types import Document, DocumentKind, LinkRef, SeriesEntry, TagIndex

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from folio.core.config import FolioConfig
    from folio.core.context import BuildContext
    from folio.core.ports import HistoryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collection:
    """All documents of one kind, in listing order."""

    kind: DocumentKind
    documents: tuple[Document, ...] = ()
    tag_index: TagIndex = field(default_factory=TagIndex)
    warnings: tuple[FolioWarning, ...] = ()

    def published(self) -> list[Document]:
        return [document for document in self.documents if document.published]

    def get(self, slug: str) -> Document | None:
        """Direct lookup, unpublished documents included."""
        return next((document for document in self.documents if document.slug == slug), None)

    def __len__(self) -> int:
        return len(self.documents)


@dataclass(frozen=True)
class SiteContent:
    """Every collection of the site plus the site-wide tag index."""

    posts: Collection
    bits: Collection
    snippets: Collection
    tag_index: TagIndex = field(default_factory=TagIndex)

    def collection(self, kind: DocumentKind) -> Collection:
        return {
            DocumentKind.POST: self.posts,
            DocumentKind.BIT: self.bits,
            DocumentKind.SNIPPET: self.snippets,
        }[kind]

    def collections(self) -> tuple[Collection, ...]:
        return (self.posts, self.bits, self.snippets)

    def listing(self, kind: DocumentKind) -> list[Document]:
        """Published documents of ``kind``: what listings, feeds and sitemaps show."""
        return self.collection(kind).published()

    def find(self, kind: DocumentKind, slug: str) -> Document | None:
        return self.collection(kind).get(slug)

    @property
    def warnings(self) -> tuple[FolioWarning, ...]:
        return tuple(warning for collection in self.collections() for warning in collection.warnings)


@dataclass
class ItemResult:
    document: Document | None
    warnings: list[FolioWarning]


def sort_documents(documents: Iterable[Document]) -> list[Document]:
    """Newest first, ties by slug, undated documents last."""
    documents = list(documents)
    dated = sorted(
        (d for d in documents if d.date is not None),
        key=lambda d: (-d.date.toordinal(), d.slug),  # type: ignore[union-attr]
    )
    undated = sorted((d for d in documents if d.date is None), key=lambda d: d.slug)
    return dated + undated


def drop_duplicate_slugs(documents: Sequence[Document]) -> tuple[list[Document], list[FolioWarning]]:
    """Keep the first document for every slug, warn about the rest."""
    kept: list[Document] = []
    warnings: list[FolioWarning] = []
    seen: dict[str, Document] = {}
    for document in documents:
        first = seen.get(document.slug)
        if first is not None:
            warnings.append(
                DuplicateSlugWarning(
                    str(document.source_path),
                    f"slug '{document.slug}' already used by {first.source_path}",
                )
            )
            continue
        seen[document.slug] = document
        kept.append(document)
    return kept, warnings


def link_documents(documents: Sequence[Document]) -> list[Document]:
    """Resolve outgoing slugs into links and fill in incoming links.

    Only published documents are link targets or link sources.
    """
    published = {d.slug: d for d in documents if d.published}
    incoming: dict[str, list[LinkRef]] = {}
    for document in documents:
        if not document.published:
            continue
        for slug in document.outgoing_slugs:
            if slug in published:
                incoming.setdefault(slug, []).append(LinkRef(slug=document.slug, title=document.title))

    return [
        document.model_copy(
            update={
                "outgoing_links": [
                    LinkRef(slug=slug, title=published[slug].title)
                    for slug in document.outgoing_slugs
                    if slug in published and document.published
                ],
                "incoming_links": incoming.get(document.slug, []),
            }
        )
        for document in documents
    ]


def attach_series(documents: Sequence[Document]) -> list[Document]:
    """Give every document in a series the ordered list of its parts."""
    groups: dict[str, list[Document]] = {}
    for document in documents:
        if document.series is not None and document.published:
            groups.setdefault(document.series.name.casefold(), []).append(document)

    result: list[Document] = []
    for document in documents:
        if document.series is None:
            result.append(document)
            continue
        ordered = sorted(
            groups.get(document.series.name.casefold(), []),
            key=lambda d: (d.date is None, d.date or dt.date.min, d.slug),
        )
        entries = [
            SeriesEntry(
                slug=part.slug,
                title=part.title,
                date=part.date,
                order=order,
                current=part.slug == document.slug,
            )
            for order, part in enumerate(ordered, start=1)
        ]
        result.append(document.model_copy(update={"series_entries": entries}))
    return result


class ContentPipeline:
    """Builds collections from the content directories.

    Args:
        config: Site configuration.
        cache: Cache for built collections. A fresh one is created when not
            given; pass the build context's cache to share it.
        history: Version-control history service. Defaults to git history
            when ``content.use_git_history`` is set.
        renderer: Markdown renderer, mostly for tests.

    """

    def __init__(
        self,
        config: FolioConfig,
        *,
        cache: ContentCache | None = None,
        history: HistoryService | None = None,
        renderer: MarkdownRenderer | None = None,
    ) -> None:
        self.config = config
        self.cache: ContentCache[Collection] = cache if cache is not None else ContentCache()
        if history is None and config.content.use_git_history:
            history = GitHistory(config.paths.site_root)
        self.history = history
        self.renderer = renderer or MarkdownRenderer(
            creator_id=config.site.creator_id,
            tracked_hosts=config.site.tracked_hosts,
        )
        self.deriver = MetadataDeriver(config, history)

    @classmethod
    def from_context(cls, context: BuildContext) -> ContentPipeline:
        return cls(context.config, cache=context.cache, history=context.history)

    # --- public API ---

    def load_collection(self, kind: DocumentKind) -> Collection:
        """Build (or fetch from the cache) the collection of ``kind``.

        Raises:
            SourceNotFoundError: If the content root does not exist.

        """
        return self.cache.get_or_build(kind, lambda: self._build_collection(kind))

    def load_site(self) -> SiteContent:
        posts = self.load_collection(DocumentKind.POST)
        bits = self.load_collection(DocumentKind.BIT)
        snippets = self.load_collection(DocumentKind.SNIPPET)
        content = self.config.content
        tag_index = build_tag_index(
            [*posts.published(), *bits.published(), *snippets.published()],
            colors=content.tag_colors,
            aliases=content.tag_aliases,
            excluded=content.tag_cloud_excluded,
            limit=content.tag_cloud_limit,
        )
        return SiteContent(posts=posts, bits=bits, snippets=snippets, tag_index=tag_index)

    def find(self, kind: DocumentKind, slug: str) -> Document | None:
        return self.load_collection(kind).get(slug)

    def invalidate(self, kind: DocumentKind | None = None) -> None:
        self.cache.invalidate(kind)

    # --- building ---

    def _build_collection(self, kind: DocumentKind) -> Collection:
        items, warnings = read_content_root(self.config.paths, kind)
        logger.info("Building %d %s documents", len(items), kind.value)

        results = self._process_items(items)
        documents: list[Document] = []
        for result in results:
            warnings.extend(result.warnings)
            if result.document is not None:
                documents.append(result.document)

        documents, duplicate_warnings = drop_duplicate_slugs(documents)
        warnings.extend(duplicate_warnings)
        documents = attach_series(link_documents(sort_documents(documents)))

        content = self.config.content
        tag_index = build_tag_index(
            [document for document in documents if document.published],
            colors=content.tag_colors,
            aliases=content.tag_aliases,
            excluded=content.tag_cloud_excluded,
            limit=content.tag_cloud_limit,
        )

        for warning in warnings:
            logger.warning("%s", warning)
        logger.info(
            "Built %d %s documents (%d published, %d warnings)",
            len(documents),
            kind.value,
            sum(1 for document in documents if document.published),
            len(warnings),
        )
        return Collection(kind=kind, documents=tuple(documents), tag_index=tag_index, warnings=tuple(warnings))

    def _process_items(self, items: Sequence[SourceItem]) -> list[ItemResult]:
        """Run every item through the pool; results keep the item order."""
        if not items:
            return []
        max_workers = self.config.content.max_workers or os.cpu_count() or 1
        results: list[ItemResult | None] = [None] * len(items)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {executor.submit(self.process_item, item): i for i, item in enumerate(items)}
            for future in as_completed(future_to_index):
                results[future_to_index[future]] = future.result()
        return [result for result in results if result is not None]

    def process_item(self, item: SourceItem) -> ItemResult:
        """Read, parse, render and derive one item."""
        raw, warnings = read_source(item)
        if raw is None:
            return ItemResult(None, warnings)

        content = self.config.content
        source = str(item.primary_path)
        segments = split_alternates(raw.text, content.alternate_sentinel)
        canonical = segments[0] if segments else ""

        parsed = parse_front_matter(canonical, source=source, casing=content.tag_casing)
        warnings.extend(parsed.warnings)
        slug = self.deriver.slug_for(parsed.front_matter, item)
        context = RenderContext(route=item.kind.route, slug=slug, assets=item.assets, source=source)

        rendered = self.renderer.render(parsed.body, context)
        warnings.extend(rendered.warnings)

        tldr_html: str | None = None
        if raw.tldr_text is not None and item.tldr_path is not None:
            tldr_source = str(item.tldr_path)
            tldr_body = raw.tldr_text
            if tldr_body.lstrip().startswith("---"):
                tldr = parse_front_matter(tldr_body, source=tldr_source)
                warnings.extend(tldr.warnings)
                tldr_body = tldr.body
            tldr_rendered = self.renderer.render(tldr_body, replace(context, source=tldr_source))
            warnings.extend(tldr_rendered.warnings)
            tldr_html = tldr_rendered.html

        rendered_alternates = []
        for index, segment in enumerate(segments[1:], start=1):
            alternate_source = f"{source} (alternate {index})"
            alternate = parse_front_matter(segment, source=alternate_source, casing=content.tag_casing)
            alternate_rendered = self.renderer.render(alternate.body, replace(context, source=alternate_source))
            warnings.extend(alternate.warnings)
            warnings.extend(alternate_rendered.warnings)
            rendered_alternates.append((alternate.front_matter, alternate_rendered.html))

        document, derive_warnings = self.deriver.derive(
            item,
            parsed.front_matter,
            parsed.body,
            rendered,
            slug=slug,
            tldr_html=tldr_html,
            alternates=self.deriver.alternates(rendered_alternates),
        )
        warnings.extend(derive_warnings)
        return ItemResult(document, warnings)
