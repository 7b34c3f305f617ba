"""XML output sink: the RSS feed and the sitemap."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from folio.core.types import DocumentKind
from folio.feeds.rss import FEED_FILENAME, render_rss
from folio.feeds.sitemap import SITEMAP_FILENAME, render_sitemap

if TYPE_CHECKING:
    from folio.content.pipeline import SiteContent
    from folio.core.context import BuildContext

logger = logging.getLogger(__name__)


class XmlFeedSink:
    """Writes ``rss.xml`` and ``sitemap.xml``.

    The feed carries the published posts; the sitemap every published
    document of every kind.
    """

    def __init__(self, output_dir: Path, *, feed_limit: int | None = None) -> None:
        """Initialize the XML sink.

        Args:
            output_dir: Directory where the XML files will be written
            feed_limit: Maximum number of feed items, ``None`` for all

        """
        self.output_dir = Path(output_dir)
        self.feed_limit = feed_limit

    def publish(self, site: SiteContent, context: BuildContext) -> list[Path]:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        settings = context.config.site

        rss_path = self.output_dir / FEED_FILENAME
        rss_path.write_text(
            render_rss(
                site.listing(DocumentKind.POST),
                site=settings,
                build_time=context.build_time,
                limit=self.feed_limit,
            ),
            encoding="utf-8",
        )

        sitemap_path = self.output_dir / SITEMAP_FILENAME
        documents = [document for collection in site.collections() for document in collection.published()]
        sitemap_path.write_text(
            render_sitemap(documents, site=settings, build_time=context.build_time),
            encoding="utf-8",
        )

        logger.info("Wrote %s and %s", rss_path, sitemap_path)
        return [rss_path, sitemap_path]
