"""RSS 2.0 feed of published documents."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable
from urllib.parse import urlsplit

from markupsafe import escape

from folio.content.pipeline import sort_documents
from folio.core.config import SiteSettings
from folio.core.types import Document, FeedEntry
from folio.feeds import template_environment

logger = logging.getLogger(__name__)

FEED_FILENAME = "rss.xml"
CHANNEL_ROUTE = "blog"


def _absolute(url: str, root_url: str) -> str:
    return url if "://" in url else f"{root_url}{url}"


def feed_content(document: Document, site: SiteSettings) -> str:
    """HTML body of a feed item: banner, TL;DR or "read on" line, then the document."""
    link = f"{site.root_url}{document.path}"
    site_name = urlsplit(site.root_url).hostname or site.title
    parts: list[str] = []
    if document.banner:
        parts.append(
            f'<img class="webfeedsFeaturedVisual" src="{escape(_absolute(document.banner, site.root_url))}"'
            f' alt="{escape(document.title)}"/>'
        )
    if document.tldr_html:
        parts.append(
            f'<p><a href="{escape(link)}?tldr=true">'
            f"Read the <strong>TLDR version</strong> on {escape(site_name)}</a></p>"
        )
    else:
        parts.append(
            f"<p>Read <strong>{escape(document.title)}</strong> on "
            f'<a href="{escape(link)}">{escape(site_name)}</a></p>'
        )
    parts.append(document.html)
    return "".join(parts)


def build_feed_entries(
    documents: Iterable[Document], site: SiteSettings, limit: int | None = None
) -> list[FeedEntry]:
    """Project published documents, newest first, into feed entries."""
    published = sort_documents(document for document in documents if document.published)
    if limit is not None:
        published = published[:limit]
    return [
        FeedEntry(
            title=document.title,
            description=document.description,
            link=f"{site.root_url}{document.path}",
            pub_date=document.date,
            categories=document.tags,
            content=feed_content(document, site),
        )
        for document in published
    ]


def render_rss(
    documents: Iterable[Document],
    *,
    site: SiteSettings,
    build_time: dt.datetime,
    limit: int | None = None,
) -> str:
    """Serialize documents to an RSS 2.0 document.

    Output depends only on the arguments: the same documents and build time
    always give the same bytes.
    """
    entries = build_feed_entries(documents, site, limit)
    template = template_environment().get_template("rss.xml.jinja")
    xml = template.render(
        site=site,
        entries=entries,
        build_time=build_time,
        channel_link=f"{site.root_url}/{CHANNEL_ROUTE}",
        feed_url=f"{site.root_url}/{FEED_FILENAME}",
    )
    logger.debug("Rendered RSS feed with %d items", len(entries))
    return xml
