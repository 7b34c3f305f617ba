"""Sitemap of every public route."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable

from folio.content.pipeline import sort_documents
from folio.core.config import SiteSettings
from folio.core.dates import as_utc_datetime
from folio.core.types import Document, DocumentKind, SitemapUrl
from folio.feeds import template_environment

logger = logging.getLogger(__name__)

SITEMAP_FILENAME = "sitemap.xml"

# (priority, changefreq) per document kind
DOCUMENT_FREQUENCIES = {
    DocumentKind.POST: ("1.0", "daily"),
    DocumentKind.BIT: ("1.0", "daily"),
    DocumentKind.SNIPPET: ("0.5", "weekly"),
}

# listing pages: (route, priority, changefreq)
LISTING_PAGES = (
    (DocumentKind.BIT.route, "0.8", "daily"),
    (DocumentKind.POST.route, "0.6", "daily"),
    (DocumentKind.SNIPPET.route, "0.6", "daily"),
)


def build_sitemap_urls(
    documents: Iterable[Document], *, site: SiteSettings, build_time: dt.datetime
) -> list[SitemapUrl]:
    """Home page, published documents by kind, listing pages, then configured routes."""
    today = as_utc_datetime(build_time).date()
    root = site.root_url
    published = sort_documents(document for document in documents if document.published)

    urls = [SitemapUrl(loc=root, priority="1.0", changefreq="daily", lastmod=today)]
    for kind, (priority, changefreq) in DOCUMENT_FREQUENCIES.items():
        urls.extend(
            SitemapUrl(
                loc=f"{root}{document.path}",
                priority=priority,
                changefreq=changefreq,
                lastmod=document.last_changed or today,
            )
            for document in published
            if document.kind is kind
        )
    urls.extend(
        SitemapUrl(loc=f"{root}/{route}", priority=priority, changefreq=changefreq, lastmod=today)
        for route, priority, changefreq in LISTING_PAGES
    )
    urls.extend(
        SitemapUrl(
            loc=f"{root}/{route.path.strip('/')}",
            priority=route.priority,
            changefreq=route.changefreq,
            lastmod=today,
        )
        for route in site.extra_routes
    )
    return urls


def render_sitemap(documents: Iterable[Document], *, site: SiteSettings, build_time: dt.datetime) -> str:
    """Serialize the public routes to a sitemap document."""
    urls = build_sitemap_urls(documents, site=site, build_time=build_time)
    template = template_environment().get_template("sitemap.xml.jinja")
    logger.debug("Rendered sitemap with %d urls", len(urls))
    return template.render(urls=urls)
