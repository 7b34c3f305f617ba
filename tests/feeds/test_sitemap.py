import datetime as dt

from lxml import etree

from folio.core.config import SiteSettings, SitemapRoute
from folio.core.types import Document, DocumentKind
from folio.feeds.sitemap import build_sitemap_urls, render_sitemap

BUILD_TIME = dt.datetime(2024, 6, 1, 23, 30, tzinfo=dt.timezone(dt.timedelta(hours=-3)))
NS = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}


def _doc(kind: DocumentKind, slug: str, **fields) -> Document:
    return Document(kind=kind, slug=slug, title=slug, author="Jane", **fields)


DOCUMENTS = [
    _doc(DocumentKind.SNIPPET, "snip"),
    _doc(DocumentKind.POST, "old-post", date=dt.date(2024, 1, 1), modified_date=dt.date(2024, 3, 3)),
    _doc(DocumentKind.BIT, "a-bit", date=dt.date(2024, 2, 2)),
    _doc(DocumentKind.POST, "new-post", date=dt.date(2024, 5, 5)),
    _doc(DocumentKind.POST, "hidden-draft", date=dt.date(2024, 5, 6), published=False),
]


def test_urls_are_grouped_and_ordered():
    site = SiteSettings(base_url="https://example.com", extra_routes=[SitemapRoute(path="/about/")])

    urls = build_sitemap_urls(DOCUMENTS, site=site, build_time=BUILD_TIME)

    assert [url.loc for url in urls] == [
        "https://example.com",
        "https://example.com/blog/new-post",
        "https://example.com/blog/old-post",
        "https://example.com/bits/a-bit",
        "https://example.com/snippets/snip",
        "https://example.com/bits",
        "https://example.com/blog",
        "https://example.com/snippets",
        "https://example.com/about",
    ]


def test_lastmod_priority_and_changefreq():
    urls = {url.loc: url for url in build_sitemap_urls(DOCUMENTS, site=SiteSettings(), build_time=BUILD_TIME)}
    root = SiteSettings().root_url

    # build time is 2024-06-02 in UTC
    assert urls[root].lastmod == dt.date(2024, 6, 2)
    assert urls[f"{root}/blog/old-post"].lastmod == dt.date(2024, 3, 3)
    assert urls[f"{root}/bits/a-bit"].lastmod == dt.date(2024, 2, 2)
    assert urls[f"{root}/snippets/snip"].lastmod == dt.date(2024, 6, 2)
    assert (urls[f"{root}/snippets/snip"].priority, urls[f"{root}/snippets/snip"].changefreq) == ("0.5", "weekly")
    assert (urls[f"{root}/bits"].priority, urls[f"{root}/bits"].changefreq) == ("0.8", "daily")


def test_render_sitemap_excludes_unpublished():
    xml = render_sitemap(DOCUMENTS, site=SiteSettings(base_url="https://example.com"), build_time=BUILD_TIME)
    root = etree.fromstring(xml.encode("utf-8"))

    locs = root.xpath("sm:url/sm:loc/text()", namespaces=NS)
    assert "https://example.com/blog/new-post" in locs
    assert "hidden-draft" not in xml
    assert root.xpath("sm:url[2]/sm:lastmod/text()", namespaces=NS) == ["2024-05-05"]
    assert render_sitemap(DOCUMENTS, site=SiteSettings(base_url="https://example.com"), build_time=BUILD_TIME) == xml
