"""Core data types for Folio."""

import datetime as dt
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from folio.core.utils import tag_key


class DocumentKind(str, Enum):
    POST = "post"
    BIT = "bit"
    SNIPPET = "snippet"

    @property
    def route(self) -> str:
        """URL segment under which documents of this kind are served."""
        return _ROUTES[self]


_ROUTES = {
    DocumentKind.POST: "blog",
    DocumentKind.BIT: "bits",
    DocumentKind.SNIPPET: "snippets",
}


# --- Front matter ---
class Translation(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    author: str | None = None
    profile: str | None = None
    language: str | None = None


class Series(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class FrontMatter(BaseModel):
    """Typed record of the recognized front matter fields.

    Keys outside the recognized set are kept in ``extra`` as opaque strings.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    slug: str | None = None
    description: str | None = None
    author: str | None = None
    date: dt.date | None = None
    modified: dt.date | None = None
    tags: list[str] = Field(default_factory=list)
    published: bool = True
    banner: str | None = None
    image: str | None = None
    language: str | None = None
    label: str | None = None
    series: Series | None = None
    translations: list[Translation] = Field(default_factory=list)
    extra: dict[str, str] = Field(default_factory=dict)


# --- Derived records ---
class Heading(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    level: int
    slug: str


class LinkRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    title: str


class SeriesEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    title: str
    date: dt.date | None = None
    order: int
    current: bool = False


class Alternate(BaseModel):
    """A translated or superseded variant embedded after the alternate sentinel."""

    model_config = ConfigDict(frozen=True)

    label: str
    front_matter: FrontMatter
    html: str


class Document(BaseModel):
    """One blog post, bit or snippet after the full read-parse-render-derive pass."""

    model_config = ConfigDict(frozen=True)

    kind: DocumentKind
    slug: str
    title: str
    description: str = ""
    author: str
    date: dt.date | None = None
    modified_date: dt.date | None = None
    tags: list[str] = Field(default_factory=list)
    published: bool = True
    raw_body: str = ""
    html: str = ""
    tldr_html: str | None = None
    word_count: int = 0
    reading_time_minutes: int = 0
    color: str | None = None
    canonical: str = ""
    banner: str | None = None
    image: str | None = None
    toc: list[Heading] = Field(default_factory=list)
    outgoing_slugs: list[str] = Field(default_factory=list)
    outgoing_links: list[LinkRef] = Field(default_factory=list)
    incoming_links: list[LinkRef] = Field(default_factory=list)
    translations: list[Translation] = Field(default_factory=list)
    alternates: list[Alternate] = Field(default_factory=list)
    contributors: list[str] = Field(default_factory=list)
    assets: list[str] = Field(default_factory=list)
    series: Series | None = None
    series_entries: list[SeriesEntry] = Field(default_factory=list)
    extra: dict[str, str] = Field(default_factory=dict)
    source_path: Path | None = None

    @property
    def route(self) -> str:
        return self.kind.route

    @property
    def path(self) -> str:
        """Site-relative URL path, e.g. ``/blog/my-post``."""
        return f"/{self.route}/{self.slug}"

    @property
    def last_changed(self) -> dt.date | None:
        return self.modified_date or self.date

    def summary(self) -> dict:
        """Metadata-only projection used by listings and the search UI."""
        return self.model_dump(
            mode="json",
            exclude={"raw_body", "html", "tldr_html", "alternates", "toc", "source_path"},
        ) | {"path": self.path, "has_tldr": self.tldr_html is not None}


# --- Tags ---
class TagCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    count: int
    color: str | None = None


class TagIndex(BaseModel):
    """Mapping from lower-cased tag to the documents carrying it and its colour."""

    model_config = ConfigDict(frozen=True)

    labels: dict[str, str] = Field(default_factory=dict)
    documents: dict[str, list[Document]] = Field(default_factory=dict)
    colors: dict[str, str] = Field(default_factory=dict)
    cloud: list[TagCount] = Field(default_factory=list)

    def documents_for(self, tag: str) -> list[Document]:
        return self.documents.get(tag_key(tag), [])

    def color_for(self, tag: str) -> str | None:
        return self.colors.get(tag_key(tag))


# --- Serializer projections ---
class FeedEntry(BaseModel):
    """Projection of a Document used only by the RSS serializer."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    link: str
    pub_date: dt.date | None = None
    categories: list[str] = Field(default_factory=list)
    content: str


class SitemapUrl(BaseModel):
    model_config = ConfigDict(frozen=True)

    loc: str
    priority: str
    changefreq: str
    lastmod: dt.date
