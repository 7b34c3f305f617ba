import datetime as dt
from pathlib import Path

import pytest

from folio.content.deriver import MetadataDeriver, humanize_slug, merge_contributors, reading_time
from folio.content.frontmatter import parse_front_matter
from folio.content.markdown import MarkdownRenderer, RenderContext
from folio.content.reader import discover_items
from folio.core.config import ContentSettings, FolioConfig, PathsSettings, SiteSettings
from folio.core.exceptions import MissingAssetWarning
from folio.core.types import DocumentKind


class FakeHistory:
    def contributors(self, path: Path) -> list[str]:
        return ["jane doe", "Sam"]

    def last_modified(self, path: Path) -> dt.date | None:
        return dt.date(2024, 4, 1)


@pytest.fixture
def deriver_config(tmp_path: Path) -> FolioConfig:
    return FolioConfig(
        site=SiteSettings(base_url="https://example.com", author="Jane Doe"),
        paths=PathsSettings(site_root=tmp_path),
        content=ContentSettings(words_per_minute=10),
    )


def _derive(deriver: MetadataDeriver, item, text: str):
    parsed = parse_front_matter(text, casing=deriver.config.content.tag_casing)
    slug = deriver.slug_for(parsed.front_matter, item)
    context = RenderContext(route=item.kind.route, slug=slug, assets=item.assets)
    rendered = MarkdownRenderer().render(parsed.body, context)
    return deriver.derive(item, parsed.front_matter, parsed.body, rendered, slug=slug)


def test_reading_time_is_monotonic():
    minutes = [reading_time(words) for words in range(0, 2001, 50)]

    assert minutes[0] == 0
    assert minutes == sorted(minutes)
    assert reading_time(1) == 1
    assert reading_time(200) == 1
    assert reading_time(201) == 2


def test_humanize_slug_and_merge_contributors():
    assert humanize_slug("my-first_post") == "My first post"
    assert merge_contributors("Jane", ["jane", "Bob"], ["BOB", " Ana "]) == ["Jane", "Bob", "Ana"]


def test_derive_fills_in_defaults(deriver_config, tmp_path: Path, make_item):
    make_item(tmp_path, "blog", "Hello World!", "No front matter here, just ten words of body text for you.\n")
    (item,), _ = discover_items(tmp_path / "blog", DocumentKind.POST)

    document, warnings = _derive(MetadataDeriver(deriver_config), item, item.primary_path.read_text())

    assert warnings == []
    assert document.slug == "hello-world"
    assert document.title == "Hello world"
    assert document.author == "Jane Doe"
    assert document.description.startswith("No front matter here")
    assert document.word_count == 12
    assert document.reading_time_minutes == 2
    assert document.canonical == "https://example.com/blog/hello-world"
    assert document.published is True
    assert document.contributors == ["Jane Doe"]
    assert document.modified_date is None


def test_derive_uses_front_matter_history_and_assets(deriver_config, tmp_path: Path, make_item):
    make_item(
        tmp_path,
        "bits",
        "dir-name",
        "---\n"
        "title: Custom\n"
        "slug: Custom Slug\n"
        "tags: playwright, ngrx\n"
        "image: ./missing.png\n"
        "translations:\n"
        "  - url: https://example.es/x\n"
        "    language: es\n"
        "---\n"
        "Short.\n",
        files={"banner.png": b"png", "contributors.json": '["Ana"]'},
    )
    (item,), _ = discover_items(tmp_path / "bits", DocumentKind.BIT)
    deriver = MetadataDeriver(deriver_config, FakeHistory())

    document, warnings = _derive(deriver, item, item.primary_path.read_text())

    assert document.slug == "custom-slug"
    assert document.tags == ["Playwright", "NgRx"]
    assert document.color == "playwright"
    assert document.banner == "/bits/custom-slug/banner.png"
    assert document.image == "/bits/custom-slug/missing.png"
    assert [type(w) for w in warnings] == [MissingAssetWarning]
    assert document.translations[0].language == "Español"
    assert document.contributors == ["Jane Doe", "Ana", "Sam"]
    assert document.modified_date == dt.date(2024, 4, 1)
    assert document.reading_time_minutes == 1


def test_alternates_are_keyed(deriver_config):
    deriver = MetadataDeriver(deriver_config)
    es = parse_front_matter("---\nlanguage: es\n---\n").front_matter
    unnamed = parse_front_matter("---\ntitle: Old\n---\n").front_matter

    alternates = deriver.alternates([(es, "<p>Hola</p>"), (unnamed, "<p>Old</p>"), (es, "<p>Otra</p>")])

    assert [alternate.label for alternate in alternates] == ["es", "alternate-2", "es-2"]


def test_reading_time_counts_only_authored_words(tmp_path: Path, make_item):
    body = ":::tip\n" + " ".join(["word"] * 199) + "\n:::\n\n```ts\n```\n"
    make_item(tmp_path, "blog", "tip-post", "---\ntitle: Tip\n---\n" + body)
    (item,), _ = discover_items(tmp_path / "blog", DocumentKind.POST)
    config = FolioConfig(site=SiteSettings(base_url="https://example.com"), paths=PathsSettings(site_root=tmp_path))

    document, _ = _derive(MetadataDeriver(config), item, item.primary_path.read_text())

    assert "Tip" in document.html
    assert document.word_count == 199
    assert document.reading_time_minutes == 1
