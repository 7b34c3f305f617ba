from __future__ import annotations

import datetime as dt
from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from folio.core.config import ContentSettings, FolioConfig, PathsSettings, SiteSettings
from folio.core.context import BuildContext, build_context

BUILD_TIME = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.UTC)

PNG_BYTES = b"\x89PNG\r\n\x1a\n"

MakeItem = Callable[..., Path]


@pytest.fixture
def make_item() -> MakeItem:
    """Return a helper that writes one content item directory."""

    def _make(
        root: Path,
        route: str,
        name: str,
        text: str,
        files: Mapping[str, str | bytes] | None = None,
        filename: str = "index.md",
    ) -> Path:
        directory = root / route / name
        directory.mkdir(parents=True, exist_ok=True)
        (directory / filename).write_text(text, encoding="utf-8")
        for relative, content in (files or {}).items():
            path = directory / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return directory

    return _make


@pytest.fixture
def site_root(tmp_path: Path, make_item: MakeItem) -> Path:
    """A small site with posts, a draft, a bit and a snippet."""
    make_item(
        tmp_path,
        "blog",
        "hello-world",
        "---\n"
        "title: Hello World\n"
        "date: 2024-01-10\n"
        "tags: angular, ngrx\n"
        "description: The first post.\n"
        "series: Getting started\n"
        "---\n"
        "## Setup\n\n"
        "Install the tools and start writing.\n",
    )
    make_item(
        tmp_path,
        "blog",
        "second-post",
        "---\n"
        "title: Second post\n"
        "date: 2024-02-01\n"
        "tags: [TypeScript]\n"
        "series:\n"
        "  name: Getting started\n"
        "---\n"
        "Following up on [the first post](../hello-world/index.md).\n",
        files={"tldr.md": "Short version.\n", "banner.png": PNG_BYTES},
    )
    make_item(
        tmp_path,
        "blog",
        "draft-post",
        "---\n"
        "title: Draft\n"
        "date: 2024-03-01\n"
        "published: false\n"
        "---\n"
        "Not ready, but see [hello](/blog/hello-world).\n",
    )
    make_item(
        tmp_path,
        "bits",
        "quick-tip",
        "---\ntitle: Quick tip\ndate: 2024-01-20\ntags: ngrx\n---\nUse selectors.\n",
    )
    make_item(
        tmp_path,
        "snippets",
        "useful-snippet",
        "---\ntitle: Useful snippet\n---\n```ts:util.ts\nexport const x = 1;\n```\n",
    )
    return tmp_path


@pytest.fixture
def config(site_root: Path) -> FolioConfig:
    return FolioConfig(
        site=SiteSettings(title="Example", base_url="https://example.com/", author="Jane Doe"),
        paths=PathsSettings(site_root=site_root),
        content=ContentSettings(max_workers=2),
    )


@pytest.fixture
def context(config: FolioConfig) -> BuildContext:
    return build_context(config, build_time=BUILD_TIME)
