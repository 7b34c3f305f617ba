import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from folio.core.exceptions import ConfigLoadError
from folio.core.types import DocumentKind

CONFIG_FILENAME = ".folio.toml"

DEFAULT_TAG_COLORS = {
    "typescript": "typescript",
    "angular": "angular",
    "dotnet": "dotnet",
    ".net": "dotnet",
    "ngrx": "ngrx",
    "playwright": "playwright",
    "rxjs": "rxjs",
    "azure": "azure",
    "azure devops": "azure",
    "zod": "zod",
    "svelte": "svelte",
    "cypress": "cypress",
    "javascript": "javascript",
    "vue": "vue",
}

DEFAULT_TAG_CASING = {
    "typescript": "TypeScript",
    "ngrx": "NgRx",
}

DEFAULT_LANGUAGE_NAMES = {
    "es": "Español",
    "ru": "Russian",
}

DEFAULT_TRACKED_HOSTS = [
    "docs.microsoft.com",
    "learn.microsoft.com",
    "azure.microsoft.com",
    "techcommunity.microsoft.com",
    "devblogs.microsoft.com",
    "developer.microsoft.com",
    "social.msdn.microsoft.com",
    "social.technet.microsoft.com",
    "channel9.msdn.com",
    "msdn.microsoft.com",
    "technet.microsoft.com",
]


def _deep_merge(destination: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge source into destination, with source values overwriting."""
    for key, value in source.items():
        if isinstance(value, Mapping) and key in destination and isinstance(destination[key], Mapping):
            destination[key] = _deep_merge(dict(destination.get(key, {})), dict(value))
        else:
            destination[key] = value
    return destination


class SitemapRoute(BaseModel):
    """A static page listed in the sitemap next to the generated routes."""

    path: str
    priority: str = "0.5"
    changefreq: str = "monthly"


class SiteSettings(BaseModel):
    """Site identity used by feeds, sitemaps and canonical URLs."""

    title: str = Field(default="Folio", description="Site and feed title")
    description: str = Field(default="A personal blog", description="Feed description")
    base_url: str = Field(default="http://localhost:5173", description="Absolute site URL without trailing slash")
    author: str = Field(default="Anonymous", description="Default author for documents without one")
    language: str = Field(default="en-us", description="Feed language")
    feed_ttl: int = Field(default=60, description="RSS time-to-live in minutes")
    creator_id: str | None = Field(default=None, description="Tracking id appended to links to tracked hosts")
    tracked_hosts: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TRACKED_HOSTS), description="Hosts that receive the creator id"
    )
    extra_routes: list[SitemapRoute] = Field(default_factory=list, description="Static sitemap routes")

    @property
    def root_url(self) -> str:
        return self.base_url.rstrip("/")


class PathsSettings(BaseModel):
    """Path configuration.

    All paths are relative to the 'site_root' unless absolute.
    site_root defaults to current working directory.
    """

    site_root: Path = Field(
        default_factory=Path.cwd,
        description="Root directory of the site (defaults to current working directory)",
    )

    # Content
    content_dir: Path = Field(default=Path("."), description="Content root holding the kind directories")
    posts_dir: Path = Field(default=Path("blog"), description="Posts directory, relative to the content root")
    bits_dir: Path = Field(default=Path("bits"), description="Bits directory, relative to the content root")
    snippets_dir: Path = Field(
        default=Path("snippets"), description="Snippets directory, relative to the content root"
    )

    # Output
    output_dir: Path = Field(default=Path("build"), description="Directory for generated files")

    @property
    def abs_content_dir(self) -> Path:
        return self._resolve(self.content_dir)

    @property
    def abs_output_dir(self) -> Path:
        return self._resolve(self.output_dir)

    def kind_dir(self, kind: DocumentKind) -> Path:
        """Directory holding the documents of one kind."""
        relative = {
            DocumentKind.POST: self.posts_dir,
            DocumentKind.BIT: self.bits_dir,
            DocumentKind.SNIPPET: self.snippets_dir,
        }[kind]
        if relative.is_absolute():
            return relative
        return self.abs_content_dir / relative

    def _resolve(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return self.site_root / path


class ContentSettings(BaseModel):
    """Knobs of the read-parse-render-derive pipeline."""

    words_per_minute: int = Field(default=200, gt=0, description="Fixed reading rate")
    alternate_sentinel: str = Field(default="<!-- alternate -->", description="Line separating alternates")
    tag_colors: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_TAG_COLORS))
    tag_casing: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_TAG_CASING))
    tag_aliases: dict[str, str] = Field(default_factory=dict, description="Tag key to canonical tag label")
    tag_cloud_excluded: list[str] = Field(default_factory=list)
    tag_cloud_limit: int | None = Field(default=15, description="Maximum tags in the cloud, None for all")
    language_names: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_LANGUAGE_NAMES))
    max_workers: int | None = Field(default=None, description="Worker threads, defaults to CPU count")
    use_git_history: bool = Field(default=False, description="Read modified dates and contributors from git")

    @field_validator("tag_colors", "tag_casing", "tag_aliases", mode="after")
    @classmethod
    def _lowercase_keys(cls, value: dict[str, str]) -> dict[str, str]:
        return {key.strip().lower(): item for key, item in value.items()}


class FolioConfig(BaseSettings):
    """Root configuration for Folio.

    Supports environment variable overrides with the pattern:
    FOLIO_SECTION__KEY (e.g., FOLIO_SITE__BASE_URL)
    """

    site: SiteSettings = Field(default_factory=SiteSettings)
    paths: PathsSettings = Field(default_factory=PathsSettings)
    content: ContentSettings = Field(default_factory=ContentSettings)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="FOLIO_",
        env_nested_delimiter="__",
    )

    @classmethod
    def load(cls, site_root: Path | None = None) -> "FolioConfig":
        """Loads configuration from .folio.toml and environment variables.

        Priority (highest to lowest):
        1. Environment variables (FOLIO_SECTION__KEY)
        2. Config file (.folio.toml in site_root)
        3. Defaults

        Raises:
            ConfigLoadError: If the config file exists but is not valid TOML.

        """
        root_path = site_root if site_root is not None else Path.cwd()
        config_file = root_path / CONFIG_FILENAME

        file_settings: dict[str, Any] = {}
        if config_file.is_file():
            try:
                with config_file.open("rb") as f:
                    file_settings = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigLoadError(str(config_file), str(exc)) from exc

        env_settings = cls().model_dump(exclude_unset=True)

        merged_config = _deep_merge(file_settings, env_settings)
        merged_config.setdefault("paths", {})["site_root"] = root_path

        return cls.model_validate(merged_config)
