"""Front matter splitting, coercion and serialization.

Parsing is total: malformed input degrades to partial metadata plus warnings
instead of raising.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import frontmatter
import yaml
from pydantic import ValidationError

from folio.content.tags import normalize_tags
from folio.core.dates import coerce_date
from folio.core.exceptions import FolioWarning, MalformedFrontMatterWarning
from folio.core.types import FrontMatter, Series, Translation

logger = logging.getLogger(__name__)

_BLOCK_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<meta>.*?)(?:\r?\n)?^---[ \t]*$\r?\n?",
    re.DOTALL | re.MULTILINE,
)
_LINE_RE = re.compile(r"^(?P<key>[A-Za-z_][\w-]*)[ \t]*:[ \t]*(?P<value>.*?)[ \t]*$")

_TEXT_FIELDS = ("title", "slug", "description", "author", "banner", "image", "language", "label")
_DATE_FIELDS = ("date", "modified")
_KNOWN_FIELDS = frozenset((*_TEXT_FIELDS, *_DATE_FIELDS, "tags", "published", "series", "translations"))

_TRUE = frozenset({"true", "yes", "on", "1"})
_FALSE = frozenset({"false", "no", "off", "0"})


@dataclass(frozen=True)
class FrontMatterResult:
    front_matter: FrontMatter
    body: str
    warnings: list[FolioWarning] = field(default_factory=list)


def _parse_lines(meta: str) -> dict[str, Any]:
    """Best-effort ``key: value`` parsing for blocks YAML rejects."""
    metadata: dict[str, Any] = {}
    for line in meta.splitlines():
        match = _LINE_RE.match(line)
        if not match:
            continue
        value = match.group("value")
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
            value = value[1:-1]
        metadata[match.group("key")] = value
    return metadata


def _coerce_bool(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    return None


def _opaque(value: object) -> str:
    """Render an unrecognized value as a string."""
    if isinstance(value, str):
        return value
    if isinstance(value, dt.date):
        return value.isoformat()
    return yaml.safe_dump(value, default_flow_style=True, allow_unicode=True).strip().removesuffix("...").strip()


def _coerce(
    metadata: Mapping[str, Any],
    source: str,
    casing: Mapping[str, str] | None,
) -> tuple[FrontMatter, list[FolioWarning]]:
    warnings: list[FolioWarning] = []
    fields: dict[str, Any] = {}

    for name in _TEXT_FIELDS:
        value = metadata.get(name)
        if value is None:
            continue
        text = _opaque(value).strip()
        if text:
            fields[name] = text

    for name in _DATE_FIELDS:
        try:
            fields[name] = coerce_date(metadata.get(name))
        except ValueError as exc:
            warnings.append(MalformedFrontMatterWarning(source, f"ignoring '{name}': {exc}"))

    fields["tags"] = normalize_tags(metadata.get("tags"), casing)

    if "published" in metadata and metadata["published"] is not None:
        published = _coerce_bool(metadata["published"])
        if published is None:
            warnings.append(
                MalformedFrontMatterWarning(
                    source, f"ignoring 'published': not a boolean ({metadata['published']!r})"
                )
            )
        else:
            fields["published"] = published

    series = metadata.get("series")
    if isinstance(series, Mapping) and series.get("name"):
        fields["series"] = Series(name=str(series["name"]).strip())
    elif isinstance(series, str) and series.strip():
        fields["series"] = Series(name=series.strip())
    elif series is not None:
        warnings.append(MalformedFrontMatterWarning(source, "ignoring 'series': expected a name"))

    translations = metadata.get("translations")
    if translations is not None:
        parsed: list[Translation] = []
        if not isinstance(translations, list):
            warnings.append(MalformedFrontMatterWarning(source, "ignoring 'translations': expected a list"))
        for entry in translations if isinstance(translations, list) else []:
            try:
                parsed.append(Translation.model_validate(entry))
            except ValidationError as exc:
                warnings.append(
                    MalformedFrontMatterWarning(
                        source, f"ignoring translation entry: {exc.errors()[0]['msg']}"
                    )
                )
        fields["translations"] = parsed

    fields["extra"] = {
        str(key): _opaque(value)
        for key, value in metadata.items()
        if key not in _KNOWN_FIELDS and value is not None
    }
    return FrontMatter(**fields), warnings


def parse_front_matter(
    raw: str,
    *,
    source: str = "<string>",
    casing: Mapping[str, str] | None = None,
) -> FrontMatterResult:
    """Split raw document text into typed front matter and body.

    Args:
        raw: Full document text, front matter first.
        source: Name used in warnings, usually the file path.
        casing: Known tag spellings keyed by lower-cased tag.

    Returns:
        The parsed result. When the ``---`` delimiters are missing the whole
        text is the body; when the YAML is invalid the block is read line by
        line. Both cases add a :class:`MalformedFrontMatterWarning`.

    """
    text = raw.lstrip("\ufeff")
    stripped = text.lstrip()
    match = _BLOCK_RE.match(stripped)
    if match is None:
        detail = "unterminated front matter block" if stripped.startswith("---") else "no front matter block"
        warning = MalformedFrontMatterWarning(source, detail)
        logger.debug("%s", warning)
        return FrontMatterResult(FrontMatter(), text, [warning])

    warnings: list[FolioWarning] = []
    meta = match.group("meta")
    try:
        post = frontmatter.loads(stripped)
        metadata: dict[str, Any] = dict(post.metadata)
        body = post.content
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        warnings.append(MalformedFrontMatterWarning(source, f"invalid YAML, reading it line by line ({exc})"))
        metadata = _parse_lines(meta)
        body = stripped[match.end() :]
    else:
        has_content = any(line.strip() and not line.lstrip().startswith("#") for line in meta.splitlines())
        if not metadata and has_content:
            warnings.append(
                MalformedFrontMatterWarning(source, "front matter is not a mapping, reading it line by line")
            )
            metadata = _parse_lines(meta)

    front_matter, coercion_warnings = _coerce(metadata, source, casing)
    warnings.extend(coercion_warnings)
    return FrontMatterResult(front_matter, body, warnings)


def front_matter_data(front_matter: FrontMatter) -> dict[str, Any]:
    """Recognized fields as plain YAML-friendly data, unset fields omitted."""
    data: dict[str, Any] = {}
    for name in ("title", "slug", "description", "author", "date", "modified"):
        value = getattr(front_matter, name)
        if value is not None:
            data[name] = value
    if front_matter.tags:
        data["tags"] = list(front_matter.tags)
    data["published"] = front_matter.published
    for name in ("banner", "image", "language", "label"):
        value = getattr(front_matter, name)
        if value is not None:
            data[name] = value
    if front_matter.series is not None:
        data["series"] = {"name": front_matter.series.name}
    if front_matter.translations:
        data["translations"] = [t.model_dump(exclude_none=True) for t in front_matter.translations]
    for key, value in front_matter.extra.items():
        data.setdefault(key, value)
    return data


def dump_front_matter(front_matter: FrontMatter, body: str = "") -> str:
    """Serialize front matter (and optionally a body) back to document text."""
    post = frontmatter.Post(body)
    post.metadata.update(front_matter_data(front_matter))
    return frontmatter.dumps(post, sort_keys=False) + "\n"
