"""Tag normalization, colour assignment and the global tag index."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING

from folio.core.types import TagCount, TagIndex
from folio.core.utils import tag_key

if TYPE_CHECKING:
    from folio.core.types import Document

logger = logging.getLogger(__name__)


def _split_tag_string(value: str) -> list[str]:
    text = value.strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    return text.split(",")


def display_tag(tag: str, casing: Mapping[str, str] | None = None) -> str:
    """Return the display form of a tag.

    Known spellings (``TypeScript``, ``NgRx``) win; otherwise the first letter
    is upper-cased and the rest is kept as written.
    """
    tag = tag.strip()
    if not tag:
        return tag
    if casing:
        known = casing.get(tag_key(tag))
        if known:
            return known
    return tag[0].upper() + tag[1:]


def normalize_tags(value: object, casing: Mapping[str, str] | None = None) -> list[str]:
    """Turn a front matter ``tags`` value into an ordered, de-duplicated list.

    Accepts a comma-separated string or a YAML sequence. Order follows the
    source; later case-insensitive duplicates are dropped.

    Examples:
        >>> normalize_tags("angular, ngrx", {"ngrx": "NgRx"})
        ['Angular', 'NgRx']

    """
    if value is None:
        return []
    if isinstance(value, str):
        raw_items: Iterable[object] = _split_tag_string(value)
    elif isinstance(value, list | tuple | set):
        raw_items = value
    else:
        raw_items = [value]

    tags: list[str] = []
    seen: set[str] = set()
    for item in raw_items:
        if item is None:
            continue
        text = str(item).strip().strip("'\"").strip()
        if not text:
            continue
        key = tag_key(text)
        if key in seen:
            continue
        seen.add(key)
        tags.append(display_tag(text, casing))
    return tags


def tag_color(tags: Sequence[str], colors: Mapping[str, str]) -> str | None:
    """Colour of the first tag, in document order, that has one registered."""
    for tag in tags:
        color = colors.get(tag_key(tag))
        if color:
            return color
    return None


def build_tag_index(
    documents: Sequence[Document],
    *,
    colors: Mapping[str, str] | None = None,
    aliases: Mapping[str, str] | None = None,
    excluded: Iterable[str] = (),
    limit: int | None = None,
) -> TagIndex:
    """Aggregate tags across ``documents``.

    ``documents`` should already be filtered to the published ones and be in
    listing order; per-tag document lists keep that order.

    Args:
        documents: Ordered documents to index.
        colors: Lower-cased tag to colour name.
        aliases: Lower-cased tag to the label it is counted under.
        excluded: Tags left out of the cloud (they stay in the index).
        limit: Maximum number of tags in the cloud, ``None`` for all.

    Returns:
        The tag index with its cloud sorted by descending count, ties broken
        by the order in which tags were first seen.

    """
    colors = colors or {}
    aliases = {tag_key(k): v for k, v in (aliases or {}).items()}
    excluded_keys = {tag_key(tag) for tag in excluded}

    labels: dict[str, str] = {}
    by_tag: dict[str, list[Document]] = {}
    for document in documents:
        for tag in document.tags:
            label = aliases.get(tag_key(tag), tag)
            key = tag_key(label)
            labels.setdefault(key, label)
            bucket = by_tag.setdefault(key, [])
            # Two aliased tags on one document still count it once
            if not bucket or bucket[-1] is not document:
                bucket.append(document)

    tag_colors = {key: colors[key] for key in labels if key in colors}

    # dicts keep insertion order, so enumerate() gives the first-seen rank
    ranked = sorted(
        ((rank, key) for rank, key in enumerate(labels) if key not in excluded_keys),
        key=lambda item: (-len(by_tag[item[1]]), item[0]),
    )
    if limit is not None:
        ranked = ranked[:limit]

    cloud = [
        TagCount(key=key, label=labels[key], count=len(by_tag[key]), color=tag_colors.get(key))
        for _, key in ranked
    ]
    logger.debug("Indexed %d tags across %d documents", len(labels), len(documents))
    return TagIndex(labels=labels, documents=by_tag, colors=tag_colors, cloud=cloud)
