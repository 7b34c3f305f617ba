"""Markdown to HTML for document bodies.

CommonMark plus tables, annotated fences, ``:::`` containers, heading anchors
with a table of contents, site-aware links and figures. Per-render state
(warnings, links, headings) travels in the markdown-it ``env`` so one
renderer can be shared by every worker thread.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml

from folio.content.markdown.annotations import (
    AnnotationError,
    parse_annotation,
    render_code_block,
    render_plain_block,
)
from folio.content.markdown.containers import container_rule, render_container_close, render_container_open
from folio.core.exceptions import FolioWarning, MissingAssetWarning, UnparseableCodeAnnotationWarning
from folio.core.types import Heading
from folio.core.utils import count_words, heading_slug, strip_tags

if TYPE_CHECKING:
    from markdown_it.rules_core import StateCore
    from markdown_it.token import Token
    from markdown_it.utils import OptionsDict

logger = logging.getLogger(__name__)

CREATOR_PARAM = "WT.mc_id"
ENV_KEY = "folio"

_EXPLICIT_ID_RE = re.compile(r"\s*\{#(?P<id>[A-Za-z][\w-]*)\}\s*$")
_LEADING_TABS_RE = re.compile(r"^\t+", re.MULTILINE)
_EXTERNAL_SCHEMES = frozenset({"http", "https"})


@dataclass(frozen=True)
class RenderContext:
    """Where the markdown being rendered lives on the site."""

    route: str
    slug: str
    assets: frozenset[str] = frozenset()
    source: str = "<string>"


@dataclass
class RenderResult:
    html: str
    toc: list[Heading] = field(default_factory=list)
    outgoing_slugs: list[str] = field(default_factory=list)
    word_count: int = 0
    warnings: list[FolioWarning] = field(default_factory=list)


@dataclass
class _RenderState:
    context: RenderContext
    creator_id: str | None = None
    tracked_hosts: frozenset[str] = frozenset()
    toc: list[Heading] = field(default_factory=list)
    outgoing_slugs: list[str] = field(default_factory=list)
    word_count: int = 0
    warnings: list[FolioWarning] = field(default_factory=list)


def _inline_text(children: Iterable[Token] | None) -> str:
    return "".join(child.content for child in children or () if child.type in ("text", "code_inline"))


def _heading_ids(state: StateCore) -> None:
    """Assign ids to level 2+ headings and collect the table of contents."""
    render_state: _RenderState | None = state.env.get(ENV_KEY)
    used: set[str] = set()
    tokens = state.tokens
    for idx, token in enumerate(tokens):
        if token.type != "heading_open":
            continue
        inline = tokens[idx + 1]
        explicit: str | None = None
        children = inline.children or []
        text_children = [child for child in children if child.type == "text"]
        if text_children:
            last = text_children[-1]
            match = _EXPLICIT_ID_RE.search(last.content)
            if match:
                explicit = match.group("id")
                last.content = last.content[: match.start()]

        level = int(token.tag[1])
        if level < 2:
            continue
        anchor = explicit or heading_slug(_inline_text(children))
        if not anchor:
            continue
        unique = anchor
        suffix = 2
        while unique in used:
            unique = f"{anchor}-{suffix}"
            suffix += 1
        used.add(unique)
        token.attrSet("id", unique)
        if render_state is not None:
            render_state.toc.append(
                Heading(description=_inline_text(children).strip(), level=level, slug=unique)
            )


def _figure_paragraphs(state: StateCore) -> None:
    """Hide the ``<p>`` around paragraphs that hold nothing but one image."""
    tokens = state.tokens
    for idx in range(1, len(tokens) - 1):
        inline = tokens[idx]
        if inline.type != "inline" or tokens[idx - 1].type != "paragraph_open":
            continue
        children = [c for c in inline.children or [] if not (c.type == "text" and not c.content.strip())]
        if len(children) == 1 and children[0].type == "image":
            children[0].meta["figure"] = True
            tokens[idx - 1].hidden = True
            tokens[idx + 1].hidden = True


def _count_words(state: StateCore) -> None:
    """Count the words the author wrote, ignoring labels the renderer adds."""
    render_state: _RenderState | None = state.env.get(ENV_KEY)
    if render_state is None:
        return
    words = 0
    for token in state.tokens:
        if token.type == "inline":
            text = " ".join(
                child.content for child in token.children or () if child.type in ("text", "code_inline")
            )
            words += count_words(text)
        elif token.type in ("fence", "code_block"):
            words += count_words(token.content)
        elif token.type == "html_block":
            words += count_words(strip_tags(token.content))
    render_state.word_count = words


def _rewrite_href(href: str, route: str) -> str:
    """Turn links to sibling markdown files into site routes.

    ``../other-post/index.md#intro`` becomes ``/blog/other-post#intro``.
    """
    path, hash_mark, fragment = href.partition("#")
    if urlsplit(path).scheme or path.startswith("//"):
        return href
    if path.endswith("index.md"):
        target = posixpath.dirname(path.rstrip("/"))
        if target.startswith("/"):
            path = target or "/"
        else:
            name = posixpath.basename(posixpath.normpath(target)) if target else ""
            path = f"/{route}/{name}" if name and name not in (".", "..") else f"/{route}"
    elif path.startswith("../"):
        path = f"/{route}/{path.removeprefix('../')}"
    return f"{path}{hash_mark}{fragment}"


def _with_creator_id(href: str, state: _RenderState) -> str:
    if not state.creator_id:
        return href
    parts = urlsplit(href)
    if (parts.hostname or "").lower() not in state.tracked_hosts:
        return href
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.append((CREATOR_PARAM, state.creator_id))
    return urlunsplit(parts._replace(query=urlencode(query)))


def _resolve_image(src: str, state: _RenderState) -> str:
    parts = urlsplit(src)
    if not src or parts.scheme or src.startswith("/"):
        return src
    context = state.context
    asset = posixpath.normpath(parts.path.removeprefix("./"))
    if asset not in context.assets:
        state.warnings.append(MissingAssetWarning(context.source, f"missing image '{asset}'"))
    return f"/{context.route}/{context.slug}/{asset}"


# --- render rules, bound to the markdown-it renderer as ``self`` ---


def _render_fence(self: Any, tokens: Sequence[Token], idx: int, options: OptionsDict, env: dict) -> str:
    token = tokens[idx]
    state: _RenderState = env[ENV_KEY]
    try:
        annotation = parse_annotation(token.info)
    except AnnotationError as exc:
        state.warnings.append(UnparseableCodeAnnotationWarning(state.context.source, str(exc)))
        html = render_plain_block(token.content)
    else:
        html = render_code_block(token.content, annotation)

    group = token.meta.get("code_group")
    if group is None:
        return html
    hidden = "" if group["index"] == 0 else " hidden"
    return f'<div data-id="{group["id"]}" class="code-group-code"{hidden}>{html}</div>\n'


def _render_heading_open(self: Any, tokens: Sequence[Token], idx: int, options: OptionsDict, env: dict) -> str:
    token = tokens[idx]
    anchor = token.attrGet("id")
    if not anchor:
        return self.renderToken(tokens, idx, options, env)
    anchor = escapeHtml(str(anchor))
    return f'<{token.tag} id="{anchor}"><a href="#{anchor}" class="anchor" tabindex="-1">'


def _render_heading_close(self: Any, tokens: Sequence[Token], idx: int, options: OptionsDict, env: dict) -> str:
    if tokens[idx - 2].attrGet("id"):
        return f"</a></{tokens[idx].tag}>\n"
    return self.renderToken(tokens, idx, options, env)


def _render_link_open(self: Any, tokens: Sequence[Token], idx: int, options: OptionsDict, env: dict) -> str:
    token = tokens[idx]
    state: _RenderState = env[ENV_KEY]
    context = state.context
    href = _rewrite_href(str(token.attrGet("href") or ""), context.route)
    parts = urlsplit(href)

    if parts.scheme in _EXTERNAL_SCHEMES:
        href = _with_creator_id(href, state)
        token.attrSet("rel", "external")
    elif href.startswith("/") and not href.startswith("//"):
        slug = parts.path.rstrip("/").rsplit("/", 1)[-1]
        if slug and slug not in (context.slug, context.route) and slug not in state.outgoing_slugs:
            state.outgoing_slugs.append(slug)
    token.attrSet("href", href)
    return self.renderToken(tokens, idx, options, env)


def _render_image(self: Any, tokens: Sequence[Token], idx: int, options: OptionsDict, env: dict) -> str:
    token = tokens[idx]
    state: _RenderState = env[ENV_KEY]
    src = _resolve_image(str(token.attrGet("src") or ""), state)
    alt = self.renderInlineAsText(token.children or [], options, env)
    title = token.attrGet("title")

    img = f'<img src="{escapeHtml(src)}" alt="{escapeHtml(alt)}" loading="lazy"'
    if title:
        img += f' title="{escapeHtml(str(title))}"'
    img += ">"
    if not token.meta.get("figure"):
        return img
    caption = f"<figcaption>{escapeHtml(alt)}</figcaption>\n" if alt else ""
    return f"<figure>\n{img}\n{caption}</figure>\n"


class MarkdownRenderer:
    """Renders document markdown with the site's extensions.

    Args:
        creator_id: Value of the tracking parameter appended to links to
            ``tracked_hosts``. ``None`` disables tracking.
        tracked_hosts: Host names that receive the tracking parameter.

    """

    def __init__(self, creator_id: str | None = None, tracked_hosts: Iterable[str] = ()) -> None:
        self.creator_id = creator_id
        self.tracked_hosts = frozenset(host.lower() for host in tracked_hosts)

        md = MarkdownIt("commonmark", {"html": True}).enable("table")
        md.block.ruler.before(
            "fence",
            "container",
            container_rule,
            {"alt": ["paragraph", "reference", "blockquote", "list"]},
        )
        md.core.ruler.push("heading_ids", _heading_ids)
        md.core.ruler.push("figure_paragraphs", _figure_paragraphs)
        md.core.ruler.push("word_count", _count_words)

        md.add_render_rule("container_open", render_container_open)
        md.add_render_rule("container_close", render_container_close)
        md.add_render_rule("fence", _render_fence)
        md.add_render_rule("heading_open", _render_heading_open)
        md.add_render_rule("heading_close", _render_heading_close)
        md.add_render_rule("link_open", _render_link_open)
        md.add_render_rule("image", _render_image)
        self._md = md

    def render(self, text: str, context: RenderContext) -> RenderResult:
        """Render ``text`` and report what was found along the way."""
        state = _RenderState(context=context, creator_id=self.creator_id, tracked_hosts=self.tracked_hosts)
        source = _LEADING_TABS_RE.sub(lambda m: "  " * len(m.group(0)), text)
        html = self._md.render(source, {ENV_KEY: state})
        for warning in state.warnings:
            logger.debug("%s", warning)
        return RenderResult(
            html=html,
            toc=state.toc,
            outgoing_slugs=state.outgoing_slugs,
            word_count=state.word_count,
            warnings=state.warnings,
        )
