"""``:::name`` container blocks: admonitions and code groups.

A container opens with ``:::name`` on its own line and closes with a bare
``:::``. Containers nest. An unclosed container is left to the other block
rules and renders as plain paragraphs.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from markdown_it.common.utils import escapeHtml

from folio.content.markdown.annotations import AnnotationError, parse_annotation

if TYPE_CHECKING:
    from markdown_it.rules_block import StateBlock
    from markdown_it.token import Token
    from markdown_it.utils import OptionsDict

CODE_GROUP = "code-group"

ADMONITIONS: dict[str, tuple[str, str]] = {
    "danger": ("danger", "Alert"),
    "warning": ("warning", "Warning"),
    "info": ("info", "Note"),
    "note": ("info", "Note"),
    "ai": ("info-ai", "AI Note"),
    "ai-explanation": ("info-ai", "AI Explanation"),
    "success": ("success", "Congratulations"),
    "tip": ("tip", "Tip"),
}

_OPEN_RE = re.compile(r"^:::\s*(?P<name>[A-Za-z][\w-]*)\s*$")
_CLOSE_RE = re.compile(r"^:::\s*$")


def _line_text(state: StateBlock, line: int) -> str:
    return state.src[state.bMarks[line] + state.tShift[line] : state.eMarks[line]]


def _find_close(state: StateBlock, start_line: int, end_line: int) -> int | None:
    depth = 1
    line = start_line
    while True:
        line += 1
        if line >= end_line:
            return None
        text = _line_text(state, line)
        if text and state.sCount[line] < state.blkIndent:
            # a less-indented line ends the enclosing list item
            return None
        if state.sCount[line] - state.blkIndent >= 4:
            continue
        if _OPEN_RE.match(text):
            depth += 1
        elif _CLOSE_RE.match(text):
            depth -= 1
            if depth == 0:
                return line


def container_rule(state: StateBlock, startLine: int, endLine: int, silent: bool) -> bool:
    """Block rule producing ``container_open`` / ``container_close`` tokens."""
    if state.sCount[startLine] - state.blkIndent >= 4:
        return False
    match = _OPEN_RE.match(_line_text(state, startLine))
    if match is None:
        return False

    close_line = _find_close(state, startLine, endLine)
    if close_line is None:
        return False
    if silent:
        return True

    name = match.group("name").lower()
    old_parent = state.parentType
    old_line_max = state.lineMax
    state.parentType = "container"  # type: ignore[assignment]
    state.lineMax = close_line

    token = state.push("container_open", "div", 1)
    token.markup = ":::"
    token.info = name
    token.block = True
    token.map = [startLine, close_line + 1]
    open_index = len(state.tokens) - 1

    state.md.block.tokenize(state, startLine + 1, close_line)

    token = state.push("container_close", "div", -1)
    token.markup = ":::"
    token.info = name
    token.block = True

    state.parentType = old_parent
    state.lineMax = old_line_max
    state.line = close_line + 1

    if name == CODE_GROUP:
        body = state.src[state.bMarks[startLine + 1] : state.bMarks[close_line]]
        _mark_code_group(state.tokens, open_index, body)
    return True


def _mark_code_group(tokens: Sequence[Token], open_index: int, body: str) -> None:
    """Number the fences directly inside a code group."""
    opener = tokens[open_index]
    group_id = hashlib.md5(body.encode("utf-8"), usedforsecurity=False).hexdigest()[:12]
    tabs: list[dict[str, Any]] = []
    for token in tokens[open_index + 1 : -1]:
        if token.type != "fence" or token.level != opener.level + 1:
            continue
        tab_id = f"{group_id}-{len(tabs)}"
        token.meta["code_group"] = {"index": len(tabs), "id": tab_id}
        tabs.append({"id": tab_id, "label": _tab_label(token.info)})
    opener.meta["group_id"] = group_id
    opener.meta["tabs"] = tabs


def _tab_label(info: str) -> str:
    try:
        return parse_annotation(info).tab_label
    except AnnotationError:
        return info.split(maxsplit=1)[0] if info.strip() else "txt"


def render_container_open(self: Any, tokens: Sequence[Token], idx: int, options: OptionsDict, env: dict) -> str:
    token = tokens[idx]
    name = token.info
    if name == CODE_GROUP:
        buttons = "".join(
            f'<button data-id="{tab["id"]}" class="code-group-tab{" active" if i == 0 else ""}">'
            f'{escapeHtml(tab["label"])}</button>'
            for i, tab in enumerate(token.meta.get("tabs", []))
        )
        return (
            f'<div class="code-group" data-id="{token.meta.get("group_id", "")}">\n'
            f'<div class="code-group-tabs">{buttons}</div>\n'
        )

    css_class, title = ADMONITIONS.get(name, (name, ""))
    html = f'<div class="custom-block {escapeHtml(css_class)}">\n'
    if title:
        html += f'<p class="custom-block-title">{title}</p>\n'
    return html


def render_container_close(self: Any, tokens: Sequence[Token], idx: int, options: OptionsDict, env: dict) -> str:
    return "</div>\n"
