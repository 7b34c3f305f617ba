from folio.content.alternates import alternate_label, split_alternates
from folio.core.types import FrontMatter

SENTINEL = "<!-- alternate -->"


def test_split_on_sentinel_lines():
    raw = "---\ntitle: EN\n---\nHello\n<!-- alternate -->\n---\nlanguage: es\n---\nHola\n"

    segments = split_alternates(raw, SENTINEL)

    assert len(segments) == 2
    assert segments[0].endswith("Hello\n")
    assert segments[1].startswith("---\nlanguage: es")


def test_sentinel_inside_code_fence_is_content():
    raw = "Intro\n```html\n<!-- alternate -->\n```\nOutro\n"

    assert split_alternates(raw, SENTINEL) == [raw]


def test_empty_segments_are_dropped():
    assert split_alternates("\n<!-- alternate -->\n\n<!-- alternate -->\n", SENTINEL) == []
    assert split_alternates("Body\n<!-- alternate -->\n   \n", SENTINEL) == ["Body\n"]


def test_alternate_label_prefers_language_then_label():
    assert alternate_label(FrontMatter(language="es", label="old"), 1, set()) == "es"
    assert alternate_label(FrontMatter(label="v1"), 1, set()) == "v1"
    assert alternate_label(FrontMatter(), 3, set()) == "alternate-3"
    assert alternate_label(FrontMatter(language="es"), 2, {"es", "es-2"}) == "es-3"
