import pytest

from folio.content.markdown import MarkdownRenderer, RenderContext
from folio.core.exceptions import MissingAssetWarning, UnparseableCodeAnnotationWarning
from folio.core.types import Heading


@pytest.fixture
def renderer() -> MarkdownRenderer:
    return MarkdownRenderer(creator_id="ABC-123", tracked_hosts=["learn.microsoft.com"])


@pytest.fixture
def context() -> RenderContext:
    return RenderContext(route="blog", slug="my-post", assets=frozenset({"diagram.png"}), source="my-post.md")


def test_commonmark_and_tables(renderer, context):
    result = renderer.render("Some *emphasis*.\n\n| a | b |\n|---|---|\n| 1 | 2 |\n", context)

    assert "<em>emphasis</em>" in result.html
    assert "<table>" in result.html
    assert result.warnings == []


def test_annotated_fence(renderer, context):
    result = renderer.render("```ts{2}:app.ts\nconst a = 1;\nconst b = 2;\n```\n", context)

    assert 'data-file="app.ts"' in result.html
    assert '<span class="line highlight">const b = 2;</span>' in result.html
    assert result.warnings == []


def test_unparseable_annotation_degrades_to_plain_block(renderer, context):
    result = renderer.render("```ts{0}\nconst a = 1;\n```\n", context)

    assert result.html == "<pre><code>const a = 1;\n</code></pre>\n"
    assert [type(w) for w in result.warnings] == [UnparseableCodeAnnotationWarning]
    assert result.warnings[0].source == "my-post.md"


def test_code_group_tabs(renderer, context):
    text = "::: code-group\n```ts:a.ts\nlet a;\n```\n\n```js:b.js\nvar b;\n```\n:::\n"

    html = renderer.render(text, context).html

    assert html.startswith('<div class="code-group" data-id="')
    assert 'class="code-group-tab active">a.ts</button>' in html
    assert 'class="code-group-tab">b.js</button>' in html
    assert html.count('class="code-group-code"') == 2
    assert html.count(" hidden>") == 1
    assert html.rstrip().endswith("</div>")


@pytest.mark.parametrize(
    ("name", "css_class", "title"),
    [("tip", "tip", "Tip"), ("danger", "danger", "Alert"), ("note", "info", "Note"), ("ai", "info-ai", "AI Note")],
)
def test_admonitions(renderer, context, name, css_class, title):
    html = renderer.render(f"::: {name}\nBe **careful**.\n:::\n", context).html

    assert html == (
        f'<div class="custom-block {css_class}">\n'
        f'<p class="custom-block-title">{title}</p>\n'
        "<p>Be <strong>careful</strong>.</p>\n"
        "</div>\n"
    )


def test_nested_containers(renderer, context):
    html = renderer.render("::: warning\nOuter\n\n::: tip\nInner\n:::\n\nAfter\n:::\n", context).html

    assert html.count('<div class="custom-block') == 2
    assert html.index("Inner") < html.index("After")
    assert html.count("</div>") == 2


def test_unclosed_container_renders_as_text(renderer, context):
    html = renderer.render("::: tip\nNever closed\n", context).html

    assert "custom-block" not in html
    assert "::: tip" in html


def test_heading_ids_and_toc(renderer, context):
    text = "# Title\n\n## Tips & Tricks\n\n### Setup\n\n## Setup\n\n## Intro {#start}\n"

    result = renderer.render(text, context)

    assert "<h1>Title</h1>" in result.html
    assert (
        '<h2 id="tips-and-tricks"><a href="#tips-and-tricks" class="anchor" tabindex="-1">Tips &amp; Tricks</a></h2>'
        in result.html
    )
    assert '<h2 id="start">' in result.html
    assert "{#start}" not in result.html
    assert result.toc == [
        Heading(description="Tips & Tricks", level=2, slug="tips-and-tricks"),
        Heading(description="Setup", level=3, slug="setup"),
        Heading(description="Setup", level=2, slug="setup-2"),
        Heading(description="Intro", level=2, slug="start"),
    ]


def test_links(renderer, context):
    text = (
        "[docs](https://learn.microsoft.com/en-us/azure?view=x) "
        "[other](https://example.org/) "
        "[sibling](../other-post/index.md#intro) "
        "[bit](/bits/a-bit) "
        "[self](/blog/my-post) "
        "[anchor](#top)\n"
    )

    result = renderer.render(text, context)

    assert 'href="https://learn.microsoft.com/en-us/azure?view=x&amp;WT.mc_id=ABC-123" rel="external"' in result.html
    assert '<a href="https://example.org/" rel="external">' in result.html
    assert '<a href="/blog/other-post#intro">' in result.html
    assert '<a href="#top">' in result.html
    assert result.outgoing_slugs == ["other-post", "a-bit"]


def test_links_are_untracked_without_creator_id(context):
    html = MarkdownRenderer().render("[docs](https://learn.microsoft.com/)\n", context).html

    assert "WT.mc_id" not in html


def test_standalone_image_becomes_figure(renderer, context):
    result = renderer.render("![A diagram](./diagram.png)\n", context)

    assert result.html == (
        "<figure>\n"
        '<img src="/blog/my-post/diagram.png" alt="A diagram" loading="lazy">\n'
        "<figcaption>A diagram</figcaption>\n"
        "</figure>\n"
    )
    assert result.warnings == []


def test_inline_and_missing_images(renderer, context):
    result = renderer.render("See ![missing](missing.png) and ![logo](https://cdn.example.com/l.png).\n", context)

    assert "<figure>" not in result.html
    assert '<img src="/blog/my-post/missing.png" alt="missing" loading="lazy">' in result.html
    assert '<img src="https://cdn.example.com/l.png"' in result.html
    assert [type(w) for w in result.warnings] == [MissingAssetWarning]


def test_leading_tabs_are_expanded(renderer, context):
    html = renderer.render("- item\n\n\tcontinued\n", context).html

    assert "<pre>" not in html
    assert "continued" in html


def test_render_state_does_not_leak_between_calls(renderer, context):
    renderer.render("## Only once\n\n[x](/blog/other)\n", context)
    result = renderer.render("Plain.\n", context)

    assert result.toc == []
    assert result.outgoing_slugs == []


def test_word_count_leaves_out_generated_labels(renderer, context):
    result = renderer.render(
        "## Intro {#start}\n\n::: note\nTwo `words`\n:::\n\n```ts:app.ts\nconst a = 1;\n```\n", context
    )

    assert "custom-block-title" in result.html
    assert result.word_count == 6
