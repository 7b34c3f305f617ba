from folio.content.markdown.annotations import AnnotationError, CodeAnnotation, parse_annotation
from folio.content.markdown.renderer import MarkdownRenderer, RenderContext, RenderResult

__all__ = [
    "AnnotationError",
    "CodeAnnotation",
    "MarkdownRenderer",
    "RenderContext",
    "RenderResult",
    "parse_annotation",
]
