"""Core exceptions and build warnings for Folio.

Fatal problems raise a :class:`FolioError`. Problems that only affect a single
document are reported as :class:`FolioWarning` instances: they are collected on
the build result and logged, and the document either renders in a degraded form
or is left out of the run.
"""


class FolioError(Exception):
    """Base exception for all Folio errors."""


class SourceNotFoundError(FolioError, FileNotFoundError):
    """Raised when the content root does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Content root '{path}' does not exist.")


class DocumentNotFoundError(FolioError):
    """Raised when a document cannot be found by slug."""

    def __init__(self, kind: str, slug: str) -> None:
        self.kind = kind
        self.slug = slug
        super().__init__(f"No {kind} with slug '{slug}'.")


class ConfigLoadError(FolioError):
    """Raised when the site configuration file cannot be loaded or parsed."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load or parse config at '{path}': {reason}")


class FolioWarning(UserWarning):
    """Base class for recoverable, per-document build problems."""

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"{source}: {detail}")


class MalformedFrontMatterWarning(FolioWarning):
    """Front matter is missing, unterminated or not valid YAML."""


class UnparseableCodeAnnotationWarning(FolioWarning):
    """A fenced code block carries an annotation that cannot be parsed."""


class MissingAssetWarning(FolioWarning):
    """A document references an image or asset that is not on disk."""


class MissingPrimaryDocumentWarning(FolioWarning):
    """A content directory has no primary markdown file."""


class UnreadableDocumentWarning(FolioWarning):
    """A document file could not be read or decoded."""


class DuplicateSlugWarning(FolioWarning):
    """Two documents of the same kind resolved to the same slug."""
