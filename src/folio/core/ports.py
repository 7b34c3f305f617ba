import datetime as dt
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from folio.content.pipeline import SiteContent
    from folio.core.context import BuildContext


@runtime_checkable
class HistoryService(Protocol):
    """Version-control history keyed by document path."""

    def contributors(self, path: Path) -> list[str]:
        """Names of everyone who changed the file, oldest first."""
        ...

    def last_modified(self, path: Path) -> dt.date | None:
        """Date of the last change to the file, or None when untracked."""
        ...


@runtime_checkable
class OutputSink(Protocol):
    """Publishes the built site content somewhere."""

    def publish(self, site: "SiteContent", context: "BuildContext") -> list[Path]:
        """Writes the output and returns the paths it produced."""
        ...
