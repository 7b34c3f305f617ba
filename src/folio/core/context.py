"""Build execution context.

Provides run-scoped state without using globals."""

import datetime as dt
import uuid
from dataclasses import dataclass, field

from folio.core.cache import ContentCache
from folio.core.config import FolioConfig
from folio.core.ports import HistoryService


@dataclass(frozen=True)
class BuildContext:
    """Run-scoped context for one build.

    Attributes:
        run_id: Unique identifier for this build
        config: Folio configuration
        build_time: Timestamp stamped into feeds and sitemaps. Injected so
            that two builds of the same input produce identical output.
        cache: Collection cache shared by the pipeline for this run
        history: Optional version-control history service

    """

    config: FolioConfig
    build_time: dt.datetime
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    cache: ContentCache = field(default_factory=ContentCache)
    history: HistoryService | None = None


def build_context(
    config: FolioConfig,
    *,
    build_time: dt.datetime | None = None,
    history: HistoryService | None = None,
) -> BuildContext:
    """Create a context, stamping the current UTC time when none is given."""
    if build_time is None:
        build_time = dt.datetime.now(dt.UTC)
    elif build_time.tzinfo is None:
        build_time = build_time.replace(tzinfo=dt.UTC)
    return BuildContext(config=config, build_time=build_time, history=history)
