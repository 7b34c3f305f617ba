"""JSON output sink: listings and per-document files for the client UI."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from folio.content.pipeline import Collection, SiteContent
    from folio.core.context import BuildContext
    from folio.core.types import Document

logger = logging.getLogger(__name__)

LISTING_FILENAME = "index.json"


def listing_payload(collection: Collection) -> dict[str, Any]:
    """Metadata of the published documents plus the collection's tag cloud."""
    return {
        "kind": collection.kind.value,
        "documents": [document.summary() for document in collection.published()],
        "tags": [tag.model_dump(mode="json") for tag in collection.tag_index.cloud],
    }


def document_payload(document: Document) -> dict[str, Any]:
    return document.model_dump(mode="json", exclude={"raw_body", "source_path"}) | {"path": document.path}


class JsonListingSink:
    """Writes ``<route>/index.json`` and ``<route>/<slug>.json`` files.

    Unpublished documents get neither a listing entry nor a file of their own.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def _write(self, path: Path, payload: dict[str, Any]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
        return path

    def publish(self, site: SiteContent, context: BuildContext) -> list[Path]:
        written: list[Path] = []
        for collection in site.collections():
            route_dir = self.output_dir / collection.kind.route
            written.append(self._write(route_dir / LISTING_FILENAME, listing_payload(collection)))
            for document in collection.published():
                written.append(self._write(route_dir / f"{document.slug}.json", document_payload(document)))
        logger.info("Wrote %d JSON files to %s", len(written), self.output_dir)
        return written
