import datetime as dt
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from folio.content.pipeline import ContentPipeline, SiteContent
from folio.core.config import FolioConfig
from folio.core.context import BuildContext, build_context
from folio.core.exceptions import DocumentNotFoundError, FolioError
from folio.core.types import DocumentKind
from folio.infra.sinks import JsonListingSink, XmlFeedSink
from folio.logging_setup import configure_logging, level_for

app = typer.Typer(name="folio", help="Folio - content pipeline for a personal blog", no_args_is_help=True)

logger = logging.getLogger(__name__)

console = Console()

SITE_ROOT_OPTION = typer.Option(Path("."), "--site-root", "-s", help="Site root holding the content directories.")


def _fail(exc: Exception) -> typer.Exit:
    console.print(f"[bold red]Error:[/] {exc}")
    return typer.Exit(code=1)


@app.callback()
def main(
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Log more; repeat for library debug output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors."),
):
    """
    Folio - content pipeline for a personal blog.
    """
    configure_logging(level_for(verbose, quiet), debug_libraries=verbose > 1)


def _load(site_root: Path, build_time: dt.datetime | None = None) -> tuple[BuildContext, SiteContent]:
    try:
        config = FolioConfig.load(site_root.resolve())
        context = build_context(config, build_time=build_time)
        site = ContentPipeline.from_context(context).load_site()
    except FolioError as exc:
        raise _fail(exc) from exc
    return context, site


def _summary_table(site: SiteContent) -> Table:
    table = Table(title="Content")
    table.add_column("Kind", style="cyan")
    table.add_column("Documents", justify="right")
    table.add_column("Published", justify="right", style="green")
    table.add_column("Warnings", justify="right", style="yellow")
    for collection in site.collections():
        table.add_row(
            collection.kind.route,
            str(len(collection)),
            str(len(collection.published())),
            str(len(collection.warnings)),
        )
    return table


@app.command()
def build(
    site_root: Path = SITE_ROOT_OPTION,
    output: Path | None = typer.Option(None, "--output", "-o", help="Output directory (default from config)."),
    build_time: dt.datetime | None = typer.Option(
        None, "--build-time", help="Timestamp written to the feeds, UTC unless it carries an offset."
    ),
):
    """
    Build the RSS feed, the sitemap and the JSON listings.
    """
    context, site = _load(site_root, build_time)
    output_dir = output or context.config.paths.abs_output_dir
    logger.info("Build %s stamped %s", context.run_id, context.build_time.isoformat())

    written: list[Path] = []
    for sink in (XmlFeedSink(output_dir), JsonListingSink(output_dir)):
        written.extend(sink.publish(site, context))

    console.print(_summary_table(site))
    console.print(f"[bold green]Wrote {len(written)} files to[/] {output_dir}")


@app.command()
def check(
    site_root: Path = SITE_ROOT_OPTION,
    strict: bool = typer.Option(False, "--strict", help="Exit with an error when there are warnings."),
):
    """
    Run the pipeline and report every warning.
    """
    _, site = _load(site_root)
    warnings = site.warnings

    if not warnings:
        console.print("[bold green]No problems found.[/bold green]")
        return

    table = Table(title=f"{len(warnings)} warnings")
    table.add_column("Warning", style="yellow")
    table.add_column("Source", style="cyan")
    table.add_column("Detail")
    for warning in warnings:
        table.add_row(type(warning).__name__, warning.source, warning.detail)
    console.print(table)

    if strict:
        raise typer.Exit(code=1)


@app.command()
def tags(
    site_root: Path = SITE_ROOT_OPTION,
    kind: DocumentKind | None = typer.Option(None, "--kind", "-k", help="Only count tags of this kind."),
    tag: str | None = typer.Option(None, "--tag", "-t", help="List the documents carrying this tag."),
):
    """
    Show the tag cloud, or the documents carrying one tag.
    """
    _, site = _load(site_root)
    index = site.collection(kind).tag_index if kind else site.tag_index

    if tag is not None:
        documents = index.documents_for(tag)
        if not documents:
            console.print(f"[yellow]No documents tagged[/] {tag}")
            return
        table = Table(title=f"{tag} ({index.color_for(tag) or 'no colour'})")
        table.add_column("Kind", style="cyan")
        table.add_column("Slug")
        table.add_column("Title")
        for document in documents:
            table.add_row(document.kind.route, document.slug, document.title)
        console.print(table)
        return

    table = Table(title="Tags")
    table.add_column("Tag", style="cyan")
    table.add_column("Documents", justify="right")
    table.add_column("Colour")
    for tag in index.cloud:
        table.add_row(tag.label, str(tag.count), tag.color or "")
    console.print(table)


@app.command()
def show(
    kind: DocumentKind = typer.Argument(..., help="Document kind."),
    slug: str = typer.Argument(..., help="Document slug."),
    site_root: Path = SITE_ROOT_OPTION,
):
    """
    Show the derived metadata of one document.
    """
    _, site = _load(site_root)
    document = site.find(kind, slug)
    if document is None:
        raise _fail(DocumentNotFoundError(kind.value, slug))

    table = Table(title=document.title, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Path", document.path)
    table.add_row("Published", "yes" if document.published else "no")
    table.add_row("Date", document.date.isoformat() if document.date else "")
    table.add_row("Modified", document.modified_date.isoformat() if document.modified_date else "")
    table.add_row("Author", document.author)
    table.add_row("Tags", ", ".join(document.tags))
    table.add_row("Reading time", f"{document.reading_time_minutes} min ({document.word_count} words)")
    table.add_row("Contributors", ", ".join(document.contributors))
    table.add_row("Alternates", ", ".join(alternate.label for alternate in document.alternates))
    table.add_row("Incoming links", ", ".join(link.slug for link in document.incoming_links))
    table.add_row("Outgoing links", ", ".join(link.slug for link in document.outgoing_links))
    console.print(table)


if __name__ == "__main__":
    app()
