"""Entry point for `python -m folio`."""

from folio.cli.app import app

app(prog_name="folio")
