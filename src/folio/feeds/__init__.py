"""RSS and sitemap serialization."""

import jinja2

from folio.core.dates import to_iso_date, to_rfc822
from folio.core.utils import escape_xml


def template_environment() -> jinja2.Environment:
    """Jinja environment for the XML templates shipped with the package."""
    env = jinja2.Environment(
        loader=jinja2.PackageLoader("folio.feeds", "templates"),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["xml"] = escape_xml
    env.filters["rfc822"] = to_rfc822
    env.filters["isodate"] = to_iso_date
    return env
