"""Output sinks."""

from folio.infra.sinks.json_listing import JsonListingSink
from folio.infra.sinks.xml_feeds import XmlFeedSink

__all__ = ["JsonListingSink", "XmlFeedSink"]
