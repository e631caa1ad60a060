"""
markport - markdown import pipeline for rich-text notes.

Parses markdown into an editor document tree, restores metadata from
``.meta.json`` sidecars, exports trees back to markdown and verifies that a
round trip through markdown loses nothing.
"""

__version__ = "0.1.0"

from .models import Document, ImportWarning, ParseOptions, ParseResult, RoundTripReport
from .parsing import parse_inline_content, parse_markdown
from .sidecar import enrich_with_sidecar, generate_sidecar, parse_sidecar
from .export import ExportSettings, export_markdown
from .verification import round_trip_markdown, verify_round_trip
from .importers import ImportService, InMemoryDocumentStore

__all__ = [
    "Document",
    "ExportSettings",
    "ImportService",
    "ImportWarning",
    "InMemoryDocumentStore",
    "ParseOptions",
    "ParseResult",
    "RoundTripReport",
    "enrich_with_sidecar",
    "export_markdown",
    "generate_sidecar",
    "parse_inline_content",
    "parse_markdown",
    "parse_sidecar",
    "round_trip_markdown",
    "verify_round_trip",
]
