"""Metadata sidecar reading and generation for markport."""

from .generator import (
    extract_callouts,
    extract_schema_snapshot,
    extract_tags,
    extract_wiki_links,
    generate_sidecar,
)
from .reader import SidecarEnrichmentResult, SidecarParseResult, enrich_with_sidecar, parse_sidecar

__all__ = [
    "SidecarEnrichmentResult",
    "SidecarParseResult",
    "enrich_with_sidecar",
    "extract_callouts",
    "extract_schema_snapshot",
    "extract_tags",
    "extract_wiki_links",
    "generate_sidecar",
    "parse_sidecar",
]
