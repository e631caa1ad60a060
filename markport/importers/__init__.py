"""
Importers for markport.
"""

from .base import BaseImporter, DocumentStore
from .memory import InMemoryDocumentStore
from .service import (
    ImportService,
    calculate_content_hash,
    extract_search_text,
    extract_title_from_tree,
    file_name_to_title,
    slugify,
)

__all__ = [
    "BaseImporter",
    "DocumentStore",
    "ImportService",
    "InMemoryDocumentStore",
    "calculate_content_hash",
    "extract_search_text",
    "extract_title_from_tree",
    "file_name_to_title",
    "slugify",
]
