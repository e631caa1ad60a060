"""
In-memory document store for markport.

This module provides a store that keeps imported documents in a dictionary,
used by the tests and by the command line when no persistence is configured.
"""

import logging
import uuid
from typing import Dict, List, Optional

from ..models import StoredDocument
from .base import DocumentStore


class InMemoryDocumentStore(DocumentStore):
    """
    Document store backed by a dictionary.

    Slugs are made unique by appending a counter, and the tag slugs of every
    saved document are collected into a shared tag registry.
    """

    def __init__(self):
        self._documents: Dict[str, StoredDocument] = {}
        self._tag_usage: Dict[str, int] = {}

    def save(self, document: StoredDocument) -> str:
        content_id = str(uuid.uuid4())
        slug = self._unique_slug(document.slug)
        self._documents[content_id] = document.model_copy(update={"slug": slug})

        for tag in document.tags:
            self._tag_usage[tag] = self._tag_usage.get(tag, 0) + 1

        logging.info(f"Stored '{document.title}' as {content_id} (slug: {slug})")
        return content_id

    def get(self, content_id: str) -> Optional[StoredDocument]:
        return self._documents.get(content_id)

    def all(self) -> List[StoredDocument]:
        return list(self._documents.values())

    @property
    def tag_usage(self) -> Dict[str, int]:
        """Number of stored documents using each tag slug."""
        return dict(self._tag_usage)

    def _unique_slug(self, slug: str) -> str:
        existing = {document.slug for document in self._documents.values()}
        if slug not in existing:
            return slug
        counter = 2
        while f"{slug}-{counter}" in existing:
            counter += 1
        return f"{slug}-{counter}"

    def __len__(self) -> int:
        return len(self._documents)
