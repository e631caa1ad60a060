"""
Base importer and store interfaces for markport.

This module defines the abstract interfaces the import pipeline is built on:
importers turn files into document trees, and stores persist the result.
"""

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ..models import ImportRequest, ImportResult, StoredDocument


class BaseImporter(ABC):
    """
    Abstract base class for all importers.

    Each importer converts one source file (markdown, lossless JSON, ...)
    into a document tree and reports the outcome as an ImportResult.
    """

    @abstractmethod
    def import_file(self, request: ImportRequest) -> ImportResult:
        """
        Import a single file.

        Returns:
            ImportResult; failures are reported through ``success`` and
            ``error`` rather than raised
        """
        pass

    def import_files(self, requests: Iterable[ImportRequest]) -> List[ImportResult]:
        """Import several files in order, continuing past failures."""
        return [self.import_file(request) for request in requests]


class DocumentStore(ABC):
    """
    Persistence boundary of the import pipeline.

    The tree is handed over as-is; the store is responsible for identifiers,
    slug uniqueness and tag records.
    """

    @abstractmethod
    def save(self, document: StoredDocument) -> str:
        """
        Persist a document.

        Returns:
            The identifier assigned to the stored document
        """
        pass

    @abstractmethod
    def get(self, content_id: str) -> Optional[StoredDocument]:
        """Retrieve a stored document by identifier."""
        pass
