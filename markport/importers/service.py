"""
Import service for markport.

Orchestrates the full import pipeline for one file:

1. Parse markdown (or accept a lossless JSON tree)
2. Enrich with sidecar metadata, if provided
3. Resolve the title and derive search text and note metadata
4. Hand the result to a document store, if one is configured
"""

import hashlib
import json
import logging
import math
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..config import ConfigManager, config
from ..models import (
    CodeBlock,
    Document,
    HardBreak,
    Heading,
    ImportRequest,
    ImportResult,
    ImportWarning,
    Node,
    NoteMetadata,
    Paragraph,
    ParseOptions,
    StoredDocument,
    Tag,
    Text,
    WikiLink,
    children,
    iter_nodes,
    plain_text,
)
from ..models.results import SIDECAR_PARSE_FAILED
from ..parsing import parse_markdown
from ..sidecar import enrich_with_sidecar, parse_sidecar
from .base import BaseImporter, DocumentStore

FILE_EXTENSION_RE = re.compile(r"\.(md|json|meta\.json)$", re.IGNORECASE)
SLUG_INVALID_RE = re.compile(r"[^a-z0-9]+")


def file_name_to_title(file_name: Optional[str]) -> Optional[str]:
    """Convert a file name to a title (strip extension, replace separators)."""
    if not file_name:
        return None
    stem = FILE_EXTENSION_RE.sub("", Path(file_name).name)
    return re.sub(r"[-_]", " ", stem).strip() or None


def extract_title_from_tree(tree: Document, max_length: int = 100) -> Optional[str]:
    """
    Extract a title from a document tree.

    Returns:
        The text of the first H1 heading, else the first paragraph text cut
        to ``max_length`` characters, else None
    """
    for node in tree.content:
        if isinstance(node, Heading) and node.attrs.level == 1:
            text = plain_text(node).strip()
            if text:
                return text

    for node in tree.content:
        if isinstance(node, Paragraph):
            text = plain_text(node).strip()
            if text:
                return text[:max_length]

    return None


def _inline_text(node: Node) -> str:
    if isinstance(node, Text):
        return node.text
    if isinstance(node, Tag):
        return node.attrs.tag_name
    if isinstance(node, WikiLink):
        return node.attrs.display_text or node.attrs.target_title
    if isinstance(node, HardBreak):
        return "\n"
    return ""


def extract_search_text(tree: Node) -> str:
    """Flatten a tree to plain text, one line per text-bearing block."""
    lines: List[str] = []

    def visit(node: Node) -> None:
        if isinstance(node, (Paragraph, Heading, CodeBlock)):
            text = "".join(_inline_text(child) for child in node.content).strip()
            if text:
                lines.append(text)
            return
        for child in children(node):
            visit(child)

    visit(tree)
    return "\n".join(lines)


def calculate_content_hash(tree: Document) -> str:
    """Calculate a stable hash of a tree from its canonical JSON form."""
    # Using a sorted, compact JSON representation for a stable hash
    tree_json = json.dumps(tree.to_dict(), sort_keys=True, separators=(',', ':'))
    return hashlib.sha256(tree_json.encode('utf-8')).hexdigest()


def slugify(title: str) -> str:
    slug = SLUG_INVALID_RE.sub("-", title.lower()).strip("-")
    return slug or "untitled"


class ImportService(BaseImporter):
    """
    Imports markdown and JSON files as documents.

    Without a store the service still parses, enriches and describes each
    file; the result then carries no ``content_id``.
    """

    def __init__(
        self,
        store: Optional[DocumentStore] = None,
        options: Optional[ParseOptions] = None,
        cfg: Optional[ConfigManager] = None
    ):
        """
        Initialize the import service.

        Args:
            store: Where imported documents are persisted
            options: Parser options; defaults come from configuration
            cfg: Configuration to read import defaults from
        """
        self.config = cfg or config
        self.store = store
        self.options = options or ParseOptions.from_config(self.config)

    def import_file(self, request: ImportRequest) -> ImportResult:
        warnings: List[ImportWarning] = []
        frontmatter: Dict[str, Any] = {}
        fallback_title = request.title or request.file_name or "Unknown"

        # Step 1: get the document tree
        if request.json_content is not None:
            if request.json_content.get("type") != "doc":
                return ImportResult(
                    success=False,
                    title=fallback_title,
                    error="JSON file must have root type 'doc'. "
                          "This may be a .meta.json sidecar uploaded as the main file.",
                )
            try:
                tree = Document.model_validate(request.json_content)
            except ValidationError as e:
                logging.warning(f"Rejected JSON import {request.file_name}: {e}")
                return ImportResult(
                    success=False,
                    title=fallback_title,
                    error=f"JSON file is not a valid document tree: {e.error_count()} errors",
                )
        elif request.markdown_content:
            parsed = parse_markdown(request.markdown_content, self.options)
            tree = parsed.tree
            frontmatter = parsed.frontmatter
            warnings.extend(parsed.warnings)
        else:
            return ImportResult(
                success=False,
                title=fallback_title,
                error="No markdown or JSON content provided",
            )

        # Step 2: enrich with the sidecar
        sidecar_title = None
        if request.sidecar_content:
            sidecar_result = parse_sidecar(request.sidecar_content)
            if sidecar_result:
                warnings.extend(sidecar_result.warnings)
                sidecar_title = sidecar_result.sidecar.title or None
                enrichment = enrich_with_sidecar(tree, sidecar_result.sidecar)
                tree = enrichment.tree
                warnings.extend(enrichment.warnings)
            else:
                warnings.append(ImportWarning(
                    code=SIDECAR_PARSE_FAILED,
                    message="Failed to parse .meta.json sidecar; importing without metadata enrichment",
                ))

        # Step 3: title, search text and metadata
        title = self.resolve_title(tree, request, sidecar_title, frontmatter)
        search_text = extract_search_text(tree)
        metadata = self.build_metadata(search_text, request.file_name)
        content_hash = calculate_content_hash(tree)

        logging.info(
            f"Imported '{title}' from {request.file_name or 'input'}: "
            f"{metadata.word_count} words, {len(warnings)} warnings"
        )

        # Step 4: persist
        content_id = None
        if self.store is not None:
            tag_slugs = list(dict.fromkeys(
                node.attrs.slug for node in iter_nodes(tree) if isinstance(node, Tag) and node.attrs.slug
            ))
            try:
                content_id = self.store.save(StoredDocument(
                    title=title,
                    slug=slugify(title),
                    tree=tree,
                    search_text=search_text,
                    metadata=metadata,
                    content_hash=content_hash,
                    parent_id=request.parent_id,
                    tags=tag_slugs,
                ))
            except Exception as e:
                logging.error(f"Error storing imported document '{title}': {e}")
                return ImportResult(
                    success=False,
                    title=title,
                    warnings=warnings,
                    error=str(e) or "Failed to create content",
                )

        return ImportResult(
            success=True,
            title=title,
            tree=tree,
            warnings=warnings,
            content_id=content_id,
            content_hash=content_hash,
            metadata=metadata,
        )

    def resolve_title(
        self,
        tree: Document,
        request: ImportRequest,
        sidecar_title: Optional[str] = None,
        frontmatter: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Pick the title of an imported document.

        Order: explicit title, sidecar title, frontmatter ``title``, first H1,
        first paragraph, file name, configured default.
        """
        frontmatter_title = (frontmatter or {}).get("title")
        if not isinstance(frontmatter_title, str):
            frontmatter_title = None

        return (
            request.title
            or sidecar_title
            or (frontmatter_title.strip() if frontmatter_title else None)
            or extract_title_from_tree(tree, self.config.title_max_length)
            or file_name_to_title(request.file_name)
            or self.config.default_title
        )

    def build_metadata(self, search_text: str, file_name: Optional[str] = None) -> NoteMetadata:
        word_count = len(search_text.split())
        return NoteMetadata(
            word_count=word_count,
            character_count=len(search_text),
            reading_time=math.ceil(word_count / self.config.words_per_minute),
            imported_from=file_name,
        )
