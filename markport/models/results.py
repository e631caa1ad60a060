"""
Result models for markport.

This module defines the records returned by the parser, the sidecar reader,
the round-trip verifier and the import service. All of them are plain output
values with no persistence.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .document import Document


# Warning codes
UNCLOSED_FRONTMATTER = "UNCLOSED_FRONTMATTER"
INVALID_FRONTMATTER = "INVALID_FRONTMATTER"
UNCLOSED_CODE_BLOCK = "UNCLOSED_CODE_BLOCK"
TABLE_COLUMN_MISMATCH = "TABLE_COLUMN_MISMATCH"
MAX_DEPTH_EXCEEDED = "MAX_DEPTH_EXCEEDED"
SIDECAR_MISSING_VERSION = "SIDECAR_MISSING_VERSION"
SIDECAR_MISSING_SCHEMA_VERSION = "SIDECAR_MISSING_SCHEMA_VERSION"
SIDECAR_INVALID_TAGS = "SIDECAR_INVALID_TAGS"
SIDECAR_INVALID_WIKILINKS = "SIDECAR_INVALID_WIKILINKS"
SIDECAR_INVALID_CALLOUTS = "SIDECAR_INVALID_CALLOUTS"
SIDECAR_INVALID_ENTRY = "SIDECAR_INVALID_ENTRY"
SIDECAR_NO_VALID_TAGS = "SIDECAR_NO_VALID_TAGS"
SIDECAR_TAG_NOT_FOUND = "SIDECAR_TAG_NOT_FOUND"
SIDECAR_PARSE_FAILED = "SIDECAR_PARSE_FAILED"


class ImportWarning(BaseModel):
    """
    A non-fatal anomaly detected while importing.

    ``line`` is 1-based and refers to the original input text.
    """

    code: str
    message: str
    line: Optional[int] = None
    suggestion: Optional[str] = None


class ParseOptions(BaseModel):
    """Options accepted by the markdown parser."""

    model_config = ConfigDict(populate_by_name=True)

    parse_semantics: bool = Field(
        default=True,
        alias="parseSemantics",
        description="Recognise the HTML-comment envelopes written by the exporter"
    )
    strip_frontmatter: bool = Field(default=True, alias="stripFrontmatter")
    max_nesting_depth: int = Field(default=64, alias="maxNestingDepth", ge=1)

    @classmethod
    def from_config(cls, cfg: Optional[Any] = None) -> "ParseOptions":
        """Build options from the ``parser`` section of the configuration."""
        if cfg is None:
            from ..config import config as cfg
        return cls(
            parse_semantics=cfg.parse_semantics,
            strip_frontmatter=cfg.strip_frontmatter,
            max_nesting_depth=cfg.max_nesting_depth,
        )


class ParseStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    block_count: int = Field(default=0, alias="blockCount")
    inline_node_count: int = Field(default=0, alias="inlineNodeCount")
    parse_time_ms: float = Field(default=0.0, alias="parseTimeMs")


class ParseResult(BaseModel):
    """The output of ``parse_markdown``."""

    model_config = ConfigDict(populate_by_name=True)

    tree: Document = Field(default_factory=Document)
    warnings: List[ImportWarning] = Field(default_factory=list)
    stats: ParseStats = Field(default_factory=ParseStats)
    frontmatter: Dict[str, Any] = Field(
        default_factory=dict,
        description="The stripped frontmatter block, parsed as YAML"
    )


DifferenceCategory = Literal["lossless", "cosmetic", "semantic"]


class NodeDifference(BaseModel):
    """One discrepancy between an original tree and its reimported copy."""

    path: str
    category: DifferenceCategory
    original: Any = None
    imported: Any = None
    message: str


class RoundTripReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    identical: bool = True
    lossless_count: int = Field(default=0, alias="losslessCount")
    cosmetic_count: int = Field(default=0, alias="cosmeticCount")
    semantic_count: int = Field(default=0, alias="semanticCount")
    differences: List[NodeDifference] = Field(default_factory=list)

    @property
    def summary(self) -> str:
        """One line per difference, prefixed with a count header."""
        lines = [
            f"identical={self.identical} lossless={self.lossless_count} "
            f"cosmetic={self.cosmetic_count} semantic={self.semantic_count}"
        ]
        for difference in self.differences:
            lines.append(f"[{difference.category}] {difference.path}: {difference.message}")
        return "\n".join(lines)


class NoteMetadata(BaseModel):
    """Derived statistics stored alongside an imported note."""

    model_config = ConfigDict(populate_by_name=True)

    word_count: int = Field(default=0, alias="wordCount")
    character_count: int = Field(default=0, alias="characterCount")
    reading_time: int = Field(default=0, alias="readingTime")
    imported_at: datetime = Field(default_factory=datetime.now, alias="importedAt")
    imported_from: Optional[str] = Field(default=None, alias="importedFrom")


class ImportResult(BaseModel):
    """The outcome of importing one file."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    title: str
    tree: Optional[Document] = None
    warnings: List[ImportWarning] = Field(default_factory=list)
    content_id: Optional[str] = Field(default=None, alias="contentId")
    content_hash: Optional[str] = Field(
        default=None,
        alias="contentHash",
        description="SHA-256 of the tree's canonical JSON"
    )
    metadata: Optional[NoteMetadata] = None
    error: Optional[str] = None


class ImportRequest(BaseModel):
    """
    One file handed to the import service.

    Exactly one of ``markdown_content`` and ``json_content`` is expected; JSON
    content bypasses the parser and must be a complete document tree.
    """

    model_config = ConfigDict(populate_by_name=True)

    markdown_content: Optional[str] = Field(default=None, alias="markdownContent")
    json_content: Optional[Dict[str, Any]] = Field(default=None, alias="jsonContent")
    sidecar_content: Optional[str] = Field(default=None, alias="sidecarContent")
    title: Optional[str] = Field(default=None, description="Overrides every derived title")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    parent_id: Optional[str] = Field(default=None, alias="parentId")


class StoredDocument(BaseModel):
    """The record an import hands to a document store."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    slug: str
    tree: Document
    search_text: str = Field(default="", alias="searchText")
    metadata: NoteMetadata = Field(default_factory=NoteMetadata)
    content_hash: str = Field(default="", alias="contentHash")
    parent_id: Optional[str] = Field(default=None, alias="parentId")
    tags: List[str] = Field(default_factory=list, description="Slugs of the tags used in the tree")
