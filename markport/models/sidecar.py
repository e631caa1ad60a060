"""
Metadata sidecar models for markport.

A sidecar is the ``.meta.json`` companion written next to an exported
markdown file. It restores identifiers (tag ids, colors) that plain markdown
cannot carry.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class SidecarTag(BaseModel):
    """A tag as recorded by the exporting application."""

    id: str = Field(default="", description="Identifier minted by the persistence layer")
    name: str = ""
    slug: str = ""
    color: Optional[str] = None


class SidecarWikiLink(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_title: str = Field(default="", alias="targetTitle")
    display_text: Optional[str] = Field(default=None, alias="displayText")
    content_id: Optional[str] = Field(default=None, alias="contentId")


class SidecarCallout(BaseModel):
    type: str = "note"
    title: Optional[str] = None
    position: int = Field(
        default=0,
        description="Pre-order index of the callout node in the exported tree"
    )


class SchemaSnapshot(BaseModel):
    """Node types, mark types and editor extensions used by a document."""

    nodes: List[str] = Field(default_factory=list)
    marks: List[str] = Field(default_factory=list)
    extensions: List[str] = Field(default_factory=list)


class MetadataSidecar(BaseModel):
    """
    The companion metadata record of an exported document.

    Read once per import and never mutated.
    """

    model_config = ConfigDict(populate_by_name=True)

    version: str = "1.0"
    schema_version: str = Field(default="1.0.0", alias="schemaVersion")
    content_id: str = Field(default="", alias="contentId")
    title: str = ""
    slug: str = ""
    created_at: str = Field(default="", alias="createdAt")
    updated_at: str = Field(default="", alias="updatedAt")
    tags: List[SidecarTag] = Field(default_factory=list)
    wiki_links: List[SidecarWikiLink] = Field(default_factory=list, alias="wikiLinks")
    callouts: List[SidecarCallout] = Field(default_factory=list)
    schema_snapshot: Optional[SchemaSnapshot] = Field(default=None, alias="schema")
    custom: Dict[str, Any] = Field(default_factory=dict)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to the ``.meta.json`` wire format."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)
