"""
Sidecar generation for markport.

Builds the ``.meta.json`` companion of an exported document from its tree
and the record metadata supplied by the caller.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ..models.document import Callout, Document, Node, Tag, Text, WikiLink, iter_nodes
from ..models.sidecar import MetadataSidecar, SchemaSnapshot, SidecarCallout, SidecarTag, SidecarWikiLink

SIDECAR_VERSION = "1.0"
SCHEMA_VERSION = "1.0.0"

# Editor extensions implied by the presence of a node type
EXTENSIONS_BY_NODE = (
    ("wikiLink", "WikiLink"),
    ("tag", "Tag"),
    ("callout", "Callout"),
    ("taskList", "TaskList"),
    ("table", "Table"),
)


def extract_wiki_links(tree: Node) -> List[SidecarWikiLink]:
    return [
        SidecarWikiLink(
            target_title=node.attrs.target_title,
            display_text=node.attrs.display_text,
            content_id=node.attrs.content_id,
        )
        for node in iter_nodes(tree)
        if isinstance(node, WikiLink)
    ]


def extract_callouts(tree: Node) -> List[SidecarCallout]:
    """List callouts with their pre-order position in the tree (the root is position 0)."""
    return [
        SidecarCallout(type=node.attrs.type or "note", title=node.attrs.title, position=position)
        for position, node in enumerate(iter_nodes(tree))
        if isinstance(node, Callout)
    ]


def extract_tags(tree: Node) -> List[SidecarTag]:
    """
    List the distinct tags used in a tree, in order of first appearance.

    Used when the caller has no persisted tag records to put in the sidecar.
    """
    tags: Dict[str, SidecarTag] = {}
    for node in iter_nodes(tree):
        if isinstance(node, Tag) and node.attrs.slug not in tags:
            tags[node.attrs.slug] = SidecarTag(
                id=node.attrs.tag_id,
                name=node.attrs.tag_name,
                slug=node.attrs.slug,
                color=node.attrs.color,
            )
    return list(tags.values())


def extract_schema_snapshot(tree: Node) -> SchemaSnapshot:
    """Collect the node types and mark types a tree uses, in order of first appearance."""
    nodes: Dict[str, None] = {}
    marks: Dict[str, None] = {}

    for node in iter_nodes(tree):
        nodes[node.type] = None
        if isinstance(node, Text):
            for mark_type in node.mark_types:
                marks[mark_type] = None

    extensions = [name for node_type, name in EXTENSIONS_BY_NODE if node_type in nodes]
    return SchemaSnapshot(nodes=list(nodes), marks=list(marks), extensions=extensions)


def _timestamp(value: Optional[Union[datetime, str]]) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def generate_sidecar(
    tree: Document,
    content_id: str = "",
    title: str = "",
    slug: str = "",
    created_at: Optional[Union[datetime, str]] = None,
    updated_at: Optional[Union[datetime, str]] = None,
    tags: Optional[List[SidecarTag]] = None,
    custom: Optional[Dict[str, Any]] = None
) -> MetadataSidecar:
    """
    Generate the metadata sidecar for an exported document.

    Args:
        tree: The document being exported
        content_id: Identifier of the stored document
        title: Document title
        slug: URL slug of the document
        created_at: Creation timestamp
        updated_at: Last update timestamp
        tags: Persisted tag records; extracted from the tree when omitted
        custom: Free-form metadata carried through unchanged

    Returns:
        MetadataSidecar ready to be written with ``to_json()``
    """
    return MetadataSidecar(
        version=SIDECAR_VERSION,
        schema_version=SCHEMA_VERSION,
        content_id=content_id,
        title=title,
        slug=slug,
        created_at=_timestamp(created_at),
        updated_at=_timestamp(updated_at),
        tags=tags if tags is not None else extract_tags(tree),
        wiki_links=extract_wiki_links(tree),
        callouts=extract_callouts(tree),
        schema_snapshot=extract_schema_snapshot(tree),
        custom=custom or {},
    )
