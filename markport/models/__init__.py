"""Data models for markport."""

from .document import (
    AnyNode,
    Blockquote,
    BlockNode,
    BulletList,
    Callout,
    CalloutAttrs,
    CodeBlock,
    CodeBlockAttrs,
    Document,
    HardBreak,
    Heading,
    HeadingAttrs,
    HorizontalRule,
    InlineNode,
    LinkAttrs,
    ListItem,
    Mark,
    Node,
    OrderedList,
    Paragraph,
    Table,
    TableCell,
    TableHeader,
    TableRow,
    Tag,
    TagAttrs,
    TaskItem,
    TaskItemAttrs,
    TaskList,
    Text,
    WikiLink,
    WikiLinkAttrs,
    children,
    empty_paragraph,
    iter_nodes,
    parse_node,
    plain_text,
)
from .sidecar import MetadataSidecar, SchemaSnapshot, SidecarCallout, SidecarTag, SidecarWikiLink
from .results import (
    ImportRequest,
    ImportResult,
    ImportWarning,
    NodeDifference,
    NoteMetadata,
    ParseOptions,
    ParseResult,
    ParseStats,
    RoundTripReport,
    StoredDocument,
)

__all__ = [
    "AnyNode", "Blockquote", "BlockNode", "BulletList", "Callout", "CalloutAttrs",
    "CodeBlock", "CodeBlockAttrs", "Document", "HardBreak", "Heading", "HeadingAttrs",
    "HorizontalRule", "InlineNode", "LinkAttrs", "ListItem", "Mark", "Node",
    "OrderedList", "Paragraph", "Table", "TableCell", "TableHeader", "TableRow",
    "Tag", "TagAttrs", "TaskItem", "TaskItemAttrs", "TaskList", "Text", "WikiLink",
    "WikiLinkAttrs", "children", "empty_paragraph", "iter_nodes", "parse_node",
    "plain_text",
    "MetadataSidecar", "SchemaSnapshot", "SidecarCallout", "SidecarTag", "SidecarWikiLink",
    "ImportRequest", "ImportResult", "ImportWarning", "NodeDifference", "NoteMetadata", "ParseOptions",
    "ParseResult", "ParseStats", "RoundTripReport", "StoredDocument",
]
