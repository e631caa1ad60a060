"""
Document tree models for markport.

This module defines the rich-document tree produced by the markdown parser.
Every node kind has its own model; the ``type`` field carries the editor's
node name and is the discriminator used when trees are loaded from JSON.
"""

from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


MarkType = Literal["bold", "italic", "strike", "code", "link"]

LINK_TARGET = "_blank"
LINK_REL = "noopener noreferrer nofollow"

CALLOUT_TYPES = ("note", "tip", "warning", "danger", "info", "success")


class LinkAttrs(BaseModel):
    """Attributes carried by a link mark."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    href: str = ""
    target: str = LINK_TARGET
    rel: str = LINK_REL
    css_class: Optional[str] = Field(default=None, alias="class")


class Mark(BaseModel):
    """
    A formatting annotation attached to a text node.

    Only link marks carry attributes.
    """

    model_config = ConfigDict(frozen=True)

    type: MarkType
    attrs: Optional[LinkAttrs] = None


class Node(BaseModel):
    """Base class for every document node."""

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the editor's JSON shape, omitting null fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


# Inline nodes

class Text(Node):
    type: Literal["text"] = "text"
    text: str = ""
    marks: Optional[List[Mark]] = None

    @property
    def mark_types(self) -> List[str]:
        return [mark.type for mark in self.marks or []]


class HardBreak(Node):
    type: Literal["hardBreak"] = "hardBreak"


class TagAttrs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tag_id: str = Field(default="", alias="tagId")
    tag_name: str = Field(default="", alias="tagName")
    slug: str = ""
    color: Optional[str] = None


class Tag(Node):
    """An inline tag. An empty ``tagId`` means the tag is not yet resolved."""

    type: Literal["tag"] = "tag"
    attrs: TagAttrs = Field(default_factory=TagAttrs)


class WikiLinkAttrs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_title: str = Field(default="", alias="targetTitle")
    display_text: Optional[str] = Field(default=None, alias="displayText")
    content_id: Optional[str] = Field(default=None, alias="contentId")


class WikiLink(Node):
    type: Literal["wikiLink"] = "wikiLink"
    attrs: WikiLinkAttrs = Field(default_factory=WikiLinkAttrs)


# Block nodes

class Paragraph(Node):
    type: Literal["paragraph"] = "paragraph"
    content: List["InlineNode"] = Field(default_factory=list)


class HeadingAttrs(BaseModel):
    level: int = Field(default=1, ge=1, le=6)


class Heading(Node):
    type: Literal["heading"] = "heading"
    attrs: HeadingAttrs = Field(default_factory=HeadingAttrs)
    content: List["InlineNode"] = Field(default_factory=list)


class CodeBlockAttrs(BaseModel):
    language: Optional[str] = ""


class CodeBlock(Node):
    """A fenced code block. Its body is a single unmarked text node, or nothing."""

    type: Literal["codeBlock"] = "codeBlock"
    attrs: CodeBlockAttrs = Field(default_factory=CodeBlockAttrs)
    content: List[Text] = Field(default_factory=list)


class Blockquote(Node):
    type: Literal["blockquote"] = "blockquote"
    content: List["BlockNode"] = Field(default_factory=list)


class CalloutAttrs(BaseModel):
    type: str = "note"
    title: Optional[str] = None


class Callout(Node):
    type: Literal["callout"] = "callout"
    attrs: CalloutAttrs = Field(default_factory=CalloutAttrs)
    content: List["BlockNode"] = Field(default_factory=list)


class HorizontalRule(Node):
    type: Literal["horizontalRule"] = "horizontalRule"


class ListItem(Node):
    type: Literal["listItem"] = "listItem"
    content: List["BlockNode"] = Field(default_factory=list)


class BulletList(Node):
    type: Literal["bulletList"] = "bulletList"
    content: List[ListItem] = Field(default_factory=list)


class OrderedList(Node):
    type: Literal["orderedList"] = "orderedList"
    content: List[ListItem] = Field(default_factory=list)


class TaskItemAttrs(BaseModel):
    checked: bool = False


class TaskItem(Node):
    type: Literal["taskItem"] = "taskItem"
    attrs: TaskItemAttrs = Field(default_factory=TaskItemAttrs)
    content: List["BlockNode"] = Field(default_factory=list)


class TaskList(Node):
    type: Literal["taskList"] = "taskList"
    content: List[TaskItem] = Field(default_factory=list)


class TableHeader(Node):
    type: Literal["tableHeader"] = "tableHeader"
    content: List["BlockNode"] = Field(default_factory=list)


class TableCell(Node):
    type: Literal["tableCell"] = "tableCell"
    content: List["BlockNode"] = Field(default_factory=list)


class TableRow(Node):
    type: Literal["tableRow"] = "tableRow"
    content: List["TableCellNode"] = Field(default_factory=list)


class Table(Node):
    type: Literal["table"] = "table"
    content: List[TableRow] = Field(default_factory=list)


class Document(Node):
    """The root of every tree. ``content`` may be empty but is never missing."""

    type: Literal["doc"] = "doc"
    content: List["BlockNode"] = Field(default_factory=list)


InlineNode = Annotated[
    Union[Text, HardBreak, Tag, WikiLink],
    Field(discriminator="type"),
]

BlockNode = Annotated[
    Union[
        Paragraph, Heading, CodeBlock, Blockquote, Callout, HorizontalRule,
        BulletList, OrderedList, TaskList, Table,
    ],
    Field(discriminator="type"),
]

TableCellNode = Annotated[
    Union[TableHeader, TableCell],
    Field(discriminator="type"),
]

AnyNode = Annotated[
    Union[
        Document, Paragraph, Heading, CodeBlock, Blockquote, Callout,
        HorizontalRule, BulletList, OrderedList, ListItem, TaskList, TaskItem,
        Table, TableRow, TableHeader, TableCell, Text, HardBreak, Tag, WikiLink,
    ],
    Field(discriminator="type"),
]

# Enable forward references for the recursive models
for _model in (Paragraph, Heading, Blockquote, Callout, ListItem, TaskItem,
               TableHeader, TableCell, TableRow, Table, Document):
    _model.model_rebuild()

_NODE_ADAPTER = TypeAdapter(AnyNode)


def parse_node(data: Dict[str, Any]) -> Node:
    """
    Load any node (and its subtree) from its JSON dictionary.

    Raises:
        pydantic.ValidationError: If the data is not a known node shape
    """
    return _NODE_ADAPTER.validate_python(data)


def empty_paragraph() -> Paragraph:
    """The placeholder used for containers that would otherwise be empty."""
    return Paragraph()


def children(node: Node) -> List[Node]:
    """Return the child list of a node, or an empty list for leaf kinds."""
    return list(getattr(node, "content", None) or [])


def iter_nodes(node: Node) -> Iterator[Node]:
    """Walk a tree depth-first, yielding the node itself first."""
    yield node
    for child in children(node):
        yield from iter_nodes(child)


def plain_text(node: Node) -> str:
    """Concatenate the text of the direct text children of a node."""
    return "".join(child.text for child in children(node) if isinstance(child, Text))
