"""
Markdown exporter for markport.

Converts a document tree back to markdown, optionally embedding tag and
wiki-link metadata in HTML-comment envelopes that the parser recognises on
reimport, and optionally producing the ``.meta.json`` sidecar text.
"""

import logging
import re
from datetime import datetime
from typing import Any, List, Literal, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field

from ..models.document import (
    Blockquote,
    BulletList,
    Callout,
    CodeBlock,
    Document,
    HardBreak,
    Heading,
    HorizontalRule,
    ListItem,
    Node,
    OrderedList,
    Paragraph,
    Table,
    TableRow,
    Tag,
    TaskList,
    Text,
    WikiLink,
)
from ..models.sidecar import MetadataSidecar

# Characters escaped in unmarked text so the parser reads them literally
TEXT_ESCAPE_RE = re.compile(r"([\\`*_~\[\]#])")
TABLE_ESCAPE_RE = re.compile(r"([\\`*_~\[\]#|])")
BACKTICK_RUN_RE = re.compile(r"^\s*(`{3,})", re.MULTILINE)
# Line starts the block parser would read as a list, quote, rule or table
BLOCK_START_RE = re.compile(r"^([ \t]*)([->|]|\d+\.(?=\s))", re.MULTILINE)

INDENT = "  "


class ExportSettings(BaseModel):
    """Options for markdown export."""

    model_config = ConfigDict(populate_by_name=True)

    preserve_semantics: bool = Field(
        default=True,
        alias="preserveSemantics",
        description="Wrap tags and wiki-links in HTML-comment envelopes carrying their ids"
    )
    wiki_link_style: Literal["[[]]", "markdown"] = Field(default="[[]]", alias="wikiLinkStyle")
    code_block_language_prefix: bool = Field(default=True, alias="codeBlockLanguagePrefix")
    include_frontmatter: bool = Field(default=False, alias="includeFrontmatter")

    @classmethod
    def from_config(cls, cfg: Optional[Any] = None) -> "ExportSettings":
        """Build settings from the ``export`` section of the configuration."""
        if cfg is None:
            from ..config import config as cfg
        return cls(
            preserve_semantics=cfg.get("export.preserve_semantics", True),
            wiki_link_style=cfg.get("export.wiki_link_style", "[[]]"),
            code_block_language_prefix=cfg.get("export.code_block_language_prefix", True),
            include_frontmatter=cfg.get("export.include_frontmatter", False),
        )


def _escape_block_start(match: re.Match) -> str:
    indent, marker = match.groups()
    if marker[0].isdigit():
        return f"{indent}{marker[:-1]}\\."
    return f"{indent}\\{marker}"


def _escape_line_starts(text: str) -> str:
    """Escape paragraph lines that would otherwise reparse as another block."""
    return BLOCK_START_RE.sub(_escape_block_start, text)


def _quote(text: str) -> str:
    """Prefix every line with the blockquote marker."""
    return "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))


class MarkdownSerializer:
    """
    Serializes document trees to markdown.

    Marks are applied innermost-last, so the first mark of a text node ends
    up as the outermost delimiter, matching the order the parser assigns.
    Code spans are the exception and always wrap the text directly.
    """

    def __init__(self, settings: Optional[ExportSettings] = None):
        self.settings = settings or ExportSettings()

    def serialize(self, tree: Node, title: Optional[str] = None) -> str:
        """
        Convert a tree to markdown.

        Args:
            tree: The document (or any block node) to serialize
            title: Written to the frontmatter when frontmatter is enabled

        Returns:
            The markdown text
        """
        body = self.block(tree).strip("\n")
        if not self.settings.include_frontmatter:
            return body

        metadata = {}
        if title:
            metadata["title"] = title
        metadata["created"] = datetime.now().isoformat()
        frontmatter = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True)
        return f"---\n{frontmatter}---\n\n{body}"

    # Blocks

    def block(self, node: Node, depth: int = 0) -> str:
        if isinstance(node, Document):
            return self.blocks(node.content)
        if isinstance(node, Paragraph):
            return _escape_line_starts(self.inline(node.content))
        if isinstance(node, Heading):
            return "#" * node.attrs.level + " " + self.inline(node.content)
        if isinstance(node, CodeBlock):
            return self.code_block(node)
        if isinstance(node, Blockquote):
            return _quote(self.blocks(node.content))
        if isinstance(node, Callout):
            return self.callout(node)
        if isinstance(node, HorizontalRule):
            return "---"
        if isinstance(node, (BulletList, OrderedList)):
            return self.list_block(node, depth)
        if isinstance(node, TaskList):
            return self.task_list(node, depth)
        if isinstance(node, Table):
            return self.table(node)
        # Inline nodes reaching block level render as a paragraph of their own
        return self.inline([node])

    def blocks(self, nodes: List[Node]) -> str:
        return "\n\n".join(self.block(node) for node in nodes)

    def code_block(self, node: CodeBlock) -> str:
        code = "".join(child.text for child in node.content)
        longest = max((len(run) for run in BACKTICK_RUN_RE.findall(code)), default=2)
        fence = "`" * max(3, longest + 1)
        language = (node.attrs.language or "") if self.settings.code_block_language_prefix else ""
        if not code:
            return f"{fence}{language}\n{fence}"
        return f"{fence}{language}\n{code}\n{fence}"

    def callout(self, node: Callout) -> str:
        header = f"> [!{node.attrs.type or 'note'}]"
        if node.attrs.title:
            header += f" {node.attrs.title}"
        return f"{header}\n{_quote(self.blocks(node.content))}"

    def _item_body(self, content: List[Node], depth: int) -> Tuple[str, List[str]]:
        """Split list item content into its inline text and its nested list lines."""
        text_parts: List[str] = []
        nested: List[str] = []
        for child in content:
            if isinstance(child, (BulletList, OrderedList, TaskList)):
                nested.append(self.block(child, depth + 1))
            else:
                text_parts.append(self.block(child, depth))
        return " ".join(part for part in text_parts if part), nested

    def list_block(self, node: Node, depth: int) -> str:
        lines: List[str] = []
        for index, item in enumerate(node.content):
            marker = "- " if isinstance(node, BulletList) else f"{index + 1}. "
            text, nested = self._item_body(item.content, depth)
            lines.append(INDENT * depth + marker + text)
            lines.extend(nested)
        return "\n".join(lines)

    def task_list(self, node: TaskList, depth: int) -> str:
        lines: List[str] = []
        for item in node.content:
            checked = "x" if item.attrs.checked else " "
            text, nested = self._item_body(item.content, depth)
            lines.append(INDENT * depth + f"- [{checked}] {text}")
            lines.extend(nested)
        return "\n".join(lines)

    def table(self, node: Table) -> str:
        lines: List[str] = []
        for index, row in enumerate(node.content):
            cells = [self._cell(cell) for cell in row.content]
            lines.append("| " + " | ".join(cells) + " |")
            if index == 0:
                lines.append("| " + " | ".join("---" for _ in cells) + " |")
        return "\n".join(lines)

    def _cell(self, cell: Node) -> str:
        parts = [
            self.inline(child.content, in_table=True) if isinstance(child, Paragraph) else self.block(child)
            for child in cell.content
        ]
        return " ".join(part for part in parts if part).replace("\n", " ").strip()

    # Inline

    def inline(self, nodes: List[Node], in_table: bool = False) -> str:
        return "".join(self.inline_node(node, in_table) for node in nodes)

    def inline_node(self, node: Node, in_table: bool = False) -> str:
        if isinstance(node, Text):
            return self.text(node, in_table)
        if isinstance(node, HardBreak):
            return "  \n"
        if isinstance(node, Tag):
            return self.tag(node)
        if isinstance(node, WikiLink):
            return self.wiki_link(node)
        if isinstance(node, ListItem):
            return self._item_body(node.content, 0)[0]
        if isinstance(node, TableRow):
            return ""
        return self.block(node)

    def text(self, node: Text, in_table: bool = False) -> str:
        types = node.mark_types
        if "code" in types:
            # a code span is always innermost, its content is literal
            text = f"`{node.text}`"
        else:
            pattern = TABLE_ESCAPE_RE if in_table else TEXT_ESCAPE_RE
            text = pattern.sub(r"\\\1", node.text)

        # '_' keeps italic unambiguous next to bold's '**'
        italic = "_" if "bold" in types else "*"
        for mark in reversed(node.marks or []):
            if mark.type == "bold":
                text = f"**{text}**"
            elif mark.type == "italic":
                text = f"{italic}{text}{italic}"
            elif mark.type == "strike":
                text = f"~~{text}~~"
            elif mark.type == "link":
                href = mark.attrs.href if mark.attrs else ""
                text = f"[{text}]({href})"
        return text

    def tag(self, node: Tag) -> str:
        name = node.attrs.tag_name
        if self.settings.preserve_semantics:
            return f"<!-- tag:{node.attrs.tag_id}:{node.attrs.color or ''} -->#{name}<!-- /tag -->"
        return f"#{name}"

    def wiki_link(self, node: WikiLink) -> str:
        target = node.attrs.target_title
        display = node.attrs.display_text

        if self.settings.wiki_link_style != "[[]]":
            return f"[{display or target}]({target})"

        link = f"[[{target}|{display}]]" if display else f"[[{target}]]"
        if self.settings.preserve_semantics:
            return f"<!-- wikilink:{node.attrs.content_id or ''} -->{link}<!-- /wikilink -->"
        return link


def export_markdown(
    tree: Document,
    settings: Optional[ExportSettings] = None,
    sidecar: Optional[MetadataSidecar] = None
) -> Tuple[str, Optional[str]]:
    """
    Export a document to markdown.

    Args:
        tree: The document to export
        settings: Export settings; defaults come from the ``export`` config section
        sidecar: Metadata to write alongside the markdown

    Returns:
        Tuple of (markdown text, sidecar JSON text or None)
    """
    settings = settings or ExportSettings.from_config()
    title = sidecar.title if sidecar else None
    markdown = MarkdownSerializer(settings).serialize(tree, title=title)
    sidecar_json = sidecar.to_json() if sidecar else None

    logging.info(
        f"Exported {len(tree.content)} blocks to {len(markdown)} characters of markdown"
        + (" with sidecar" if sidecar_json else "")
    )
    return markdown, sidecar_json
